"""Merge configuration layers into a validated `TaggConfig`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterator, Mapping, Sequence, Tuple

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import TaggConfig

ENV_PREFIX = "TAGG__"
# Keys never read from `TAGG__` variables.
ENV_EXCLUDED_PATHS = frozenset({("storage_path",)})


def resolve_with_precedence(
    *,
    defaults: TaggConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> TaggConfig:
    """Layer overrides onto ``defaults``; later layers win.

    Order is defaults < file < environment < CLI. Keys may be nested mappings
    or dotted paths such as ``logging.level``.

    Raises:
        ConfigError: If a layer is malformed or the merged result fails validation.
    """
    merged: dict[str, Any] = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for label, layer in layers:
        if layer is None:
            continue
        if not isinstance(layer, MappingABC):
            raise ConfigError(f"{label.capitalize()} overrides must be a mapping.")
        for path, value in _leaves(layer, (), label):
            set_path(merged, path, value, label=label)

    try:
        return TaggConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def set_path(
    target: dict[str, Any],
    path: Sequence[str],
    value: Any,
    *,
    label: str = "config",
) -> None:
    """Assign ``value`` at ``path`` inside ``target``, creating sections as needed.

    Args:
        target: Mapping modified in place.
        path: Key segments from the top level down.
        value: Value stored at the final segment.
        label: Source name used in error messages.

    Raises:
        ConfigError: If an intermediate segment holds a non-mapping value.
    """
    node = target
    for depth, segment in enumerate(path[:-1]):
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            where = ".".join(path[: depth + 1])
            raise ConfigError(f"{label.capitalize()} override cannot nest inside {where!r}.")
        node = child
    node[path[-1]] = deepcopy(value)


def flatten_for_env(config: TaggConfig) -> Dict[str, str]:
    """Render every leaf of ``config`` as a `TAGG__SECTION__KEY` variable."""
    flat: Dict[str, str] = {}
    for path, value in _leaves(config.model_dump(mode="python"), (), "config"):
        if path in ENV_EXCLUDED_PATHS:
            continue
        if isinstance(value, list):
            rendered = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            rendered = "null"
        else:
            rendered = str(value)
        flat[ENV_PREFIX + "__".join(part.upper() for part in path)] = rendered
    return flat


def _leaves(
    source: Mapping[str, Any], prefix: Tuple[str, ...], label: str
) -> Iterator[Tuple[Tuple[str, ...], Any]]:
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label.capitalize()} override keys must be strings.")
        path = prefix + tuple(key.split("."))
        if isinstance(value, MappingABC) and value:
            yield from _leaves(value, path, label)
        else:
            yield path, value


__all__ = [
    "ENV_EXCLUDED_PATHS",
    "ENV_PREFIX",
    "flatten_for_env",
    "resolve_with_precedence",
    "set_path",
]
