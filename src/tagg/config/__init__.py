"""Configuration management for tagg."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import TaggConfig
from .resolver import (
    ENV_EXCLUDED_PATHS,
    ENV_PREFIX,
    flatten_for_env,
    resolve_with_precedence,
    set_path,
)

DEFAULT_CONFIG_PATH = Path("~/.tagg/config.yaml")
DEFAULT_STATE_FILENAME = "state.json"
CONFIG_ENV_VAR = "TAGG_CONFIG"
STATE_ENV_VAR = "TAGG_STATE"
_CONFIG_HEADER = textwrap.dedent(
    """\
    # tagg configuration file
    # Generated automatically; manage via `tagg config set` or edit by hand.
    # Relative paths are resolved against the directory containing this file.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._env = env if env is not None else os.environ
        if config_path is None:
            override = self._env.get(CONFIG_ENV_VAR)
            config_path = Path(override) if override else DEFAULT_CONFIG_PATH
        self._config_path = config_path.expanduser()

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> TaggConfig:
        """Resolve the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides with the highest precedence.
            include_env: Whether `TAGG__` variables participate.
            ensure_file: Create a default config file first when it is missing.
            env_overrides: Environment to read instead of the manager's own.

        Returns:
            TaggConfig: Validated configuration.

        Raises:
            ConfigError: If the file is unreadable or a value fails validation.
        """
        if ensure_file:
            self.ensure_exists()

        env_layer = None
        if include_env:
            env_layer = self._extract_env(self._env if env_overrides is None else env_overrides)

        return resolve_with_precedence(
            defaults=TaggConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_layer or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored in the config file."""
        return self._read_file()

    def save(self, config: TaggConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to the config file, replacing its contents."""
        data = config.model_dump(mode="python") if isinstance(config, TaggConfig) else config
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Write a default config file when none exists yet and return its path."""
        if not self._config_path.exists():
            self.save(TaggConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def storage_dir(self, config: TaggConfig) -> Path:
        """Return the content-store directory described by ``config``.

        Unlike the state file, the storage location has no environment override.
        """
        return self._relative_to_config(config.storage_path)

    def state_file(self, config: TaggConfig) -> Path:
        """Return the state file location, honoring the `TAGG_STATE` override."""
        override = self._env.get(STATE_ENV_VAR)
        if override:
            return Path(override).expanduser()
        return self._relative_to_config(config.state_path or DEFAULT_STATE_FILENAME)

    # Internal helpers -------------------------------------------------

    def _relative_to_config(self, value: str) -> Path:
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return self._config_path.parent / path

    def _read_file(self) -> dict[str, Any]:
        text = self.read_text()
        try:
            raw = yaml.safe_load(text) if text else None
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {self._config_path}: {exc}") from exc
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        timestamp = f"# Last updated: {stamp}\n"
        self._config_path.write_text(_CONFIG_HEADER + timestamp + serialized, encoding="utf-8")

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [part.lower() for part in key[len(ENV_PREFIX) :].split("__") if part]
            if not path or tuple(path) in ENV_EXCLUDED_PATHS:
                continue
            try:
                value: Any = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                value = raw_value
            set_path(overrides, path, value, label="environment")
        return overrides


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_STATE_FILENAME",
    "CONFIG_ENV_VAR",
    "STATE_ENV_VAR",
    "TaggConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "set_path",
    "ConfigError",
]
