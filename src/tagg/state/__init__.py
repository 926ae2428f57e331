"""State persistence helpers for tagg."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .errors import StateError
from .models import (
    COMMENT_MAIN,
    DESCRIPTION_KEY,
    TITLE_KEY,
    StagedFile,
    Storage,
    StoredFile,
    TaggState,
    normalize_tags,
)

LOGGER = logging.getLogger(__name__)


class StateRepository:
    """Load and fully rewrite the JSON state file."""

    def __init__(self, state_path: Path) -> None:
        """Initialize the repository for a state file.

        Args:
            state_path: Location of the JSON document holding the state.
        """
        self._state_path = state_path

    @property
    def state_path(self) -> Path:
        """Return the location of the state file.

        Returns:
            Path: Path of the JSON state document.
        """
        return self._state_path

    def load(self) -> TaggState:
        """Load the state, returning an empty state when no file exists yet.

        Returns:
            TaggState: Deserialized state model.

        Raises:
            StateError: If the file cannot be read or its contents are invalid.
        """
        path = self._state_path
        if not path.exists():
            LOGGER.debug("No state file at %s; starting empty.", path)
            return TaggState()

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StateError(f"Unable to read state file {path}: {exc}") from exc
        if not text.strip():
            return TaggState()

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StateError(f"Invalid state data in {path}: {exc}") from exc

        try:
            return TaggState.model_validate(data)
        except ValidationError as exc:
            raise StateError(f"Invalid state data in {path}: {exc}") from exc

    def save(self, state: TaggState) -> None:
        """Persist the full state, replacing the previous file atomically.

        Args:
            state: State model to serialize to disk.

        Raises:
            StateError: If the state cannot be written.
        """
        path = self._state_path
        payload = state.model_dump(mode="json", by_alias=True)
        temporary = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temporary.write_text(
                json.dumps(payload, indent=2, sort_keys=False) + "\n", encoding="utf-8"
            )
            temporary.replace(path)
        except OSError as exc:
            raise StateError(f"Unable to write state file {path}: {exc}") from exc
        LOGGER.info("Saved state file %s", path)


__all__ = [
    "StateRepository",
    "TaggState",
    "StagedFile",
    "StoredFile",
    "Storage",
    "COMMENT_MAIN",
    "TITLE_KEY",
    "DESCRIPTION_KEY",
    "normalize_tags",
    "StateError",
]
