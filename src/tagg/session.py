"""Per-invocation session passed explicitly through the command call chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from tagg.config import ConfigManager, TaggConfig
from tagg.registration.prompts import Confirmer
from tagg.state import StateRepository, TaggState

LOGGER = logging.getLogger(__name__)


@dataclass
class Session:
    """Configuration, loaded state, and collaborators for one invocation.

    Attributes:
        config: Resolved configuration.
        repository: Repository owning the state file.
        state: In-memory state, loaded once at startup.
        storage_dir: Flat content-store directory.
        confirmer: Decision provider for overwrite confirmations.
        verbose: Whether trace output was requested.
    """

    config: TaggConfig
    repository: StateRepository
    state: TaggState
    storage_dir: Path
    confirmer: Confirmer
    verbose: bool = False

    @classmethod
    def open(
        cls,
        manager: ConfigManager,
        *,
        confirmer: Confirmer,
        verbose: bool = False,
    ) -> "Session":
        """Load configuration and state for a new invocation.

        Args:
            manager: Configuration manager locating the config file.
            confirmer: Decision provider used while staging.
            verbose: Whether trace output was requested.

        Returns:
            Session: Session holding the freshly loaded state.

        Raises:
            ConfigError: If the configuration cannot be loaded.
            StateError: If the state file cannot be parsed.
        """
        LOGGER.info("Loading config from %s", manager.config_path)
        config = manager.load()
        repository = StateRepository(manager.state_file(config))
        LOGGER.info("Loading state from %s", repository.state_path)
        state = repository.load()
        return cls(
            config=config,
            repository=repository,
            state=state,
            storage_dir=manager.storage_dir(config),
            confirmer=confirmer,
            verbose=verbose,
        )

    def save(self) -> None:
        """Persist the full state."""
        self.repository.save(self.state)

    def storage_path_for(self, name: str) -> Path:
        """Return where a stored file named ``name`` lives on disk."""
        return self.storage_dir / name


__all__ = ["Session"]
