"""Configuration models describing tagg settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TaggBaseModel(BaseModel):
    """Shared configuration for tagg settings models."""

    model_config = ConfigDict(extra="forbid")


class LoggingSettings(TaggBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level used when `--verbose` is not given.
    """

    level: str = "WARNING"


class CLIOptions(TaggBaseModel):
    """CLI behavior defaults.

    Attributes:
        verbose_default: Whether commands emit trace output without `--verbose`.
        confirm_default: Default answer offered when replacing a staged comment.
    """

    verbose_default: bool = False
    confirm_default: bool = True


class TaggConfig(TaggBaseModel):
    """Top-level configuration struct for tagg.

    Relative paths are resolved against the directory holding the configuration file.

    Attributes:
        storage_path: Flat directory that receives committed files.
        state_path: Location of the JSON state file; defaults to `state.json`.
        hash_added_files: Whether staging records a content fingerprint.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    storage_path: str = "storage"
    state_path: Optional[str] = None
    hash_added_files: bool = False
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "TaggBaseModel",
    "LoggingSettings",
    "CLIOptions",
    "TaggConfig",
]
