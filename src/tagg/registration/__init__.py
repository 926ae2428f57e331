"""Registration-area management for tagg."""

from .errors import InvalidTargetError, PathResolutionError, RegistrationError
from .fingerprint import HashComputer
from .manager import (
    AmbiguousPrefix,
    AnnotateReport,
    BatchReport,
    DropReport,
    RegistrationManager,
    StageReport,
    canonicalize_target,
    merge_tags,
)
from .prompts import ClickConfirmer, Confirmer, StaticConfirmer

__all__ = [
    "AmbiguousPrefix",
    "AnnotateReport",
    "BatchReport",
    "ClickConfirmer",
    "Confirmer",
    "DropReport",
    "HashComputer",
    "InvalidTargetError",
    "PathResolutionError",
    "RegistrationError",
    "RegistrationManager",
    "StageReport",
    "StaticConfirmer",
    "canonicalize_target",
    "merge_tags",
]
