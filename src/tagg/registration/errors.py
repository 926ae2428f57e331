"""Registration errors raised for individual files."""


class RegistrationError(Exception):
    """Base exception for per-file registration problems."""


class PathResolutionError(RegistrationError):
    """Raised when a path cannot be canonicalized to an absolute location."""


class InvalidTargetError(RegistrationError):
    """Raised when a path refers to a directory or a symbolic link."""
