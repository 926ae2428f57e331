"""State management errors."""


class StateError(Exception):
    """Raised when the state file cannot be read, parsed, or written."""
