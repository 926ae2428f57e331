"""Commit pipeline errors."""


class CommitError(Exception):
    """Raised when copying or trashing a file fails, aborting the commit."""


class StorageCollisionError(AssertionError):
    """Raised when a freshly generated storage name is already taken.

    This signals a broken name generator or a corrupted store and is never retried.
    """
