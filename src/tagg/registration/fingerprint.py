"""Content fingerprints recorded when files are staged."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from tagg.state import StagedFile

LOGGER = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


class HashComputer:
    """Compute content hashes for staged files."""

    def compute(self, path: Path) -> str:
        """Return the SHA-256 hex digest of the file contents."""
        digest = hashlib.sha256()
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
        return digest.hexdigest()

    def matches(self, path: Path, fingerprint: str) -> bool:
        """Return True when the file still hashes to ``fingerprint``."""
        return self.compute(path) == fingerprint

    def verify(self, entry: StagedFile) -> bool:
        """Check a staged file against the fingerprint recorded at staging time.

        Entries staged without a fingerprint always pass. An unreadable file
        fails the check; the copy step reports the underlying error.

        Args:
            entry: Staged entry about to be committed.

        Returns:
            bool: False when the contents no longer match.
        """
        if entry.content_fingerprint is None:
            return True
        try:
            return self.matches(entry.path, entry.content_fingerprint)
        except OSError as exc:
            LOGGER.warning("Unable to fingerprint %s: %s", entry.path, exc)
            return False
