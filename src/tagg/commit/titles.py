"""Title extraction for committed files."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Protocol

LOGGER = logging.getLogger(__name__)


class TitleExtractor(Protocol):
    """Derive a human-readable title for a file, if one is available."""

    def extract(self, path: Path, extension: str) -> Optional[str]:
        ...


class NullTitleExtractor:
    """Extractor that never finds a title."""

    def extract(self, path: Path, extension: str) -> Optional[str]:
        return None


class PdfTitleExtractor:
    """Read PDF titles with the external `pdftitle` helper.

    Any failure (missing executable, non-zero exit, timeout, empty output) means
    no title is available; it is never raised to the caller.
    """

    def __init__(self, executable: str = "pdftitle", timeout: float = 30.0) -> None:
        self.executable = executable
        self.timeout = timeout

    def extract(self, path: Path, extension: str) -> Optional[str]:
        if extension.lower() != "pdf":
            return None
        program = shutil.which(self.executable)
        if program is None:
            LOGGER.debug("%s not found on PATH; skipping title extraction.", self.executable)
            return None
        try:
            completed = subprocess.run(
                [program, "-p", str(path)],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            LOGGER.debug("Title extraction failed for %s: %s", path, exc)
            return None
        if completed.returncode != 0:
            LOGGER.debug(
                "Title extraction for %s exited with %d: %s",
                path,
                completed.returncode,
                completed.stderr.strip(),
            )
            return None
        title = completed.stdout.strip()
        return title or None


__all__ = ["TitleExtractor", "NullTitleExtractor", "PdfTitleExtractor"]
