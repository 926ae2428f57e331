"""Reversible removal of committed originals."""

from __future__ import annotations

from pathlib import Path

from send2trash import send2trash


def send_to_trash(path: Path) -> None:
    """Move ``path`` to the platform trash or recycle bin."""
    send2trash(str(path))


__all__ = ["send_to_trash"]
