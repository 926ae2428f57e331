"""Stage, merge, and drop files in the registration area; annotate stored files."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from tagg.lookup import resolve_prefix
from tagg.state import COMMENT_MAIN, StagedFile, StoredFile, normalize_tags

from .errors import InvalidTargetError, PathResolutionError, RegistrationError
from .fingerprint import HashComputer

if TYPE_CHECKING:
    from tagg.session import Session

LOGGER = logging.getLogger(__name__)

OVERWRITE_QUESTION = "Do you want to replace the previous comment with the new comment?"


class BatchReport(BaseModel):
    """Per-item outcomes of a batch operation.

    Attributes:
        warnings: Non-fatal problems; the batch continued past them.
        notes: Informational messages.
        duplicates: Number of ignored duplicate tags, keyed by entry name.
    """

    warnings: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    duplicates: Dict[str, int] = Field(default_factory=dict)


class StageReport(BatchReport):
    """Outcome of staging files.

    Attributes:
        added: Paths that created new staged entries.
        merged: Paths merged into an existing staged entry.
        kept_comments: Paths whose previous primary comment was kept.
    """

    added: List[Path] = Field(default_factory=list)
    merged: List[Path] = Field(default_factory=list)
    kept_comments: List[Path] = Field(default_factory=list)


class DropReport(BatchReport):
    """Outcome of dropping staged files.

    Attributes:
        removed: Staged entries removed from the registration area.
        missing: Names that matched no staged entry.
    """

    removed: List[StagedFile] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)


class AmbiguousPrefix(BaseModel):
    """A prefix that matched several stored files."""

    prefix: str
    candidates: List[StoredFile]


class AnnotateReport(BatchReport):
    """Outcome of editing tags or comments of stored files.

    Attributes:
        updated: Stored files that were modified.
        missing: Prefixes that matched nothing.
        ambiguous: Prefixes that matched several entries and were skipped.
    """

    updated: List[StoredFile] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    ambiguous: List[AmbiguousPrefix] = Field(default_factory=list)


def merge_tags(existing: Iterable[str], new: Iterable[str]) -> Tuple[List[str], int]:
    """Union two tag collections.

    Args:
        existing: Tags already present.
        new: Tags being added.

    Returns:
        tuple[list[str], int]: Sorted de-duplicated tags and how many incoming
            tags were dropped as duplicates.
    """
    combined = [*existing, *new]
    merged = normalize_tags(combined)
    return merged, len(combined) - len(merged)


def canonicalize_target(raw: str | Path) -> Path:
    """Return the absolute canonical path of a file that may be staged.

    Raises:
        PathResolutionError: If the path does not exist or cannot be resolved.
        InvalidTargetError: If the path is a symbolic link or a directory.
    """
    candidate = Path(raw).expanduser().absolute()
    if candidate.is_symlink():
        raise InvalidTargetError(f"{raw} is a symlink rather than a file")
    try:
        resolved = candidate.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise PathResolutionError(
            f"{raw} failed to canonicalize to an absolute path: {exc}"
        ) from exc
    if resolved.is_dir():
        raise InvalidTargetError(f"{raw} is a directory rather than a file")
    return resolved


class RegistrationManager:
    """Apply registration-area and annotation operations to a session's state."""

    def __init__(self, session: "Session", *, hasher: HashComputer | None = None) -> None:
        self.session = session
        self.hasher = hasher or HashComputer()

    @property
    def staged(self) -> List[StagedFile]:
        return self.session.state.registration_area

    def stage(
        self,
        paths: Sequence[str | Path],
        tags: Sequence[str] = (),
        comment: Optional[str] = None,
    ) -> StageReport:
        """Stage files, merging into existing entries for the same path.

        Args:
            paths: Files to stage.
            tags: Tags applied to every file.
            comment: Optional primary comment applied to every file.

        Returns:
            StageReport: Per-file outcomes.
        """
        report = StageReport()
        for raw in paths:
            try:
                path = canonicalize_target(raw)
            except RegistrationError as exc:
                report.warnings.append(f"Skipped {raw}: {exc}")
                continue

            existing = next((entry for entry in self.staged if entry.path == path), None)
            if existing is None:
                self.staged.append(self._new_entry(path, tags, comment))
                report.added.append(path)
                LOGGER.info("Staged %s", path)
                continue

            LOGGER.info("%s already existed in the registration area.", path)
            self._merge_entry(existing, tags, comment, report)
            report.merged.append(path)

        if report.added or report.merged:
            self.session.state.last_registration = datetime.now(timezone.utc)
        self.session.save()
        return report

    def drop(self, names: Sequence[str]) -> DropReport:
        """Remove staged entries whose final path component equals a given name.

        Args:
            names: Exact file names to remove; every matching entry is dropped.

        Returns:
            DropReport: Removed entries and names that matched nothing.
        """
        report = DropReport()
        for name in names:
            removed = [entry for entry in self.staged if entry.name == name]
            if not removed:
                report.missing.append(name)
                report.warnings.append(f"Failed to find {name!r} in registration-area")
                continue
            self.staged[:] = [entry for entry in self.staged if entry.name != name]
            report.removed.extend(removed)
            LOGGER.info("Dropped %s from the registration area (%d entries)", name, len(removed))

        self.session.save()
        return report

    def add_tags(self, prefixes: Sequence[str], tags: Sequence[str]) -> AnnotateReport:
        """Merge tags into stored files identified by prefix.

        Args:
            prefixes: Storage-name prefixes, each resolved independently.
            tags: Tags to add.

        Returns:
            AnnotateReport: Updated entries and unresolved prefixes.
        """
        report = AnnotateReport()
        for entry in self._resolve_each(prefixes, report):
            entry.tags, duplicates = merge_tags(entry.tags, tags)
            if duplicates:
                report.duplicates[entry.storage_name] = duplicates
                report.notes.append(
                    f"{entry.storage_name} has {duplicates} new tag(s) ignored due to being "
                    "duplicates"
                )
            report.updated.append(entry)

        self.session.save()
        return report

    def set_comment(
        self,
        prefixes: Sequence[str],
        body: str,
        title: str = COMMENT_MAIN,
    ) -> AnnotateReport:
        """Set a comment on stored files identified by prefix.

        Args:
            prefixes: Storage-name prefixes, each resolved independently.
            body: Comment text.
            title: Comment title; defaults to the primary comment.

        Returns:
            AnnotateReport: Updated entries and unresolved prefixes.
        """
        report = AnnotateReport()
        for entry in self._resolve_each(prefixes, report):
            entry.comments[title] = body
            report.updated.append(entry)

        self.session.save()
        return report

    # Internal helpers -------------------------------------------------

    def _new_entry(
        self, path: Path, tags: Sequence[str], comment: Optional[str]
    ) -> StagedFile:
        fingerprint = None
        if self.session.config.hash_added_files:
            try:
                fingerprint = self.hasher.compute(path)
            except OSError as exc:
                LOGGER.warning("Unable to fingerprint %s: %s", path, exc)
        comments = {COMMENT_MAIN: comment} if comment is not None else {}
        return StagedFile(
            path=path, content_fingerprint=fingerprint, tags=list(tags), comments=comments
        )

    def _merge_entry(
        self,
        entry: StagedFile,
        tags: Sequence[str],
        comment: Optional[str],
        report: StageReport,
    ) -> None:
        entry.tags, duplicates = merge_tags(entry.tags, tags)
        if duplicates:
            report.duplicates[str(entry.path)] = duplicates
            report.notes.append(
                f"{entry.path} has {duplicates} tag(s) ignored due to being duplicates"
            )

        if comment is None:
            return
        previous = entry.comments.get(COMMENT_MAIN)
        if previous is not None and previous != comment:
            details = (
                f"{entry.path} already had a main-comment in the registration area.",
                f"Previous Comment: {previous}",
                f"New      Comment: {comment}",
            )
            replace = self.session.confirmer.confirm(
                OVERWRITE_QUESTION,
                default=self.session.config.cli.confirm_default,
                details=details,
            )
            if not replace:
                report.kept_comments.append(entry.path)
                report.notes.append(f"Kept the previous comment of {entry.path}")
                return
        entry.comments[COMMENT_MAIN] = comment

    def _resolve_each(
        self, prefixes: Sequence[str], report: AnnotateReport
    ) -> Iterable[StoredFile]:
        files = self.session.state.storage.files
        for prefix in prefixes:
            match = resolve_prefix(prefix, files)
            if match.missing:
                report.missing.append(prefix)
                report.warnings.append(f"Failed to find file with prefix {prefix!r}")
            elif match.ambiguous:
                report.ambiguous.append(AmbiguousPrefix(prefix=prefix, candidates=match.matches))
                report.warnings.append(
                    f"There was more than one entry which would match the prefix {prefix!r}"
                )
            else:
                yield match.entry


__all__ = [
    "AmbiguousPrefix",
    "AnnotateReport",
    "BatchReport",
    "DropReport",
    "OVERWRITE_QUESTION",
    "RegistrationManager",
    "StageReport",
    "canonicalize_target",
    "merge_tags",
]
