"""Commit staged files into the flat content store."""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional

from pydantic import BaseModel, Field

from tagg.state import TITLE_KEY, StagedFile, StoredFile

from .errors import CommitError, StorageCollisionError
from .titles import PdfTitleExtractor, TitleExtractor
from .trash import send_to_trash

if TYPE_CHECKING:
    from tagg.session import Session

LOGGER = logging.getLogger(__name__)


def random_identifier() -> str:
    """Return a random 128-bit identifier rendered as a UUID string."""
    return str(uuid.uuid4())


def storage_name_for(identifier: str, extension: str) -> str:
    """Append ``extension`` to ``identifier`` when it is non-empty."""
    if not extension:
        return identifier
    return f"{identifier}.{extension}"


def file_extension(path: Path) -> str:
    """Return the final suffix of ``path`` without its leading dot."""
    return path.suffix[1:]


class CommitResult(BaseModel):
    """Outcome of a commit invocation.

    Attributes:
        committed: Stored entries produced, in drain order.
        dry_run: Whether file I/O and persistence were skipped.
        soft: Whether originals were left in place.
        empty: Whether the registration area was empty at start.
        warnings: Advisory problems noticed while committing.
    """

    committed: List[StoredFile] = Field(default_factory=list)
    dry_run: bool = False
    soft: bool = False
    empty: bool = False
    warnings: List[str] = Field(default_factory=list)


class CommitPipeline:
    """Drain the registration area into the content store one entry at a time.

    The staged sequence is treated as a stack: the most recently staged file
    commits first. When not a dry run the full state is persisted after every
    entry, so a failure part-way leaves earlier commits durable.
    """

    def __init__(
        self,
        session: "Session",
        *,
        title_extractor: TitleExtractor | None = None,
        trasher: Callable[[Path], None] = send_to_trash,
        verifier: Optional[Callable[[StagedFile], bool]] = None,
        id_factory: Callable[[], str] = random_identifier,
    ) -> None:
        """Create a pipeline bound to a session.

        Args:
            session: Session owning the state and storage directory.
            title_extractor: Collaborator deriving titles for new entries.
            trasher: Callable sending an original to the trash.
            verifier: Optional check that a staged file is unchanged since staging;
                a False result is reported as a warning only.
            id_factory: Source of fresh storage identifiers.
        """
        self.session = session
        self.title_extractor = title_extractor or PdfTitleExtractor()
        self.trasher = trasher
        self.verifier = verifier
        self.id_factory = id_factory

    def run(self, *, dry_run: bool = False, soft: bool = False) -> CommitResult:
        """Commit every staged file.

        Args:
            dry_run: Assign names in memory only; no copy, trash, or persistence.
            soft: Keep the originals instead of trashing them.

        Returns:
            CommitResult: Entries committed during this invocation.

        Raises:
            CommitError: If copying or trashing a file fails.
            StorageCollisionError: If a generated name already exists.
        """
        result = CommitResult(dry_run=dry_run, soft=soft)
        staged = self.session.state.registration_area
        if not staged:
            result.empty = True
            LOGGER.info("There were no files in the registration area to commit.")
            return result

        if not dry_run:
            self.session.storage_dir.mkdir(parents=True, exist_ok=True)

        while staged:
            entry = staged.pop()
            result.committed.append(self._commit_entry(entry, result, dry_run=dry_run, soft=soft))
        return result

    def _commit_entry(
        self,
        entry: StagedFile,
        result: CommitResult,
        *,
        dry_run: bool,
        soft: bool,
    ) -> StoredFile:
        source = entry.path
        if self.verifier is not None and not self.verifier(entry):
            result.warnings.append(f"{source} appears to have changed since it was staged.")

        original_filename = source.name or None
        extension = file_extension(source)

        comments = dict(entry.comments)
        if TITLE_KEY not in comments:
            title = self.title_extractor.extract(source, extension)
            if title:
                comments[TITLE_KEY] = title

        storage_name = storage_name_for(self.id_factory(), extension)
        LOGGER.info("Committing %s -> %s", original_filename, storage_name)
        destination = self.session.storage_path_for(storage_name)
        if destination.exists() or storage_name in self.session.state.storage.names():
            raise StorageCollisionError(
                f"Unique name {storage_name} for {source} already existed. "
                "This indicates a bug or a corrupted store."
            )

        if dry_run:
            LOGGER.info("Dry run commit, thus did not copy %s or remove it", source)
        else:
            self._transfer(source, destination, soft=soft)

        stored = StoredFile(
            storage_name=storage_name,
            original_filename=original_filename,
            comments=comments,
            tags=entry.tags,
        )
        self.session.state.storage.files.append(stored)

        if dry_run:
            LOGGER.info("Dry run commit, thus did not save state")
        else:
            self.session.save()
        return stored

    def _transfer(self, source: Path, destination: Path, *, soft: bool) -> None:
        LOGGER.info("Copying %s to storage destination %s", source, destination)
        try:
            shutil.copy2(source, destination)
        except OSError as exc:
            raise CommitError(f"Failed to copy {source} to {destination}: {exc}") from exc

        if soft:
            return
        LOGGER.info("Moving original file %s to trash", source)
        try:
            self.trasher(source)
        except OSError as exc:
            raise CommitError(f"Failed to move {source} to the trash: {exc}") from exc


def generate_titles(
    session: "Session",
    title_extractor: TitleExtractor,
    *,
    dry_run: bool = False,
) -> List[StoredFile]:
    """Fill in missing titles for stored files.

    Args:
        session: Session owning the state and storage directory.
        title_extractor: Collaborator deriving titles.
        dry_run: When True, leave the state file untouched.

    Returns:
        list[StoredFile]: Entries that received a title.
    """
    titled: List[StoredFile] = []
    for stored in session.state.storage.files:
        if TITLE_KEY in stored.comments:
            continue
        path = session.storage_path_for(stored.storage_name)
        title = title_extractor.extract(path, file_extension(path))
        if title:
            LOGGER.info("Set %s's title to %r", stored.storage_name, title)
            stored.comments[TITLE_KEY] = title
            titled.append(stored)
        else:
            LOGGER.info("Failed to get title for %s", path)

    if not dry_run:
        session.save()
    return titled


__all__ = [
    "CommitPipeline",
    "CommitResult",
    "file_extension",
    "generate_titles",
    "random_identifier",
    "storage_name_for",
]
