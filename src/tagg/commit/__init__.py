"""Commit pipeline moving staged files into the content store."""

from .errors import CommitError, StorageCollisionError
from .pipeline import (
    CommitPipeline,
    CommitResult,
    file_extension,
    generate_titles,
    random_identifier,
    storage_name_for,
)
from .titles import NullTitleExtractor, PdfTitleExtractor, TitleExtractor
from .trash import send_to_trash

__all__ = [
    "CommitError",
    "CommitPipeline",
    "CommitResult",
    "NullTitleExtractor",
    "PdfTitleExtractor",
    "StorageCollisionError",
    "TitleExtractor",
    "file_extension",
    "generate_titles",
    "random_identifier",
    "send_to_trash",
    "storage_name_for",
]
