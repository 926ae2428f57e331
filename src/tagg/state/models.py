"""State data models for the registration area and the content store."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_validator,
    model_serializer,
)

COMMENT_MAIN = "comment"
"""Reserved comment title holding the primary annotation of a file."""

TITLE_KEY = "title"
DESCRIPTION_KEY = "desc"


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Return tags sorted and de-duplicated; comparison is case-sensitive."""
    return sorted(set(tags))


class StateModel(BaseModel):
    """Base model for persisted records; omits unset and empty fields on dump."""

    model_config = ConfigDict(populate_by_name=True)

    @model_serializer(mode="wrap")
    def omit_empty(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        data = handler(self)
        return {key: value for key, value in data.items() if value not in (None, [], {})}


class StagedFile(StateModel):
    """A file waiting in the registration area.

    Attributes:
        path: Absolute canonical path; identifies the staged entry.
        content_fingerprint: Optional digest captured when the file was staged.
        tags: Sorted, de-duplicated tags.
        comments: Comment bodies keyed by title.
    """

    path: Path
    content_fingerprint: Optional[str] = Field(default=None, alias="hash")
    tags: List[str] = Field(default_factory=list)
    comments: Dict[str, str] = Field(default_factory=dict, alias="comment")

    @field_validator("tags")
    @classmethod
    def sorted_tags(cls, value: List[str]) -> List[str]:
        return normalize_tags(value)

    @property
    def name(self) -> str:
        """Return the final path component used by `drop`."""
        return self.path.name


class StoredFile(StateModel):
    """A committed file living in the content store.

    Attributes:
        storage_name: Generated on-disk filename inside the content store.
        original_filename: Final path component of the source at commit time.
        comments: Comment bodies keyed by title.
        tags: Sorted, de-duplicated tags.
    """

    storage_name: str = Field(alias="filename")
    original_filename: Optional[str] = Field(default=None, alias="original-filename")
    comments: Dict[str, str] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def sorted_tags(cls, value: List[str]) -> List[str]:
        return normalize_tags(value)


class Storage(BaseModel):
    """Ordered collection of committed files (commit order)."""

    files: List[StoredFile] = Field(default_factory=list)

    def names(self) -> set[str]:
        """Return every storage name currently in use."""
        return {entry.storage_name for entry in self.files}


class TaggState(StateModel):
    """Aggregate metadata persisted between invocations.

    Attributes:
        registration_area: Staged files in staging order; commit drains from the end.
        last_registration: When the registration area was last modified.
        storage: Committed files.
    """

    registration_area: List[StagedFile] = Field(
        default_factory=list, alias="registration-area"
    )
    last_registration: Optional[datetime] = Field(default=None, alias="last-registration")
    storage: Storage = Field(default_factory=Storage)


__all__ = [
    "COMMENT_MAIN",
    "TITLE_KEY",
    "DESCRIPTION_KEY",
    "normalize_tags",
    "StagedFile",
    "StoredFile",
    "Storage",
    "TaggState",
]
