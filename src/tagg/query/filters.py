"""Tag predicates used by `tagg find`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from tagg.state import Storage, StoredFile


@dataclass(frozen=True)
class TagPredicate:
    """Require a tag to be present (``tag`` or ``+tag``) or absent (``-tag``)."""

    tag: str
    present: bool = True

    @classmethod
    def parse(cls, raw: str) -> "TagPredicate":
        if raw.startswith("-"):
            return cls(tag=raw[1:], present=False)
        if raw.startswith("+"):
            return cls(tag=raw[1:])
        return cls(tag=raw)

    def matches(self, tags: Iterable[str]) -> bool:
        return (self.tag in tags) == self.present


def parse_predicates(raw: Sequence[str]) -> List[TagPredicate]:
    return [TagPredicate.parse(value) for value in raw]


def list_all(storage: Storage) -> List[StoredFile]:
    """Return every stored file in commit order."""
    return list(storage.files)


def find(storage: Storage, predicates: Sequence[TagPredicate]) -> List[StoredFile]:
    """Return stored files satisfying every predicate, in commit order.

    Args:
        storage: Collection to search.
        predicates: Predicates combined with logical AND; empty matches everything.

    Returns:
        list[StoredFile]: Matching entries.
    """
    return [
        entry
        for entry in storage.files
        if all(predicate.matches(entry.tags) for predicate in predicates)
    ]


__all__ = ["TagPredicate", "parse_predicates", "list_all", "find"]
