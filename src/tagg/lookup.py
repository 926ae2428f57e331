"""Prefix lookup shared by every command that accepts a file identifier."""

from __future__ import annotations

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Callable, Generic, Iterable, List, TypeVar

T = TypeVar("T")

_storage_name: Callable[[object], str] = attrgetter("storage_name")


@dataclass
class PrefixMatch(Generic[T]):
    """Outcome of resolving an identifier prefix against a collection.

    Attributes:
        prefix: Identifier prefix supplied by the user.
        matches: Entries whose name starts with ``prefix``, in collection order.
    """

    prefix: str
    matches: List[T] = field(default_factory=list)

    @property
    def missing(self) -> bool:
        """Return True when nothing matched."""
        return not self.matches

    @property
    def unique(self) -> bool:
        """Return True when exactly one entry matched."""
        return len(self.matches) == 1

    @property
    def ambiguous(self) -> bool:
        """Return True when the prefix matched several entries."""
        return len(self.matches) > 1

    @property
    def entry(self) -> T:
        """Return the single matching entry.

        Raises:
            LookupError: If the match is missing or ambiguous.
        """
        if not self.unique:
            raise LookupError(
                f"Prefix {self.prefix!r} matched {len(self.matches)} entries, expected one."
            )
        return self.matches[0]


def resolve_prefix(
    prefix: str,
    entries: Iterable[T],
    *,
    key: Callable[[T], str] = _storage_name,
) -> PrefixMatch[T]:
    """Return every entry whose name starts with ``prefix``.

    Comparison is a plain, case-sensitive string prefix test; no glob or regex
    syntax is interpreted.

    Args:
        prefix: Identifier prefix supplied by the user.
        entries: Collection to search.
        key: Callable extracting the name of an entry; defaults to ``storage_name``.

    Returns:
        PrefixMatch: Zero, one, or many matching entries.
    """
    matches = [entry for entry in entries if key(entry).startswith(prefix)]
    return PrefixMatch(prefix=prefix, matches=matches)


__all__ = ["PrefixMatch", "resolve_prefix"]
