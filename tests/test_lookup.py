"""Prefix lookup tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagg.lookup import resolve_prefix
from tagg.state import StagedFile, StoredFile


def _files() -> list[StoredFile]:
    return [
        StoredFile(storage_name="abc123.txt"),
        StoredFile(storage_name="abc999.txt"),
        StoredFile(storage_name="ABC000.txt"),
    ]


def test_ambiguous_prefix_lists_every_candidate() -> None:
    match = resolve_prefix("abc", _files())

    assert match.ambiguous
    assert not match.unique
    assert [entry.storage_name for entry in match.matches] == ["abc123.txt", "abc999.txt"]
    with pytest.raises(LookupError):
        _ = match.entry


def test_unique_prefix_returns_entry() -> None:
    match = resolve_prefix("abc1", _files())

    assert match.unique
    assert match.entry.storage_name == "abc123.txt"


def test_missing_prefix_reports_not_found() -> None:
    match = resolve_prefix("zzz", _files())

    assert match.missing
    assert match.matches == []


def test_prefix_is_case_sensitive_and_literal() -> None:
    assert resolve_prefix("ABC", _files()).entry.storage_name == "ABC000.txt"
    assert resolve_prefix("abc*", _files()).missing
    assert resolve_prefix("abc123.txt", _files()).unique


def test_custom_key_over_other_collections() -> None:
    staged = [StagedFile(path=Path("/a/report.pdf")), StagedFile(path=Path("/b/photo.jpg"))]

    match = resolve_prefix("rep", staged, key=lambda entry: entry.name)

    assert match.entry.path == Path("/a/report.pdf")
