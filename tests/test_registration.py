"""Registration manager tests."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

import pytest

from tagg.config import TaggConfig
from tagg.registration import (
    InvalidTargetError,
    PathResolutionError,
    RegistrationManager,
    StaticConfirmer,
    canonicalize_target,
    merge_tags,
)
from tagg.session import Session
from tagg.state import COMMENT_MAIN, StateRepository, StoredFile


def _session(tmp_path: Path, *, answer: bool = True, hash_files: bool = False) -> Session:
    """Return a session whose state lives in ``tmp_path``.

    Args:
        tmp_path: Temporary directory provided by pytest.
        answer: Fixed answer for overwrite confirmations.
        hash_files: Whether staging records fingerprints.

    Returns:
        Session: Session with an empty state.
    """
    repository = StateRepository(tmp_path / "state" / "state.json")
    return Session(
        config=TaggConfig(hash_added_files=hash_files),
        repository=repository,
        state=repository.load(),
        storage_dir=tmp_path / "storage",
        confirmer=StaticConfirmer(answer),
    )


def _file(directory: Path, name: str, content: str = "data") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(content, encoding="utf-8")
    return path.resolve()


def test_merge_tags_counts_duplicates() -> None:
    merged, duplicates = merge_tags(["a", "b"], ["b", "c"])

    assert merged == ["a", "b", "c"]
    assert duplicates == 1


def test_stage_same_path_twice_merges_tags(tmp_path: Path) -> None:
    session = _session(tmp_path)
    manager = RegistrationManager(session)
    path = _file(tmp_path / "docs", "notes.txt")

    manager.stage([path], ["a", "b"])
    report = manager.stage([str(tmp_path / "docs" / ".." / "docs" / "notes.txt")], ["b", "c"])

    assert len(session.state.registration_area) == 1
    entry = session.state.registration_area[0]
    assert set(entry.tags) == {"a", "b", "c"}
    assert report.duplicates == {str(path): 1}
    assert report.merged == [path]
    assert any("1 tag(s) ignored" in note for note in report.notes)


def test_stage_records_absolute_path_and_comment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    session = _session(tmp_path)
    path = _file(tmp_path / "docs", "notes.txt")
    monkeypatch.chdir(tmp_path / "docs")

    report = RegistrationManager(session).stage(["notes.txt"], ["work"], "weekly sync")

    entry = session.state.registration_area[0]
    assert entry.path == path.resolve()
    assert entry.comments == {COMMENT_MAIN: "weekly sync"}
    assert entry.content_fingerprint is None
    assert report.added == [path.resolve()]
    assert session.state.last_registration is not None


def test_stage_directory_is_rejected(tmp_path: Path) -> None:
    session = _session(tmp_path)
    directory = tmp_path / "folder"
    directory.mkdir()

    report = RegistrationManager(session).stage([directory], ["a"])

    assert session.state.registration_area == []
    assert len(report.warnings) == 1
    assert "directory" in report.warnings[0]


def test_stage_symlink_is_rejected(tmp_path: Path) -> None:
    session = _session(tmp_path)
    target = _file(tmp_path, "real.txt")
    link = tmp_path / "link.txt"
    os.symlink(target, link)

    report = RegistrationManager(session).stage([link])

    assert session.state.registration_area == []
    assert "symlink" in report.warnings[0]


def test_stage_continues_past_unresolvable_paths(tmp_path: Path) -> None:
    session = _session(tmp_path)
    good = _file(tmp_path, "good.txt")

    report = RegistrationManager(session).stage([tmp_path / "missing.txt", good], ["x"])

    assert [entry.path for entry in session.state.registration_area] == [good]
    assert len(report.warnings) == 1
    assert "canonicalize" in report.warnings[0]


def test_canonicalize_target_errors(tmp_path: Path) -> None:
    with pytest.raises(PathResolutionError):
        canonicalize_target(tmp_path / "nope")
    with pytest.raises(InvalidTargetError):
        canonicalize_target(tmp_path)


def test_comment_overwrite_declined_keeps_previous(tmp_path: Path) -> None:
    session = _session(tmp_path, answer=False)
    manager = RegistrationManager(session)
    path = _file(tmp_path, "a.txt")

    manager.stage([path], comment="first")
    report = manager.stage([path], comment="second")

    assert session.state.registration_area[0].comments[COMMENT_MAIN] == "first"
    assert report.kept_comments == [path]
    assert len(session.confirmer.questions) == 1  # type: ignore[attr-defined]
    details = session.confirmer.details[0]  # type: ignore[attr-defined]
    assert str(path) in details[0]
    assert details[1:] == ("Previous Comment: first", "New      Comment: second")
    assert any("Kept the previous comment" in note for note in report.notes)


def test_comment_overwrite_accepted_replaces(tmp_path: Path) -> None:
    session = _session(tmp_path, answer=True)
    manager = RegistrationManager(session)
    path = _file(tmp_path, "a.txt")

    manager.stage([path], comment="first")
    manager.stage([path], comment="second")

    assert session.state.registration_area[0].comments[COMMENT_MAIN] == "second"


def test_comment_added_without_prompt_when_none_exists(tmp_path: Path) -> None:
    session = _session(tmp_path, answer=False)
    manager = RegistrationManager(session)
    path = _file(tmp_path, "a.txt")

    manager.stage([path], ["t"])
    manager.stage([path], comment="late note")

    assert session.state.registration_area[0].comments[COMMENT_MAIN] == "late note"
    assert session.confirmer.questions == []  # type: ignore[attr-defined]


def test_stage_persists_state(tmp_path: Path) -> None:
    session = _session(tmp_path)
    path = _file(tmp_path, "a.txt")

    RegistrationManager(session).stage([path], ["x"])

    reloaded = session.repository.load()
    assert [entry.path for entry in reloaded.registration_area] == [path]
    assert reloaded.registration_area[0].tags == ["x"]


def test_stage_records_fingerprint_when_enabled(tmp_path: Path) -> None:
    session = _session(tmp_path, hash_files=True)
    path = _file(tmp_path, "a.txt", "hello")

    RegistrationManager(session).stage([path])

    expected = hashlib.sha256(b"hello").hexdigest()
    assert session.state.registration_area[0].content_fingerprint == expected


def test_drop_unknown_name_reports_missing(tmp_path: Path) -> None:
    session = _session(tmp_path)
    manager = RegistrationManager(session)
    manager.stage([_file(tmp_path, "a.txt")])

    report = manager.drop(["b.txt"])

    assert report.missing == ["b.txt"]
    assert len(session.state.registration_area) == 1


def test_drop_removes_every_entry_sharing_a_name(tmp_path: Path) -> None:
    session = _session(tmp_path)
    manager = RegistrationManager(session)
    first = _file(tmp_path / "one", "x.txt")
    second = _file(tmp_path / "two", "x.txt")
    keep = _file(tmp_path, "y.txt")
    manager.stage([first, second, keep])

    report = manager.drop(["x.txt"])

    assert [entry.path for entry in session.state.registration_area] == [keep]
    assert {entry.path for entry in report.removed} == {first, second}
    assert [entry.path for entry in session.repository.load().registration_area] == [keep]


def test_drop_matches_whole_name_only(tmp_path: Path) -> None:
    session = _session(tmp_path)
    manager = RegistrationManager(session)
    manager.stage([_file(tmp_path, "report.pdf")])

    report = manager.drop(["report"])

    assert report.missing == ["report"]
    assert len(session.state.registration_area) == 1


def _with_stored(session: Session) -> None:
    session.state.storage.files.extend(
        [
            StoredFile(storage_name="abc123.txt", tags=["a"]),
            StoredFile(storage_name="abc999.txt"),
            StoredFile(storage_name="def000.jpg", comments={COMMENT_MAIN: "old"}),
        ]
    )


def test_add_tags_by_prefix(tmp_path: Path) -> None:
    session = _session(tmp_path)
    _with_stored(session)

    report = RegistrationManager(session).add_tags(["abc1"], ["a", "b"])

    assert session.state.storage.files[0].tags == ["a", "b"]
    assert report.duplicates == {"abc123.txt": 1}
    assert [entry.storage_name for entry in report.updated] == ["abc123.txt"]
    assert session.repository.load().storage.files[0].tags == ["a", "b"]


def test_add_tags_skips_ambiguous_and_missing(tmp_path: Path) -> None:
    session = _session(tmp_path)
    _with_stored(session)

    report = RegistrationManager(session).add_tags(["abc", "zzz", "def"], ["new"])

    assert report.missing == ["zzz"]
    assert report.ambiguous[0].prefix == "abc"
    assert len(report.ambiguous[0].candidates) == 2
    assert session.state.storage.files[0].tags == ["a"]
    assert session.state.storage.files[1].tags == []
    assert session.state.storage.files[2].tags == ["new"]


def test_set_comment_with_title(tmp_path: Path) -> None:
    session = _session(tmp_path)
    _with_stored(session)
    manager = RegistrationManager(session)

    manager.set_comment(["def"], "new main")
    manager.set_comment(["abc9"], "A Title", title="title")

    assert session.state.storage.files[2].comments == {COMMENT_MAIN: "new main"}
    assert session.state.storage.files[1].comments == {"title": "A Title"}
