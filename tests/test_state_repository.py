"""State repository tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tagg.state import (
    COMMENT_MAIN,
    StagedFile,
    StateError,
    StateRepository,
    StoredFile,
    TaggState,
)


def _state(tmp_path: Path) -> TaggState:
    """Return a sample state with one staged and two stored files.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        TaggState: Sample state.
    """
    state = TaggState()
    state.registration_area.append(
        StagedFile(
            path=tmp_path / "notes.txt",
            tags=["work", "draft", "work"],
            comments={COMMENT_MAIN: "meeting notes", "desc": "weekly"},
        )
    )
    state.storage.files.append(
        StoredFile(
            storage_name="abc123.pdf",
            original_filename="paper.pdf",
            tags=["science", "Science"],
            comments={"title": "A Paper"},
        )
    )
    state.storage.files.append(StoredFile(storage_name="def456"))
    state.last_registration = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return state


def test_load_missing_state_returns_empty(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path / "state.json")

    state = repo.load()

    assert state.registration_area == []
    assert state.storage.files == []
    assert state.last_registration is None


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    """Tags and comments survive a save/load cycle unchanged.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository(tmp_path / "state.json")
    state = _state(tmp_path)

    repo.save(state)
    loaded = repo.load()

    staged = loaded.registration_area[0]
    assert staged.path == tmp_path / "notes.txt"
    assert set(staged.tags) == {"work", "draft"}
    assert staged.comments == {COMMENT_MAIN: "meeting notes", "desc": "weekly"}
    assert [entry.storage_name for entry in loaded.storage.files] == ["abc123.pdf", "def456"]
    assert set(loaded.storage.files[0].tags) == {"science", "Science"}
    assert loaded.storage.files[0].comments == {"title": "A Paper"}
    assert loaded.storage.files[1].original_filename is None
    assert loaded.last_registration == state.last_registration


def test_save_omits_empty_fields(tmp_path: Path) -> None:
    """Unset optionals and empty collections are left out of the document.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    path = tmp_path / "state.json"
    repo = StateRepository(path)
    state = TaggState()
    state.registration_area.append(StagedFile(path=tmp_path / "bare.txt"))
    state.storage.files.append(StoredFile(storage_name="def456"))

    repo.save(state)
    data = json.loads(path.read_text(encoding="utf-8"))

    assert data == {
        "registration-area": [{"path": str(tmp_path / "bare.txt")}],
        "storage": {"files": [{"filename": "def456"}]},
    }


def test_save_uses_durable_key_names(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    repo = StateRepository(path)

    repo.save(_state(tmp_path))
    data = json.loads(path.read_text(encoding="utf-8"))

    assert list(data) == ["registration-area", "last-registration", "storage"]
    assert list(data["registration-area"][0]) == ["path", "tags", "comment"]
    assert data["storage"]["files"][0]["original-filename"] == "paper.pdf"
    assert data["storage"]["files"][0]["filename"] == "abc123.pdf"


def test_save_replaces_file_without_leftovers(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.json"
    repo = StateRepository(path)

    repo.save(_state(tmp_path))
    repo.save(TaggState())

    assert [child.name for child in path.parent.iterdir()] == ["state.json"]
    assert repo.load().storage.files == []


def test_load_tolerates_absent_sections(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"registration-area": [{"path": "/data/a.txt"}]}), encoding="utf-8")

    state = StateRepository(path).load()

    assert state.registration_area[0].path == Path("/data/a.txt")
    assert state.registration_area[0].tags == []
    assert state.storage.files == []


def test_load_empty_file_returns_empty_state(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("", encoding="utf-8")

    assert StateRepository(path).load().registration_area == []


def test_load_invalid_state_raises(tmp_path: Path) -> None:
    """Ensure invalid JSON payload raises StateError on load.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    path = tmp_path / "state.json"
    path.write_text("not json", encoding="utf-8")

    with pytest.raises(StateError):
        StateRepository(path).load()


def test_load_schema_violation_raises(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"storage": {"files": [{"tags": ["x"]}]}}), encoding="utf-8")

    with pytest.raises(StateError):
        StateRepository(path).load()
