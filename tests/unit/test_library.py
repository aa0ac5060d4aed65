"""Unit tests for project library persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from eduflow.duration import DurationChoice
from eduflow.io.library import Library, LibraryStore, project_from_payload, project_to_payload
from eduflow.io.storage import ArtifactStore
from eduflow.models.datatypes import AttachmentMode, Project, TopicOption


def _saved_project(project_id: str, thumbnail: bytes | None = b"png") -> Project:
    project = Project(id=project_id, created_at="2026-03-01T10:00:00+00:00")
    project.document_name = "notes.pdf"
    project.page_images = (b"jpeg",)
    project.page_text = "[Page 1]\nBody\n\n"
    project.apply_structure((TopicOption("Module 1", "Intro."),), AttachmentMode.TEXT)
    project.apply_scope(TopicOption("Module 1", "Intro."))
    project.apply_insight("Summary.", (TopicOption("A", "a"),))
    project.apply_angle(TopicOption("A", "a"))
    project.apply_duration(DurationChoice.CUSTOM, 7, 7)
    project.apply_script("Script body.")
    project.apply_audio(b"RIFF-wav", "Kore")
    if thumbnail is not None:
        project.apply_thumbnail(thumbnail)
    return project


def test_payload_roundtrip_keeps_outputs_and_drops_page_images() -> None:
    """Serialized projects should restore every output field but not the raster pages."""

    original = _saved_project("abc")
    payload = project_to_payload(original)

    assert "page_images" not in payload
    assert payload["audio"] == "UklGRi13YXY="
    restored = project_from_payload(json.loads(json.dumps(payload)))
    assert restored.page_images == ()
    assert restored.audio == original.audio
    assert restored.thumbnail == original.thumbnail
    assert restored.selected_angle == original.selected_angle
    assert restored.duration is DurationChoice.CUSTOM
    assert restored.resolved_minutes == 7
    assert restored.attachment_mode is AttachmentMode.TEXT


def test_library_prepends_and_persists(tmp_path: Path) -> None:
    """New projects should appear first and survive reloading from disk."""

    store = LibraryStore(tmp_path / "library" / "projects.json")
    library = Library(store)
    library.add(_saved_project("first"))
    library.add(_saved_project("second", thumbnail=None))

    reloaded = Library(LibraryStore(store.path))

    assert [project.id for project in reloaded] == ["second", "first"]
    assert reloaded.get("second").thumbnail is None
    assert reloaded.get("missing") is None
    assert json.loads(store.path.read_text(encoding="utf-8"))["version"] == 1


def test_library_remove_and_store_delete(tmp_path: Path) -> None:
    store = LibraryStore(tmp_path / "projects.json")
    library = Library(store)
    library.add(_saved_project("one"))
    library.add(_saved_project("two"))

    assert library.remove("one") is True
    assert library.remove("one") is False
    assert [project.id for project in store.read_all()] == ["two"]
    assert store.delete("two") is True
    assert store.delete("two") is False
    assert store.read_all() == []


def test_missing_library_file_is_empty_and_malformed_file_is_rejected(tmp_path: Path) -> None:
    """A missing file reads as empty; a malformed one raises `ValueError`."""

    assert LibraryStore(tmp_path / "absent.json").read_all() == []

    malformed = tmp_path / "broken.json"
    malformed.write_text('{"projects": "nope"}', encoding="utf-8")
    with pytest.raises(ValueError, match="malformed"):
        LibraryStore(malformed).read_all()


def test_artifact_store_saves_bytes_under_chosen_name(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path / "exports")

    path = store.save_bytes(Path("lesson.wav"), b"RIFF")
    json_path = store.save_json(Path("lesson.json"), {"title": "T"})

    assert path == tmp_path / "exports" / "lesson.wav"
    assert path.read_bytes() == b"RIFF"
    assert store.load_json(Path("lesson.json")) == {"title": "T"}
    assert not json_path.with_name("lesson.json.tmp").exists()


def test_library_keeps_memory_unchanged_when_write_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A failed write should leave the in-memory order exactly as it was."""

    store = LibraryStore(tmp_path / "projects.json")
    library = Library(store)
    library.add(_saved_project("kept"))

    def _failing_write(projects: list[Project]) -> Path:
        raise OSError("read-only filesystem")

    monkeypatch.setattr(store, "write_all", _failing_write)

    with pytest.raises(OSError):
        library.add(_saved_project("new"))
    with pytest.raises(OSError):
        library.remove("kept")

    assert [project.id for project in library] == ["kept"]
