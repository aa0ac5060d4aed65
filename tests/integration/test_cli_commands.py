"""Integration tests for the EduFlow CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from eduflow.cli import app
from eduflow.errors import ContentTooLongError, TransportError
from eduflow.io.library import Library, LibraryStore
from eduflow.models.datatypes import Project
from eduflow.provider_factory import ProviderFactory
from tests.fakes import (
    INSIGHT_RESPONSE,
    METADATA_RESPONSE,
    InMemoryCredentialStore,
    StubGenerationClient,
    structure_response,
)


@pytest.fixture
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Replace keyring access with an in-memory store for every CLI invocation."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("eduflow.cli.create_credential_store", lambda: store)
    return store


def _install_client(monkeypatch: pytest.MonkeyPatch, client: StubGenerationClient) -> None:
    monkeypatch.setattr(
        ProviderFactory,
        "create_generation_client",
        staticmethod(lambda config, runtime=None: client),
    )


def _seed_library(path: Path) -> None:
    saved = Project(id="saved0001", created_at="2026-04-02T08:00:00+00:00")
    saved.document_name = "notes.pdf"
    saved.scope_title = "Module 1"
    saved.apply_script("Narration text.")
    saved.title = "Saved Title"
    saved.hashtags = "#one, #two"
    saved.apply_audio(b"RIFF-audio", "Kore")
    saved.apply_thumbnail(b"\x89PNG-thumb")
    Library(LibraryStore(path)).add(saved)


def test_create_walks_wizard_and_saves_thumbnail_only_project(
    monkeypatch: pytest.MonkeyPatch,
    credential_store: InMemoryCredentialStore,
    text_pdf_path: Path,
    tmp_path: Path,
) -> None:
    """`create` should run every stage and save even when audio is too long."""

    client = StubGenerationClient(
        [
            structure_response("Full Document Masterclass", "Module 2: Markets"),
            INSIGHT_RESPONSE,
            "Markets clear at equilibrium.",
            METADATA_RESPONSE,
        ],
        speech=ContentTooLongError("No audio data returned."),
    )
    _install_client(monkeypatch, client)
    library_path = tmp_path / "library.json"

    result = CliRunner().invoke(
        app,
        ["create", str(text_pdf_path), "--library", str(library_path)],
        input="2\n1\nlong\na\n\ny\nn\n",
    )

    assert result.exit_code == 0, result.output
    assert "Structure options:" in result.output
    assert "Target length: 10 min" in result.output
    assert "audio failed (content_too_long)" in result.output
    assert "Saved project:" in result.output
    assert "[phase] level=INFO stage=save event=complete" in result.output
    saved = LibraryStore(library_path).read_all()
    assert len(saved) == 1
    assert saved[0].scope_title == "Module 2: Markets"
    assert saved[0].audio is None
    assert saved[0].thumbnail == b"\x89PNG-thumbnail"
    assert saved[0].extra["tts_voice"] == "kore"


def test_create_reports_audio_length_when_all_media_succeeds(
    monkeypatch: pytest.MonkeyPatch,
    credential_store: InMemoryCredentialStore,
    text_pdf_path: Path,
    tmp_path: Path,
) -> None:
    client = StubGenerationClient(
        [
            structure_response("Full Document Masterclass"),
            INSIGHT_RESPONSE,
            "Markets clear at equilibrium.",
            METADATA_RESPONSE,
        ]
    )
    _install_client(monkeypatch, client)
    library_path = tmp_path / "library.json"

    result = CliRunner().invoke(
        app,
        ["create", str(text_pdf_path), "--library", str(library_path)],
        input="1\n1\nshort\na\nF\ny\n",
    )

    assert result.exit_code == 0, result.output
    assert "Audio: 0.0s" in result.output
    assert "Retry failed media?" not in result.output
    saved = LibraryStore(library_path).read_all()[0]
    assert saved.audio is not None
    assert client.speech_calls[0][1] == "Puck"


def test_create_reports_declined_insight_retry(
    monkeypatch: pytest.MonkeyPatch,
    credential_store: InMemoryCredentialStore,
    text_pdf_path: Path,
    tmp_path: Path,
) -> None:
    """Declining a retry after a fatal stage should exit 1 with a stage diagnostic."""

    client = StubGenerationClient(
        [
            structure_response("Full Document Masterclass"),
            TransportError("Gemini quota is insufficient", failure_kind="insufficient_quota"),
        ]
    )
    _install_client(monkeypatch, client)

    result = CliRunner().invoke(
        app,
        ["create", str(text_pdf_path), "--library", str(tmp_path / "library.json")],
        input="1\nn\n",
    )

    assert result.exit_code == 1
    assert "insight failed (insufficient_quota)" in result.output
    assert "create failed at stage `insight`" in result.output
    assert not (tmp_path / "library.json").exists()


def test_create_rejects_non_pdf_input(
    monkeypatch: pytest.MonkeyPatch,
    credential_store: InMemoryCredentialStore,
    tmp_path: Path,
) -> None:
    _install_client(monkeypatch, StubGenerationClient())
    not_pdf = tmp_path / "notes.pdf"
    not_pdf.write_text("hello", encoding="utf-8")

    result = CliRunner().invoke(app, ["create", str(not_pdf)])

    assert result.exit_code == 1
    assert "create failed: Please upload a valid PDF file" in result.output


def test_create_reports_missing_config_file(
    monkeypatch: pytest.MonkeyPatch,
    credential_store: InMemoryCredentialStore,
    text_pdf_path: Path,
    tmp_path: Path,
) -> None:
    _install_client(monkeypatch, StubGenerationClient())

    result = CliRunner().invoke(
        app, ["create", str(text_pdf_path), "--config", str(tmp_path / "missing.yml")]
    )

    assert result.exit_code == 1
    assert "create failed at stage `config`" in result.output


def test_library_list_show_export_delete(tmp_path: Path) -> None:
    """Library commands should list, show, export, and delete saved projects."""

    library_path = tmp_path / "library.json"
    _seed_library(library_path)
    runner = CliRunner()

    listed = runner.invoke(app, ["library", "list", "--library", str(library_path)])
    assert listed.exit_code == 0, listed.output
    assert "saved0001" in listed.output
    assert "Saved Title" in listed.output
    assert "[audio, thumbnail]" in listed.output

    shown = runner.invoke(app, ["library", "show", "saved0001", "--library", str(library_path)])
    assert shown.exit_code == 0, shown.output
    assert "Hashtags: #one, #two" in shown.output
    assert "Narration text." in shown.output

    export_dir = tmp_path / "exports"
    exported = runner.invoke(
        app,
        [
            "library",
            "export",
            "saved0001",
            "--library",
            str(library_path),
            "--out",
            str(export_dir),
            "--name",
            "lesson",
        ],
    )
    assert exported.exit_code == 0, exported.output
    assert (export_dir / "lesson.wav").read_bytes() == b"RIFF-audio"
    assert (export_dir / "lesson.png").read_bytes() == b"\x89PNG-thumb"
    metadata = json.loads((export_dir / "lesson.json").read_text(encoding="utf-8"))
    assert metadata["title"] == "Saved Title"

    deleted = runner.invoke(app, ["library", "delete", "saved0001", "--library", str(library_path)])
    assert deleted.exit_code == 0, deleted.output
    assert LibraryStore(library_path).read_all() == []

    empty = runner.invoke(app, ["library", "list", "--library", str(library_path)])
    assert "Library is empty." in empty.output


def test_library_show_unknown_id_fails(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        app, ["library", "show", "nope", "--library", str(tmp_path / "library.json")]
    )

    assert result.exit_code == 1
    assert "library show failed at stage `library`" in result.output
    assert "eduflow library list" in result.output


def test_credentials_status_set_and_clear(credential_store: InMemoryCredentialStore) -> None:
    """Credentials command should report status and set/clear the stored key."""

    runner = CliRunner()

    status = runner.invoke(app, ["credentials"])
    assert status.exit_code == 0
    assert "Stored Gemini API key: not set" in status.output

    stored = runner.invoke(app, ["credentials", "--set-api-key"], input="AIza-secret\n")
    assert stored.exit_code == 0, stored.output
    assert credential_store.get_api_key() == "AIza-secret"
    assert "AIza-secret" not in stored.output

    cleared = runner.invoke(app, ["credentials", "--clear-api-key"])
    assert "Stored API key cleared" in cleared.output
    assert credential_store.get_api_key() is None

    both = runner.invoke(app, ["credentials", "--set-api-key", "--clear-api-key"])
    assert both.exit_code == 1
    assert "cannot be used together" in both.output
