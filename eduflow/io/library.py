"""Project library persistence.

Responsibilities:
- Keep the ordered library of saved projects (most recent first).
- Serialize projects to JSON with base64-encoded media payloads.
- Provide the read-all / write-all / delete-by-id storage contract.

Key types:
- `Library`: in-memory ordered collection backed by a `LibraryStore`.
- `LibraryStore`: JSON-file persistence for the library.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, Iterator, Mapping

from ..duration import parse_duration_choice
from ..models.datatypes import AttachmentMode, Project, TopicOption
from .storage import ArtifactStore

LIBRARY_FORMAT_VERSION = 1


def _encode_blob(data: bytes | None) -> str | None:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def _decode_blob(value: object) -> bytes | None:
    if not isinstance(value, str) or not value:
        return None
    return base64.b64decode(value)


def _options_payload(options: tuple[TopicOption, ...]) -> list[dict[str, str]]:
    return [option.as_payload() for option in options]


def _options_from_payload(raw: object) -> tuple[TopicOption, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(
        TopicOption(title=str(item.get("title", "")), description=str(item.get("description", "")))
        for item in raw
        if isinstance(item, Mapping)
    )


def project_to_payload(project: Project) -> dict[str, Any]:
    """Serialize a project for library storage.

    Page images are not persisted; saved projects keep their text and outputs.
    """

    return {
        "id": project.id,
        "created_at": project.created_at,
        "document_name": project.document_name,
        "page_text": project.page_text,
        "source_text_chars": project.source_text_chars,
        "attachment_mode": project.attachment_mode.value if project.attachment_mode else None,
        "structure_options": _options_payload(project.structure_options),
        "scope_title": project.scope_title,
        "scope_description": project.scope_description,
        "summary": project.summary,
        "angles": _options_payload(project.angles),
        "selected_angle": (
            project.selected_angle.as_payload() if project.selected_angle is not None else None
        ),
        "duration": project.duration.value,
        "custom_minutes": project.custom_minutes,
        "resolved_minutes": project.resolved_minutes,
        "script": project.script,
        "title": project.title,
        "description": project.description,
        "hashtags": project.hashtags,
        "audio": _encode_blob(project.audio),
        "audio_voice": project.audio_voice,
        "thumbnail": _encode_blob(project.thumbnail),
        "extra": dict(project.extra),
    }


def project_from_payload(payload: Mapping[str, Any]) -> Project:
    """Rebuild a project from its library payload."""

    if "id" not in payload or "created_at" not in payload:
        raise ValueError("Library entry requires `id` and `created_at`.")
    selected = payload.get("selected_angle")
    mode = payload.get("attachment_mode")
    return Project(
        id=str(payload["id"]),
        created_at=str(payload["created_at"]),
        document_name=str(payload.get("document_name", "")),
        page_text=str(payload.get("page_text", "")),
        source_text_chars=int(payload.get("source_text_chars") or 0),
        attachment_mode=AttachmentMode(mode) if mode else None,
        structure_options=_options_from_payload(payload.get("structure_options")),
        scope_title=str(payload.get("scope_title", "")),
        scope_description=str(payload.get("scope_description", "")),
        summary=str(payload.get("summary", "")),
        angles=_options_from_payload(payload.get("angles")),
        selected_angle=(
            TopicOption(
                title=str(selected.get("title", "")),
                description=str(selected.get("description", "")),
            )
            if isinstance(selected, Mapping)
            else None
        ),
        duration=parse_duration_choice(payload.get("duration", "medium")),
        custom_minutes=payload.get("custom_minutes"),
        resolved_minutes=payload.get("resolved_minutes"),
        script=str(payload.get("script", "")),
        title=str(payload.get("title", "")),
        description=str(payload.get("description", "")),
        hashtags=str(payload.get("hashtags", "")),
        audio=_decode_blob(payload.get("audio")),
        audio_voice=payload.get("audio_voice"),
        thumbnail=_decode_blob(payload.get("thumbnail")),
        extra={str(key): str(value) for key, value in dict(payload.get("extra") or {}).items()},
    )


class LibraryStore:
    """JSON-file persistence for the ordered project library."""

    def __init__(self, path: Path) -> None:
        """Initialize the store with the library JSON file path."""

        self.path = path
        self._artifacts = ArtifactStore(path.parent)

    def read_all(self) -> list[Project]:
        """Load all saved projects in stored order; a missing file is an empty library."""

        relative = Path(self.path.name)
        if not self._artifacts.exists(relative):
            return []
        payload = self._artifacts.load_json(relative)
        if not isinstance(payload, Mapping) or not isinstance(payload.get("projects"), list):
            raise ValueError(f"Library file `{self.path}` is malformed.")
        return [project_from_payload(item) for item in payload["projects"]]

    def write_all(self, projects: list[Project]) -> Path:
        """Replace the stored library with the given ordered projects."""

        return self._artifacts.save_json(
            Path(self.path.name),
            {
                "version": LIBRARY_FORMAT_VERSION,
                "projects": [project_to_payload(project) for project in projects],
            },
        )

    def delete(self, project_id: str) -> bool:
        """Delete one project by id and report whether it existed."""

        projects = self.read_all()
        remaining = [project for project in projects if project.id != project_id]
        if len(remaining) == len(projects):
            return False
        self.write_all(remaining)
        return True


class Library:
    """Ordered collection of saved projects, most recent first."""

    def __init__(self, store: LibraryStore | None = None) -> None:
        """Load existing projects from the optional backing store."""

        self._store = store
        self._projects: list[Project] = store.read_all() if store is not None else []

    def __iter__(self) -> Iterator[Project]:
        return iter(list(self._projects))

    def __len__(self) -> int:
        return len(self._projects)

    def add(self, project: Project) -> None:
        """Prepend a saved project and persist the library."""

        updated = [project, *self._projects]
        self._persist(updated)
        self._projects = updated

    def get(self, project_id: str) -> Project | None:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def remove(self, project_id: str) -> bool:
        """Remove a project by id and persist; return whether it existed."""

        remaining = [project for project in self._projects if project.id != project_id]
        if len(remaining) == len(self._projects):
            return False
        self._persist(remaining)
        self._projects = remaining
        return True

    def _persist(self, projects: list[Project]) -> None:
        if self._store is not None:
            self._store.write_all(projects)
