"""Artifact storage abstraction.

Responsibilities:
- Provide filesystem storage for exported media blobs and JSON documents.
- Create parent directories on demand.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class ArtifactStore:
    """Filesystem-backed artifact store rooted at one directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root output directory."""

        self.root = root

    def save_bytes(self, relative_path: Path, data: bytes) -> Path:
        """Save binary content (audio, image) and return final path."""

        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def save_json(self, relative_path: Path, payload: Any) -> Path:
        """Save a JSON-serializable payload atomically and return final path."""

        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        staging = path.with_name(f"{path.name}.tmp")
        staging.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        staging.replace(path)
        return path

    def load_json(self, relative_path: Path) -> Any:
        """Load a JSON document from artifact storage."""

        path = self.root / relative_path
        return json.loads(path.read_text(encoding="utf-8"))

    def exists(self, relative_path: Path) -> bool:
        """Return whether the given artifact exists."""

        return (self.root / relative_path).exists()
