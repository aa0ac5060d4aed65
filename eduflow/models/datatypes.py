"""Core datatypes shared across EduFlow modules.

Responsibilities:
- Represent immutable records exchanged between extraction, request builders,
  and the generation client.
- Own the mutable `Project` record with explicit field-level update methods.

Key types:
- `PageText`, `ExtractedDocument`, `TopicOption`, `Attachment`,
  `GenerationRequest`, `VideoMetadata`, `SpeechAudio`, and `Project`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..duration import DurationChoice


class AttachmentMode(str, Enum):
    """Whether requests carry page images or extracted text as context."""

    IMAGES = "images"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class PageText:
    """Extracted text of one page.

    Attributes:
        page_number: 1-based page number.
        text: Page text joined from its text items.
    """

    page_number: int
    text: str


@dataclass(frozen=True, slots=True)
class ExtractedDocument:
    """Extraction output for one document.

    Attributes:
        name: Source file name.
        page_count: Total number of pages in the document.
        page_texts: Text for every page, ordered by page number.
        page_images: JPEG payloads for the first pages only, ordered by page number.
    """

    name: str
    page_count: int
    page_texts: tuple[PageText, ...]
    page_images: tuple[bytes, ...]

    @property
    def full_text(self) -> str:
        """Return concatenated page text tagged with page numbers."""

        return "".join(f"[Page {page.page_number}]\n{page.text}\n\n" for page in self.page_texts)

    @property
    def text_chars(self) -> int:
        """Return the number of extracted text characters, excluding page tags."""

        return sum(len(page.text.strip()) for page in self.page_texts)


@dataclass(frozen=True, slots=True)
class TopicOption:
    """A `{title, description}` pair used for structure options and angles."""

    title: str
    description: str

    def as_payload(self) -> dict[str, str]:
        """Return a JSON-serializable mapping."""

        return {"title": self.title, "description": self.description}


@dataclass(frozen=True, slots=True)
class Attachment:
    """Context attached to a structured-text request.

    Attributes:
        kind: `image` for JPEG page payloads, `text` for text excerpts.
        data: Raw bytes for images, string for text excerpts.
    """

    kind: str
    data: bytes | str

    @classmethod
    def image(cls, payload: bytes) -> Attachment:
        return cls(kind="image", data=payload)

    @classmethod
    def text(cls, excerpt: str) -> Attachment:
        return cls(kind="text", data=excerpt)


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Concrete structured-text request produced by a stage request builder."""

    prompt_parts: tuple[str, ...]
    attachments: tuple[Attachment, ...] = ()
    want_json: bool = False


@dataclass(frozen=True, slots=True)
class VideoMetadata:
    """SEO metadata for the finished video."""

    title: str
    description: str
    hashtags: str


@dataclass(frozen=True, slots=True)
class SpeechAudio:
    """Raw PCM speech payload returned by the speech endpoint."""

    pcm: bytes
    sample_rate: int
    mime_type: str


@dataclass(slots=True)
class Project:
    """One unit of work, mutated stage by stage by the pipeline.

    Fields are grouped by the stage that writes them. Each `apply_*` method
    replaces only the fields owned by that stage so a later stage can never
    clear what an earlier one committed.
    """

    id: str
    created_at: str
    document_name: str = ""
    page_images: tuple[bytes, ...] = ()
    page_text: str = ""
    source_text_chars: int = 0
    attachment_mode: AttachmentMode | None = None
    structure_options: tuple[TopicOption, ...] = ()
    scope_title: str = ""
    scope_description: str = ""
    summary: str = ""
    angles: tuple[TopicOption, ...] = ()
    selected_angle: TopicOption | None = None
    duration: DurationChoice = DurationChoice.MEDIUM
    custom_minutes: int | None = None
    resolved_minutes: int | None = None
    script: str = ""
    title: str = ""
    description: str = ""
    hashtags: str = ""
    audio: bytes | None = None
    audio_voice: str | None = None
    thumbnail: bytes | None = None
    extra: dict[str, str] = field(default_factory=dict)

    def apply_source(self, document: ExtractedDocument) -> None:
        self.document_name = document.name
        self.page_images = tuple(document.page_images)
        self.page_text = document.full_text
        self.source_text_chars = document.text_chars

    def apply_structure(
        self, options: tuple[TopicOption, ...], attachment_mode: AttachmentMode
    ) -> None:
        self.structure_options = tuple(options)
        self.attachment_mode = attachment_mode

    def apply_scope(self, option: TopicOption) -> None:
        self.scope_title = option.title
        self.scope_description = option.description

    def apply_insight(self, summary: str, angles: tuple[TopicOption, ...]) -> None:
        self.summary = summary
        self.angles = tuple(angles)

    def apply_angle(self, angle: TopicOption) -> None:
        self.selected_angle = angle

    def apply_duration(
        self, choice: DurationChoice, custom_minutes: int | None, resolved_minutes: int
    ) -> None:
        self.duration = choice
        self.custom_minutes = custom_minutes
        self.resolved_minutes = resolved_minutes

    def apply_script(self, script: str) -> None:
        self.script = script

    def apply_metadata(self, metadata: VideoMetadata) -> None:
        self.title = metadata.title
        self.description = metadata.description
        self.hashtags = metadata.hashtags

    def apply_audio(self, audio: bytes, voice: str) -> None:
        self.audio = audio
        self.audio_voice = voice

    def apply_thumbnail(self, thumbnail: bytes) -> None:
        self.thumbnail = thumbnail

    @property
    def has_media(self) -> bool:
        """Return whether at least one media artifact exists."""

        return self.audio is not None or self.thumbnail is not None
