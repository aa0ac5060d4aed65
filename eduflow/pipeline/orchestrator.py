"""Wizard orchestration for the EduFlow pipeline.

Responsibilities:
- Drive one project through the wizard states, one explicit step at a time.
- Apply stage fallbacks: structure degrades to a single full-document option,
  metadata failures are absorbed, insight and script failures are surfaced.
- Run audio and thumbnail production concurrently and gate saving on media.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from ..audio.wav import pcm_to_wav
from ..config import EduflowConfig
from ..duration import DurationChoice, parse_duration_choice, resolve_minutes
from ..errors import GenerationError, WizardStateError
from ..io.library import Library
from ..io.pdf_extractor import PdfDocumentExtractor
from ..llm.gemini_client import GenerationClient
from ..llm.prompts import FULL_DOCUMENT_OPTION_TITLE
from ..llm.response_parsing import (
    frame_script,
    parse_insight,
    parse_metadata,
    parse_structure_options,
)
from ..models.datatypes import GenerationRequest, Project, TopicOption, VideoMetadata
from ..parsing import parse_positive_int
from ..telemetry.logger import RunLogger
from ..tts.voices import resolve_voice
from .builders import (
    build_insight_request,
    build_metadata_request,
    build_script_request,
    build_structure_request,
    build_thumbnail_prompt,
    select_attachment_mode,
)
from .states import WizardEvent, WizardState, transition
from .telemetry import PipelineTelemetryMixin

FALLBACK_STRUCTURE_OPTION = TopicOption(
    title=FULL_DOCUMENT_OPTION_TITLE,
    description="Complete analysis.",
)

_MEDIA_WORKERS = 2


def _new_project_id() -> str:
    return uuid4().hex[:9]


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class MediaOutcome:
    """Per-kind result of one media production round.

    Attributes:
        audio_error: Typed failure of the audio request, if it ran and failed.
        thumbnail_error: Typed failure of the thumbnail request, if it ran and failed.
    """

    audio_error: GenerationError | None = None
    thumbnail_error: GenerationError | None = None

    @property
    def all_succeeded(self) -> bool:
        return self.audio_error is None and self.thumbnail_error is None


class EduflowPipeline(PipelineTelemetryMixin):
    """Stateful wizard that turns one PDF into a narrated video project."""

    def __init__(
        self,
        client: GenerationClient,
        extractor: PdfDocumentExtractor | None = None,
        library: Library | None = None,
        config: EduflowConfig | None = None,
        run_logger: RunLogger | None = None,
        stage_progress_callback: Callable[[str, int, int], None] | None = None,
        runtime_metadata: Mapping[str, str] | None = None,
        id_factory: Callable[[], str] = _new_project_id,
        clock: Callable[[], str] = _utc_timestamp,
    ) -> None:
        """Initialize the wizard at `INGEST` with injectable collaborators."""

        self._config = config if config is not None else EduflowConfig()
        self._client = client
        self._extractor = extractor or PdfDocumentExtractor(
            max_visual_pages=self._config.max_visual_pages,
            render_workers=self._config.render_workers,
        )
        self._library = library if library is not None else Library()
        self._run_logger = run_logger
        self._stage_progress_callback = stage_progress_callback
        self._runtime_metadata = dict(runtime_metadata or {})
        self._id_factory = id_factory
        self._clock = clock
        self._state = WizardState.INGEST
        self._project: Project | None = None
        self._handlers: dict[WizardState, Callable[[], Any]] = {
            WizardState.STRUCTURE_ANALYSIS: self.analyze_structure,
            WizardState.INSIGHT_ANALYSIS: self.analyze_insight,
            WizardState.SCRIPT_GENERATION: self.generate_script,
            WizardState.METADATA_GENERATION: self.generate_metadata,
            WizardState.MEDIA_PRODUCTION: self.produce_media,
        }

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def project(self) -> Project:
        """Return the in-progress project or raise when none exists."""

        if self._project is None:
            raise WizardStateError("No project is in progress. Ingest a PDF first.")
        return self._project

    @property
    def library(self) -> Library:
        return self._library

    def start_new(self) -> None:
        """Discard the in-progress project and return to `INGEST`."""

        self._project = None
        self._advance(WizardEvent.RESTARTED)

    def ingest(self, pdf_path: Path) -> Project:
        """Extract a PDF, create its project, and run structure analysis.

        Extraction failures propagate and leave any in-progress project as it was.
        """

        document = self._run_stage("extract", lambda: self._extractor.extract(pdf_path))
        if self._state is not WizardState.INGEST:
            self.start_new()
        project = Project(id=self._id_factory(), created_at=self._clock())
        project.apply_source(document)
        self._project = project
        self._advance(WizardEvent.DOCUMENT_INGESTED)
        self.analyze_structure()
        return project

    def analyze_structure(self) -> tuple[TopicOption, ...]:
        """List document modules; any generation failure yields the full-document option."""

        self._require_state(WizardState.STRUCTURE_ANALYSIS)
        project = self.project
        mode = select_attachment_mode(
            project.source_text_chars, self._config.text_mode_threshold_chars
        )
        request = build_structure_request(project, mode)
        try:
            options = self._run_stage(
                "structure", lambda: parse_structure_options(self._execute(request))
            )
        except GenerationError as exc:
            self._on_stage_fallback("structure", exc)
            options = (FALLBACK_STRUCTURE_OPTION,)
        project.apply_structure(options, mode)
        self._advance(WizardEvent.STRUCTURE_READY)
        return project.structure_options

    def select_scope(self, index: int) -> tuple[TopicOption, ...]:
        """Select a structure option by 0-based index and run insight analysis."""

        self._require_state(WizardState.STRUCTURE_ANALYSIS, WizardState.INSIGHT_ANALYSIS)
        project = self.project
        option = _pick(project.structure_options, index, "structure option")
        self._advance(WizardEvent.SCOPE_SELECTED)
        project.apply_scope(option)
        return self.analyze_insight()

    def analyze_insight(self) -> tuple[TopicOption, ...]:
        """Summarize the selected scope and propose angles.

        Failures propagate and leave the insight fields untouched.
        """

        self._require_state(WizardState.INSIGHT_ANALYSIS)
        project = self.project
        request = build_insight_request(project)
        summary, angles = self._run_stage("insight", lambda: parse_insight(self._execute(request)))
        project.apply_insight(summary, angles)
        self._advance(WizardEvent.INSIGHT_READY)
        return project.angles

    def select_angle(self, index: int) -> TopicOption:
        self._require_state(WizardState.ANGLE_SELECTION)
        project = self.project
        angle = _pick(project.angles, index, "angle")
        project.apply_angle(angle)
        self._advance(WizardEvent.ANGLE_SELECTED)
        return angle

    def select_duration(
        self,
        choice: DurationChoice | str,
        custom_minutes: object = None,
    ) -> int:
        """Record the duration choice and return the resolved minute count."""

        self._require_state(WizardState.DURATION_SELECTION, WizardState.SCRIPT_GENERATION)
        parsed_choice = parse_duration_choice(choice)
        resolved = resolve_minutes(parsed_choice, custom_minutes)
        custom = parse_positive_int(custom_minutes) if parsed_choice is DurationChoice.CUSTOM else None
        self.project.apply_duration(parsed_choice, custom, resolved)
        self._advance(WizardEvent.DURATION_SELECTED)
        return resolved

    def generate_script(self) -> str:
        """Generate the narration script; failures propagate and keep any previous script."""

        self._require_state(WizardState.SCRIPT_GENERATION)
        project = self.project
        request = build_script_request(project)
        script = self._run_stage("script", lambda: frame_script(self._execute(request)))
        project.apply_script(script)
        self._advance(WizardEvent.SCRIPT_READY)
        return script

    def edit_script(self, text: str) -> str:
        """Replace the script with user-edited text."""

        self._require_state(WizardState.SCRIPT_GENERATION)
        if not self.project.script:
            raise WizardStateError("Generate a script before editing it.")
        if not text.strip():
            raise ValueError("Edited script must not be empty.")
        self.project.apply_script(text)
        return text

    def approve_script(self) -> VideoMetadata | None:
        """Approve the script and run metadata generation."""

        self._require_state(WizardState.SCRIPT_GENERATION)
        if not self.project.script.strip():
            raise WizardStateError("A non-empty script is required before approval.")
        self._advance(WizardEvent.SCRIPT_APPROVED)
        return self.generate_metadata()

    def generate_metadata(self) -> VideoMetadata | None:
        """Generate SEO metadata; failures are absorbed and leave the fields as they were."""

        self._require_state(WizardState.METADATA_GENERATION, WizardState.MEDIA_PRODUCTION)
        project = self.project
        request = build_metadata_request(project)
        metadata: VideoMetadata | None
        try:
            metadata = self._run_stage(
                "metadata", lambda: parse_metadata(self._execute(request))
            )
        except GenerationError as exc:
            self._on_stage_fallback("metadata", exc)
            metadata = None
        else:
            project.apply_metadata(metadata)
        self._advance(WizardEvent.METADATA_DONE)
        return metadata

    def generate_audio(self, voice: str | None = None) -> bytes:
        """Synthesize narration and store it as a WAV payload."""

        self._require_state(WizardState.MEDIA_PRODUCTION)
        project = self.project
        profile = resolve_voice(voice or self._config.tts_voice)
        speech = self._run_stage(
            "audio",
            lambda: self._client.generate_speech(project.script, profile.provider_voice_id),
        )
        wav_bytes = pcm_to_wav(speech.pcm, speech.sample_rate)
        project.apply_audio(wav_bytes, profile.provider_voice_id)
        return wav_bytes

    def generate_thumbnail(self) -> bytes:
        self._require_state(WizardState.MEDIA_PRODUCTION)
        project = self.project
        prompt = build_thumbnail_prompt(project)
        image = self._run_stage("thumbnail", lambda: self._client.generate_image(prompt))
        project.apply_thumbnail(image)
        return image

    def produce_media(
        self,
        voice: str | None = None,
        audio: bool = True,
        thumbnail: bool = True,
    ) -> MediaOutcome:
        """Run the requested media jobs concurrently; each fails independently."""

        self._require_state(WizardState.MEDIA_PRODUCTION)
        jobs: dict[str, Callable[[], bytes]] = {}
        if audio:
            jobs["audio"] = lambda: self.generate_audio(voice)
        if thumbnail:
            jobs["thumbnail"] = self.generate_thumbnail
        errors: dict[str, GenerationError] = {}
        with ThreadPoolExecutor(max_workers=_MEDIA_WORKERS) as pool:
            futures = {kind: pool.submit(job) for kind, job in jobs.items()}
            for kind, future in futures.items():
                try:
                    future.result()
                except GenerationError as exc:
                    errors[kind] = exc
        return MediaOutcome(
            audio_error=errors.get("audio"),
            thumbnail_error=errors.get("thumbnail"),
        )

    def can_save(self) -> bool:
        return (
            self._state is WizardState.MEDIA_PRODUCTION
            and self._project is not None
            and self._project.has_media
        )

    def save(self) -> Project:
        """Move the finished project into the library and finish the wizard."""

        self._require_state(WizardState.MEDIA_PRODUCTION)
        project = self.project
        if not project.has_media:
            raise WizardStateError("Generate audio or a thumbnail before saving.")
        project.extra.update(self._config.extra)
        project.extra.update(self._runtime_metadata)
        self._run_stage("save", lambda: self._library.add(project))
        self._advance(WizardEvent.PROJECT_SAVED)
        self._project = None
        return project

    def run_current_stage(self) -> Any:
        """Run (or retry) the automatic stage for the current state."""

        handler = self._handlers.get(self._state)
        if handler is None:
            raise WizardStateError(
                f"No automatic stage runs at `{self._state.value}`; user input is required."
            )
        return handler()

    def _execute(self, request: GenerationRequest) -> str:
        return self._client.generate_structured_text(
            request.prompt_parts, request.attachments, request.want_json
        )

    def _advance(self, event: WizardEvent) -> None:
        self._state = transition(self._state, event)

    def _require_state(self, *allowed: WizardState) -> None:
        if self._state not in allowed:
            expected = ", ".join(f"`{state.value}`" for state in allowed)
            raise WizardStateError(
                f"Operation requires state {expected}; wizard is at `{self._state.value}`."
            )


def _pick(options: tuple[TopicOption, ...], index: int, label: str) -> TopicOption:
    if not 0 <= index < len(options):
        raise ValueError(f"Unknown {label} index {index}; {len(options)} available.")
    return options[index]
