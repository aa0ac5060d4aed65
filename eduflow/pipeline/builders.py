"""Stage request builders.

Each builder turns the current `Project` state into a concrete generation
request: prompt parts, attachments, and whether a JSON shape is expected.
Builders are pure; they never call the provider or mutate the project.
"""

from __future__ import annotations

from ..duration import resolve_minutes, target_word_count
from ..errors import WizardStateError
from ..llm.prompts import PromptLibrary
from ..models.datatypes import Attachment, AttachmentMode, GenerationRequest, Project

STRUCTURE_IMAGE_COUNT = 3
STRUCTURE_TEXT_CHARS = 30_000
INSIGHT_IMAGE_COUNT = 10
INSIGHT_TEXT_CHARS = 45_000
METADATA_SCRIPT_CHARS = 1_000

_FULL_DOCUMENT_MARKERS = ("full", "masterclass")

_PROMPTS = PromptLibrary()


def select_attachment_mode(text_chars: int, threshold_chars: int) -> AttachmentMode:
    """Use page images for near-empty (scanned) text, otherwise a text excerpt."""

    if text_chars < threshold_chars:
        return AttachmentMode.IMAGES
    return AttachmentMode.TEXT


def is_full_document_scope(scope_title: str) -> bool:
    """Return whether a scope title denotes the whole document."""

    lowered = scope_title.lower()
    return any(marker in lowered for marker in _FULL_DOCUMENT_MARKERS)


def _image_attachments(project: Project, limit: int) -> tuple[Attachment, ...]:
    return tuple(Attachment.image(image) for image in project.page_images[:limit])


def build_structure_request(project: Project, mode: AttachmentMode) -> GenerationRequest:
    """Build the outline request that lists modules/topics."""

    if mode is AttachmentMode.IMAGES:
        attachments = _image_attachments(project, STRUCTURE_IMAGE_COUNT)
    else:
        attachments = (Attachment.text(project.page_text[:STRUCTURE_TEXT_CHARS]),)
    return GenerationRequest(
        prompt_parts=(_PROMPTS.structure_prompt(),),
        attachments=attachments,
        want_json=True,
    )


def build_insight_request(project: Project) -> GenerationRequest:
    """Build the scoped analysis request using the mode chosen at the structure stage."""

    if not project.scope_title:
        raise WizardStateError("A scope must be selected before insight analysis.")
    mode = project.attachment_mode or AttachmentMode.TEXT
    if mode is AttachmentMode.IMAGES:
        attachments = _image_attachments(project, INSIGHT_IMAGE_COUNT)
    else:
        attachments = (
            Attachment.text(f"DOCUMENT TEXT:\n{project.page_text[:INSIGHT_TEXT_CHARS]}"),
        )
    prompt = _PROMPTS.insight_prompt(
        scope_title=project.scope_title,
        scope_description=project.scope_description,
        full_document=is_full_document_scope(project.scope_title),
    )
    return GenerationRequest(prompt_parts=(prompt,), attachments=attachments, want_json=True)


def build_script_request(project: Project) -> GenerationRequest:
    """Build the narration request sized by the duration policy."""

    if project.selected_angle is None:
        raise WizardStateError("An angle must be selected before script generation.")
    minutes = project.resolved_minutes or resolve_minutes(project.duration, project.custom_minutes)
    prompt = _PROMPTS.script_prompt(
        angle_title=project.selected_angle.title,
        summary=project.summary,
        minutes=minutes,
        target_words=target_word_count(minutes),
    )
    return GenerationRequest(prompt_parts=(prompt,))


def build_metadata_request(project: Project) -> GenerationRequest:
    """Build the SEO metadata request from the script preview."""

    prompt = _PROMPTS.metadata_prompt(project.script[:METADATA_SCRIPT_CHARS])
    return GenerationRequest(prompt_parts=(prompt,), want_json=True)


def build_thumbnail_prompt(project: Project) -> str:
    """Build the thumbnail prompt; falls back to the angle title without metadata."""

    angle = project.selected_angle
    title = project.title or (angle.title if angle is not None else project.document_name)
    visuals = angle.description if angle is not None else project.scope_description
    return _PROMPTS.thumbnail_prompt(title=title, visual_description=visuals)
