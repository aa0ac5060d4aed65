"""Unit tests for stage request builders and attachment-mode selection."""

from __future__ import annotations

import pytest

from eduflow.duration import DurationChoice
from eduflow.errors import WizardStateError
from eduflow.llm.prompts import FULL_DOCUMENT_ANGLES, MODULE_ANGLES
from eduflow.models.datatypes import AttachmentMode, Project, TopicOption
from eduflow.pipeline.builders import (
    INSIGHT_IMAGE_COUNT,
    INSIGHT_TEXT_CHARS,
    STRUCTURE_IMAGE_COUNT,
    STRUCTURE_TEXT_CHARS,
    build_insight_request,
    build_metadata_request,
    build_script_request,
    build_structure_request,
    build_thumbnail_prompt,
    is_full_document_scope,
    select_attachment_mode,
)


def _project(**overrides: object) -> Project:
    project = Project(id="abc123def", created_at="2026-01-01T00:00:00+00:00")
    project.page_images = tuple(f"page-{index}".encode() for index in range(15))
    project.page_text = "x" * 60_000
    for key, value in overrides.items():
        setattr(project, key, value)
    return project


def test_attachment_mode_threshold_is_strictly_below_limit() -> None:
    """Text shorter than the threshold selects images; at or above selects text."""

    assert select_attachment_mode(499, 500) is AttachmentMode.IMAGES
    assert select_attachment_mode(500, 500) is AttachmentMode.TEXT
    assert select_attachment_mode(0, 500) is AttachmentMode.IMAGES


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Full Document Masterclass", True),
        ("FULL course review", True),
        ("The masterclass", True),
        ("Module 2: Markets", False),
        ("Unit 4 - Fulcrum", False),
    ],
)
def test_full_document_scope_detection(title: str, expected: bool) -> None:
    """Scope titles containing `full` or `masterclass` (any case) are full-document scopes."""

    assert is_full_document_scope(title) is expected


def test_structure_request_uses_first_three_images_in_image_mode() -> None:
    """Image-mode structure requests should attach exactly the first three pages."""

    request = build_structure_request(_project(), AttachmentMode.IMAGES)

    assert request.want_json is True
    assert [attachment.kind for attachment in request.attachments] == ["image"] * STRUCTURE_IMAGE_COUNT
    assert request.attachments[0].data == b"page-0"


def test_structure_request_uses_text_prefix_in_text_mode() -> None:
    """Text-mode structure requests should attach the first 30k characters."""

    request = build_structure_request(_project(), AttachmentMode.TEXT)

    assert len(request.attachments) == 1
    assert request.attachments[0].kind == "text"
    assert len(request.attachments[0].data) == STRUCTURE_TEXT_CHARS


def test_insight_request_uses_mode_decided_at_structure_stage() -> None:
    """Insight requests should follow the stored attachment mode with their larger caps."""

    option = TopicOption("Module 2: Markets", "Supply and demand.")
    image_project = _project(attachment_mode=AttachmentMode.IMAGES)
    image_project.apply_scope(option)
    text_project = _project(attachment_mode=AttachmentMode.TEXT)
    text_project.apply_scope(option)

    image_request = build_insight_request(image_project)
    text_request = build_insight_request(text_project)

    assert len(image_request.attachments) == INSIGHT_IMAGE_COUNT
    assert text_request.attachments[0].data.startswith("DOCUMENT TEXT:\n")
    assert len(text_request.attachments[0].data) == len("DOCUMENT TEXT:\n") + INSIGHT_TEXT_CHARS


def test_insight_request_selects_angle_template_by_scope() -> None:
    """Full-document scopes use the masterclass angles; modules use module angles."""

    full = _project(attachment_mode=AttachmentMode.TEXT)
    full.apply_scope(TopicOption("Full Document Masterclass", "Complete analysis."))
    module = _project(attachment_mode=AttachmentMode.TEXT)
    module.apply_scope(TopicOption("Module 5: Pricing", "Pricing tricks."))

    full_prompt = build_insight_request(full).prompt_parts[0]
    module_prompt = build_insight_request(module).prompt_parts[0]

    assert FULL_DOCUMENT_ANGLES in full_prompt
    assert MODULE_ANGLES not in full_prompt
    assert MODULE_ANGLES in module_prompt
    assert 'SCOPE: "Module 5: Pricing" - Pricing tricks.' in module_prompt


def test_insight_request_requires_scope() -> None:
    with pytest.raises(WizardStateError):
        build_insight_request(_project())


def test_script_request_embeds_duration_and_word_target() -> None:
    """Script requests should carry minutes and the 150-words-per-minute target."""

    project = _project(summary="Summary text.")
    project.apply_angle(TopicOption("Core Concept", "Equilibrium."))
    project.apply_duration(DurationChoice.LONG, None, 10)

    request = build_script_request(project)

    assert request.want_json is False
    assert request.attachments == ()
    assert "TARGET DURATION: 10 Minutes (Approx 1500 words)." in request.prompt_parts[0]
    assert '"Core Concept"' in request.prompt_parts[0]


def test_metadata_request_uses_first_thousand_script_characters() -> None:
    project = _project(script="s" * 1500)

    prompt = build_metadata_request(project).prompt_parts[0]

    assert "s" * 1000 + "..." in prompt
    assert "s" * 1001 not in prompt


def test_thumbnail_prompt_falls_back_to_angle_title_without_metadata() -> None:
    """Without a metadata title, the thumbnail prompt should use the angle title."""

    project = _project()
    project.apply_angle(TopicOption("Core Concept", "A glowing supply curve."))

    prompt = build_thumbnail_prompt(project)

    assert 'thumbnail for: "Core Concept"' in prompt
    assert "Visuals: A glowing supply curve." in prompt
    assert "16:9" in prompt
