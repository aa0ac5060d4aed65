"""Deterministic test doubles shared across the EduFlow test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

import fitz

from eduflow.models.datatypes import Attachment, SpeechAudio

INSIGHT_RESPONSE = json.dumps(
    {
        "summary": "Module 2 explains supply and demand equilibrium.",
        "angles": [
            {"title": "Core Concept", "description": "Equilibrium pricing."},
            {"title": "The Shortcut", "description": "Reading curve shifts quickly."},
            {"title": "Case Study", "description": "Rent control in practice."},
        ],
    }
)
METADATA_RESPONSE = json.dumps(
    {
        "title": "Supply and Demand in 10 Minutes",
        "description": "Everything you need for the exam.",
        "hashtags": ["#economics", "#exam"],
    }
)


def structure_response(*titles: str) -> str:
    """Return a structure JSON payload listing the given option titles."""

    return json.dumps(
        {"options": [{"title": title, "description": f"About {title}."} for title in titles]}
    )


class StubGenerationClient:
    """Generation client double returning queued responses and recording calls.

    Queued text responses are consumed in order; an exception instance in the
    queue is raised instead of returned.
    """

    def __init__(
        self,
        text_responses: Sequence[object] = (),
        image: object = b"\x89PNG-thumbnail",
        speech: object = None,
    ) -> None:
        self.text_responses = list(text_responses)
        self.image = image
        self.speech = (
            speech
            if speech is not None
            else SpeechAudio(pcm=b"\x00\x00" * 240, sample_rate=24000, mime_type="audio/L16;rate=24000")
        )
        self.text_calls: list[tuple[tuple[str, ...], tuple[Attachment, ...], bool]] = []
        self.image_prompts: list[str] = []
        self.speech_calls: list[tuple[str, str]] = []

    def generate_structured_text(
        self,
        prompt_parts: Sequence[str],
        attachments: Sequence[Attachment] = (),
        want_json: bool = False,
    ) -> str:
        self.text_calls.append((tuple(prompt_parts), tuple(attachments), want_json))
        if not self.text_responses:
            raise AssertionError("No queued text response left.")
        response = self.text_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return str(response)

    def generate_image(self, prompt: str) -> bytes:
        self.image_prompts.append(prompt)
        if isinstance(self.image, Exception):
            raise self.image
        return bytes(self.image)

    def generate_speech(self, full_script: str, voice_id: str) -> SpeechAudio:
        self.speech_calls.append((full_script, voice_id))
        if isinstance(self.speech, Exception):
            raise self.speech
        return self.speech


class InMemoryCredentialStore:
    """Simple in-memory credential store used for CLI tests."""

    def __init__(self, initial_api_key: str | None = None) -> None:
        self._api_key = initial_api_key

    def is_available(self) -> bool:
        return True

    def get_api_key(self) -> str | None:
        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        self._api_key = api_key.strip()

    def clear_api_key(self) -> bool:
        existed = self._api_key is not None
        self._api_key = None
        return existed


def write_pdf(path: Path, pages: Sequence[str]) -> Path:
    """Write a PDF with one page per entry; blank entries produce text-free pages."""

    document = fitz.open()
    try:
        for text in pages:
            page = document.new_page()
            if text:
                lines = [text[start : start + 80] for start in range(0, len(text), 80)]
                page.insert_text((50, 72), "\n".join(lines), fontsize=9)
            else:
                page.draw_rect(fitz.Rect(100, 100, 300, 300), color=(0, 0, 0), fill=(0.5, 0.5, 0.5))
        document.save(str(path))
    finally:
        document.close()
    return path
