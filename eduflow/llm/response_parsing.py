"""Structured-response parsing for JSON-shaped generation stages.

Responsibilities:
- Strip Markdown code fences that models wrap around JSON output.
- Validate stage-specific shapes and raise `ShapeError` on any mismatch.
"""

from __future__ import annotations

import json
import re
from typing import Any

from ..errors import ShapeError
from ..models.datatypes import TopicOption, VideoMetadata
from .prompts import SCRIPT_CLOSING_LINE, SCRIPT_OPENING_LINE

_FENCE_PATTERN = re.compile(r"```(?:json)?\n?", re.IGNORECASE)

INSIGHT_ANGLE_COUNT = 3


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers and surrounding whitespace."""

    return _FENCE_PATTERN.sub("", text).strip()


def parse_json_payload(text: str) -> Any:
    """Parse model output as JSON after stripping code fences."""

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ShapeError("AI returned invalid JSON format.") from exc


def _require_mapping(payload: Any, label: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ShapeError(f"{label} response must be a JSON object.")
    return payload


def _required_text(item: dict[str, Any], key: str, label: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ShapeError(f"{label} is missing non-empty `{key}`.")
    return value.strip()


def _parse_options(raw: Any, label: str) -> tuple[TopicOption, ...]:
    if not isinstance(raw, list) or not raw:
        raise ShapeError(f"{label} must be a non-empty list.")
    options: list[TopicOption] = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ShapeError(f"{label} item {index} must be an object.")
        options.append(
            TopicOption(
                title=_required_text(item, "title", f"{label} item {index}"),
                description=str(item.get("description") or "").strip(),
            )
        )
    return tuple(options)


def parse_structure_options(text: str) -> tuple[TopicOption, ...]:
    """Parse `{"options": [{title, description}, ...]}`."""

    payload = _require_mapping(parse_json_payload(text), "Structure")
    return _parse_options(payload.get("options"), "Structure `options`")


def parse_insight(text: str) -> tuple[str, tuple[TopicOption, ...]]:
    """Parse `{"summary": str, "angles": [...]}` with exactly three angles."""

    payload = _require_mapping(parse_json_payload(text), "Insight")
    summary = _required_text(payload, "summary", "Insight response")
    angles = _parse_options(payload.get("angles"), "Insight `angles`")
    if len(angles) != INSIGHT_ANGLE_COUNT:
        raise ShapeError(
            f"Insight response must contain exactly {INSIGHT_ANGLE_COUNT} angles, "
            f"got {len(angles)}."
        )
    return summary, angles


def parse_metadata(text: str) -> VideoMetadata:
    """Parse `{"title", "description", "hashtags"}`; list hashtags are comma-joined."""

    payload = _require_mapping(parse_json_payload(text), "Metadata")
    hashtags = payload.get("hashtags")
    if isinstance(hashtags, list):
        hashtags = ", ".join(str(tag).strip() for tag in hashtags if str(tag).strip())
    if not isinstance(hashtags, str):
        raise ShapeError("Metadata `hashtags` must be a string or list of strings.")
    return VideoMetadata(
        title=_required_text(payload, "title", "Metadata response"),
        description=str(payload.get("description") or "").strip(),
        hashtags=hashtags.strip(),
    )


def _comparable(text: str) -> str:
    return " ".join(text.lower().split())


def frame_script(text: str) -> str:
    """Ensure narration starts with the fixed opening line and ends with the closing line."""

    body = text.strip()
    # The opening trails off into the topic, so only its fixed part must match.
    if not _comparable(body).startswith(_comparable(SCRIPT_OPENING_LINE).rstrip(". ")):
        body = f"{SCRIPT_OPENING_LINE} {body}"
    if not _comparable(body).rstrip(" .!").endswith(_comparable(SCRIPT_CLOSING_LINE)):
        body = f"{body}\n\n{SCRIPT_CLOSING_LINE}"
    return body
