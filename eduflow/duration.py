"""Duration and script-length policy.

Responsibilities:
- Map a duration choice (or custom minute count) to narration minutes.
- Derive the target word count used by the script stage.

The functions here are pure and have no provider or filesystem dependencies.
"""

from __future__ import annotations

from enum import Enum

from .parsing import normalize_optional_string, parse_positive_int

WORDS_PER_MINUTE = 150
DEFAULT_CUSTOM_MINUTES = 5


class DurationChoice(str, Enum):
    """User-facing script duration presets."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    CUSTOM = "custom"


_PRESET_MINUTES = {
    DurationChoice.SHORT: 2,
    DurationChoice.MEDIUM: 5,
    DurationChoice.LONG: 10,
}


def parse_duration_choice(value: object) -> DurationChoice:
    """Parse a duration token such as `long` or `Custom` into a `DurationChoice`."""

    if isinstance(value, DurationChoice):
        return value
    token = normalize_optional_string(value)
    if token is not None:
        try:
            return DurationChoice(token.lower())
        except ValueError:
            pass
    supported = ", ".join(choice.value for choice in DurationChoice)
    raise ValueError(f"Unsupported duration `{value}`; supported: {supported}.")


def resolve_minutes(choice: DurationChoice | str, custom_minutes: object = None) -> int:
    """Return narration minutes for a duration choice.

    `custom` uses the given minute count when it is a positive integer (or a
    numeric string) and falls back to five minutes otherwise.
    """

    resolved_choice = parse_duration_choice(choice)
    if resolved_choice is DurationChoice.CUSTOM:
        parsed = parse_positive_int(custom_minutes)
        return parsed if parsed is not None else DEFAULT_CUSTOM_MINUTES
    return _PRESET_MINUTES[resolved_choice]


def target_word_count(minutes: int) -> int:
    """Return the narration word target for a minute count."""

    return minutes * WORDS_PER_MINUTE
