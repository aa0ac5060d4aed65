"""Shared parsing helpers for runtime config and user input normalization."""

from __future__ import annotations


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_positive_int(value: object) -> int | None:
    """Parse a strictly positive integer from an int or numeric string.

    Booleans, blanks, non-numeric text, and values below one yield `None`.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    normalized = normalize_optional_string(value)
    if normalized is None:
        return None
    try:
        parsed = int(normalized)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def parse_selection_index(value: str, option_count: int) -> int:
    """Parse a 1-based menu choice into a 0-based index.

    Raises:
        ValueError: If the token is not a number within `1..option_count`.
    """

    parsed = parse_positive_int(value)
    if parsed is None or parsed > option_count:
        raise ValueError(f"Choose a number between 1 and {option_count}.")
    return parsed - 1
