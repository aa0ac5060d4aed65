"""Voice profile models for narration.

Responsibilities:
- Represent prebuilt Gemini voices under human-readable presets.
- Resolve CLI/config voice tokens to provider voice identifiers.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..parsing import normalize_optional_string


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice profile used by the speech stage.

    Attributes:
        name: Preset name.
        provider_voice_id: Gemini prebuilt voice name.
        label: Narrator label shown to the user.
    """

    name: str
    provider_voice_id: str
    label: str


VOICE_PRESETS: dict[str, VoiceProfile] = {
    "kore": VoiceProfile(name="kore", provider_voice_id="Kore", label="Professor Kore"),
    "puck": VoiceProfile(name="puck", provider_voice_id="Puck", label="Professor Puck"),
}

_GENDER_ALIASES = {"m": "kore", "f": "puck"}


def resolve_voice(token: str | None, default: str = "kore") -> VoiceProfile:
    """Resolve a preset name, `M`/`F` alias, or raw provider voice id."""

    normalized = normalize_optional_string(token) or default
    key = normalized.lower()
    key = _GENDER_ALIASES.get(key, key)
    preset = VOICE_PRESETS.get(key)
    if preset is not None:
        return preset
    return VoiceProfile(name=key, provider_voice_id=normalized, label=normalized)
