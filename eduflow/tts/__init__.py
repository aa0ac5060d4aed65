"""Voice profiles for the narration stage."""

from .voices import VOICE_PRESETS, VoiceProfile, resolve_voice

__all__ = ["VOICE_PRESETS", "VoiceProfile", "resolve_voice"]
