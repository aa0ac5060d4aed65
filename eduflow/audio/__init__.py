"""Audio container helpers for narrated output."""

from .wav import pcm_to_wav, wav_duration_seconds

__all__ = ["pcm_to_wav", "wav_duration_seconds"]
