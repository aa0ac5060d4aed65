"""WAV container helpers for synthesized narration.

The speech endpoint returns headerless 16-bit PCM; downloads and playback
need a RIFF/WAV container around it.
"""

from __future__ import annotations

import io
import wave


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int,
    channels: int = 1,
    sample_width: int = 2,
) -> bytes:
    """Wrap raw little-endian PCM frames in a WAV container."""

    if sample_rate <= 0:
        raise ValueError("`sample_rate` must be a positive integer.")
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(sample_width)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(pcm)
    return buffer.getvalue()


def wav_duration_seconds(data: bytes) -> float:
    """Return the playback duration of a WAV payload in seconds."""

    try:
        with wave.open(io.BytesIO(data), "rb") as wav_file:
            frame_count = wav_file.getnframes()
            sample_rate = wav_file.getframerate()
    except (wave.Error, EOFError) as exc:
        raise ValueError("Payload is not a readable WAV file.") from exc
    if sample_rate <= 0:
        raise ValueError("WAV payload has invalid sample rate.")
    return frame_count / float(sample_rate)
