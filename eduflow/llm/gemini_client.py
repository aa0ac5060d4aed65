"""Gemini HTTP client utilities for text, image, and speech generation.

Responsibilities:
- Send single round-trip requests to the Gemini REST API via `requests`.
- Normalize response extraction for the three generation capabilities.
- Raise typed `GenerationError` subclasses so callers branch on error kind.
"""

from __future__ import annotations

import base64
import json
import re
import socket
from typing import Any, Protocol, Sequence

import requests

from ..errors import (
    ContentTooLongError,
    GenerationError,
    PolicyViolationError,
    ShapeError,
    TransportError,
)
from ..models.datatypes import Attachment, SpeechAudio

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_SPEECH_SAMPLE_RATE = 24000


class GenerationClient(Protocol):
    """Protocol for the three generation capabilities used by the pipeline."""

    def generate_structured_text(
        self,
        prompt_parts: Sequence[str],
        attachments: Sequence[Attachment] = (),
        want_json: bool = False,
    ) -> str:
        """Return generated text for a prompt plus optional attachments."""

    def generate_image(self, prompt: str) -> bytes:
        """Return one generated image payload."""

    def generate_speech(self, full_script: str, voice_id: str) -> SpeechAudio:
        """Return synthesized speech for the full script."""


class _GeminiBaseClient:
    """Shared Gemini HTTP settings and helpers used by capability clients."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 120.0,
    ) -> None:
        """Initialize Gemini HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _require_api_key(self) -> None:
        """Require API key presence before issuing Gemini requests."""

        if not self.api_key:
            raise TransportError(
                "Missing Gemini API key. Set `GEMINI_API_KEY`, use `--api-key`, or "
                "`--prompt-api-key`.",
                failure_kind="invalid_api_key",
            )

    def _post_json(self, *, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON payload to `models/<model>:<method>` and decode the JSON reply."""

        self._require_api_key()
        endpoint = f"{self.base_url}/models/{self.model}:{method}"
        try:
            response = requests.post(
                endpoint,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            response_bytes = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = "Gemini request timed out."
            else:
                detail = f"Gemini request transport error: {self._short_message(str(exc))}"
            raise TransportError(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise TransportError("Gemini request timed out.", failure_kind="timeout") from exc

        try:
            decoded = json.loads(response_bytes.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ShapeError("Gemini returned invalid JSON payload.") from exc
        if not isinstance(decoded, dict):
            raise ShapeError("Gemini response root is not a JSON object.")
        return decoded

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content or b"").decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bAIza[0-9A-Za-z_-]{20,}\b", "[redacted-key]", text)
        redacted = re.sub(r"(?i)key=[A-Za-z0-9._-]{12,}", "key=[redacted-key]", redacted)
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(cls._redact_sensitive_tokens(text).split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider-facing message and optional provider status code."""

        if not body:
            return "", None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(body), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                status_value = error_payload.get("status")
                if isinstance(status_value, str) and status_value.strip():
                    provider_code = status_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        if message is None:
            message = body
        return cls._short_message(message), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify Gemini HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.lower() if provider_code is not None else ""

        if status_code in {401, 403} or "api key" in message_lower:
            return "invalid_api_key"
        if normalized_code == "resource_exhausted" or status_code == 429:
            return "insufficient_quota"
        if status_code == 404 and "model" in message_lower:
            return "invalid_model"
        if status_code in {408, 504} or "deadline" in message_lower or "timed out" in message_lower:
            return "timeout"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    @classmethod
    def _http_error_to_provider_error(cls, exc: requests.HTTPError) -> GenerationError:
        """Convert HTTP errors into typed provider exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = cls._decode_error_body(exc)
        provider_message, provider_code = cls._extract_provider_message(body)
        failure_kind = cls._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "invalid_api_key": "Gemini authentication failed",
            "insufficient_quota": "Gemini quota is insufficient for this request",
            "invalid_model": "Gemini rejected the selected model",
            "timeout": "Gemini request timed out",
        }.get(failure_kind, "Gemini request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."

        return TransportError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )

    @staticmethod
    def _first_candidate_parts(payload: dict[str, Any]) -> list[Any]:
        """Return `candidates[0].content.parts` or raise a typed error.

        A prompt blocked by safety filters raises `PolicyViolationError`.
        """

        feedback = payload.get("promptFeedback")
        block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if block_reason:
            raise PolicyViolationError(
                f"Gemini blocked the request ({block_reason}).",
                provider_code=str(block_reason),
            )

        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise ShapeError("Gemini response missing non-empty `candidates` list.")
        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise ShapeError("Gemini response missing `candidates[0].content.parts`.")
        return parts


class GeminiTextClient(_GeminiBaseClient):
    """Structured-text generation against `:generateContent`."""

    def generate_structured_text(
        self,
        prompt_parts: Sequence[str],
        attachments: Sequence[Attachment] = (),
        want_json: bool = False,
    ) -> str:
        """Return the first candidate's text for a prompt plus attachments."""

        parts: list[dict[str, Any]] = [{"text": prompt} for prompt in prompt_parts]
        for attachment in attachments:
            if attachment.kind == "image":
                parts.append(
                    {
                        "inlineData": {
                            "mimeType": "image/jpeg",
                            "data": base64.b64encode(bytes(attachment.data)).decode("ascii"),
                        }
                    }
                )
            else:
                parts.append({"text": str(attachment.data)})

        payload: dict[str, Any] = {"contents": [{"parts": parts}]}
        if want_json:
            payload["generationConfig"] = {"responseMimeType": "application/json"}

        response = self._post_json(method="generateContent", payload=payload)
        text = "".join(
            part["text"]
            for part in self._first_candidate_parts(response)
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ).strip()
        if not text:
            raise ShapeError("Gemini response text is empty.")
        return text


class GeminiImageClient(_GeminiBaseClient):
    """Single-image generation against the Imagen `:predict` endpoint."""

    def generate_image(self, prompt: str) -> bytes:
        """Return decoded image bytes for one generated sample."""

        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {"sampleCount": 1},
        }
        response = self._post_json(method="predict", payload=payload)
        predictions = response.get("predictions")
        if not isinstance(predictions, list) or not predictions:
            raise ShapeError("Image response missing non-empty `predictions` list.")
        first = predictions[0]
        encoded = first.get("bytesBase64Encoded") if isinstance(first, dict) else None
        if not isinstance(encoded, str) or not encoded:
            raise ShapeError("Image response payload is empty.")
        try:
            return base64.b64decode(encoded, validate=True)
        except ValueError as exc:
            raise ShapeError("Image response payload is not valid base64.") from exc


class GeminiSpeechClient(_GeminiBaseClient):
    """Speech synthesis against the TTS `:generateContent` endpoint."""

    _TOO_LONG_MARKERS = ("too long", "token limit", "exceeds the maximum")

    def generate_speech(self, full_script: str, voice_id: str) -> SpeechAudio:
        """Synthesize the full script in one request and return raw PCM audio."""

        payload = {
            "contents": [{"parts": [{"text": full_script}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice_id}}
                },
            },
        }
        try:
            response = self._post_json(method="generateContent", payload=payload)
        except TransportError as exc:
            if exc.status_code == 400 and any(
                marker in str(exc).lower() for marker in self._TOO_LONG_MARKERS
            ):
                raise ContentTooLongError(
                    f"Script was rejected as too long for one speech request: {exc}",
                    status_code=exc.status_code,
                    provider_code=exc.provider_code,
                ) from exc
            raise

        inline = None
        try:
            parts = self._first_candidate_parts(response)
        except ShapeError:
            parts = []
        for part in parts:
            if isinstance(part, dict) and isinstance(part.get("inlineData"), dict):
                inline = part["inlineData"]
                break
        encoded = inline.get("data") if inline is not None else None
        if not isinstance(encoded, str) or not encoded:
            raise ContentTooLongError(
                "No audio data returned. The script might be too long for a single request."
            )
        mime_type = str(inline.get("mimeType") or "audio/L16;rate=24000")
        try:
            pcm = base64.b64decode(encoded, validate=True)
        except ValueError as exc:
            raise ShapeError("Speech response payload is not valid base64.") from exc
        return SpeechAudio(
            pcm=pcm,
            sample_rate=self._sample_rate_from_mime(mime_type),
            mime_type=mime_type,
        )

    @staticmethod
    def _sample_rate_from_mime(mime_type: str) -> int:
        """Parse `rate=<hz>` from an `audio/L16` MIME type."""

        match = re.search(r"rate=(\d+)", mime_type)
        if match is None:
            return DEFAULT_SPEECH_SAMPLE_RATE
        return int(match.group(1))


class GeminiGenerationClient:
    """Facade bundling the three capability clients behind one object."""

    def __init__(
        self,
        *,
        api_key: str | None,
        text_model: str,
        image_model: str,
        tts_model: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 120.0,
    ) -> None:
        """Create capability clients sharing credentials and transport settings."""

        self.text = GeminiTextClient(
            api_key=api_key, model=text_model, base_url=base_url, timeout_seconds=timeout_seconds
        )
        self.image = GeminiImageClient(
            api_key=api_key, model=image_model, base_url=base_url, timeout_seconds=timeout_seconds
        )
        self.speech = GeminiSpeechClient(
            api_key=api_key, model=tts_model, base_url=base_url, timeout_seconds=timeout_seconds
        )

    def generate_structured_text(
        self,
        prompt_parts: Sequence[str],
        attachments: Sequence[Attachment] = (),
        want_json: bool = False,
    ) -> str:
        return self.text.generate_structured_text(prompt_parts, attachments, want_json)

    def generate_image(self, prompt: str) -> bytes:
        return self.image.generate_image(prompt)

    def generate_speech(self, full_script: str, voice_id: str) -> SpeechAudio:
        return self.speech.generate_speech(full_script, voice_id)
