"""Configuration model and loaders for EduFlow.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for model and credential settings.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `EduflowConfig`: normalized settings for a wizard session.
- `ProviderRuntimeConfig`: resolved model/voice/credential values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `EduflowConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .duration import parse_duration_choice
from .parsing import normalize_optional_string

_DEFAULT_TEXT_MODEL = "gemini-2.5-flash-preview-09-2025"
_DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
_DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
_DEFAULT_TTS_VOICE = "kore"
_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
_DEFAULT_OUTPUT_DIR = Path("out")
_DEFAULT_LIBRARY_FILE = "eduflow_projects.json"


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved model identifiers, voice, and API key for one session."""

    model_text: str
    model_image: str
    model_tts: str
    tts_voice: str
    api_key: str | None = None

    def as_metadata(self) -> dict[str, str]:
        """Return non-secret runtime metadata safe to persist alongside projects."""

        return {
            "model_text": self.model_text,
            "model_image": self.model_image,
            "model_tts": self.model_tts,
            "tts_voice": self.tts_voice,
        }


@dataclass(slots=True)
class EduflowConfig:
    """Runtime configuration for one wizard session.

    Attributes:
        output_dir: Directory for exported media.
        library_path: JSON file holding the saved project library.
        model_text: Structured-text model id.
        model_image: Thumbnail image model id.
        model_tts: Speech model id.
        tts_voice: Voice preset or provider voice id.
        api_key: Optional API key for provider calls.
        base_url: Generation service base URL.
        timeout_seconds: Per-request HTTP timeout.
        max_visual_pages: Number of leading pages rasterized for vision requests.
        render_workers: Bounded page-render concurrency.
        text_mode_threshold_chars: Below this many extracted characters the
            document is treated as image-only.
        duration: Default duration preset offered by the wizard.
        runtime_sources: Optional runtime source overrides injected by CLI.
        extra: Labels copied into the metadata of every saved project.
    """

    output_dir: Path = _DEFAULT_OUTPUT_DIR
    library_path: Path = _DEFAULT_OUTPUT_DIR / _DEFAULT_LIBRARY_FILE
    model_text: str = _DEFAULT_TEXT_MODEL
    model_image: str = _DEFAULT_IMAGE_MODEL
    model_tts: str = _DEFAULT_TTS_MODEL
    tts_voice: str = _DEFAULT_TTS_VOICE
    api_key: str | None = None
    base_url: str = _DEFAULT_BASE_URL
    timeout_seconds: float = 120.0
    max_visual_pages: int = 15
    render_workers: int = 4
    text_mode_threshold_chars: int = 500
    duration: str = "medium"
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)
    extra: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate configuration values before a session starts."""

        self._require_non_empty(self.model_text, "model_text")
        self._require_non_empty(self.model_image, "model_image")
        self._require_non_empty(self.model_tts, "model_tts")
        self._require_non_empty(self.tts_voice, "tts_voice")
        self._require_non_empty(self.base_url, "base_url")
        if self.timeout_seconds <= 0:
            raise ValueError("`timeout_seconds` must be positive.")
        if not 0 <= self.max_visual_pages <= 15:
            raise ValueError("`max_visual_pages` must be between 0 and 15.")
        if self.render_workers <= 0:
            raise ValueError("`render_workers` must be a positive integer.")
        if self.text_mode_threshold_chars < 0:
            raise ValueError("`text_mode_threshold_chars` must not be negative.")
        parse_duration_choice(self.duration)

    def resolved_provider_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderRuntimeConfig:
        """Resolve model, voice, and key settings with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field default.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        resolved = ProviderRuntimeConfig(
            model_text=self._resolve_runtime_value(
                "model_text", "EDUFLOW_MODEL_TEXT", self.model_text, resolved_sources
            ),
            model_image=self._resolve_runtime_value(
                "model_image", "EDUFLOW_MODEL_IMAGE", self.model_image, resolved_sources
            ),
            model_tts=self._resolve_runtime_value(
                "model_tts", "EDUFLOW_MODEL_TTS", self.model_tts, resolved_sources
            ),
            tts_voice=self._resolve_runtime_value(
                "tts_voice", "EDUFLOW_TTS_VOICE", self.tts_voice, resolved_sources
            ),
            api_key=self._resolve_optional_runtime_value(
                "api_key", "GEMINI_API_KEY", self.api_key, resolved_sources
            ),
        )
        self._require_non_empty(resolved.model_text, "model_text")
        self._require_non_empty(resolved.model_image, "model_image")
        self._require_non_empty(resolved.model_tts, "model_tts")
        self._require_non_empty(resolved.tts_voice, "tts_voice")
        return resolved

    def _resolve_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a required runtime value from sources in precedence order."""

        value = self._resolve_optional_runtime_value(key, env_key, default_value, sources)
        if value is None:
            raise ValueError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or defaults."
            )
        return value

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in precedence order."""

        for mapping, lookup_key in (
            (sources.cli, key),
            (sources.secure, key),
            (sources.env, env_key),
        ):
            value = self._normalized_lookup(mapping, lookup_key)
            if value is not None:
                return value
        return normalize_optional_string(default_value)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that runtime string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `EduflowConfig` from external sources."""

    _STRING_KEYS = frozenset(
        {"model_text", "model_image", "model_tts", "tts_voice", "api_key", "base_url", "duration"}
    )
    _PATH_KEYS = frozenset({"output_dir", "library_path"})
    _INT_KEYS = frozenset({"max_visual_pages", "render_workers", "text_mode_threshold_chars"})
    _SUPPORTED_YAML_KEYS = _STRING_KEYS | _PATH_KEYS | _INT_KEYS | {"timeout_seconds", "extra"}
    _ENV_KEYS = {
        "EDUFLOW_OUTPUT_DIR": "output_dir",
        "EDUFLOW_LIBRARY_PATH": "library_path",
        "EDUFLOW_MODEL_TEXT": "model_text",
        "EDUFLOW_MODEL_IMAGE": "model_image",
        "EDUFLOW_MODEL_TTS": "model_tts",
        "EDUFLOW_TTS_VOICE": "tts_voice",
        "EDUFLOW_BASE_URL": "base_url",
        "EDUFLOW_TIMEOUT_SECONDS": "timeout_seconds",
        "EDUFLOW_MAX_VISUAL_PAGES": "max_visual_pages",
        "EDUFLOW_RENDER_WORKERS": "render_workers",
        "EDUFLOW_TEXT_MODE_THRESHOLD_CHARS": "text_mode_threshold_chars",
        "EDUFLOW_DURATION": "duration",
        "GEMINI_API_KEY": "api_key",
    }

    @staticmethod
    def from_yaml(path: Path) -> EduflowConfig:
        """Create a validated config from a YAML file."""

        raw_text = path.read_text(encoding="utf-8")
        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> EduflowConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for env_key, config_key in ConfigLoader._ENV_KEYS.items():
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[config_key] = value
        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._ENV_KEYS and normalize_optional_string(value) is not None
        }
        config = ConfigLoader._build_config_from_mapping(payload, source_label="Environment")
        config.runtime_sources = RuntimeConfigSources(env=runtime_env)
        return config

    @staticmethod
    def _build_config_from_mapping(payload: Mapping[str, Any], source_label: str) -> EduflowConfig:
        """Build a validated config from a normalized mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        values: dict[str, Any] = {}
        for key in ConfigLoader._STRING_KEYS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                values[key] = value
        for key in ConfigLoader._PATH_KEYS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                values[key] = Path(value)
        for key in ConfigLoader._INT_KEYS:
            if key in payload:
                values[key] = ConfigLoader._non_negative_int(payload[key], key, source_label)
        if "timeout_seconds" in payload:
            values["timeout_seconds"] = ConfigLoader._positive_float(
                payload["timeout_seconds"], "timeout_seconds", source_label
            )
        if "extra" in payload:
            values["extra"] = ConfigLoader._string_map(payload["extra"], source_label)
        if "output_dir" in values and "library_path" not in values:
            values["library_path"] = values["output_dir"] / _DEFAULT_LIBRARY_FILE

        config = EduflowConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _non_negative_int(raw_value: object, key: str, source_label: str) -> int:
        """Parse an integer field, rejecting booleans and negatives."""

        message = f"{source_label} field `{key}` must be a non-negative integer."
        if isinstance(raw_value, bool):
            raise ValueError(message)
        try:
            parsed = int(str(raw_value).strip())
        except ValueError as exc:
            raise ValueError(message) from exc
        if parsed < 0:
            raise ValueError(message)
        return parsed

    @staticmethod
    def _positive_float(raw_value: object, key: str, source_label: str) -> float:
        message = f"{source_label} field `{key}` must be a positive number."
        if isinstance(raw_value, bool):
            raise ValueError(message)
        try:
            parsed = float(str(raw_value).strip())
        except ValueError as exc:
            raise ValueError(message) from exc
        if parsed <= 0:
            raise ValueError(message)
        return parsed

    @staticmethod
    def _string_map(raw: object, source_label: str) -> dict[str, str]:
        """Read an optional mapping with non-empty string keys and values."""

        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `extra` must be a mapping/object.")
        normalized: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            key_value = normalize_optional_string(raw_key)
            value_value = normalize_optional_string(raw_value)
            if key_value is None or value_value is None:
                raise ValueError(f"{source_label} field `extra` contains a blank key or value.")
            normalized[key_value] = value_value
        return normalized
