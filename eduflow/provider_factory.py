"""Provider factory for the generation client used by the wizard.

Responsibilities:
- Build the Gemini-backed client from resolved runtime settings.
- Keep the CLI independent from concrete client construction.
"""

from __future__ import annotations

from .config import EduflowConfig, ProviderRuntimeConfig
from .llm.gemini_client import GeminiGenerationClient, GenerationClient


class ProviderFactory:
    """Factory for provider-backed generation clients."""

    @staticmethod
    def create_generation_client(
        config: EduflowConfig,
        runtime: ProviderRuntimeConfig | None = None,
    ) -> GenerationClient:
        """Create a generation client for resolved model and credential settings."""

        resolved = runtime if runtime is not None else config.resolved_provider_runtime()
        return GeminiGenerationClient(
            api_key=resolved.api_key,
            text_model=resolved.model_text,
            image_model=resolved.model_image,
            tts_model=resolved.model_tts,
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
        )
