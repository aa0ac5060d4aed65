"""Generation-service abstractions.

This package defines the Gemini HTTP clients, prompt library, and structured
response parsing used by the pipeline stages.
"""

from .gemini_client import (
    GeminiGenerationClient,
    GeminiImageClient,
    GeminiSpeechClient,
    GeminiTextClient,
    GenerationClient,
)
from .prompts import PromptLibrary

__all__ = [
    "GeminiGenerationClient",
    "GeminiImageClient",
    "GeminiSpeechClient",
    "GeminiTextClient",
    "GenerationClient",
    "PromptLibrary",
]
