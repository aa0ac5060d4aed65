"""Shared typed data models for EduFlow.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    Attachment,
    AttachmentMode,
    ExtractedDocument,
    GenerationRequest,
    PageText,
    Project,
    SpeechAudio,
    TopicOption,
    VideoMetadata,
)

__all__ = [
    "Attachment",
    "AttachmentMode",
    "ExtractedDocument",
    "GenerationRequest",
    "PageText",
    "Project",
    "SpeechAudio",
    "TopicOption",
    "VideoMetadata",
]
