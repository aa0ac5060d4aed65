"""Domain exceptions for extraction, generation, wizard, and CLI diagnostics."""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails with an actionable hint."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class ExtractionError(RuntimeError):
    """Raised when a document is not a readable PDF."""


class WizardStateError(RuntimeError):
    """Raised when an action is not allowed in the current wizard state."""


class GenerationError(RuntimeError):
    """Base class for typed generation-service failures."""

    default_failure_kind = "unknown"

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str | None = None,
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for stage-aware diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind or self.default_failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


class TransportError(GenerationError):
    """Network failure or non-success HTTP response from the generation service."""

    default_failure_kind = "transport"


class ShapeError(GenerationError):
    """Response did not parse into the expected structured shape."""

    default_failure_kind = "malformed_response"


class ContentTooLongError(GenerationError):
    """Speech synthesis returned no audio for the submitted script."""

    default_failure_kind = "content_too_long"


class PolicyViolationError(GenerationError):
    """Generation refused on content-policy grounds."""

    default_failure_kind = "policy_violation"
