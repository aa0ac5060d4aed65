"""EduFlow pipeline package.

This package contains the wizard state machine, stage request builders,
stage telemetry helpers, and the orchestrating `EduflowPipeline`.
"""

from .orchestrator import EduflowPipeline, MediaOutcome
from .states import WizardEvent, WizardState, transition

__all__ = ["EduflowPipeline", "MediaOutcome", "WizardEvent", "WizardState", "transition"]
