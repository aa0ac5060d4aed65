"""Wizard states, events, and the transition table.

The wizard is linear: each user action or completed stage emits an event,
and `transition` maps `(state, event)` to the next state. Self-transitions
model explicit retries; anything not in the table is rejected.
"""

from __future__ import annotations

from enum import Enum

from ..errors import WizardStateError


class WizardState(str, Enum):
    """Ordered wizard states."""

    INGEST = "ingest"
    STRUCTURE_ANALYSIS = "structure_analysis"
    INSIGHT_ANALYSIS = "insight_analysis"
    ANGLE_SELECTION = "angle_selection"
    DURATION_SELECTION = "duration_selection"
    SCRIPT_GENERATION = "script_generation"
    METADATA_GENERATION = "metadata_generation"
    MEDIA_PRODUCTION = "media_production"
    SAVED = "saved"


class WizardEvent(str, Enum):
    """User actions and stage completions that drive the wizard."""

    DOCUMENT_INGESTED = "document_ingested"
    STRUCTURE_READY = "structure_ready"
    SCOPE_SELECTED = "scope_selected"
    INSIGHT_READY = "insight_ready"
    ANGLE_SELECTED = "angle_selected"
    DURATION_SELECTED = "duration_selected"
    SCRIPT_READY = "script_ready"
    SCRIPT_APPROVED = "script_approved"
    METADATA_DONE = "metadata_done"
    PROJECT_SAVED = "project_saved"
    RESTARTED = "restarted"


_S = WizardState
_E = WizardEvent

_TRANSITIONS: dict[tuple[WizardState, WizardEvent], WizardState] = {
    (_S.INGEST, _E.DOCUMENT_INGESTED): _S.STRUCTURE_ANALYSIS,
    (_S.STRUCTURE_ANALYSIS, _E.STRUCTURE_READY): _S.STRUCTURE_ANALYSIS,
    (_S.STRUCTURE_ANALYSIS, _E.SCOPE_SELECTED): _S.INSIGHT_ANALYSIS,
    (_S.INSIGHT_ANALYSIS, _E.SCOPE_SELECTED): _S.INSIGHT_ANALYSIS,
    (_S.INSIGHT_ANALYSIS, _E.INSIGHT_READY): _S.ANGLE_SELECTION,
    (_S.ANGLE_SELECTION, _E.ANGLE_SELECTED): _S.DURATION_SELECTION,
    (_S.DURATION_SELECTION, _E.DURATION_SELECTED): _S.SCRIPT_GENERATION,
    (_S.SCRIPT_GENERATION, _E.DURATION_SELECTED): _S.SCRIPT_GENERATION,
    (_S.SCRIPT_GENERATION, _E.SCRIPT_READY): _S.SCRIPT_GENERATION,
    (_S.SCRIPT_GENERATION, _E.SCRIPT_APPROVED): _S.METADATA_GENERATION,
    (_S.METADATA_GENERATION, _E.METADATA_DONE): _S.MEDIA_PRODUCTION,
    (_S.MEDIA_PRODUCTION, _E.METADATA_DONE): _S.MEDIA_PRODUCTION,
    (_S.MEDIA_PRODUCTION, _E.PROJECT_SAVED): _S.SAVED,
}


def transition(state: WizardState, event: WizardEvent) -> WizardState:
    """Return the next state for an event, or raise `WizardStateError`."""

    if event is WizardEvent.RESTARTED:
        return WizardState.INGEST
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise WizardStateError(
            f"`{event.value}` is not allowed while the wizard is at `{state.value}`."
        ) from None
