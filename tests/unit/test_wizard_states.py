"""Unit tests for the wizard transition table."""

from __future__ import annotations

import pytest

from eduflow.errors import WizardStateError
from eduflow.pipeline.states import WizardEvent, WizardState, transition


def test_happy_path_walks_every_state_in_order() -> None:
    """The forward event sequence should visit every state once and end at `SAVED`."""

    events = [
        WizardEvent.DOCUMENT_INGESTED,
        WizardEvent.STRUCTURE_READY,
        WizardEvent.SCOPE_SELECTED,
        WizardEvent.INSIGHT_READY,
        WizardEvent.ANGLE_SELECTED,
        WizardEvent.DURATION_SELECTED,
        WizardEvent.SCRIPT_READY,
        WizardEvent.SCRIPT_APPROVED,
        WizardEvent.METADATA_DONE,
        WizardEvent.PROJECT_SAVED,
    ]
    state = WizardState.INGEST
    visited = [state]
    for event in events:
        state = transition(state, event)
        if state is not visited[-1]:
            visited.append(state)

    assert visited == list(WizardState)


@pytest.mark.parametrize(
    ("state", "event"),
    [
        (WizardState.STRUCTURE_ANALYSIS, WizardEvent.STRUCTURE_READY),
        (WizardState.INSIGHT_ANALYSIS, WizardEvent.SCOPE_SELECTED),
        (WizardState.SCRIPT_GENERATION, WizardEvent.SCRIPT_READY),
        (WizardState.SCRIPT_GENERATION, WizardEvent.DURATION_SELECTED),
        (WizardState.MEDIA_PRODUCTION, WizardEvent.METADATA_DONE),
    ],
)
def test_retries_are_self_transitions(state: WizardState, event: WizardEvent) -> None:
    assert transition(state, event) is state


@pytest.mark.parametrize(
    ("state", "event"),
    [
        (WizardState.INGEST, WizardEvent.SCRIPT_APPROVED),
        (WizardState.ANGLE_SELECTION, WizardEvent.PROJECT_SAVED),
        (WizardState.METADATA_GENERATION, WizardEvent.PROJECT_SAVED),
        (WizardState.SAVED, WizardEvent.DOCUMENT_INGESTED),
    ],
)
def test_invalid_pairs_raise_wizard_state_error(state: WizardState, event: WizardEvent) -> None:
    """Events outside the table should be rejected with a descriptive error."""

    with pytest.raises(WizardStateError, match=state.value):
        transition(state, event)


def test_restart_returns_to_ingest_from_any_state() -> None:
    for state in WizardState:
        assert transition(state, WizardEvent.RESTARTED) is WizardState.INGEST
