"""
Outcome action mapping for explicit session completion.

Maps conversation outcomes to the real-world booth action the trainee takes
to close the interaction.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from booth_simulator.session_state import Outcome


class OutcomeActionType(str, Enum):
    SCAN_BADGE = "SCAN_BADGE"
    HANDOFF_DEMOER = "HANDOFF_DEMOER"
    HAND_FLYER = "HAND_FLYER"
    HAND_SWAG = "HAND_SWAG"


@dataclass(frozen=True)
class OutcomeAction:
    action_type: OutcomeActionType
    action_label: str
    system_message: str
    tooltip: Optional[str] = None


_SWAG = OutcomeAction(
    OutcomeActionType.HAND_SWAG,
    "Hand them swag",
    "You hand them some swag and thank them for stopping by.",
    "End the conversation politely with a branded item",
)

OUTCOME_ACTIONS: Dict[str, OutcomeAction] = {
    Outcome.MQL_READY.value: OutcomeAction(
        OutcomeActionType.SCAN_BADGE,
        "Scan attendee badge",
        "You scan their badge and confirm a follow-up.",
        "Record this as a hot lead for sales follow-up",
    ),
    Outcome.DEMO_READY.value: OutcomeAction(
        OutcomeActionType.HANDOFF_DEMOER,
        "Pass off to Demoer",
        "You hand them off to the demo engineer.",
        "Connect them with a demo engineer for a deeper dive",
    ),
    Outcome.SELF_SERVICE_READY.value: OutcomeAction(
        OutcomeActionType.HAND_FLYER,
        "Hand them a flyer",
        "You hand them a flyer with free tier info and documentation links.",
        "Give them self-service resources to explore on their own",
    ),
    Outcome.DEFERRED_INTEREST.value: _SWAG,
    Outcome.POLITE_EXIT.value: _SWAG,
}

CTA_OUTCOMES = (
    Outcome.MQL_READY.value,
    Outcome.DEMO_READY.value,
    Outcome.SELF_SERVICE_READY.value,
    Outcome.DEFERRED_INTEREST.value,
    Outcome.POLITE_EXIT.value,
)


def get_outcome_action(outcome: Optional[str]) -> OutcomeAction:
    """Booth action for an outcome; anything unrecognized hands over swag."""
    return OUTCOME_ACTIONS.get(outcome or "", _SWAG)


def get_action_by_type(action_type: str) -> Optional[OutcomeAction]:
    for action in OUTCOME_ACTIONS.values():
        if action.action_type.value == action_type:
            return action
    return None


def should_show_completion_cta(outcome: Optional[str]) -> bool:
    """Only terminal outcomes offer the completion call to action."""
    return outcome in CTA_OUTCOMES
