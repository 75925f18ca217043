"""
Outcome commitment detectors.

High-precision checks on the attendee's own words: did they explicitly
commit to a next step? These gate entry into the terminal phase and are
separate from the softer eligibility signals the outcome resolver weighs.
"""

from typing import Optional

from booth_simulator.session_state import Outcome
from booth_simulator.simulator_config import SimulatorConfig
from booth_simulator.text_utils import contains_any


def detect_demo_commitment(text: str, config: SimulatorConfig) -> bool:
    """Attendee explicitly requests or accepts a demo."""
    return contains_any(text, config.demo_request_phrases)


def detect_mql_commitment(text: str, config: SimulatorConfig) -> bool:
    """Attendee explicitly asks for a badge scan or sales follow-up."""
    return contains_any(text, config.mql_cues)


def detect_self_service_commitment(text: str, config: SimulatorConfig) -> bool:
    """Attendee names docs or the free tier as their own next step."""
    return contains_any(text, config.self_service_cues)


def detect_deferred_commitment(text: str, config: SimulatorConfig) -> bool:
    """Attendee keeps interest but says the timing is wrong."""
    return contains_any(text, config.deferred_interest_cues)


def detect_committed_outcome(text: str, config: SimulatorConfig) -> Optional[str]:
    """
    Committed outcome voiced in text, or None.

    Priority: MQL, demo, self-service, deferred.
    """
    if detect_mql_commitment(text, config):
        return Outcome.MQL_READY.value
    if detect_demo_commitment(text, config):
        return Outcome.DEMO_READY.value
    if detect_self_service_commitment(text, config):
        return Outcome.SELF_SERVICE_READY.value
    if detect_deferred_commitment(text, config):
        return Outcome.DEFERRED_INTEREST.value
    return None


def is_evaluation_question(text: str, config: SimulatorConfig) -> bool:
    """
    Mid-funnel evaluation question (effort, rollout, complexity...).

    These show engagement and never count as an exit or commitment.
    """
    if not text or not text.strip():
        return False
    return contains_any(text, config.evaluation_question_phrases)
