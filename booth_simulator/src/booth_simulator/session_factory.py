"""
Session Factory

Creates the initial session for a persona: id, first phase, fixed outcome
seed, the "session started" system line and a stage-direction opening line
derived from the persona's emotional posture and modifiers.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from booth_simulator.session_state import MessageType, Session
from booth_simulator.simulator_config import SimulatorConfig
from booth_simulator.text_utils import parse_profile_field

logger = logging.getLogger(__name__)


@dataclass
class Persona:
    """Catalog entry an attendee profile is rendered from."""
    id: str
    persona_type: str
    modifiers: List[str] = field(default_factory=list)
    emotional_posture: str = "Neutral"
    tooling_bias: str = "None specified"
    otel_familiarity: str = "Unknown"


def build_attendee_profile(persona: Persona) -> str:
    """Render a persona into the structured profile text the engine reads."""
    return (
        f"Persona: {persona.persona_type}\n"
        f"Modifiers: {'; '.join(persona.modifiers)}\n"
        f"Emotional posture: {persona.emotional_posture}\n"
        f"Tooling bias: {persona.tooling_bias}\n"
        f"OpenTelemetry familiarity: {persona.otel_familiarity}"
    )


def generate_opening_line(attendee_profile: str) -> str:
    """
    Stage direction for how the attendee walks up to the booth.

    Emotional posture is checked first, then modifiers; the first match wins.
    """
    posture = parse_profile_field(attendee_profile, "Emotional posture").lower() or "neutral"
    modifiers = parse_profile_field(attendee_profile, "Modifiers").lower()

    def posture_has(*stems: str) -> bool:
        return any(stem in posture for stem in stems)

    def modifiers_have(*stems: str) -> bool:
        return any(stem in modifiers for stem in stems)

    if posture_has("guard", "blunt"):
        if modifiers_have("outage", "firefighting"):
            return "*walks up, looks tense, like they've been firefighting*"
        return "*walks up, glances at badge, keeps it brief*"
    if posture_has("rush", "hurr") or modifiers_have("time-constrained"):
        return "*approaches quickly, checking phone, clearly in a hurry*"
    if posture_has("burn", "exhaust", "tired"):
        return "*sighs, half-smiles, looks tired*"
    if posture_has("curious", "eager", "engaged"):
        return "*leans in, scanning the booth display*"
    if posture_has("skeptic", "critical"):
        return "*approaches with arms crossed, evaluating*"
    if posture_has("thought", "analyt", "consider"):
        return "*pauses at the booth, thoughtful expression*"
    if posture_has("friend", "open", "warm"):
        return "*walks up with a friendly nod*"
    if posture_has("frustrat", "stress") or modifiers_have("alert fatigue"):
        return "*approaches looking visibly frustrated*"
    if modifiers_have("cost", "budget", "procurement"):
        return "*stops by, clearly evaluating options*"
    if modifiers_have("migrat", "transition", "growing"):
        return "*approaches with a curious but cautious look*"
    return "*approaches booth casually*"


def create_session(
    attendee_profile: str,
    persona_id: str,
    difficulty: Optional[str] = None,
    config: Optional[SimulatorConfig] = None,
    trainer_guidance: Optional[str] = None,
    session_id: Optional[str] = None,
    outcome_seed: Optional[str] = None,
) -> Session:
    """
    Create a new session.

    Args:
        attendee_profile: Structured persona profile text
        persona_id: Persona identifier, part of the outcome seed
        difficulty: "easy" | "medium" | "hard" (defaults from config)
        config: Simulator configuration (defaults used when omitted)
        trainer_guidance: Optional coaching note passed to the prompt
        session_id: Explicit id, otherwise a uuid4
        outcome_seed: Explicit seed, otherwise "{session_id}:{persona_id}"

    Returns:
        Active Session in the first phase

    Raises:
        ValueError: attendee_profile is empty
    """
    if not attendee_profile or not attendee_profile.strip():
        raise ValueError("Missing required field: attendee_profile is required.")

    config = config or SimulatorConfig()
    session_id = session_id or str(uuid.uuid4())
    now = datetime.now().isoformat()
    initial_phase = config.initial_phase

    session = Session(
        id=session_id,
        current_phase=initial_phase,
        # Fixed for the session's lifetime
        outcome_seed=outcome_seed or f"{session_id}:{persona_id}",
        persona_profile=attendee_profile,
        persona_id=persona_id,
        difficulty=difficulty or config.default_difficulty,
        trainer_guidance=trainer_guidance,
        start_time=now,
    )
    session.add_message(MessageType.SYSTEM, f"Session started. Current phase: {initial_phase}", now)
    session.add_message(MessageType.ATTENDEE, generate_opening_line(attendee_profile), now)

    logger.info(f"✅ [SessionFactory] Created session {session_id} (persona={persona_id}, difficulty={session.difficulty})")
    return session


def create_session_for_persona(
    persona: Persona,
    difficulty: Optional[str] = None,
    config: Optional[SimulatorConfig] = None,
    trainer_guidance: Optional[str] = None,
) -> Session:
    """Create a session from a catalog persona."""
    return create_session(
        build_attendee_profile(persona),
        persona.id,
        difficulty=difficulty,
        config=config,
        trainer_guidance=trainer_guidance,
    )
