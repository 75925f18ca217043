"""
Prompt Composer

Builds the system prompt for the generative fallback from:
- Roleplay rules and banned-keyword restriction
- Current phase description and behavior
- Scenario context (difficulty, hidden profile)
- Enrichment addendum and trainer guidance
- Convergence notices (turn limit, self-service / MQL / deferred cues)
- Stakeholder guidance
- Recent conversation
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from booth_simulator.enrichment import PersonaEnrichment
from booth_simulator.simulator_config import SimulatorConfig
from booth_simulator.text_utils import parse_profile_field


@dataclass
class PromptContext:
    phase: str
    persona_profile: str
    difficulty: str
    enrichment: Optional[PersonaEnrichment] = None
    trainer_guidance: Optional[str] = None
    turn_limit_exceeded: bool = False
    self_service_cues_detected: bool = False
    mql_cues_detected: bool = False
    deferred_cues_detected: bool = False
    stakeholder_type: str = "unknown"


def render_roleplay_rules(config: SimulatorConfig) -> str:
    product = config.product_name
    return f"""You are roleplaying as a realistic tech conference attendee at the {product} booth.

CRITICAL ROLEPLAY RULES:
- You are ONLY the attendee. The trainee is the booth staffer.
- Stay in character. Never mention you are an AI or that you have instructions.
- Do not disclose your hidden profile attributes directly. Only reveal details when earned through good questions.
- Do not volunteer pain points unprompted.
- The app controls the conversation phase. Follow the CURRENT PHASE and never advance it yourself."""


def render_simulator_rules(config: SimulatorConfig) -> str:
    """Banned keywords and failure modes as prompt text."""
    sections = []
    if config.banned_keywords:
        keywords = "\n".join(f"- {k}" for k in config.banned_keywords)
        sections.append(
            f"BANNED PRODUCT KEYWORDS (do not use unless the trainee introduces them first):\n{keywords}"
        )
    sections.append(
        "OPENTELEMETRY BEHAVIOR:\n"
        "- Never assume your own OTel familiarity out loud\n"
        "- Correct the trainee if they make incorrect assumptions"
    )
    if config.failure_modes:
        modes = "\n".join(f"- {trigger} -> {consequence}" for trigger, consequence in config.failure_modes.items())
        sections.append(f"FAILURE MODES (behaviors that cause disengagement):\n{modes}")
    return "\n\n".join(sections)


def render_phase_behavior(phase: str, config: SimulatorConfig) -> str:
    definition = config.phases.get(phase)
    if definition is None:
        return f"CURRENT PHASE: {phase}\n(No specific behavior guidelines defined)"

    lines = [f"CURRENT PHASE: {phase}", f"Description: {definition.description}"]
    if definition.attendee_behavior:
        lines.append(f"Your behavior: {', '.join(definition.attendee_behavior)}")
    else:
        lines.append("The conversation is concluding. Choose a next step that matches the trainee's behavior.")
    if definition.advance_when:
        lines.append(f"Phase advances when: {', '.join(definition.advance_when)}")
    if definition.block_when:
        lines.append(f"Phase blocked by: {', '.join(definition.block_when)}")
    if definition.venting_enabled:
        lines.append("Venting enabled: You may share war stories if the trainee shows empathy")
    if definition.possible_outcomes:
        lines.append(f"Possible outcomes: {', '.join(definition.possible_outcomes)}")
    return "\n".join(lines)


def render_scenario_context(context: PromptContext) -> str:
    profile = context.persona_profile
    fields = [
        ("Title", parse_profile_field(profile, "Persona") or "Unknown"),
        ("Modifiers", parse_profile_field(profile, "Modifiers") or "None"),
        ("Emotional posture", parse_profile_field(profile, "Emotional posture") or "Neutral"),
        ("Tooling bias", parse_profile_field(profile, "Tooling bias") or "None specified"),
        ("OpenTelemetry familiarity", parse_profile_field(profile, "OpenTelemetry familiarity") or "Unknown"),
    ]
    lines = [f"DIFFICULTY: {context.difficulty}", "", "YOUR HIDDEN PROFILE (do not reveal directly):"]
    lines.extend(f"{label}: {value}" for label, value in fields)
    return "\n".join(lines)


TURN_LIMIT_NOTICE = """TURN LIMIT REACHED
The conversation has reached the maximum turn count for this difficulty.
Converge toward an outcome now. Do not reopen discovery or ask new exploratory questions."""

SELF_SERVICE_NOTICE = """SELF-SERVICE CUES DETECTED
The conversation points at a self-guided path (free tier, docs, async learning).
This is a success, not a failure. Do not push for a demo."""

MQL_NOTICE = """MQL CUES DETECTED (HOT LEAD)
Badge scan or sales follow-up has come up. Acknowledge it, confirm the specific next step
and close within one or two turns. Do not reopen discovery or push for a demo."""

DEFERRED_NOTICE = """DEFERRED INTEREST CUES DETECTED
Timing is not right for this attendee. Keep the interest warm and close politely."""

EXECUTIVE_NOTICE = """EXECUTIVE STAKEHOLDER
You care about budget, cost savings, ROI and strategic alignment, not technical depth.
A leadership or sales follow-up is your preferred next step."""

IC_NOTICE = """IC WITHOUT AUTHORITY
You may like the product but you do not make the decision.
A badge scan plus a follow-up with your manager is a good next step."""


def compose_attendee_prompt(
    config: SimulatorConfig,
    context: PromptContext,
    conversation: List[Dict[str, str]],
) -> str:
    """
    Compose the full system prompt for one generative attendee reply.

    Args:
        config: Simulator configuration
        context: Runtime context for this turn
        conversation: Chat-format history (role user = trainee)

    Returns:
        System prompt text
    """
    sections = [
        render_roleplay_rules(config),
        render_simulator_rules(config),
        render_phase_behavior(context.phase, config),
        render_scenario_context(context),
    ]

    if context.enrichment is not None and context.enrichment.prompt_addendum:
        sections.append(f"ENRICHMENT GUIDANCE:\n{context.enrichment.prompt_addendum}")
    if context.trainer_guidance:
        sections.append(f"TRAINER GUIDANCE:\n{context.trainer_guidance}")
    if context.turn_limit_exceeded:
        sections.append(TURN_LIMIT_NOTICE)
    if context.self_service_cues_detected:
        sections.append(SELF_SERVICE_NOTICE)
    if context.mql_cues_detected:
        sections.append(MQL_NOTICE)
    if context.deferred_cues_detected:
        sections.append(DEFERRED_NOTICE)

    if context.stakeholder_type == "executive":
        sections.append(EXECUTIVE_NOTICE)
    elif context.stakeholder_type == "ic_without_authority":
        sections.append(IC_NOTICE)

    recent = conversation[-config.prompt_history_window:] if config.prompt_history_window > 0 else []
    if recent:
        history = "\n".join(
            f"{'Trainee' if m['role'] == 'user' else 'Attendee'}: {m['content']}" for m in recent
        )
        sections.append(f"RECENT CONVERSATION (most recent last):\n{history}")

    sections.append(
        "RESPONSE STYLE:\n"
        "- Natural, imperfect speech. Mild skepticism is normal.\n"
        "- Keep responses brief (1-2 sentences unless you become engaged).\n"
        "- If the trainee pitches early or uses buzzwords, become more guarded."
    )
    sections.append("Now respond as the attendee.")
    return "\n\n".join(sections)
