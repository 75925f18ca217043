"""
Session Scoring

Heuristic scoring for a completed session, no LLM required.

Five sub-scores (0-20 each):
- listening: reflection phrases
- discovery: questions and open-ended prompts
- empathy: validation phrases
- assumptions: asserting tooling familiarity instead of asking
- guardrails: recorded violations (extra penalty for an early pitch)

Totals get a customer-impact bonus and an outcome bonus, and the letter
grade is outcome-aware: positive outcomes carry grade floors.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from booth_simulator.guardrail_analyzer import GuardrailAnalyzer
from booth_simulator.session_state import MessageType, Outcome, ScoreRecord, Session, TranscriptMessage
from booth_simulator.simulator_config import GradingRules, SimulatorConfig
from booth_simulator.text_utils import contains_any, contains_phrase, is_question, normalize

logger = logging.getLogger(__name__)

SUCCESS_OUTCOMES = (
    Outcome.SELF_SERVICE_READY.value,
    Outcome.MQL_READY.value,
    Outcome.DEMO_READY.value,
)

OUTCOME_HIGHLIGHTS = {
    Outcome.SELF_SERVICE_READY.value: "Closed with appropriate self-service path (SUCCESS)",
    Outcome.MQL_READY.value: "Secured MQL/follow-up opportunity (SUCCESS)",
    Outcome.DEMO_READY.value: "Earned genuine demo interest (SUCCESS)",
    Outcome.DEFERRED_INTEREST.value: "Respectful close with deferred interest (POSITIVE)",
}


def detect_outcome_from_transcript(transcript: Sequence[TranscriptMessage]) -> str:
    """
    Best-effort outcome from the last five transcript messages.

    Used only when the session never recorded an outcome.
    """
    tail = normalize(" ".join(m.text for m in transcript[-5:]))

    if "self_service_ready" in tail or "self service" in tail:
        return Outcome.SELF_SERVICE_READY.value
    if "mql_ready" in tail or ("badge" in tail and "scan" in tail):
        return Outcome.MQL_READY.value
    if "demo_ready" in tail or "demo" in tail:
        return Outcome.DEMO_READY.value
    if "deferred_interest" in tail or ("later" in tail and "radar" in tail):
        return Outcome.DEFERRED_INTEREST.value
    return Outcome.UNKNOWN.value


def calculate_active_seconds(transcript: Sequence[TranscriptMessage], idle_threshold_seconds: int = 120) -> int:
    """Seconds between consecutive messages, excluding idle gaps over the threshold."""
    if len(transcript) < 2:
        return 0

    active = 0.0
    for previous, current in zip(transcript, transcript[1:]):
        try:
            gap = (datetime.fromisoformat(current.timestamp) - datetime.fromisoformat(previous.timestamp)).total_seconds()
        except ValueError:
            continue
        if 0 <= gap < idle_threshold_seconds:
            active += gap
    return int(active)


def grade_for(
    score: int,
    outcome: str,
    efficient: bool,
    discovery: int,
    guardrails: int,
    violation_count: int,
    grading: GradingRules,
) -> str:
    """
    Outcome-aware letter grade.

    Positive outcomes apply their grade floor on top of the score thresholds;
    POLITE_EXIT and UNKNOWN use the plain thresholds with no floor.
    """
    thresholds = grading.thresholds
    floors = grading.grade_floors
    earns_a = score >= thresholds["A"] or (efficient and score >= grading.efficient_a_threshold)

    if outcome == Outcome.DEMO_READY.value:
        if earns_a:
            return "A"
        if score >= grading.demo_b_threshold:
            return "B"
        return floors.get(outcome, "C")

    if outcome == Outcome.SELF_SERVICE_READY.value:
        if earns_a:
            return "A"
        clean_close = (
            violation_count == 0
            and discovery >= grading.self_service_pain_threshold
            and guardrails >= grading.self_service_guardrail_threshold
        )
        if clean_close:
            return floors.get(outcome, "B")
        return grading.self_service_fallback_grade

    if outcome == Outcome.MQL_READY.value:
        if earns_a:
            return "A"
        return floors.get(outcome, "B")

    if outcome == Outcome.DEFERRED_INTEREST.value:
        deferred = grading.deferred_thresholds
        if score >= deferred["B"] and efficient:
            return "B"
        if score >= deferred["C"]:
            return "C"
        if score >= deferred["D"]:
            return "D"
        return "F"

    for letter in ("A", "B", "C", "D"):
        if score >= thresholds[letter]:
            return letter
    return "F"


def _phases_reached(session: Session, phase_order: List[str]) -> List[str]:
    seen = {session.current_phase}
    for transition in session.phase_history:
        seen.add(transition.from_phase)
        seen.add(transition.to_phase)
    ordered = [p for p in phase_order if p in seen]
    return ordered + sorted(p for p in seen if p not in phase_order)


def score_session(session: Session, config: SimulatorConfig, outcome: Optional[str] = None) -> ScoreRecord:
    """
    Score a completed session.

    Args:
        session: Final session snapshot
        config: Simulator configuration (phrase lists, increments, grading)
        outcome: Outcome to score against; defaults to the session's recorded
                 outcome, then to detection from the transcript tail

    Returns:
        ScoreRecord
    """
    rules = config.scoring
    cap = rules.sub_score_max
    trainee_messages = [m.text for m in session.transcript if m.type == MessageType.TRAINEE.value]
    all_trainee_text = " ".join(trainee_messages)

    # --- LISTENING ---
    listening_count = sum(1 for p in rules.listening_phrases if contains_phrase(all_trainee_text, p))
    listening = min(cap, rules.listening_base + listening_count * rules.listening_increment)

    # --- DISCOVERY ---
    question_count = sum(1 for m in trainee_messages if is_question(m))
    open_ended_count = sum(1 for m in trainee_messages if contains_any(m, rules.open_ended_phrases))
    discovery = min(cap, question_count * rules.question_increment + open_ended_count * rules.open_ended_increment)

    # --- EMPATHY ---
    empathy_count = sum(1 for p in rules.empathy_phrases if contains_phrase(all_trainee_text, p))
    empathy = min(cap, rules.empathy_base + empathy_count * rules.empathy_increment)

    # --- ASSUMPTIONS ---
    analyzer = GuardrailAnalyzer(config)
    assertions = sum(1 for m in trainee_messages if analyzer.flags_assumption(m))
    assumptions = max(0, cap - assertions * rules.assumption_penalty)

    # --- GUARDRAILS ---
    violations = list(session.violations)
    guardrails = cap - len(violations) * rules.violation_penalty
    if any("Early pitch" in v for v in violations):
        guardrails -= rules.early_pitch_penalty
    guardrails = max(0, guardrails)

    resolved_outcome = outcome or session.outcome
    if not resolved_outcome or resolved_outcome == Outcome.UNDETERMINED.value:
        resolved_outcome = detect_outcome_from_transcript(session.transcript)

    trainee_turns = len(trainee_messages)
    efficient = trainee_turns <= config.turn_limit(session.difficulty)

    has_customer_focus = contains_any(all_trainee_text, config.customer_impact_phrases)
    total = listening + discovery + empathy + assumptions + guardrails
    if has_customer_focus:
        total += rules.customer_impact_bonus

    if resolved_outcome in SUCCESS_OUTCOMES:
        total += rules.success_bonus
    elif resolved_outcome == Outcome.DEFERRED_INTEREST.value:
        total += rules.deferred_bonus

    if not efficient and resolved_outcome == Outcome.UNKNOWN.value:
        total -= rules.inefficiency_penalty

    total = min(100, max(0, total))
    grade = grade_for(total, resolved_outcome, efficient, discovery, guardrails, len(violations), config.grading)

    phases_reached = _phases_reached(session, config.phase_order)
    breakdown = {
        "listening": listening,
        "discovery": discovery,
        "empathy": empathy,
        "assumptions": assumptions,
        "guardrails": guardrails,
    }

    record = ScoreRecord(
        listening=listening,
        discovery=discovery,
        empathy=empathy,
        assumptions=assumptions,
        guardrails=guardrails,
        total=total,
        grade=grade,
        outcome=resolved_outcome,
        highlights=_highlights(breakdown, resolved_outcome, has_customer_focus, phases_reached, efficient, trainee_turns)[:rules.max_feedback_items],
        mistakes=_mistakes(breakdown, session, config)[:rules.max_feedback_items],
        violations=violations,
        phases_reached=phases_reached,
        trainee_turns=trainee_turns,
        efficient=efficient,
        active_seconds=calculate_active_seconds(session.transcript, rules.idle_threshold_seconds),
    )
    logger.info(f"📊 [Scoring] Session {session.id}: {total}/100 ({grade}), outcome={resolved_outcome}")
    return record


def _highlights(
    breakdown: Dict[str, int],
    outcome: str,
    has_customer_focus: bool,
    phases_reached: List[str],
    efficient: bool,
    trainee_turns: int,
) -> List[str]:
    highlights = []
    if outcome in OUTCOME_HIGHLIGHTS:
        highlights.append(OUTCOME_HIGHLIGHTS[outcome])
    if breakdown["listening"] >= 15:
        highlights.append("Strong active listening with reflection phrases")
    if breakdown["discovery"] >= 15:
        highlights.append("Good use of open-ended discovery questions")
    if breakdown["empathy"] >= 15:
        highlights.append("Showed empathy and validation")
    if breakdown["assumptions"] >= 18:
        highlights.append("Avoided making OTel assumptions")
    if breakdown["guardrails"] >= 18:
        highlights.append("Maintained keyword discipline")
    if has_customer_focus:
        highlights.append("Framed conversation around customer impact")
    if len(phases_reached) >= 4:
        highlights.append(f"Advanced through {len(phases_reached)} conversation phases")
    if efficient:
        highlights.append(f"Efficient convergence ({trainee_turns} turns)")
    return highlights


def _mistakes(breakdown: Dict[str, int], session: Session, config: SimulatorConfig) -> List[str]:
    mistakes = []
    if breakdown["listening"] < 10:
        mistakes.append("Lacked active listening and reflection")
    if breakdown["discovery"] < 10:
        mistakes.append("Too few discovery questions, mostly statements")
    if breakdown["empathy"] < 10:
        mistakes.append("Missed opportunities to validate and show empathy")
    if breakdown["assumptions"] < 10:
        mistakes.append("Made assumptions about OTel familiarity")
    if breakdown["guardrails"] < 15:
        mistakes.append("Used banned keywords or pitched too early")
    if session.current_phase == config.initial_phase:
        mistakes.append(f"Conversation stalled in {config.initial_phase} phase")
    if session.violations:
        mistakes.append(f"{len(session.violations)} guardrail violation(s) detected")
    return mistakes
