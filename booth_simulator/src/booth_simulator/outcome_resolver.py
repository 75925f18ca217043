"""
Outcome Resolver

Decides how the conversation ends, in strict priority:
1. Attendee's last line asks a question -> UNDETERMINED (engaged, not exiting)
2. Explicit signals in the attendee's last line (demo, self-service,
   deferred, qualified lead, disengagement)
3. Persona-weighted sampling: band weights jittered by the seeded PRNG,
   filtered to the outcomes the transcript makes plausible, then drawn

Every decision carries a machine-readable reason plus the eligibility
score, band key and jittered weights, so a probabilistic result can always
be explained after the fact.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from booth_simulator.outcome_commitment import (
    detect_deferred_commitment,
    detect_demo_commitment,
    detect_mql_commitment,
    detect_self_service_commitment,
)
from booth_simulator.seeded_random import hash_seed, seeded_random
from booth_simulator.session_state import MessageType, Outcome, TranscriptMessage
from booth_simulator.simulator_config import OutcomeBand, SimulatorConfig
from booth_simulator.text_utils import contains_any, contains_word, is_question, parse_profile_field

logger = logging.getLogger(__name__)

DRAW_OFFSET = 7919

_MQL_CUE_PATTERNS = [
    re.compile(r"\bscan (?:my|your|their) badge\b"),
    re.compile(r"\b(?:sales|someone|somebody) (?:to )?(?:follow up|reach out|get in touch)\b"),
    re.compile(r"\b(?:talk|speak|connect) (?:to|with) (?:sales|your sales|an ae|an account exec)"),
    re.compile(r"\b(?:loop in|intro to|talk to|bring in) (?:my|our) (?:manager|boss|lead|director|vp)\b"),
    re.compile(r"\b(?:schedule|book|set up) a (?:call|meeting)\b"),
]


@dataclass
class OutcomeDecision:
    outcome: str
    reason: str
    eligibility_score: int = 0
    band_key: Optional[str] = None
    jittered_weights: Dict[str, float] = field(default_factory=dict)
    plausible_outcomes: List[str] = field(default_factory=list)
    draw: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        return self.outcome != Outcome.UNDETERMINED.value

    @property
    def is_explicit(self) -> bool:
        return self.reason.startswith("explicit_")

    def trace(self) -> Dict[str, Any]:
        """Flat dict for logging/telemetry."""
        return {
            "outcome": self.outcome,
            "reason": self.reason,
            "eligibility_score": self.eligibility_score,
            "band_key": self.band_key,
            "jittered_weights": {k: round(v, 4) for k, v in self.jittered_weights.items()},
            "plausible_outcomes": self.plausible_outcomes,
            "draw": round(self.draw, 4) if self.draw is not None else None,
        }


@dataclass
class _Signals:
    """Cue detections for one resolution attempt."""
    last_line: str
    tail_text: str
    demo_request: bool
    self_service: bool
    deferred: bool
    deferred_in_tail: bool
    mql: bool
    near_term: bool
    accepted: bool
    disengaged: bool


ExplicitRule = Tuple[Callable[[_Signals], bool], Outcome, str]

# First match wins.
EXPLICIT_RULES: Sequence[ExplicitRule] = (
    (lambda s: s.demo_request and s.accepted, Outcome.DEMO_READY, "explicit_demo_request"),
    (lambda s: s.self_service, Outcome.SELF_SERVICE_READY, "explicit_self_service"),
    (lambda s: s.deferred and not s.self_service, Outcome.DEFERRED_INTEREST, "explicit_deferred_interest"),
    (
        lambda s: s.mql and s.near_term and not s.deferred_in_tail and s.accepted,
        Outcome.MQL_READY,
        "explicit_mql",
    ),
    (lambda s: s.disengaged, Outcome.POLITE_EXIT, "explicit_disengagement"),
)


def detect_mql_cues(text: str, config: SimulatorConfig) -> bool:
    """
    Badge-scan / sales / manager follow-up language anywhere in text.

    Configured MQL cues are checked first, then the phrasing patterns.
    """
    if detect_mql_commitment(text, config):
        return True
    lowered = (text or "").lower()
    return any(pattern.search(lowered) for pattern in _MQL_CUE_PATTERNS)


def has_acceptance(text: str, config: SimulatorConfig) -> bool:
    """Acceptance phrase as whole words ("sure" but not "pressure")."""
    return any(contains_word(text, phrase) for phrase in config.acceptance_phrases)


def detect_stakeholder_type(persona_profile: str, transcript_text: str, config: SimulatorConfig) -> str:
    """
    Classify the attendee as "executive", "ic_without_authority" or "unknown".

    Executive titles win outright, then IC titles. Without a matching
    title, an IC signal in the transcript ("my manager decides") still
    marks the attendee as lacking authority.
    """
    role = parse_profile_field(persona_profile, "Persona") or persona_profile or ""

    executive = config.stakeholder_types.get("executive")
    if executive is not None:
        if any(contains_word(role, title) for title in executive.titles):
            return "executive"

    ic = config.stakeholder_types.get("ic_without_authority")
    if ic is not None:
        if any(contains_word(role, title) for title in ic.titles):
            return "ic_without_authority"
        if transcript_text and contains_any(transcript_text, ic.signals):
            return "ic_without_authority"

    return "unknown"


class OutcomeResolver:
    """Explicit-signal overrides first, persona-weighted sampling second."""

    def __init__(self, config: SimulatorConfig):
        self.config = config
        order = config.phase_order
        # Solution framing and the terminal phase
        self.eligible_phases = set(order[-2:]) if len(order) >= 2 else set(order)

    def resolve(
        self,
        phase: str,
        intent_signals: Sequence[str],
        transcript_tail: Sequence[TranscriptMessage],
        persona_profile: str,
        seed: str,
        turn_index: int = 0,
    ) -> OutcomeDecision:
        """
        Resolve the conversation outcome at this point.

        Args:
            phase: Current phase (only the last two phases are evaluated)
            intent_signals: Signals from this turn's intent classification
            transcript_tail: Most recent transcript messages, oldest first
            persona_profile: Structured persona text
            seed: Session outcome seed
            turn_index: Trainee turn count, keeps repeated attempts reproducible

        Returns:
            OutcomeDecision with trace fields
        """
        if phase not in self.eligible_phases:
            return OutcomeDecision(Outcome.UNDETERMINED.value, "phase_not_eligible")

        conversational = [m for m in transcript_tail if m.type != MessageType.SYSTEM.value]
        attendee_lines = [m.text for m in conversational if m.type == MessageType.ATTENDEE.value]
        if not attendee_lines:
            return OutcomeDecision(Outcome.UNDETERMINED.value, "no_attendee_line")

        last_line = attendee_lines[-1]
        if is_question(last_line):
            return OutcomeDecision(Outcome.UNDETERMINED.value, "attendee_question")

        signals = self._collect_signals(last_line, " ".join(m.text for m in conversational))

        for predicate, outcome, reason in EXPLICIT_RULES:
            if predicate(signals):
                logger.info(f"🎯 [Outcome] {outcome.value} via {reason}")
                return OutcomeDecision(outcome.value, reason)

        return self._sample(signals, persona_profile, seed, turn_index, intent_signals)

    def _collect_signals(self, last_line: str, tail_text: str) -> _Signals:
        config = self.config
        mql = detect_mql_commitment(last_line, config)
        accepted = has_acceptance(last_line, config)
        return _Signals(
            last_line=last_line,
            tail_text=tail_text,
            demo_request=detect_demo_commitment(last_line, config),
            self_service=detect_self_service_commitment(last_line, config),
            deferred=detect_deferred_commitment(last_line, config),
            deferred_in_tail=detect_deferred_commitment(tail_text, config),
            mql=mql,
            near_term=contains_any(tail_text, config.near_term_phrases),
            # Asking for the badge scan or follow-up is itself the acceptance
            accepted=accepted or mql,
            disengaged=contains_any(last_line, config.disengagement_phrases),
        )

    def demo_eligibility(self, tail_text: str) -> int:
        """
        Soft demo eligibility, 0-5: one point each for customer impact,
        near-term urgency, named tooling, effort language and team evaluation.
        """
        config = self.config
        checks = [
            contains_any(tail_text, config.customer_impact_phrases),
            contains_any(tail_text, config.near_term_phrases),
            any(contains_word(tail_text, tool) for tool in config.known_tools),
            contains_any(tail_text, config.effort_phrases),
            contains_any(tail_text, config.team_evaluation_phrases),
        ]
        return sum(1 for hit in checks if hit)

    def band_for(self, persona_profile: str) -> Tuple[Optional[str], Optional[OutcomeBand]]:
        """First configured band whose titles match the persona's role (whole words)."""
        role = parse_profile_field(persona_profile, "Persona") or persona_profile or ""
        for key, band in self.config.outcome_bands.items():
            if any(contains_word(role, title) for title in band.match_titles):
                return key, band
        return None, None

    def jitter_weights(self, band: OutcomeBand, seed: str, turn_key: str) -> Dict[str, float]:
        """Each weight moved by up to +/- tolerance, clamped at 0, renormalized."""
        jittered = {}
        for index, (outcome, weight) in enumerate(band.weights.items()):
            r = seeded_random(hash_seed(f"{seed}:{turn_key}:jitter:{index}"))
            jittered[outcome] = max(0.0, weight + (r * 2 - 1) * band.tolerance)
        return _normalize(jittered)

    def _sample(
        self,
        signals: _Signals,
        persona_profile: str,
        seed: str,
        turn_index: int,
        intent_signals: Sequence[str],
    ) -> OutcomeDecision:
        eligibility = self.demo_eligibility(signals.tail_text)
        band_key, band = self.band_for(persona_profile)
        if band is None:
            logger.info("🎲 [Outcome] No outcome band for persona, leaving undetermined")
            return OutcomeDecision(Outcome.UNDETERMINED.value, "no_band_match", eligibility_score=eligibility)

        turn_key = f"outcome:turn:{turn_index}"
        jittered = self.jitter_weights(band, seed, turn_key)

        plausible = {
            outcome: weight for outcome, weight in jittered.items()
            if self._is_plausible(outcome, signals, eligibility)
        }
        plausible = _normalize(plausible)

        decision = OutcomeDecision(
            Outcome.UNDETERMINED.value,
            "no_plausible_outcome",
            eligibility_score=eligibility,
            band_key=band_key,
            jittered_weights=jittered,
            plausible_outcomes=[o for o, w in plausible.items() if w > 0],
        )
        if not decision.plausible_outcomes:
            return decision

        draw = seeded_random(hash_seed(f"{seed}:{turn_key}") + DRAW_OFFSET)
        decision.draw = draw
        cumulative = 0.0
        chosen = decision.plausible_outcomes[-1]
        for outcome, weight in plausible.items():
            cumulative += weight
            if weight > 0 and draw < cumulative:
                chosen = outcome
                break

        decision.outcome = chosen
        decision.reason = "weighted_sample"
        logger.info(
            f"🎲 [Outcome] {chosen} sampled (band={band_key}, eligibility={eligibility}, "
            f"draw={draw:.3f}, signals={list(intent_signals)})"
        )
        return decision

    def _is_plausible(self, outcome: str, signals: _Signals, eligibility: int) -> bool:
        if outcome == Outcome.DEMO_READY.value:
            return eligibility >= self.config.demo_eligibility_threshold
        if outcome == Outcome.MQL_READY.value:
            return signals.accepted and not signals.deferred_in_tail
        return outcome in (
            Outcome.SELF_SERVICE_READY.value,
            Outcome.DEFERRED_INTEREST.value,
            Outcome.POLITE_EXIT.value,
        )


def _normalize(weights: Dict[str, float]) -> Dict[str, float]:
    total = sum(weights.values())
    if total <= 0:
        return {k: 0.0 for k in weights}
    return {k: v / total for k, v in weights.items()}
