"""
Phase State Machine

Fixed forward-only progression through the configured phases:
OPENING -> EXPLORATION -> PAIN_DISCOVERY -> SOLUTION_FRAMING -> OUTCOME

Evaluated once per trainee turn. Any guardrail issue blocks advancement.
Entering the terminal phase additionally requires the attendee to have
voiced a concrete commitment in this turn's reply.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from booth_simulator.guardrail_analyzer import GuardrailAnalysis
from booth_simulator.outcome_commitment import detect_committed_outcome, is_evaluation_question
from booth_simulator.session_state import PhaseTransition
from booth_simulator.simulator_config import SimulatorConfig

logger = logging.getLogger(__name__)


@dataclass
class PhaseDecision:
    from_phase: str
    to_phase: str
    reason: str
    committed_outcome: Optional[str] = None

    @property
    def advanced(self) -> bool:
        return self.from_phase != self.to_phase

    def to_transition(self) -> PhaseTransition:
        return PhaseTransition(self.from_phase, self.to_phase, datetime.now().isoformat())


class PhaseMachine:
    """Forward-only phase progression over the configured phase order."""

    def __init__(self, config: SimulatorConfig):
        self.config = config
        self.order = list(config.phase_order)

    def index_of(self, phase: str) -> int:
        return self.order.index(phase) if phase in self.order else -1

    def next_phase(self, current_phase: str) -> str:
        """Following phase; the terminal phase maps to itself, unknown phases reset."""
        index = self.index_of(current_phase)
        if index == -1:
            return self.config.initial_phase
        if index < len(self.order) - 1:
            return self.order[index + 1]
        return current_phase

    def should_advance(self, current_phase: str, analysis: GuardrailAnalysis) -> bool:
        """
        Generic per-phase advance predicate (commitment gate not included).

        Keyed by position in the configured order, so renamed phases keep
        their rules: opening, exploration, pain discovery, then solution
        framing for every remaining non-terminal phase.
        """
        if analysis.issues:
            return False

        index = self.index_of(current_phase)
        if index == -1 or index >= len(self.order) - 1:
            return False
        if index == 0:
            # Needs a genuine open-ended question to get past a guarded attendee
            return analysis.is_question and analysis.is_open_ended
        if index == 1:
            return analysis.is_open_ended
        if index == 2:
            return analysis.is_empathetic
        return True

    def evaluate(self, current_phase: str, analysis: GuardrailAnalysis, attendee_reply: str) -> PhaseDecision:
        """
        Decide this turn's phase.

        Args:
            current_phase: Phase before the turn
            analysis: Guardrail analysis of the trainee message
            attendee_reply: The attendee's reply produced this turn

        Returns:
            PhaseDecision (to_phase == from_phase when not advancing)
        """
        if self.index_of(current_phase) == -1:
            logger.warning(f"⚠️ [PhaseMachine] Unknown phase {current_phase!r}, resetting to {self.config.initial_phase}")
            return PhaseDecision(current_phase, self.config.initial_phase, "reset_unknown_phase")

        if current_phase == self.config.terminal_phase:
            return PhaseDecision(current_phase, current_phase, "terminal")

        if analysis.issues:
            return PhaseDecision(current_phase, current_phase, "guardrail_block")

        if not self.should_advance(current_phase, analysis):
            return PhaseDecision(current_phase, current_phase, "criteria_not_met")

        target = self.next_phase(current_phase)
        if target == self.config.terminal_phase:
            committed = None
            if not is_evaluation_question(attendee_reply, self.config):
                committed = detect_committed_outcome(attendee_reply, self.config)
            if committed is None:
                return PhaseDecision(current_phase, current_phase, "awaiting_commitment")
            logger.info(f"🎯 [PhaseMachine] Commitment detected ({committed}), entering {target}")
            return PhaseDecision(current_phase, target, "commitment", committed)

        return PhaseDecision(current_phase, target, "advanced")
