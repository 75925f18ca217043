"""
Guardrail Analyzer

Lightweight heuristics over a single trainee message:
1. Banned vocabulary (internal product jargon)
2. Premature pitching in the opening phase
3. Asserting the attendee already uses a technology instead of asking

Also reports the qualities the phase machine looks for: question,
open-endedness and empathy. Pure; any issue found blocks phase advancement
for the turn and is recorded as a violation by the engine.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from booth_simulator.simulator_config import SimulatorConfig
from booth_simulator.text_utils import contains_any, contains_phrase, contains_word, is_question

logger = logging.getLogger(__name__)


@dataclass
class GuardrailAnalysis:
    issues: List[str] = field(default_factory=list)
    is_question: bool = False
    is_open_ended: bool = False
    is_empathetic: bool = False
    mentions_restricted_topic: bool = False
    pitch_detected: bool = False


class GuardrailAnalyzer:
    """Rule checks driven entirely by the injected configuration."""

    def __init__(self, config: SimulatorConfig):
        self.config = config

    def analyze(self, message: str, current_phase: str) -> GuardrailAnalysis:
        """
        Analyze one trainee message.

        Args:
            message: Trainee text
            current_phase: Phase the session is in before this turn

        Returns:
            GuardrailAnalysis with issues and message qualities
        """
        issues: List[str] = []
        asking = is_question(message)

        for keyword in self.config.banned_keywords:
            if contains_phrase(message, keyword):
                issues.append(f'Used banned keyword: "{keyword}"')

        pitch_detected = self._detect_pitch(message, asking)
        if pitch_detected and current_phase == self.config.initial_phase:
            issues.append(f"Early pitch detected in {current_phase} phase")

        mentions_tech = self._mentions_technology(message)
        if mentions_tech and self._asserts_familiarity(message, asking):
            issues.append("Assumed OTel familiarity without asking")

        analysis = GuardrailAnalysis(
            issues=issues,
            is_question=asking,
            is_open_ended=any(contains_word(message, p) for p in self.config.open_ended_phrases),
            is_empathetic=any(contains_word(message, p) for p in self.config.empathy_phrases),
            mentions_restricted_topic=mentions_tech,
            pitch_detected=pitch_detected,
        )
        if issues:
            logger.info(f"⚠️ [Guardrails] {len(issues)} issue(s) in {current_phase}: {issues}")
        return analysis

    def _detect_pitch(self, message: str, asking: bool) -> bool:
        if contains_any(message, self.config.pitch_phrases):
            return True
        names_competitor = any(contains_word(message, name) for name in self.config.competitor_names)
        if names_competitor and any(contains_word(message, p) for p in self.config.comparison_phrases):
            return True
        # Pricing/demo language only counts when it is not a question
        if not asking and contains_any(message, self.config.pricing_demo_phrases):
            return True
        return False

    def flags_assumption(self, message: str) -> bool:
        """True when the message asserts the attendee uses a technology instead of asking."""
        return self._mentions_technology(message) and self._asserts_familiarity(message, is_question(message))

    def _mentions_technology(self, message: str) -> bool:
        return any(contains_word(message, tech) for tech in self.config.assumption_technologies)

    def _asserts_familiarity(self, message: str, asking: bool) -> bool:
        """An assertion phrase that is not itself an "are/do/have you..." question."""
        if not contains_any(message, self.config.assumption_assertion_phrases):
            return False
        asks = asking and contains_any(message, self.config.assumption_question_phrases)
        return not asks
