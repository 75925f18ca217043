"""
Simulator Configuration

Data-driven rule tables for the booth simulator: phase definitions, banned
vocabulary, cue phrase lists, persona outcome bands, turn limits and grading
constants. The configuration is loaded once and passed into every component,
so tests can fabricate their own tables.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from booth_simulator.errors import ConfigurationError

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).with_name("simulator.config.json")

DEFAULT_PHASE_ORDER = [
    "OPENING",
    "EXPLORATION",
    "PAIN_DISCOVERY",
    "SOLUTION_FRAMING",
    "OUTCOME",
]

REQUIRED_OUTCOMES = ["DEMO_READY", "SELF_SERVICE_READY", "MQL_READY", "POLITE_EXIT"]


class PhaseDefinition(BaseModel):
    """Prompt-facing description of one conversation phase."""
    description: str
    attendee_behavior: List[str] = Field(default_factory=list)
    advance_when: List[str] = Field(default_factory=list)
    block_when: List[str] = Field(default_factory=list)
    venting_enabled: bool = False
    possible_outcomes: List[str] = Field(default_factory=list)


class OutcomeBand(BaseModel):
    """Persona-specific base weights over terminal outcomes plus jitter tolerance."""
    match_titles: List[str]
    weights: Dict[str, float]
    tolerance: float = 0.1


class StakeholderType(BaseModel):
    titles: List[str] = Field(default_factory=list)
    signals: List[str] = Field(default_factory=list)


class ScoringRules(BaseModel):
    """Per-occurrence increments and bonuses for the heuristic scorer."""
    sub_score_max: int = 20
    listening_base: int = 5
    listening_increment: int = 5
    listening_phrases: List[str] = Field(default_factory=list)
    question_increment: int = 2
    open_ended_increment: int = 3
    open_ended_phrases: List[str] = Field(default_factory=list)
    empathy_base: int = 2
    empathy_increment: int = 4
    empathy_phrases: List[str] = Field(default_factory=list)
    assumption_penalty: int = 10
    violation_penalty: int = 5
    early_pitch_penalty: int = 5
    customer_impact_bonus: int = 5
    success_bonus: int = 10
    deferred_bonus: int = 5
    inefficiency_penalty: int = 5
    idle_threshold_seconds: int = 120
    max_feedback_items: int = 6


class GradingRules(BaseModel):
    """Score-to-grade thresholds and outcome-aware grade floors."""
    thresholds: Dict[str, int] = Field(
        default_factory=lambda: {"A": 90, "B": 80, "C": 70, "D": 60}
    )
    efficient_a_threshold: int = 85
    demo_b_threshold: int = 75
    grade_floors: Dict[str, str] = Field(
        default_factory=lambda: {
            "DEMO_READY": "C",
            "MQL_READY": "B",
            "SELF_SERVICE_READY": "B",
        }
    )
    self_service_pain_threshold: int = 12
    self_service_guardrail_threshold: int = 15
    self_service_fallback_grade: str = "C"
    deferred_thresholds: Dict[str, int] = Field(
        default_factory=lambda: {"B": 85, "C": 75, "D": 65}
    )


class SimulatorConfig(BaseModel):
    """Complete rule table injected into the conversation engine."""
    simulator_name: str = "booth-simulator"
    version: str = "1.0"
    product_name: str = "Honeycomb"

    phase_order: List[str] = Field(default_factory=lambda: list(DEFAULT_PHASE_ORDER))
    phases: Dict[str, PhaseDefinition] = Field(default_factory=dict)

    # Guardrails
    banned_keywords: List[str] = Field(default_factory=list)
    pitch_phrases: List[str] = Field(default_factory=list)
    competitor_names: List[str] = Field(default_factory=list)
    comparison_phrases: List[str] = Field(default_factory=list)
    pricing_demo_phrases: List[str] = Field(default_factory=list)
    assumption_technologies: List[str] = Field(default_factory=list)
    assumption_assertion_phrases: List[str] = Field(default_factory=list)
    assumption_question_phrases: List[str] = Field(default_factory=list)
    open_ended_phrases: List[str] = Field(default_factory=list)
    empathy_phrases: List[str] = Field(default_factory=list)

    # Outcome cues
    demo_request_phrases: List[str] = Field(default_factory=list)
    mql_cues: List[str] = Field(default_factory=list)
    self_service_cues: List[str] = Field(default_factory=list)
    deferred_interest_cues: List[str] = Field(default_factory=list)
    near_term_phrases: List[str] = Field(default_factory=list)
    acceptance_phrases: List[str] = Field(default_factory=list)
    disengagement_phrases: List[str] = Field(default_factory=list)
    evaluation_question_phrases: List[str] = Field(default_factory=list)

    # Soft demo eligibility signals
    customer_impact_phrases: List[str] = Field(default_factory=list)
    effort_phrases: List[str] = Field(default_factory=list)
    team_evaluation_phrases: List[str] = Field(default_factory=list)
    known_tools: List[str] = Field(default_factory=list)
    demo_eligibility_threshold: int = 2

    stakeholder_types: Dict[str, StakeholderType] = Field(default_factory=dict)
    outcome_bands: Dict[str, OutcomeBand] = Field(default_factory=dict)

    # Intent classification thresholds
    intent_confidence_threshold: float = 0.7
    exhaustion_confidence_threshold: float = 0.8
    transition_confidence_factor: float = 0.9
    unknown_confidence: float = 0.5

    turn_limits: Dict[str, int] = Field(
        default_factory=lambda: {"easy": 10, "medium": 12, "hard": 14}
    )
    default_difficulty: str = "medium"

    scoring: ScoringRules = Field(default_factory=ScoringRules)
    grading: GradingRules = Field(default_factory=GradingRules)

    canned_responses: Dict[str, List[str]] = Field(default_factory=dict)
    failure_modes: Dict[str, str] = Field(default_factory=dict)

    # Context windows and external call budgets
    classifier_context_window: int = 10
    prompt_history_window: int = 12
    outcome_tail_window: int = 6
    chat_timeout_seconds: float = 10.0
    enrichment_timeout_seconds: float = 8.0

    @property
    def initial_phase(self) -> str:
        return self.phase_order[0] if self.phase_order else DEFAULT_PHASE_ORDER[0]

    @property
    def terminal_phase(self) -> str:
        return self.phase_order[-1] if self.phase_order else DEFAULT_PHASE_ORDER[-1]

    def turn_limit(self, difficulty: Optional[str]) -> int:
        """Turn limit for a difficulty, defaulting to the medium limit."""
        limits = self.turn_limits
        if difficulty and difficulty in limits:
            return limits[difficulty]
        return limits.get(self.default_difficulty, 12)


def load_simulator_config(path: Optional[str] = None) -> SimulatorConfig:
    """
    Load and validate the simulator configuration.

    Args:
        path: JSON file to load. Falls back to SIMULATOR_CONFIG_PATH, then
              the bundled simulator.config.json.

    Returns:
        Validated SimulatorConfig

    Raises:
        ConfigurationError: file missing, not JSON, or schema mismatch
    """
    config_path = Path(path or os.getenv("SIMULATOR_CONFIG_PATH") or DEFAULT_CONFIG_PATH)

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Simulator config not found at {config_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in simulator config: {e}") from e

    try:
        return SimulatorConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Simulator config failed schema validation: {e}") from e


def validate_simulator_config(config: SimulatorConfig) -> List[str]:
    """
    Check structural rules the schema alone cannot express.

    Returns:
        List of problems (empty when the configuration is usable)
    """
    problems: List[str] = []

    if not config.phase_order:
        problems.append("phase_order must be a non-empty list")
    if len(set(config.phase_order)) != len(config.phase_order):
        problems.append("phase_order contains duplicate phases")

    for phase in config.phase_order:
        if phase not in config.phases:
            problems.append(f"Phase '{phase}' in phase_order not defined in phases")

    terminal = config.phases.get(config.terminal_phase)
    if terminal is not None:
        for outcome in REQUIRED_OUTCOMES:
            if outcome not in terminal.possible_outcomes:
                problems.append(f"Missing required outcome: {outcome}")

    for difficulty in ("easy", "medium", "hard"):
        if difficulty not in config.turn_limits:
            problems.append(f"turn_limits missing '{difficulty}'")

    for outcome in ("MQL_READY", "SELF_SERVICE_READY"):
        if outcome not in config.grading.grade_floors:
            problems.append(f"{outcome} must have a grade floor")

    cue_lists = {
        "mql_cues": config.mql_cues,
        "self_service_cues": config.self_service_cues,
        "deferred_interest_cues": config.deferred_interest_cues,
        "acceptance_phrases": config.acceptance_phrases,
    }
    for name, values in cue_lists.items():
        if not values:
            problems.append(f"{name} must be a non-empty list")

    for key, band in config.outcome_bands.items():
        if not band.match_titles:
            problems.append(f"Outcome band '{key}' has no match_titles")
        if sum(band.weights.values()) <= 0:
            problems.append(f"Outcome band '{key}' weights must sum above zero")
        if not 0 <= band.tolerance < 1:
            problems.append(f"Outcome band '{key}' tolerance must be in [0, 1)")

    for required in ("executive", "ic_without_authority"):
        if required not in config.stakeholder_types:
            problems.append(f"stakeholder_types must include {required}")

    return problems
