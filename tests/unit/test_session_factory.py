"""
Unit Tests for Session Creation, Transcript Normalization and Outcome Actions
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "booth_simulator", "src"))

from booth_simulator.outcome_actions import (
    OutcomeActionType,
    get_action_by_type,
    get_outcome_action,
    should_show_completion_cta,
)
from booth_simulator.session_factory import (
    Persona,
    build_attendee_profile,
    create_session,
    create_session_for_persona,
    generate_opening_line,
)
from booth_simulator.session_state import TranscriptMessage, normalize_transcript
from booth_simulator.simulator_config import load_simulator_config


class TestCreateSession:
    """Test suite for create_session()."""

    @pytest.fixture
    def config(self):
        return load_simulator_config()

    def test_initial_state(self, config):
        session = create_session("Persona: Senior SRE", "sre", config=config, session_id="abc")

        assert session.current_phase == "OPENING"
        assert session.outcome_seed == "abc:sre"
        assert session.difficulty == "medium"
        assert session.active
        assert session.pending_outcome is None
        assert [m.type for m in session.transcript] == ["system", "attendee"]
        assert session.transcript[0].text == "Session started. Current phase: OPENING"

    def test_explicit_seed_and_difficulty(self, config):
        session = create_session("Persona: CTO", "cto", difficulty="hard", config=config, outcome_seed="fixed")
        assert session.outcome_seed == "fixed"
        assert session.difficulty == "hard"

    def test_generated_ids_are_unique(self, config):
        first = create_session("Persona: CTO", "cto", config=config)
        second = create_session("Persona: CTO", "cto", config=config)
        assert first.id != second.id
        assert first.outcome_seed != second.outcome_seed

    @pytest.mark.parametrize("profile", ["", "   \n"])
    def test_empty_profile_rejected(self, config, profile):
        with pytest.raises(ValueError):
            create_session(profile, "sre", config=config)

    def test_from_persona(self, config):
        persona = Persona(
            id="platform-lead",
            persona_type="Platform Engineer",
            modifiers=["migrating to Kubernetes", "growing team"],
            emotional_posture="Neutral",
            tooling_bias="Datadog",
            otel_familiarity="Aware",
        )
        session = create_session_for_persona(persona, config=config)
        assert session.persona_id == "platform-lead"
        assert "Modifiers: migrating to Kubernetes; growing team" in session.persona_profile
        assert session.transcript[1].text == "*approaches with a curious but cautious look*"


class TestOpeningLine:
    """Test suite for generate_opening_line()."""

    @pytest.mark.parametrize("profile,line", [
        ("Emotional posture: Guarded\nModifiers: recent outage", "*walks up, looks tense, like they've been firefighting*"),
        ("Emotional posture: Blunt", "*walks up, glances at badge, keeps it brief*"),
        ("Emotional posture: Rushed", "*approaches quickly, checking phone, clearly in a hurry*"),
        ("Emotional posture: Burned out", "*sighs, half-smiles, looks tired*"),
        ("Emotional posture: Curious", "*leans in, scanning the booth display*"),
        ("Emotional posture: Skeptical", "*approaches with arms crossed, evaluating*"),
        ("Emotional posture: Neutral\nModifiers: alert fatigue", "*approaches looking visibly frustrated*"),
        ("Emotional posture: Neutral\nModifiers: budget review", "*stops by, clearly evaluating options*"),
        ("Persona: SRE", "*approaches booth casually*"),
    ])
    def test_rules(self, profile, line):
        assert generate_opening_line(profile) == line

    def test_posture_wins_over_modifiers(self):
        profile = "Emotional posture: Curious\nModifiers: alert fatigue"
        assert generate_opening_line(profile) == "*leans in, scanning the booth display*"

    def test_profile_rendering(self):
        profile = build_attendee_profile(Persona(id="x", persona_type="CTO"))
        assert profile.splitlines()[0] == "Persona: CTO"
        assert "Emotional posture: Neutral" in profile


class TestNormalizeTranscript:
    """Test suite for normalize_transcript()."""

    def test_drops_malformed_entries(self):
        raw = [
            {"id": "1", "type": "trainee", "text": "Hi", "timestamp": "2026-01-01T10:00:00"},
            {"id": "2", "type": "robot", "text": "Beep", "timestamp": "2026-01-01T10:00:01"},
            {"id": "3", "type": "attendee", "text": None, "timestamp": "2026-01-01T10:00:02"},
            "not a message",
            TranscriptMessage("4", "attendee", "Hello", "2026-01-01T10:00:03"),
        ]
        cleaned = normalize_transcript(raw)
        assert [m.id for m in cleaned] == ["1", "4"]

    @pytest.mark.parametrize("raw", [None, "text", {"id": "1"}, 42])
    def test_non_list_is_empty(self, raw):
        assert normalize_transcript(raw) == []


class TestOutcomeActions:
    """Test suite for the outcome-to-action mapping."""

    @pytest.mark.parametrize("outcome,action_type", [
        ("MQL_READY", OutcomeActionType.SCAN_BADGE),
        ("DEMO_READY", OutcomeActionType.HANDOFF_DEMOER),
        ("SELF_SERVICE_READY", OutcomeActionType.HAND_FLYER),
        ("DEFERRED_INTEREST", OutcomeActionType.HAND_SWAG),
        ("POLITE_EXIT", OutcomeActionType.HAND_SWAG),
        ("UNDETERMINED", OutcomeActionType.HAND_SWAG),
        (None, OutcomeActionType.HAND_SWAG),
    ])
    def test_mapping(self, outcome, action_type):
        assert get_outcome_action(outcome).action_type == action_type

    def test_lookup_by_type(self):
        assert get_action_by_type("HAND_FLYER").action_label == "Hand them a flyer"
        assert get_action_by_type("THROW_CONFETTI") is None

    def test_completion_cta(self):
        assert should_show_completion_cta("POLITE_EXIT")
        assert not should_show_completion_cta("UNDETERMINED")
        assert not should_show_completion_cta(None)
