"""
Unit Tests for Session Scoring

Tests sub-scores, outcome bonuses, outcome-aware grading with floors,
transcript outcome detection and active time.
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "booth_simulator", "src"))

from booth_simulator.scoring import (
    calculate_active_seconds,
    detect_outcome_from_transcript,
    grade_for,
    score_session,
)
from booth_simulator.session_factory import create_session
from booth_simulator.session_state import PhaseTransition, TranscriptMessage
from booth_simulator.simulator_config import load_simulator_config

PROFILE = "Persona: Senior SRE\nEmotional posture: Curious"


class TestScoreSession:
    """Test suite for score_session()."""

    @pytest.fixture
    def config(self):
        return load_simulator_config()

    @pytest.fixture
    def session(self, config):
        return create_session(PROFILE, "sre", config=config, outcome_seed="s1")

    def test_sub_scores(self, config, session):
        session.add_message("trainee", "What does your incident process look like?")
        session.add_message("trainee", "Sounds like that's frustrating. Help me understand how customers feel it?")

        record = score_session(session, config, "SELF_SERVICE_READY")

        assert record.listening == 15
        assert record.discovery == 10
        assert record.empathy == 10
        assert record.assumptions == 20
        assert record.guardrails == 20
        assert record.total == 90
        assert record.grade == "A"
        assert "Closed with appropriate self-service path (SUCCESS)" in record.highlights
        assert "Framed conversation around customer impact" in record.highlights

    def test_mql_grade_floor(self, config, session):
        session.add_message("trainee", "Honeycomb is great.")
        session.add_message("trainee", "Honeycomb is great.")
        session.violations = [
            "Early pitch detected in OPENING phase",
            'Used banned keyword: "BubbleUp"',
            'Used banned keyword: "wide events"',
        ]

        record = score_session(session, config, "MQL_READY")

        assert record.guardrails == 0
        assert record.total == 37
        assert record.grade == "B"

    def test_no_floor_without_positive_outcome(self, config, session):
        session.add_message("trainee", "Honeycomb is great.")
        session.violations = ["Early pitch detected in OPENING phase"]

        assert score_session(session, config, "POLITE_EXIT").grade == "F"

    def test_assertion_penalty(self, config, session):
        session.add_message("trainee", "Since you're using OpenTelemetry, setup is easy.")
        assert score_session(session, config).assumptions == 10

    def test_inefficiency_penalty_only_without_outcome(self, config):
        session = create_session(PROFILE, "sre", difficulty="easy", config=config)
        for _ in range(11):
            session.add_message("trainee", "ok.")

        unknown = score_session(session, config)
        polite = score_session(session, config, "POLITE_EXIT")

        assert not unknown.efficient
        assert unknown.outcome == "UNKNOWN"
        assert unknown.total == 42
        assert polite.total == 47

    def test_detects_outcome_when_none_recorded(self, config, session):
        session.add_message("trainee", "Want me to grab your details?")
        session.add_message("attendee", "Please scan my badge.")
        assert score_session(session, config).outcome == "MQL_READY"

    def test_stalled_and_phases(self, config, session):
        session.add_message("trainee", "Hello.")
        record = score_session(session, config)
        assert "Conversation stalled in OPENING phase" in record.mistakes
        assert record.phases_reached == ["OPENING"]

        session.phase_history = [
            PhaseTransition("OPENING", "EXPLORATION", "2026-01-01T10:00:00"),
            PhaseTransition("EXPLORATION", "PAIN_DISCOVERY", "2026-01-01T10:01:00"),
            PhaseTransition("PAIN_DISCOVERY", "SOLUTION_FRAMING", "2026-01-01T10:02:00"),
        ]
        session.current_phase = "SOLUTION_FRAMING"
        record = score_session(session, config)
        assert "Advanced through 4 conversation phases" in record.highlights
        assert len(record.highlights) <= 6
        assert len(record.mistakes) <= 6


class TestGradeFor:
    """Test suite for grade_for()."""

    @pytest.fixture
    def grading(self):
        return load_simulator_config().grading

    def test_mql(self, grading):
        assert grade_for(95, "MQL_READY", False, 0, 0, 3, grading) == "A"
        assert grade_for(86, "MQL_READY", True, 0, 0, 3, grading) == "A"
        assert grade_for(86, "MQL_READY", False, 0, 0, 3, grading) == "B"
        assert grade_for(5, "MQL_READY", False, 0, 0, 3, grading) == "B"

    def test_demo(self, grading):
        assert grade_for(80, "DEMO_READY", False, 0, 0, 0, grading) == "B"
        assert grade_for(60, "DEMO_READY", False, 0, 0, 0, grading) == "C"

    def test_self_service(self, grading):
        assert grade_for(70, "SELF_SERVICE_READY", True, 12, 15, 0, grading) == "B"
        assert grade_for(70, "SELF_SERVICE_READY", True, 12, 15, 1, grading) == "C"
        assert grade_for(70, "SELF_SERVICE_READY", True, 8, 20, 0, grading) == "C"

    def test_deferred(self, grading):
        assert grade_for(86, "DEFERRED_INTEREST", True, 0, 0, 0, grading) == "B"
        assert grade_for(86, "DEFERRED_INTEREST", False, 0, 0, 0, grading) == "C"
        assert grade_for(70, "DEFERRED_INTEREST", True, 0, 0, 0, grading) == "D"
        assert grade_for(50, "DEFERRED_INTEREST", True, 0, 0, 0, grading) == "F"

    @pytest.mark.parametrize("score,grade", [(90, "A"), (85, "B"), (72, "C"), (61, "D"), (59, "F")])
    def test_plain_thresholds(self, grading, score, grade):
        assert grade_for(score, "UNKNOWN", True, 0, 0, 0, grading) == grade
        assert grade_for(score, "POLITE_EXIT", True, 0, 0, 0, grading) == grade


class TestTranscriptHelpers:
    """Test suite for outcome detection and active time."""

    @staticmethod
    def _message(text, timestamp="2026-01-01T10:00:00"):
        return TranscriptMessage(id=text, type="attendee", text=text, timestamp=timestamp)

    @pytest.mark.parametrize("text,outcome", [
        ("I'd rather go the self-service route.", "SELF_SERVICE_READY"),
        ("Go ahead and scan the badge.", "MQL_READY"),
        ("Let's see a demo.", "DEMO_READY"),
        ("It's on the radar for later.", "DEFERRED_INTEREST"),
        ("Thanks, bye.", "UNKNOWN"),
    ])
    def test_detect_outcome(self, text, outcome):
        assert detect_outcome_from_transcript([self._message(text)]) == outcome

    def test_active_seconds_skips_idle_gaps(self):
        transcript = [
            self._message("a", "2026-01-01T10:00:00"),
            self._message("b", "2026-01-01T10:00:30"),
            self._message("c", "2026-01-01T10:03:20"),
            self._message("d", "2026-01-01T10:04:20"),
        ]
        assert calculate_active_seconds(transcript) == 90

    def test_active_seconds_short_transcript(self):
        assert calculate_active_seconds([self._message("a")]) == 0

    def test_active_seconds_ignores_bad_timestamps(self):
        transcript = [self._message("a", "not a time"), self._message("b", "2026-01-01T10:00:30")]
        assert calculate_active_seconds(transcript) == 0
