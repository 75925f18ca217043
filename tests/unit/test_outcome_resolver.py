"""
Unit Tests for Outcome Resolver

Tests the question guard, explicit-signal overrides, persona-weighted
sampling and the decision trace.
"""

import pytest
import sys
import os
from typing import List, Tuple

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "booth_simulator", "src"))

from booth_simulator.outcome_resolver import (
    OutcomeResolver,
    detect_mql_cues,
    detect_stakeholder_type,
    has_acceptance,
)
from booth_simulator.session_state import TranscriptMessage
from booth_simulator.simulator_config import load_simulator_config

SRE_PROFILE = "Persona: Senior SRE\nModifiers: alert fatigue\nEmotional posture: Tired"
DIRECTOR_PROFILE = "Persona: Director of Platform Engineering\nModifiers: cost pressure"


def _tail(lines: List[Tuple[str, str]]) -> List[TranscriptMessage]:
    return [
        TranscriptMessage(id=str(i), type=kind, text=text, timestamp=f"2026-01-01T10:00:{i:02d}")
        for i, (kind, text) in enumerate(lines)
    ]


class TestExplicitOverrides:
    """Test suite for the question guard and explicit overrides."""

    @pytest.fixture
    def resolver(self):
        return OutcomeResolver(load_simulator_config())

    def _resolve(self, resolver, attendee_line, trainee_line="Anything else I can help with?", phase="SOLUTION_FRAMING"):
        tail = _tail([("trainee", trainee_line), ("attendee", attendee_line)])
        return resolver.resolve(phase, [], tail, SRE_PROFILE, "s1", 5)

    def test_question_is_never_terminal(self, resolver):
        decision = self._resolve(resolver, "Could someone follow up with me about this quarter?")
        assert decision.outcome == "UNDETERMINED"
        assert decision.reason == "attendee_question"
        assert not decision.is_terminal

    def test_explicit_mql_with_near_term(self, resolver):
        decision = self._resolve(
            resolver,
            "Scan my badge, have sales follow up.",
            trainee_line="Sounds like you need this fixed this quarter. Want me to connect you with sales?",
        )
        assert decision.outcome == "MQL_READY"
        assert decision.reason == "explicit_mql"
        assert decision.is_explicit
        assert decision.draw is None

    def test_mql_without_near_term_is_sampled(self, resolver):
        decision = self._resolve(resolver, "Sure, have sales follow up.", trainee_line="Want me to have sales reach out?")
        assert decision.reason == "weighted_sample"
        assert decision.band_key == "practitioner"
        assert "DEMO_READY" not in decision.plausible_outcomes
        assert "MQL_READY" in decision.plausible_outcomes

    def test_explicit_demo_needs_acceptance(self, resolver):
        decision = self._resolve(resolver, "I'd love a demo, let's do it.")
        assert decision.outcome == "DEMO_READY"
        assert decision.reason == "explicit_demo_request"

    def test_demo_request_without_acceptance_is_sampled(self, resolver):
        decision = self._resolve(resolver, "Walk me through it later, we're under a lot of pressure.")
        assert decision.reason == "weighted_sample"
        assert "MQL_READY" not in decision.plausible_outcomes

    @pytest.mark.parametrize("text,accepted", [
        ("Sure, that works.", True),
        ("Yes please.", True),
        ("We measure everything.", False),
        ("Budget pressure is real.", False),
        ("Make sure it's covered.", True),
    ])
    def test_acceptance_is_whole_word(self, text, accepted):
        assert has_acceptance(text, load_simulator_config()) is accepted

    def test_explicit_self_service(self, resolver):
        decision = self._resolve(resolver, "I'll check out the free tier first.")
        assert decision.outcome == "SELF_SERVICE_READY"
        assert decision.reason == "explicit_self_service"

    def test_explicit_deferred(self, resolver):
        decision = self._resolve(resolver, "Not urgent right now, maybe next quarter.")
        assert decision.outcome == "DEFERRED_INTEREST"
        assert decision.reason == "explicit_deferred_interest"

    def test_explicit_disengagement(self, resolver):
        decision = self._resolve(resolver, "I need to run, thanks for your time.")
        assert decision.outcome == "POLITE_EXIT"
        assert decision.reason == "explicit_disengagement"

    def test_not_evaluated_in_early_phases(self, resolver):
        decision = self._resolve(resolver, "Scan my badge.", phase="EXPLORATION")
        assert decision.reason == "phase_not_eligible"

    def test_no_attendee_line(self, resolver):
        decision = resolver.resolve("OUTCOME", [], _tail([("trainee", "Hello")]), SRE_PROFILE, "s1", 1)
        assert decision.reason == "no_attendee_line"


class TestWeightedSampling:
    """Test suite for persona-weighted sampling."""

    @pytest.fixture
    def config(self):
        return load_simulator_config()

    @pytest.fixture
    def resolver(self, config):
        return OutcomeResolver(config)

    def test_no_band_match_is_undetermined(self, resolver):
        tail = _tail([("trainee", "Thanks for chatting."), ("attendee", "Cool, thanks.")])
        decision = resolver.resolve("OUTCOME", [], tail, "Persona: Student", "s1", 3)
        assert decision.outcome == "UNDETERMINED"
        assert decision.reason == "no_band_match"

    def test_sampling_is_deterministic(self, resolver):
        tail = _tail([("trainee", "Thanks for chatting."), ("attendee", "Cool, thanks.")])
        first = resolver.resolve("OUTCOME", [], tail, DIRECTOR_PROFILE, "s1", 4)
        second = resolver.resolve("OUTCOME", [], tail, DIRECTOR_PROFILE, "s1", 4)
        assert first.trace() == second.trace()
        assert first.reason == "weighted_sample"
        assert first.outcome in first.plausible_outcomes

    def test_trace_fields(self, resolver):
        tail = _tail([("trainee", "Thanks for chatting."), ("attendee", "Cool, thanks.")])
        trace = resolver.resolve("OUTCOME", [], tail, DIRECTOR_PROFILE, "s1", 4).trace()
        assert set(trace) >= {"outcome", "reason", "eligibility_score", "band_key", "jittered_weights"}
        assert trace["band_key"] == "director"

    def test_jittered_weights_normalized_and_bounded(self, config, resolver):
        band = config.outcome_bands["practitioner"]
        for turn in range(10):
            weights = resolver.jitter_weights(band, "s1", f"outcome:turn:{turn}")
            assert sum(weights.values()) == pytest.approx(1.0)
            assert all(w >= 0 for w in weights.values())
            assert set(weights) == set(band.weights)

    def test_demo_eligibility(self, resolver):
        text = (
            "Our customers noticed the outage. We need this this quarter. "
            "We're on Datadog, and the rollout worries my team."
        )
        assert resolver.demo_eligibility(text) == 5
        assert resolver.demo_eligibility("Nice booth.") == 0

    def test_demo_plausible_when_eligible(self, resolver):
        tail = _tail([
            ("trainee", "How are your customers affected when Datadog misses things?"),
            ("attendee", "Customers notice first. My team is stretched thin, honestly."),
        ])
        decision = resolver.resolve("OUTCOME", [], tail, SRE_PROFILE, "s1", 6)
        assert decision.eligibility_score >= 2
        assert "DEMO_READY" in decision.plausible_outcomes

    @pytest.mark.parametrize("profile,band", [
        ("Persona: Director of Platform Engineering", "director"),
        ("Persona: VP of Engineering", "executive"),
        ("Persona: Senior SRE", "practitioner"),
        ("Persona: Technical Buyer", "technical_buyer"),
    ])
    def test_band_lookup(self, resolver, profile, band):
        assert resolver.band_for(profile)[0] == band


class TestStakeholderAndCues:
    """Test suite for stakeholder and MQL cue detection."""

    @pytest.fixture
    def config(self):
        return load_simulator_config()

    def test_executive(self, config):
        assert detect_stakeholder_type("Persona: VP Engineering", "", config) == "executive"

    def test_ic_title_alone(self, config):
        assert detect_stakeholder_type(SRE_PROFILE, "We run Prometheus.", config) == "ic_without_authority"
        assert detect_stakeholder_type(SRE_PROFILE, "", config) == "ic_without_authority"

    def test_ic_signal_without_title(self, config):
        profile = "Persona: Data Analyst"
        assert detect_stakeholder_type(profile, "Honestly my manager decides.", config) == "ic_without_authority"
        assert detect_stakeholder_type(profile, "We run Prometheus.", config) == "unknown"

    def test_mql_cue_patterns(self, config):
        assert detect_mql_cues("Could you scan their badge?", config)
        assert detect_mql_cues("I'd need to loop in my manager first.", config)
        assert detect_mql_cues("Could we book a meeting next week", config)
        assert not detect_mql_cues("Nice booth.", config)

    @pytest.mark.parametrize("text", [
        "Here's my email, take my info.",
        "Let me scan that code for you.",
        "Want to get my badge?",
    ])
    def test_configured_mql_cues(self, config, text):
        assert detect_mql_cues(text, config)

    def test_configured_cues_are_injected(self, config):
        custom = config.model_copy(update={"mql_cues": ["leave my card"]})
        assert detect_mql_cues("I'll leave my card with you.", custom)
        assert not detect_mql_cues("I'll leave my card with you.", config)
