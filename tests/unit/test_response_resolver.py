"""
Unit Tests for Response Resolver and Post-Processing

Tests template selection, slot filling, tooling context stability and the
realism cleanup applied to every attendee line.
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "booth_simulator", "src"))

from booth_simulator.intent_types import AttendeeIntent, IntentResult
from booth_simulator.post_process import clean
from booth_simulator.response_resolver import ResponseResolver, fill_slots, variant_key
from booth_simulator.session_factory import create_session
from booth_simulator.session_state import ToolingContext
from booth_simulator.simulator_config import load_simulator_config
from booth_simulator.templates import default_tool_stack

SRE_PROFILE = (
    "Persona: Senior SRE\n"
    "Modifiers: alert fatigue\n"
    "Emotional posture: Tired\n"
    "Tooling bias: Prometheus\n"
    "OpenTelemetry familiarity: None"
)


class TestResponseResolver:
    """Test suite for ResponseResolver."""

    @pytest.fixture
    def config(self):
        return load_simulator_config()

    @pytest.fixture
    def resolver(self, config):
        return ResponseResolver(config)

    @pytest.fixture
    def session(self, config):
        return create_session(SRE_PROFILE, "sre", config=config, session_id="s1", outcome_seed="s1")

    def test_tool_stack_uses_persona_tools(self, resolver, session):
        reply = resolver.resolve(IntentResult(AttendeeIntent.ASK_TOOL_STACK, 0.9), session, 1)
        assert reply is not None
        assert "Prometheus" in reply.text
        assert reply.source == "template"
        assert reply.variant_key == "intent:ask_tool_stack:turn:1"
        assert session.tooling_context == ToolingContext("Prometheus", "Grafana", "Prometheus and Grafana")

    def test_same_seed_same_text(self, config, resolver):
        first = create_session(SRE_PROFILE, "sre", config=config, outcome_seed="s1")
        second = create_session(SRE_PROFILE, "sre", config=config, outcome_seed="s1")
        result = IntentResult(AttendeeIntent.DESCRIBE_PAIN_INCIDENT, 0.85)
        assert resolver.resolve(result, first, 3).text == resolver.resolve(result, second, 3).text

    def test_tooling_context_never_changes(self, resolver, session):
        session.tooling_context = ToolingContext("Jaeger", "Loki", "Jaeger and Loki")
        reply = resolver.resolve(IntentResult(AttendeeIntent.ASK_DIFFERENTIATION, 0.9), session, 2)
        assert "Jaeger" in reply.text
        assert session.tooling_context.tool1 == "Jaeger"

    @pytest.mark.parametrize("result", [
        IntentResult(AttendeeIntent.UNKNOWN, 0.5),
        IntentResult(AttendeeIntent.ASK_PRICING, 0.9, exhausted=True),
        IntentResult(AttendeeIntent.ASK_PRICING, 0.6),
    ])
    def test_no_confident_match(self, resolver, session, result):
        assert resolver.resolve(result, session, 1) is None

    def test_mql_templates_are_not_questions(self, resolver, session):
        for turn in range(1, 10):
            reply = resolver.resolve(IntentResult(AttendeeIntent.MQL_CLOSE, 0.9), session, turn)
            assert "?" not in reply.text


class TestSlotsAndKeys:
    """Test suite for slot filling helpers."""

    def test_fill_slots_removes_unfilled(self):
        assert fill_slots("We use {tool1} and {mystery}.", {"tool1": "Datadog"}) == "We use Datadog and ."

    def test_variant_key(self):
        assert variant_key(AttendeeIntent.ASK_OTEL, 4) == "intent:ask_otel:turn:4"

    @pytest.mark.parametrize("persona,tool1", [
        ("Persona: CTO", "New Relic"),
        ("Persona: Director of Platform Engineering", "Datadog"),
        ("Persona: Platform Engineer", "Prometheus"),
        ("Persona: Technical Buyer", "New Relic"),
        ("Persona: Student", "New Relic"),
    ])
    def test_default_tool_stack(self, persona, tool1):
        assert default_tool_stack(persona).tool1 == tool1

    def test_director_is_not_cto(self):
        assert default_tool_stack("Persona: Director of Engineering").tool2 == "ELK Stack"


class TestClean:
    """Test suite for post_process.clean()."""

    def test_strips_bullets_and_parentheticals(self):
        assert clean("- First point\n- Second (aside) point") == "First point Second point"

    def test_caps_sentences(self):
        assert clean("One. Two. Three.") == "One. Two."

    def test_strips_markdown(self):
        assert clean("**Bold** move.") == "Bold move."

    def test_drops_reciprocal_question(self):
        assert clean("We use Datadog. What about you?") == "We use Datadog."

    def test_truncates_long_text(self):
        text = "word " * 80
        cleaned = clean(text)
        assert cleaned.endswith("...")
        assert len(cleaned) <= 223
