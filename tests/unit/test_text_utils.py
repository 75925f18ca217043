"""
Unit Tests for Text Normalization

Tests the shared phrase matchers every rule table relies on.
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "booth_simulator", "src"))

from booth_simulator.text_utils import (
    contains_any,
    contains_phrase,
    contains_word,
    is_question,
    matching_phrases,
    normalize,
    parse_profile_field,
)


class TestNormalize:
    """Test suite for normalize()."""

    def test_case_and_punctuation_insensitive(self):
        assert normalize("Hi, There!") == normalize("hi there")

    @pytest.mark.parametrize("text", [
        "Hi, There!",
        "  What's   your\tstack?? ",
        "Since you're using OpenTelemetry...",
        "",
    ])
    def test_idempotent(self, text):
        once = normalize(text)
        assert normalize(once) == once

    def test_collapses_whitespace_and_trims(self):
        assert normalize("  a \n\n b   c ") == "a b c"

    def test_none_safe(self):
        assert normalize(None) == ""


class TestPhraseMatching:
    """Test suite for phrase and word containment."""

    def test_contains_phrase_ignores_punctuation(self):
        assert contains_phrase("We're evaluating -- NOW!", "evaluating now")

    def test_empty_phrase_never_matches(self):
        assert not contains_phrase("anything", "")
        assert not contains_phrase("anything", "!!!")

    def test_contains_any(self):
        assert contains_any("Please scan my badge.", ["free tier", "scan my badge"])
        assert not contains_any("Nothing relevant here", ["free tier", "scan my badge"])

    def test_matching_phrases_keeps_configured_order(self):
        found = matching_phrases("That sounds rough, I hear you", ["hear you", "rough", "brutal"])
        assert found == ["hear you", "rough"]

    def test_contains_word_is_whole_word(self):
        assert contains_word("We use OTel today", "otel")
        assert not contains_word("Staying at the hotel", "otel")
        assert not contains_word("Director of Platform", "cto")

    def test_is_question(self):
        assert is_question("What tools are you using?")
        assert not is_question("Tell me about your stack.")
        assert not is_question("")


class TestProfileFields:
    """Test suite for parse_profile_field()."""

    @pytest.fixture
    def profile(self):
        return (
            "Persona: Director of Platform Engineering\n"
            "Modifiers: recent outage; cost pressure\n"
            "Emotional posture: Guarded\n"
            "Tooling bias: Datadog\n"
            "OpenTelemetry familiarity: Exploring"
        )

    def test_reads_field(self, profile):
        assert parse_profile_field(profile, "Persona") == "Director of Platform Engineering"
        assert parse_profile_field(profile, "Modifiers") == "recent outage; cost pressure"

    def test_case_insensitive_label(self, profile):
        assert parse_profile_field(profile, "emotional posture") == "Guarded"

    def test_missing_field(self, profile):
        assert parse_profile_field(profile, "Budget") == ""
        assert parse_profile_field("", "Persona") == ""
