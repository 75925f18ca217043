"""
Text Normalization

Case/punctuation/whitespace canonicalization shared by every phrase matcher.
"""

import re
from typing import Iterable, List

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """
    Normalize text for matching.

    Lowercases, replaces every non-word/non-space character with a space,
    collapses whitespace runs and trims. Idempotent.
    """
    if not text:
        return ""
    lowered = text.lower()
    lowered = _NON_WORD.sub(" ", lowered)
    lowered = _WHITESPACE.sub(" ", lowered)
    return lowered.strip()


def contains_phrase(text: str, phrase: str) -> bool:
    """Check if normalized text contains the normalized phrase."""
    needle = normalize(phrase)
    if not needle:
        return False
    return needle in normalize(text)


def contains_any(text: str, phrases: Iterable[str]) -> bool:
    """Check if text contains any of the given phrases."""
    normalized = normalize(text)
    for phrase in phrases:
        needle = normalize(phrase)
        if needle and needle in normalized:
            return True
    return False


def matching_phrases(text: str, phrases: Iterable[str]) -> List[str]:
    """Return the phrases (as configured) found in text, in list order."""
    normalized = normalize(text)
    matched = []
    for phrase in phrases:
        needle = normalize(phrase)
        if needle and needle in normalized:
            matched.append(phrase)
    return matched


def contains_word(text: str, word: str) -> bool:
    """Whole-word containment on normalized text (e.g. "otel" but not "hotel")."""
    needle = normalize(word)
    if not needle:
        return False
    return re.search(rf"\b{re.escape(needle)}\b", normalize(text)) is not None


def is_question(text: str) -> bool:
    """A message is a question when it carries an interrogative marker."""
    return "?" in (text or "")


def parse_profile_field(profile: str, label: str) -> str:
    """
    Read one "Label: value" line from a structured attendee profile.

    Returns the trimmed value, or "" when the label is absent.
    """
    match = re.search(rf"^\s*{re.escape(label)}:\s*([^\n]+)", profile or "", re.IGNORECASE | re.MULTILINE)
    return match.group(1).strip() if match else ""
