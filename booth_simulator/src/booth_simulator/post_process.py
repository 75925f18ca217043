"""
Post-processor for attendee responses.

Enforces the realism envelope on every attendee line, template or
generated: no bullets, no markdown, no stage directions, no reciprocal
"what about you?" tails, at most two sentences and about 220 characters.
"""

import re

MAX_SENTENCES = 2
MAX_CHARS = 220

_BULLET = re.compile(r"^\s*[-•*]\s*", re.MULTILINE)
_NUMBERING = re.compile(r"^\s*\d+\.\s*", re.MULTILINE)
_PARENTHETICAL = re.compile(r"\([^)]*\)")
_MARKDOWN = re.compile(r"[*_`]")
_RECIPROCAL = re.compile(r"(?:what|how) about you(?:r\s+\w+)?\??", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def clean(text: str) -> str:
    """Apply the realism rules to one attendee line."""
    processed = text or ""

    processed = _BULLET.sub("", processed)
    processed = _NUMBERING.sub("", processed)
    processed = _PARENTHETICAL.sub("", processed)
    processed = _MARKDOWN.sub("", processed)
    processed = _RECIPROCAL.sub("", processed)
    processed = _WHITESPACE.sub(" ", processed).strip()

    sentences = _SENTENCE.findall(processed)
    if len(sentences) > MAX_SENTENCES:
        processed = " ".join(s.strip() for s in sentences[:MAX_SENTENCES]).strip()

    if len(processed) > MAX_CHARS:
        truncated = processed[:MAX_CHARS]
        last_terminator = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
        if last_terminator > 0:
            processed = truncated[:last_terminator + 1].strip()
        else:
            processed = truncated.strip() + "..."

    return processed
