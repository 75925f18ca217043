"""
Session State Data Model

Defines the Session dataclass and its transcript records for booth
conversation simulation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
import uuid

from booth_simulator.enrichment import PersonaEnrichment


class Phase(str, Enum):
    """Conversation phases, in their fixed order."""
    OPENING = "OPENING"
    EXPLORATION = "EXPLORATION"
    PAIN_DISCOVERY = "PAIN_DISCOVERY"
    SOLUTION_FRAMING = "SOLUTION_FRAMING"
    OUTCOME = "OUTCOME"


class MessageType(str, Enum):
    SYSTEM = "system"
    TRAINEE = "trainee"
    ATTENDEE = "attendee"


class Outcome(str, Enum):
    """Terminal outcomes a conversation can resolve to."""
    DEMO_READY = "DEMO_READY"
    SELF_SERVICE_READY = "SELF_SERVICE_READY"
    MQL_READY = "MQL_READY"
    DEFERRED_INTEREST = "DEFERRED_INTEREST"
    POLITE_EXIT = "POLITE_EXIT"
    UNDETERMINED = "UNDETERMINED"
    UNKNOWN = "UNKNOWN"


@dataclass
class TranscriptMessage:
    """One line of the conversation timeline."""
    id: str
    type: str  # "system" | "trainee" | "attendee"
    text: str
    timestamp: str  # ISO-8601


@dataclass
class PhaseTransition:
    from_phase: str
    to_phase: str
    timestamp: str


@dataclass
class ToolingContext:
    """Tools the attendee has committed to using, frozen once established."""
    tool1: str
    tool2: str
    stack: str


@dataclass
class ScoreRecord:
    """Final scoring for a completed session. Created once, never updated."""
    listening: int
    discovery: int
    empathy: int
    assumptions: int
    guardrails: int
    total: int
    grade: str
    outcome: str
    highlights: List[str] = field(default_factory=list)
    mistakes: List[str] = field(default_factory=list)
    violations: List[str] = field(default_factory=list)
    phases_reached: List[str] = field(default_factory=list)
    trainee_turns: int = 0
    efficient: bool = True
    active_seconds: int = 0


@dataclass
class Session:
    """
    State for one simulated booth conversation.

    The outcome seed is fixed at creation and never regenerated, so repeated
    outcome resolution at different turns stays mutually consistent.
    Phase only moves forward along the configured order.
    """
    id: str
    current_phase: str
    outcome_seed: str
    persona_profile: str
    persona_id: Optional[str] = None
    difficulty: str = "medium"
    phase_history: List[PhaseTransition] = field(default_factory=list)
    transcript: List[TranscriptMessage] = field(default_factory=list)
    violations: List[str] = field(default_factory=list)
    expressed_intents: List[str] = field(default_factory=list)
    tooling_context: Optional[ToolingContext] = None
    pending_outcome: Optional[str] = None
    trainer_guidance: Optional[str] = None
    enrichment: Optional[PersonaEnrichment] = None
    active: bool = True
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None
    outcome: Optional[str] = None
    score: Optional[ScoreRecord] = None

    def add_message(self, message_type: str, text: str, timestamp: Optional[str] = None) -> TranscriptMessage:
        """Append a message to the transcript and return it."""
        message = TranscriptMessage(
            id=str(uuid.uuid4()),
            type=MessageType(message_type).value,
            text=text,
            timestamp=timestamp or datetime.now().isoformat(),
        )
        self.transcript.append(message)
        return message

    def messages_of(self, message_type: str) -> List[TranscriptMessage]:
        wanted = MessageType(message_type).value
        return [m for m in self.transcript if m.type == wanted]

    def trainee_turn_count(self) -> int:
        """Number of trainee messages so far."""
        return len(self.messages_of(MessageType.TRAINEE))

    def last_attendee_text(self) -> str:
        for message in reversed(self.transcript):
            if message.type == MessageType.ATTENDEE.value:
                return message.text
        return ""

    def recent_messages(self, limit: int) -> List[TranscriptMessage]:
        """Last `limit` non-system messages, oldest first."""
        conversational = [m for m in self.transcript if m.type != MessageType.SYSTEM.value]
        return conversational[-limit:] if limit > 0 else []


_VALID_TYPES = {t.value for t in MessageType}


def _coerce_message(item: Any) -> Optional[TranscriptMessage]:
    if isinstance(item, TranscriptMessage):
        candidate: Dict[str, Any] = vars(item)
    elif isinstance(item, dict):
        candidate = item
    else:
        return None

    fields = ("id", "type", "text", "timestamp")
    if not all(isinstance(candidate.get(name), str) for name in fields):
        return None
    if candidate["type"] not in _VALID_TYPES:
        return None
    return TranscriptMessage(**{name: candidate[name] for name in fields})


def normalize_transcript(raw: Any) -> List[TranscriptMessage]:
    """
    Keep only well-formed transcript messages.

    Accepts TranscriptMessage objects or plain dicts; anything missing an id,
    a known type, text or timestamp is dropped. Never raises.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    items: Iterable[Any] = raw
    messages = []
    for item in items:
        message = _coerce_message(item)
        if message is not None:
            messages.append(message)
    return messages
