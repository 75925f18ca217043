"""
Session Manager for State Persistence

Reference storage collaborator: keeps sessions in memory as JSON-safe
records. The conversation engine never performs I/O itself; callers load a
session here, run a turn, and save the returned snapshot.

Callers must serialize turns per session; `lock_for` hands out one
asyncio.Lock per session id for that purpose.
"""

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from booth_simulator.enrichment import PersonaEnrichment
from booth_simulator.session_state import (
    PhaseTransition,
    ScoreRecord,
    Session,
    ToolingContext,
    normalize_transcript,
)

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Manages session persistence in memory.

    Sessions are stored as dictionaries (the same shape a database row
    would take), so every save/load goes through the serialization round trip.
    """

    def __init__(self):
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def session_to_dict(self, session: Session) -> Dict[str, Any]:
        """
        Convert Session to a JSON-safe dictionary for storage.

        Args:
            session: Session object

        Returns:
            Dictionary representation
        """
        return {
            "id": session.id,
            "current_phase": session.current_phase,
            "outcome_seed": session.outcome_seed,
            "persona_profile": session.persona_profile,
            "persona_id": session.persona_id,
            "difficulty": session.difficulty,
            "phase_history": json.dumps([asdict(t) for t in session.phase_history]),
            "transcript": json.dumps([asdict(m) for m in session.transcript]),
            "violations": json.dumps(session.violations),
            "expressed_intents": json.dumps(session.expressed_intents),
            "tooling_context": json.dumps(asdict(session.tooling_context)) if session.tooling_context else None,
            "pending_outcome": session.pending_outcome,
            "trainer_guidance": session.trainer_guidance,
            "enrichment": json.dumps(asdict(session.enrichment)) if session.enrichment else None,
            "active": session.active,
            "start_time": session.start_time,
            "end_time": session.end_time,
            "outcome": session.outcome,
            "score": json.dumps(asdict(session.score)) if session.score else None,
        }

    def dict_to_session(self, data: Dict[str, Any]) -> Session:
        """
        Convert a stored dictionary back to a Session.

        Malformed transcript entries are dropped rather than failing the load.

        Args:
            data: Dictionary from storage

        Returns:
            Session object
        """
        tooling = json.loads(data["tooling_context"]) if data.get("tooling_context") else None
        enrichment = json.loads(data["enrichment"]) if data.get("enrichment") else None
        score = json.loads(data["score"]) if data.get("score") else None

        return Session(
            id=data["id"],
            current_phase=data["current_phase"],
            outcome_seed=data["outcome_seed"],
            persona_profile=data.get("persona_profile", ""),
            persona_id=data.get("persona_id"),
            difficulty=data.get("difficulty") or "medium",
            phase_history=[PhaseTransition(**t) for t in json.loads(data.get("phase_history") or "[]")],
            transcript=normalize_transcript(json.loads(data.get("transcript") or "[]")),
            violations=json.loads(data.get("violations") or "[]"),
            expressed_intents=json.loads(data.get("expressed_intents") or "[]"),
            tooling_context=ToolingContext(**tooling) if tooling else None,
            pending_outcome=data.get("pending_outcome"),
            trainer_guidance=data.get("trainer_guidance"),
            enrichment=PersonaEnrichment(**enrichment) if enrichment else None,
            active=data.get("active", True),
            start_time=data["start_time"],
            end_time=data.get("end_time"),
            outcome=data.get("outcome"),
            score=ScoreRecord(**score) if score else None,
        )

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Per-session lock for callers that may run turns concurrently."""
        if session_id not in self._locks:
            self._locks[session_id] = asyncio.Lock()
        return self._locks[session_id]

    async def get_session(self, session_id: str) -> Optional[Session]:
        """
        Load a session.

        Args:
            session_id: Session identifier

        Returns:
            Session object or None if not found
        """
        data = self._sessions.get(session_id)
        if data is None:
            return None
        return self.dict_to_session(data)

    async def save_session(self, session: Session) -> bool:
        """
        Save a session snapshot, replacing any earlier one.

        Returns:
            True once stored
        """
        self._sessions[session.id] = self.session_to_dict(session)
        logger.debug(f"💾 [SessionManager] Saved session {session.id} ({len(session.transcript)} messages)")
        return True

    async def delete_session(self, session_id: str) -> bool:
        """
        Delete a session.

        Returns:
            True if deleted, False if it did not exist
        """
        self._locks.pop(session_id, None)
        if session_id in self._sessions:
            del self._sessions[session_id]
            return True
        return False

    async def list_session_ids(self, active_only: bool = False) -> List[str]:
        return [
            session_id for session_id, data in self._sessions.items()
            if not active_only or data.get("active", True)
        ]
