"""
Conversation Engine

Processes one trainee turn against one session snapshot:

1. Guardrail analysis of the trainee message (violations recorded)
2. Intent classification plus exhaustion handling
3. Attendee reply: template first, then the fallback chain
   (chat provider under timeout -> mock provider -> canned phrase by phase)
4. Phase state machine (forward only, commitment-gated terminal phase)
5. Outcome resolution in the last two phases
6. Expressed-intent bookkeeping

Each turn works on a deep copy and returns the new snapshot; the caller's
session object is never mutated. Callers serialize turns per session and
persist the returned snapshot themselves.
"""

import asyncio
import copy
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from booth_simulator.chat_provider import ChatInput, MockChatProvider, get_chat_provider
from booth_simulator.enrichment import EnrichmentInput
from booth_simulator.errors import SessionInactiveError
from booth_simulator.guardrail_analyzer import GuardrailAnalysis, GuardrailAnalyzer
from booth_simulator.intent_classifier import IntentClassifier, IntentContext
from booth_simulator.intent_types import IntentResult
from booth_simulator.logger import get_logger
from booth_simulator.outcome_actions import (
    OutcomeAction,
    get_action_by_type,
    get_outcome_action,
    should_show_completion_cta,
)
from booth_simulator.outcome_resolver import OutcomeDecision, OutcomeResolver, detect_mql_cues, detect_stakeholder_type
from booth_simulator.phase_machine import PhaseDecision, PhaseMachine
from booth_simulator.post_process import clean
from booth_simulator.prompt_composer import PromptContext, compose_attendee_prompt
from booth_simulator.response_resolver import ResponseResolver
from booth_simulator.scoring import score_session
from booth_simulator.seeded_random import pick_variant
from booth_simulator.session_state import MessageType, Outcome, ScoreRecord, Session
from booth_simulator.simulator_config import SimulatorConfig
from booth_simulator.text_utils import contains_any

logger = get_logger(__name__)

LAST_RESORT_REPLY = "Hmm. Tell me a bit more."
FEEDBACK_MESSAGE = "Session ended. Generating feedback..."


@dataclass
class TurnResult:
    """Everything one processed turn produced."""
    session: Session
    reply: str
    source: str  # "template" | "openai" | "mock" | "canned"
    intent_result: IntentResult
    analysis: GuardrailAnalysis
    phase_decision: PhaseDecision
    outcome_decision: Optional[OutcomeDecision]
    turn_limit_exceeded: bool
    show_completion_cta: bool


@dataclass
class CompletionResult:
    session: Session
    score: ScoreRecord
    action: Optional[OutcomeAction] = None


class ConversationEngine:
    """
    Turn processor for booth conversations.

    Collaborators are injected; with no chat provider given, the provider
    is chosen from the environment (mock by default). Enrichment is only
    fetched when an enrichment provider is supplied.
    """

    def __init__(self, config: SimulatorConfig, chat_provider=None, enrichment_provider=None):
        self.config = config
        self.guardrails = GuardrailAnalyzer(config)
        self.classifier = IntentClassifier(config)
        self.resolver = ResponseResolver(config)
        self.phase_machine = PhaseMachine(config)
        self.outcome_resolver = OutcomeResolver(config)
        self.chat_provider = chat_provider if chat_provider is not None else get_chat_provider(config.product_name)
        self.mock_provider = MockChatProvider(config.product_name)
        self.enrichment_provider = enrichment_provider

    async def process_turn(self, session: Session, message: str) -> TurnResult:
        """
        Process one trainee message.

        Args:
            session: Current session snapshot (not mutated)
            message: Trainee text

        Returns:
            TurnResult with the new session snapshot

        Raises:
            SessionInactiveError: session already completed or ended
        """
        if not session.active:
            raise SessionInactiveError(session.id)

        working = copy.deepcopy(session)
        phase_before = working.current_phase

        working.add_message(MessageType.TRAINEE, message)
        turn_index = working.trainee_turn_count()
        turn_limit_exceeded = turn_index > self.config.turn_limit(working.difficulty)

        analysis = self.guardrails.analyze(message, phase_before)
        working.violations.extend(analysis.issues)

        context = IntentContext(
            phase=phase_before,
            persona=working.persona_profile,
            transcript=" ".join(m.text for m in working.recent_messages(self.config.classifier_context_window)),
            expressed_intents=list(working.expressed_intents),
        )
        intent_result = self.classifier.classify(message, context)
        intent_result = self.classifier.apply_exhaustion(intent_result, working.expressed_intents, message)

        resolved = None
        if self.classifier.is_confident(intent_result):
            resolved = self.resolver.resolve(intent_result, working, turn_index)

        if resolved is not None:
            reply, source = resolved.text, resolved.source
        else:
            working = await self._with_enrichment(working)
            reply, source = await self._fallback_reply(working, turn_index, turn_limit_exceeded)

        working.add_message(MessageType.ATTENDEE, reply)

        phase_decision = self.phase_machine.evaluate(phase_before, analysis, reply)
        if phase_decision.advanced:
            working.current_phase = phase_decision.to_phase
            working.phase_history.append(phase_decision.to_transition())
            logger.info(f"🧭 [Engine] Phase {phase_decision.from_phase} -> {phase_decision.to_phase} ({phase_decision.reason})")
        if phase_decision.committed_outcome:
            working.pending_outcome = phase_decision.committed_outcome

        outcome_decision = None
        if working.current_phase in self.outcome_resolver.eligible_phases:
            outcome_decision = self.outcome_resolver.resolve(
                working.current_phase,
                intent_result.signals,
                working.recent_messages(self.config.outcome_tail_window),
                working.persona_profile,
                working.outcome_seed,
                turn_index,
            )
            logger.outcome(working.id, outcome_decision.trace())
            self._apply_outcome(working, outcome_decision)

        if source == "template" and intent_result.intent.value not in working.expressed_intents:
            working.expressed_intents.append(intent_result.intent.value)

        logger.turn(working.id, turn_index, working.current_phase, source, intent_result.intent.value, analysis.issues)

        return TurnResult(
            session=working,
            reply=reply,
            source=source,
            intent_result=intent_result,
            analysis=analysis,
            phase_decision=phase_decision,
            outcome_decision=outcome_decision,
            turn_limit_exceeded=turn_limit_exceeded,
            show_completion_cta=should_show_completion_cta(working.pending_outcome),
        )

    def _apply_outcome(self, session: Session, decision: OutcomeDecision):
        """
        Record a terminal decision as the pending outcome.

        Explicit signals always win. A sampled outcome only fills an empty
        slot, and only once the session is in the terminal phase.
        """
        if not decision.is_terminal:
            return
        if decision.is_explicit:
            session.pending_outcome = decision.outcome
        elif session.pending_outcome is None and session.current_phase == self.config.terminal_phase:
            session.pending_outcome = decision.outcome

    async def _fallback_reply(self, session: Session, turn_index: int, turn_limit_exceeded: bool) -> Tuple[str, str]:
        """Chat provider, then mock provider, then a canned phrase. Never empty."""
        chat_input = self._build_chat_input(session, turn_limit_exceeded)

        try:
            result = await asyncio.wait_for(
                self.chat_provider.generate(chat_input),
                timeout=self.config.chat_timeout_seconds,
            )
            text = clean(result.text)
            if text:
                return text, result.provider
            logger.warning("⚠️ [Engine] Chat provider returned empty text after cleanup")
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ [Engine] Chat provider timed out after {self.config.chat_timeout_seconds}s")
        except Exception as e:
            logger.error("❌ [Engine] Chat provider failed", error=e)

        if not isinstance(self.chat_provider, MockChatProvider):
            try:
                result = await self.mock_provider.generate(chat_input)
                text = clean(result.text)
                if text:
                    return text, "mock"
            except Exception as e:
                logger.error("❌ [Engine] Mock provider failed", error=e)

        phrases = (
            self.config.canned_responses.get(session.current_phase)
            or self.config.canned_responses.get(self.config.initial_phase)
            or []
        )
        key = f"canned:{session.current_phase}:turn:{turn_index}"
        return pick_variant(session.outcome_seed or session.id, key, phrases) or LAST_RESORT_REPLY, "canned"

    def _build_chat_input(self, session: Session, turn_limit_exceeded: bool) -> ChatInput:
        recent = session.recent_messages(self.config.prompt_history_window)
        conversation: List[Dict[str, str]] = [
            {"role": "user" if m.type == MessageType.TRAINEE.value else "assistant", "content": m.text}
            for m in recent
        ]
        recent_text = " ".join(m.text for m in recent)

        context = PromptContext(
            phase=session.current_phase,
            persona_profile=session.persona_profile,
            difficulty=session.difficulty,
            enrichment=session.enrichment,
            trainer_guidance=session.trainer_guidance,
            turn_limit_exceeded=turn_limit_exceeded,
            self_service_cues_detected=contains_any(recent_text, self.config.self_service_cues),
            mql_cues_detected=detect_mql_cues(recent_text, self.config),
            deferred_cues_detected=contains_any(recent_text, self.config.deferred_interest_cues),
            stakeholder_type=detect_stakeholder_type(session.persona_profile, recent_text, self.config),
        )
        return ChatInput(
            system_prompt=compose_attendee_prompt(self.config, context, conversation),
            conversation=conversation,
            session_id=session.id,
        )

    async def _with_enrichment(self, session: Session) -> Session:
        if self.enrichment_provider is None or session.enrichment is not None:
            return session
        return await self.ensure_enrichment(session)

    async def ensure_enrichment(self, session: Session) -> Session:
        """
        Attach persona enrichment, bounded by the enrichment timeout.

        On timeout or provider failure the session comes back unchanged and
        the conversation continues without enrichment.
        """
        if session.enrichment is not None or self.enrichment_provider is None:
            return session

        enrichment_input = EnrichmentInput(
            persona_id=session.persona_id or session.id,
            attendee_profile=session.persona_profile,
        )
        try:
            enrichment = await asyncio.wait_for(
                self.enrichment_provider.enrich(enrichment_input),
                timeout=self.config.enrichment_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ [Engine] Enrichment timed out after {self.config.enrichment_timeout_seconds}s, continuing without it")
            return session
        except Exception as e:
            logger.warning(f"⚠️ [Engine] Enrichment failed, continuing without it: {e}")
            return session

        enriched = copy.deepcopy(session)
        enriched.enrichment = enrichment
        return enriched

    def complete_session(self, session: Session, action_type: Optional[str] = None) -> CompletionResult:
        """
        Close the conversation with a booth action and score it.

        Args:
            session: Active session
            action_type: Explicit action (SCAN_BADGE, HANDOFF_DEMOER...);
                         defaults to the action for the pending outcome

        Raises:
            SessionInactiveError: session already completed or ended
        """
        if not session.active:
            raise SessionInactiveError(session.id)

        working = copy.deepcopy(session)
        outcome = working.pending_outcome or Outcome.POLITE_EXIT.value

        action = get_action_by_type(action_type) if action_type else None
        if action is None:
            if action_type:
                logger.warning(f"⚠️ [Engine] Unknown action type {action_type!r}, using action for {outcome}")
            action = get_outcome_action(outcome)

        working.add_message(MessageType.SYSTEM, action.system_message)
        self._finish(working, outcome)

        logger.section("Session completed", {
            "session_id": working.id,
            "outcome": outcome,
            "action": action.action_type.value,
            "score": working.score.total,
            "grade": working.score.grade,
        })
        return CompletionResult(session=working, score=working.score, action=action)

    def end_session(self, session: Session) -> CompletionResult:
        """
        Trainee ends the conversation without a completion action.

        Raises:
            SessionInactiveError: session already completed or ended
        """
        if not session.active:
            raise SessionInactiveError(session.id)

        working = copy.deepcopy(session)
        working.add_message(MessageType.SYSTEM, FEEDBACK_MESSAGE)
        self._finish(working, working.pending_outcome)

        logger.section("Session ended", {
            "session_id": working.id,
            "outcome": working.score.outcome,
            "score": working.score.total,
            "grade": working.score.grade,
        })
        return CompletionResult(session=working, score=working.score)

    def _finish(self, session: Session, outcome: Optional[str]):
        session.active = False
        session.end_time = datetime.now().isoformat()
        session.score = score_session(session, self.config, outcome)
        session.outcome = session.score.outcome
