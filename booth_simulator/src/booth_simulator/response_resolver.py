"""
Response Resolver

Turns a classified intent into attendee text: picks a phrasing variant
deterministically from the session seed, fills context slots and runs the
post-processor. Returns None when the caller should use the generative
fallback instead.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional

from booth_simulator.intent_types import AttendeeIntent, IntentResult
from booth_simulator.post_process import clean
from booth_simulator.seeded_random import pick_variant
from booth_simulator.session_state import Session, ToolingContext
from booth_simulator.simulator_config import SimulatorConfig
from booth_simulator.templates import CUSTOMER_IMPACT_PHRASES, TEMPLATES, default_tool_stack

logger = logging.getLogger(__name__)

_SLOT = re.compile(r"\{[^}]+\}")


@dataclass
class ResolvedReply:
    text: str
    intent: str
    confidence: float
    variant_key: str
    source: str = "template"


def fill_slots(template: str, slots: Dict[str, str]) -> str:
    """Substitute named slots; any slot left unfilled is removed."""
    filled = template
    for name, value in slots.items():
        if value:
            filled = filled.replace("{" + name + "}", value)
    return _SLOT.sub("", filled)


def variant_key(intent: AttendeeIntent, turn_index: int) -> str:
    return f"intent:{intent.value}:turn:{turn_index}"


class ResponseResolver:
    """Template-first attendee reply selection."""

    def __init__(self, config: SimulatorConfig):
        self.config = config

    def ensure_tooling_context(self, session: Session) -> ToolingContext:
        """
        Return the session's tooling context, establishing it on first use.

        Once set, the attendee's tools never change for the rest of the
        session.
        """
        if session.tooling_context is None:
            session.tooling_context = default_tool_stack(session.persona_profile)
            logger.debug(
                f"🧰 [ResponseResolver] Tooling context fixed for {session.id}: {session.tooling_context.stack}"
            )
        return session.tooling_context

    def resolve(self, result: IntentResult, session: Session, turn_index: int) -> Optional[ResolvedReply]:
        """
        Resolve an intent to attendee text.

        Args:
            result: Classified (and exhaustion-checked) intent
            session: Working session; its tooling context may be established here
            turn_index: Trainee turn count, part of the variant key

        Returns:
            ResolvedReply, or None for unknown/exhausted/low-confidence intents
        """
        if result.intent == AttendeeIntent.UNKNOWN or result.exhausted:
            return None
        if result.confidence < self.config.intent_confidence_threshold:
            return None

        template = TEMPLATES.get(result.intent)
        if template is None or not template.variants:
            return None

        tooling = self.ensure_tooling_context(session)
        key = variant_key(result.intent, turn_index)
        seed = session.outcome_seed or session.id

        chosen = pick_variant(seed, key, template.variants)
        slots = {
            "tool1": tooling.tool1,
            "tool2": tooling.tool2,
            "stack": tooling.stack,
            "product": self.config.product_name,
            "customer_impact": pick_variant(seed, f"{key}:customer_impact", CUSTOMER_IMPACT_PHRASES),
        }
        text = clean(fill_slots(chosen, slots))
        if not text:
            return None

        return ResolvedReply(
            text=text,
            intent=result.intent.value,
            confidence=result.confidence,
            variant_key=key,
        )
