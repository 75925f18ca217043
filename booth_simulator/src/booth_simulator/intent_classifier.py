"""
Intent Classifier

Maps a trainee message to the attendee intent it should elicit, using an
ordered table of phrase rules (first match wins). A prerequisite-denial
override runs before the table. A second pass, apply_exhaustion, moves an
already-expressed intent along to a successor so the attendee does not
repeat itself.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from booth_simulator.intent_types import PAIN_INTENTS, AttendeeIntent, IntentResult
from booth_simulator.simulator_config import SimulatorConfig
from booth_simulator.text_utils import contains_any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentRule:
    """One cascade step: any phrase match yields the intent at the given confidence."""
    intent: AttendeeIntent
    phrases: Sequence[str]
    confidence: float
    signal: str


@dataclass
class IntentContext:
    phase: str = ""
    persona: str = ""
    transcript: str = ""
    expressed_intents: List[str] = field(default_factory=list)


NO_TRACING_PHRASES = (
    "no tracing",
    "don't have traces",
    "no distributed tracing",
    "metrics and logs only",
    "just metrics and logs",
)

# "{product}" is replaced with the configured product name.
INTENT_RULES = (
    IntentRule(
        AttendeeIntent.ASK_WHAT_IS_HONEYCOMB,
        ("what is {product}", "what does {product} do", "tell me about {product}",
         "never heard of {product}", "{product} is"),
        0.9, "what_is_honeycomb",
    ),
    IntentRule(
        AttendeeIntent.ASK_TOOL_STACK,
        ("what are you using", "what tools", "current setup", "your stack",
         "what do you have", "what's your observability"),
        0.9, "ask_tool_stack",
    ),
    IntentRule(
        AttendeeIntent.ASK_DIFFERENTIATION,
        ("how are you different", "what makes {product} different", "{product} vs",
         "compared to datadog", "compared to splunk", "compared to new relic",
         "better than", "why {product}"),
        0.9, "ask_differentiation",
    ),
    IntentRule(
        AttendeeIntent.DESCRIBE_PAIN_INCIDENT,
        ("during an incident", "when things break", "during an outage", "when debugging",
         "troubleshooting", "fire drill", "what's hardest", "biggest pain"),
        0.85, "describe_pain_incident",
    ),
    IntentRule(
        AttendeeIntent.DESCRIBE_PAIN_CORRELATION,
        ("correlation", "connecting", "relate", "span", "traces",
         "distributed tracing", "cross-service"),
        0.8, "describe_pain_correlation",
    ),
    IntentRule(
        AttendeeIntent.DESCRIBE_PAIN_ALERT_FATIGUE,
        ("alert fatigue", "too many alerts", "noisy", "false positives", "alert overload"),
        0.85, "describe_pain_alert_fatigue",
    ),
    IntentRule(
        AttendeeIntent.ASK_OTEL,
        ("opentelemetry", "otel", "open telemetry", "vendor lock", "does {product} require otel"),
        0.9, "ask_otel",
    ),
    IntentRule(
        AttendeeIntent.ASK_INSTRUMENTATION,
        ("instrumentation", "how do we instrument", "get data in", "agent", "collector", "sdk"),
        0.8, "ask_instrumentation",
    ),
    IntentRule(
        AttendeeIntent.ASK_ROLLOUT_EFFORT,
        ("how much effort", "how hard", "how long", "rollout", "migration",
         "time to value", "onboarding", "setup"),
        0.85, "ask_rollout_effort",
    ),
    IntentRule(
        AttendeeIntent.ASK_PRICING,
        ("pricing", "cost", "budget", "how much", "expensive", "price"),
        0.9, "ask_pricing",
    ),
    IntentRule(
        AttendeeIntent.DEMO_INTEREST,
        ("show me", "demo", "walk me through", "see it", "can you show"),
        0.9, "demo_interest",
    ),
    IntentRule(
        AttendeeIntent.SELF_SERVICE_CLOSE,
        ("free tier", "docs", "documentation", "try it myself", "case studies", "self-serve"),
        0.9, "self_service_close",
    ),
    IntentRule(
        AttendeeIntent.MQL_CLOSE,
        ("scan my badge", "have sales", "follow up", "reach out", "contact me"),
        0.9, "mql_close",
    ),
    IntentRule(
        AttendeeIntent.ASK_NEXT_STEPS,
        ("what's next", "next steps", "where do we go", "how do we proceed"),
        0.8, "ask_next_steps",
    ),
    IntentRule(
        AttendeeIntent.DEFERRED_INTEREST_CLOSE,
        ("later", "down the road", "in the future", "not ready yet", "not urgent"),
        0.85, "deferred_interest",
    ),
)

EFFORT_TRANSITION_PHRASES = ("how much effort", "how hard", "rollout", "migration")
URGENCY_TRANSITION_PHRASES = ("how urgent", "timeline", "when", "priority")


class IntentClassifier:
    """
    Priority-ordered phrase classifier.

    The rule table is an explicit, inspectable tuple; callers may pass their
    own to test or extend the cascade.
    """

    def __init__(self, config: SimulatorConfig, rules: Sequence[IntentRule] = INTENT_RULES):
        self.config = config
        self.rules = [self._bind_product(rule) for rule in rules]

    def _bind_product(self, rule: IntentRule) -> IntentRule:
        product = self.config.product_name.lower()
        phrases = tuple(p.replace("{product}", product) for p in rule.phrases)
        return IntentRule(rule.intent, phrases, rule.confidence, rule.signal)

    def classify(self, message: str, context: Optional[IntentContext] = None) -> IntentResult:
        """
        Classify a trainee message into an attendee intent.

        A message denying tracing forces ASK_ROLLOUT_EFFORT ahead of every
        other rule, since it changes what the attendee can talk about.

        Returns:
            IntentResult (UNKNOWN at the configured low confidence if no rule matches)
        """
        if contains_any(message, NO_TRACING_PHRASES):
            logger.debug("🔀 [IntentClassifier] Tracing pivot")
            return IntentResult(AttendeeIntent.ASK_ROLLOUT_EFFORT, 0.85, ["no_tracing_pivot"])

        for rule in self.rules:
            if contains_any(message, rule.phrases):
                return IntentResult(rule.intent, rule.confidence, [rule.signal])

        return IntentResult(AttendeeIntent.UNKNOWN, self.config.unknown_confidence, [])

    def apply_exhaustion(
        self,
        result: IntentResult,
        expressed_intents: Sequence[str],
        message: str,
    ) -> IntentResult:
        """
        Redirect an intent the attendee has already expressed.

        Pain intents move on to effort, then urgency, then next steps; tool
        stack moves on to incident pain. Transitions keep 90% of the
        confidence and add an "intent_transition" signal. With no
        transition, the result comes back marked exhausted.
        """
        already = result.intent.value in expressed_intents
        if not already or result.confidence < self.config.exhaustion_confidence_threshold:
            return IntentResult(result.intent, result.confidence, list(result.signals), False)

        successor = self._transition_for(result.intent, message)
        if successor is not None:
            logger.debug(f"🔀 [IntentClassifier] {result.intent.value} exhausted -> {successor.value}")
            return IntentResult(
                successor,
                result.confidence * self.config.transition_confidence_factor,
                list(result.signals) + ["intent_transition"],
                False,
            )
        return IntentResult(result.intent, result.confidence, list(result.signals), True)

    def _transition_for(self, intent: AttendeeIntent, message: str) -> Optional[AttendeeIntent]:
        if intent in PAIN_INTENTS:
            if contains_any(message, EFFORT_TRANSITION_PHRASES):
                return AttendeeIntent.ASK_ROLLOUT_EFFORT
            if contains_any(message, URGENCY_TRANSITION_PHRASES):
                return AttendeeIntent.ASK_CUSTOMER_IMPACT
            return AttendeeIntent.ASK_NEXT_STEPS
        if intent == AttendeeIntent.ASK_TOOL_STACK:
            return AttendeeIntent.DESCRIBE_PAIN_INCIDENT
        return None

    def is_confident(self, result: IntentResult) -> bool:
        """False when the caller should fall back to a generative reply."""
        if result.intent == AttendeeIntent.UNKNOWN or result.exhausted:
            return False
        return result.confidence >= self.config.intent_confidence_threshold
