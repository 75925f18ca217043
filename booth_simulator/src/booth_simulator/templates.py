"""
Response template banks for booth conversations.

Each intent has a handful of phrasing variants so repeated sessions do not
sound identical. Slots: {tool1}, {tool2}, {stack}, {product},
{customer_impact}.
"""

from dataclasses import dataclass
from typing import Dict, List

from booth_simulator.intent_types import AttendeeIntent
from booth_simulator.session_state import ToolingContext
from booth_simulator.text_utils import contains_word, parse_profile_field


@dataclass(frozen=True)
class Template:
    variants: List[str]
    max_length: int = 0  # Character guideline for authors of new variants


TEMPLATES: Dict[AttendeeIntent, Template] = {
    AttendeeIntent.ASK_WHAT_IS_HONEYCOMB: Template([
        "I've seen the booth but I'm not totally clear on what you do.",
        "I know you're observability, but what makes you different?",
        "Haven't really used {product} before. What's the pitch?",
    ], 120),
    AttendeeIntent.ASK_TOOL_STACK: Template([
        "We're on {tool1} and {tool2}.",
        "Currently using {tool1} for metrics and {tool2} for logs.",
        "{tool1} and {tool2}, mostly. It's a mix of legacy APM stuff.",
        "We have {tool1} for monitoring and {tool2} for log aggregation.",
        "{stack}. Pretty standard setup.",
    ], 150),
    AttendeeIntent.ASK_DIFFERENTIATION: Template([
        "How's this different from what {tool1} does?",
        "We're already using {tool1}. Why would we switch?",
        "What do you have that {tool1} doesn't?",
        "I've heard about you but {tool1} seems similar. What's the real difference?",
    ], 150),
    AttendeeIntent.DESCRIBE_PAIN_INCIDENT: Template([
        "Correlating across services is brutal. We end up digging through logs for hours.",
        "During incidents we're just grepping logs and guessing. It's a nightmare.",
        "The worst part is not knowing where to start. Too many places to look.",
        "We waste so much time just trying to figure out which service is the culprit.",
        "Honestly, we're flying blind half the time. Incidents take forever to resolve.",
    ], 180),
    AttendeeIntent.DESCRIBE_PAIN_CORRELATION: Template([
        "Connecting the dots between services is the hardest part.",
        "We can see symptoms but figuring out root cause is a slog.",
        "Tracing is a mess. We don't have good visibility into request flows.",
        "Cross-service debugging takes forever. Everything's siloed.",
    ], 150),
    AttendeeIntent.DESCRIBE_PAIN_ALERT_FATIGUE: Template([
        "We're drowning in alerts. Half of them are noise.",
        "Alert fatigue is real. The team just ignores most of them now.",
        "Too many false positives. It's hard to know what's actually critical.",
        "We get paged constantly but most alerts don't mean anything.",
    ], 150),
    AttendeeIntent.DESCRIBE_PAIN_BLIND_SPOTS: Template([
        "We don't know what we don't know. The unknowns are what kill us.",
        "Our dashboards only show what we thought to build. Everything else is invisible.",
        "We're reactive. By the time we see something, customers already felt it.",
    ], 150),
    AttendeeIntent.ASK_OTEL: Template([
        "Does {product} require OpenTelemetry? We haven't adopted it yet.",
        "How locked in are we if we use your instrumentation?",
        "We're not on OTel. Is that a blocker?",
        "What's the story with OpenTelemetry and {product}?",
    ], 140),
    AttendeeIntent.ASK_INSTRUMENTATION: Template([
        "How much instrumentation work is required to get value?",
        "Do we need to instrument everything or can we start small?",
        "What's involved in getting data into {product}?",
        "Is there an agent or do we use SDKs?",
    ], 140),
    AttendeeIntent.ASK_INTEGRATION: Template([
        "Does it integrate with our existing stack?",
        "Can we pull in data from {tool1} and {tool2}?",
        "We're already invested in {tool1}. Can {product} work alongside it?",
    ], 130),
    AttendeeIntent.ASK_DATA_INGESTION: Template([
        "How do we actually get data in? Is there an agent?",
        "What's the ingestion model? Are there collectors?",
        "Do we send events directly or is there a sidecar?",
    ], 130),
    AttendeeIntent.ASK_ROLLOUT_EFFORT: Template([
        "How much effort is the rollout? We're pretty lean on bandwidth.",
        "What's the migration story? We can't rip and replace everything.",
        "How long does it take to get value? We need quick wins.",
        "Our team's stretched thin. Is this a heavy lift?",
    ], 140),
    AttendeeIntent.ASK_TEAM_BANDWIDTH: Template([
        "We don't have a ton of bandwidth right now. Can we start small?",
        "The team's already underwater. How hands-on is the setup?",
        "Is there a low-effort way to evaluate this?",
    ], 130),
    AttendeeIntent.ASK_PRICING: Template([
        "What's the pricing model? Is it per-seat or per-event?",
        "We're cost-conscious. How does pricing work?",
        "What's the entry point cost-wise?",
    ], 120),
    AttendeeIntent.ASK_CUSTOMER_IMPACT: Template([
        "Our last outage cost us customers. Can {product} help us catch issues faster?",
        "We need to reduce customer impact during incidents. Does this help?",
        "{customer_impact}. Can you help with that?",
    ], 150),
    AttendeeIntent.ASK_NEXT_STEPS: Template([
        "What's the best next step for us?",
        "How do people usually get started?",
        "What would you recommend as a next step?",
    ], 100),
    AttendeeIntent.SELF_SERVICE_CLOSE: Template([
        "I'd rather start with the docs and poke around the free tier first.",
        "Docs and free tier is probably the right next step for me.",
        "Can you point me to the docs? I'll dig in on my own.",
        "I'll check out the free tier and see how it feels.",
    ], 140),
    AttendeeIntent.MQL_CLOSE: Template([
        "Please scan my badge. I'd like someone from sales to follow up.",
        "Let me give you my contact info. Have sales reach out.",
        "Scan my badge. We should talk more seriously about this.",
        "I'm interested. Have someone follow up with me.",
    ], 140),
    AttendeeIntent.DEFERRED_INTEREST_CLOSE: Template([
        "This is interesting but we're not ready yet. Maybe later this year.",
        "Not urgent right now, but I'll keep you on the radar.",
        "We're evaluating options but timing isn't right yet.",
        "Sounds promising but we have other priorities first.",
    ], 140),
    AttendeeIntent.DEMO_INTEREST: Template([
        "Can you show me how this works in practice?",
        "I'd like to see it in action. Is there a demo?",
        "Walk me through how you'd debug something with {product}.",
    ], 120),
    AttendeeIntent.UNKNOWN: Template([], 0),
}

CUSTOMER_IMPACT_PHRASES = [
    "Customers noticed our last outage before we did",
    "Our support queue blows up every time checkout slows down",
    "We keep finding out about problems from angry customers",
]

DEFAULT_TOOL_STACKS: Dict[str, ToolingContext] = {
    "CTO": ToolingContext("New Relic", "Splunk", "New Relic and Splunk"),
    "Director": ToolingContext("Datadog", "ELK Stack", "Datadog for metrics, ELK for logs"),
    "IC": ToolingContext("Prometheus", "Grafana", "Prometheus and Grafana"),
    "Technical Buyer": ToolingContext("New Relic", "Splunk", "New Relic and Splunk, mostly legacy"),
    "default": ToolingContext("New Relic", "Splunk", "a mix of legacy APM tools"),
}


def default_tool_stack(persona_profile: str) -> ToolingContext:
    """
    Tool stack implied by the persona's role.

    Matches whole words on the "Persona:" line (or the whole profile when
    that line is missing), so "director" is never mistaken for "cto".
    """
    role = parse_profile_field(persona_profile, "Persona") or persona_profile or ""

    if contains_word(role, "cto"):
        key = "CTO"
    elif contains_word(role, "director"):
        key = "Director"
    elif contains_word(role, "technical buyer") or contains_word(role, "vp"):
        key = "Technical Buyer"
    elif any(contains_word(role, w) for w in ("engineer", "sre", "developer")):
        key = "IC"
    else:
        key = "default"

    stack = DEFAULT_TOOL_STACKS[key]
    return ToolingContext(stack.tool1, stack.tool2, stack.stack)
