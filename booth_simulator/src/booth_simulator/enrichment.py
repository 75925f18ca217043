"""
Persona Enrichment

Derives style guidance (tone, brevity, skepticism, venting triggers,
objections) for a persona and renders it as a prompt addendum for the
generative fallback.

Providers:
1. MockEnrichmentProvider - deterministic, derived from profile fields
2. OpenAIEnrichmentProvider - JSON-mode chat completion

Enrichment is optional: the engine proceeds without it when the provider
fails or exceeds its timeout.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI

from booth_simulator.errors import ProviderError
from booth_simulator.text_utils import parse_profile_field

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentInput:
    persona_id: str
    attendee_profile: str
    conference_context: str = "Tech conference booth"


@dataclass
class PersonaEnrichment:
    """Behavioral guidance for one persona."""
    persona_id: str
    tone: str = "professional, measured"
    brevity: str = "medium"  # "short" | "medium"
    skepticism: str = "medium"  # "low" | "medium" | "high"
    venting_triggers: List[str] = field(default_factory=list)
    themes: List[str] = field(default_factory=list)
    typical_topics: List[str] = field(default_factory=list)
    reveal_when_earned: List[str] = field(default_factory=list)
    resist_if_pitched: List[str] = field(default_factory=list)
    objections: List[str] = field(default_factory=list)
    mirror_terms: List[str] = field(default_factory=list)
    avoid_terms: List[str] = field(default_factory=list)
    prompt_addendum: str = ""
    provider: str = "mock"
    generated_at: str = field(default_factory=lambda: datetime.now().isoformat())


def build_prompt_addendum(
    tone: str,
    brevity: str,
    skepticism: str,
    venting_triggers: List[str],
    objections: List[str],
    reveal_when_earned: List[str],
    resist_if_pitched: List[str],
) -> str:
    """Render style guidance as plain-language prompt instructions."""
    parts = [f"Tone: Speak in a {tone} manner."]

    length = "brief (1-2 sentences)" if brevity == "short" else "moderate (2-4 sentences)"
    parts.append(f"Response length: Keep responses {length}.")

    if skepticism == "high":
        parts.append("Skepticism: Express doubt about claims; ask 'how' and 'why' questions.")
    elif skepticism == "medium":
        parts.append("Skepticism: Show cautious interest; probe for details.")

    if venting_triggers:
        parts.append(
            f"Pain points: When discussing {', '.join(venting_triggers)}, express frustration naturally."
        )
    if objections:
        parts.append(f"Objections: {', '.join(objections)}. Raise these if appropriate.")

    parts.append(
        f"Trust: Only reveal {', '.join(reveal_when_earned)} after the trainee has "
        "demonstrated genuine curiosity about your challenges."
    )
    parts.append(f"Resistance: Push back if the trainee {', '.join(resist_if_pitched)}.")
    return " ".join(parts)


class MockEnrichmentProvider:
    """Deterministic enrichment derived from conference themes and profile fields."""

    async def enrich(self, enrichment_input: EnrichmentInput) -> PersonaEnrichment:
        profile = enrichment_input.attendee_profile
        theme_text = parse_profile_field(enrichment_input.conference_context, "Themes")
        themes = [t.strip() for t in theme_text.split(",") if t.strip()]

        persona_type = parse_profile_field(profile, "Persona")
        modifiers = [m.strip() for m in parse_profile_field(profile, "Modifiers").split(";") if m.strip()]
        posture = parse_profile_field(profile, "Emotional posture")
        otel = parse_profile_field(profile, "OpenTelemetry familiarity").lower()

        tone = self._derive_tone(posture)
        brevity = self._derive_brevity(persona_type, modifiers)
        skepticism = self._derive_skepticism(otel, modifiers)
        venting_triggers = self._derive_venting_triggers(themes, modifiers)
        reveal = self._derive_reveal_when_earned(otel)
        resist = self._derive_resist_if_pitched(modifiers)
        objections = self._derive_objections(otel, modifiers)

        return PersonaEnrichment(
            persona_id=enrichment_input.persona_id,
            tone=tone,
            brevity=brevity,
            skepticism=skepticism,
            venting_triggers=venting_triggers,
            themes=themes,
            typical_topics=self._derive_typical_topics(themes, persona_type),
            reveal_when_earned=reveal,
            resist_if_pitched=resist,
            objections=objections,
            mirror_terms=self._derive_mirror_terms(themes, persona_type),
            avoid_terms=self._derive_avoid_terms(otel),
            prompt_addendum=build_prompt_addendum(
                tone, brevity, skepticism, venting_triggers, objections, reveal, resist
            ),
            provider="mock",
        )

    def _derive_tone(self, posture: str) -> str:
        lower = posture.lower()
        if "guarded" in lower or "skeptical" in lower:
            return "reserved, cautious"
        if "friendly" in lower or "open" in lower:
            return "warm, conversational"
        if "frustrated" in lower or "stressed" in lower:
            return "tense, weary"
        return "professional, measured"

    def _derive_brevity(self, persona_type: str, modifiers: List[str]) -> str:
        lower = persona_type.lower()
        mods = " ".join(modifiers).lower()
        if "senior" in lower or "director" in lower or "busy" in mods or "impatient" in mods:
            return "short"
        return "medium"

    def _derive_skepticism(self, otel: str, modifiers: List[str]) -> str:
        mods = " ".join(modifiers).lower()
        if "attached to current tools" in mods or "skeptical" in mods:
            return "high"
        if "active" in otel or "starting" in otel:
            return "low"
        if "aware" in otel or "considering" in otel:
            return "medium"
        return "high"

    def _derive_venting_triggers(self, themes: List[str], modifiers: List[str]) -> List[str]:
        triggers = []
        lowered = [t.lower() for t in themes]
        if any("incident" in t for t in lowered):
            triggers.append("recent production incidents")
        if any("toil" in t for t in lowered):
            triggers.append("manual work and toil")
        if any("scale" in t for t in lowered):
            triggers.append("scaling challenges")

        mods = " ".join(modifiers).lower()
        if "frustrated" in mods:
            triggers.append("lack of visibility")
        if "stressed" in mods:
            triggers.append("time pressure")
        return triggers

    def _derive_typical_topics(self, themes: List[str], persona_type: str) -> List[str]:
        topics = list(themes)
        lower = persona_type.lower()
        if "sre" in lower or "reliability" in lower:
            topics.extend(["SLOs", "on-call rotation", "incident response"])
        if "platform" in lower or "infrastructure" in lower:
            topics.extend(["developer experience", "self-service"])
        if "security" in lower:
            topics.extend(["compliance", "audit logs"])
        return topics

    def _derive_reveal_when_earned(self, otel: str) -> List[str]:
        reveals = ["current pain points", "budget constraints", "team priorities"]
        if "active" in otel or "starting" in otel:
            reveals.append("current observability stack details")
        return reveals

    def _derive_resist_if_pitched(self, modifiers: List[str]) -> List[str]:
        resistance = ["direct sales pitches", "feature lists without context"]
        mods = " ".join(modifiers).lower()
        if "skeptical" in mods or "guarded" in mods:
            resistance.extend(["claims without evidence", "vendor promises"])
        return resistance

    def _derive_objections(self, otel: str, modifiers: List[str]) -> List[str]:
        objections = []
        if "never" in otel:
            objections.extend(["never heard of OpenTelemetry", "sounds complicated"])
        if "aware" in otel:
            objections.append("not sure if it's worth the effort")
        if "attached to current tools" in " ".join(modifiers).lower():
            objections.extend(["current tools work fine", "don't want to switch"])
        return objections

    def _derive_mirror_terms(self, themes: List[str], persona_type: str) -> List[str]:
        terms = list(themes)
        lower = persona_type.lower()
        if "sre" in lower:
            terms.extend(["reliability", "SLO", "incident"])
        if "platform" in lower:
            terms.extend(["developer experience", "internal platform"])
        if "devops" in lower:
            terms.extend(["CI/CD", "deployment"])
        return terms

    def _derive_avoid_terms(self, otel: str) -> List[str]:
        if "never" in otel or "aware" in otel:
            return ["span", "trace context", "baggage", "exemplars"]
        return []


class OpenAIEnrichmentProvider:
    """Generates enrichment with a JSON-mode chat completion."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ProviderError("OPENAI_API_KEY is required for OpenAIEnrichmentProvider")
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model or os.getenv("OPENAI_ENRICHMENT_MODEL", "gpt-4o-mini")

    async def enrich(self, enrichment_input: EnrichmentInput) -> PersonaEnrichment:
        prompt = f"""Analyze the following conference attendee profile and generate behavioral enrichment data.

Conference Context:
{enrichment_input.conference_context}

Attendee Profile:
{enrichment_input.attendee_profile}

Respond in JSON format:
{{
    "tone": "conversational tone, e.g. 'reserved, cautious'",
    "brevity": "short|medium",
    "skepticism": "low|medium|high",
    "venting_triggers": ["topics that make them vent"],
    "objections": ["likely objections"],
    "reveal_when_earned": ["what they only share after trust is built"],
    "mirror_terms": ["terms they use"],
    "avoid_terms": ["jargon that annoys them"],
    "prompt_addendum": "3-5 sentences on how to play this persona"
}}"""

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You analyze conference personas. Return only valid JSON."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.2,
                response_format={"type": "json_object"},
            )
            parsed = json.loads(response.choices[0].message.content or "")
        except Exception as e:
            logger.error(f"❌ [Enrichment] OpenAI enrichment failed for {enrichment_input.persona_id}: {e}")
            raise ProviderError(f"Enrichment failed: {e}") from e

        return self._from_payload(enrichment_input.persona_id, parsed)

    def _from_payload(self, persona_id: str, parsed: Dict[str, Any]) -> PersonaEnrichment:
        if not isinstance(parsed.get("prompt_addendum"), str):
            raise ProviderError("Enrichment payload missing prompt_addendum")

        def _strings(key: str) -> List[str]:
            value = parsed.get(key)
            return [str(v) for v in value] if isinstance(value, list) else []

        brevity = parsed.get("brevity") if parsed.get("brevity") in ("short", "medium") else "medium"
        skepticism = parsed.get("skepticism")
        if skepticism not in ("low", "medium", "high"):
            skepticism = "medium"

        return PersonaEnrichment(
            persona_id=persona_id,
            tone=str(parsed.get("tone") or "professional, measured"),
            brevity=brevity,
            skepticism=skepticism,
            venting_triggers=_strings("venting_triggers"),
            reveal_when_earned=_strings("reveal_when_earned"),
            resist_if_pitched=["direct sales pitches", "feature lists without context"],
            objections=_strings("objections"),
            mirror_terms=_strings("mirror_terms"),
            avoid_terms=_strings("avoid_terms"),
            prompt_addendum=parsed["prompt_addendum"],
            provider="openai",
        )


def get_enrichment_provider():
    """Select the enrichment provider from ENRICHMENT_PROVIDER (default: mock)."""
    provider_type = os.getenv("ENRICHMENT_PROVIDER", "mock")
    if provider_type == "openai":
        if os.getenv("OPENAI_API_KEY"):
            return OpenAIEnrichmentProvider()
        logger.warning("⚠️ [Enrichment] ENRICHMENT_PROVIDER=openai but OPENAI_API_KEY not set, using mock")
    return MockEnrichmentProvider()
