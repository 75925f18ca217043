"""
Chat Providers

Generative fallback for attendee replies, used only when the template path
has no confident match.

Providers:
1. MockChatProvider - deterministic placeholder text (default)
2. OpenAIChatProvider - chat completion via AsyncOpenAI

Select with CHAT_PROVIDER=openai plus OPENAI_API_KEY; anything else yields
the mock provider.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI

from booth_simulator.errors import ProviderError

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass
class ChatInput:
    system_prompt: str
    conversation: List[Dict[str, str]]  # [{"role": "user"|"assistant", "content": ...}]
    session_id: str


@dataclass
class ChatResult:
    text: str
    provider: str  # "openai" | "mock"
    model: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())


class MockChatProvider:
    """Deterministic placeholder responses for development and tests."""

    def __init__(self, product_name: str = "Honeycomb"):
        self.product_name = product_name

    async def generate(self, chat_input: ChatInput) -> ChatResult:
        user_messages = [m["content"] for m in chat_input.conversation if m.get("role") == "user"]
        last_user = user_messages[-1] if user_messages else None

        response = "I appreciate you reaching out. "
        if last_user is None:
            response += "How can I help you today?"
        elif self.product_name.lower() in last_user.lower():
            response += "Tell me more about your observability challenges and what you're hoping to achieve."
        elif "opentelemetry" in last_user.lower():
            response += "OpenTelemetry is interesting. What's your current setup like?"
        else:
            response += "That's a good point. What made you think about that?"

        return ChatResult(text=response, provider="mock")


class OpenAIChatProvider:
    """Chat completion against the OpenAI API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ProviderError("OPENAI_API_KEY is required for OpenAIChatProvider")
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model or os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")

    async def generate(self, chat_input: ChatInput) -> ChatResult:
        messages = [{"role": "system", "content": chat_input.system_prompt}]
        messages.extend(chat_input.conversation)

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.4,
                max_tokens=300,
            )
        except Exception as e:
            # Never log the key, only the model and session
            logger.error(f"❌ [ChatProvider] OpenAI generation failed (model={self.model}, session={chat_input.session_id}): {e}")
            raise ProviderError(f"Chat generation failed: {e}") from e

        text = completion.choices[0].message.content if completion.choices else None
        if not text or not text.strip():
            raise ProviderError("No content in OpenAI response")

        return ChatResult(text=text.strip(), provider="openai", model=self.model)


def get_chat_provider(product_name: str = "Honeycomb"):
    """
    Chat provider from environment configuration.

    Defaults to MockChatProvider; CHAT_PROVIDER=openai without an API key
    also falls back to the mock.
    """
    if os.getenv("CHAT_PROVIDER") != "openai":
        return MockChatProvider(product_name)

    if not os.getenv("OPENAI_API_KEY"):
        logger.warning("⚠️ [ChatProvider] CHAT_PROVIDER=openai but OPENAI_API_KEY not set, using mock")
        return MockChatProvider(product_name)

    return OpenAIChatProvider()
