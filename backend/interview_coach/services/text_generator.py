"""Text generation collaborators (Anthropic and OpenAI chat models).

A text generator is an opaque, unreliable function: prompt messages in, raw
text out. It may be missing credentials, raise, or return prose instead of
JSON; the structured-output resolver deals with all of that.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import openai
from anthropic import AsyncAnthropic

from interview_coach.agents.prompts import ChatMessage
from interview_coach.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class GeneratorUnavailableError(RuntimeError):
    """The text generator cannot be called (e.g. no API key configured)."""


class TextGenerator(ABC):
    """Base class for chat-model backed text generators."""

    def __init__(self, model: str, max_tokens: int = 900, temperature: float = 0.6) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def complete(self, messages: list[ChatMessage]) -> str | dict[str, Any] | None:
        """Run one generation call and return the raw output."""
        pass


def _clean_api_key(api_key: str) -> str:
    # Strip quotes if present (common .env issue)
    return api_key.strip().strip('"').strip("'")


def _merge_consecutive(messages: list[ChatMessage]) -> list[dict[str, str]]:
    """Collapse consecutive same-role turns into one turn."""
    merged: list[dict[str, str]] = []
    for message in messages:
        if merged and merged[-1]["role"] == message["role"]:
            merged[-1]["content"] += "\n\n" + message["content"]
        else:
            merged.append({"role": message["role"], "content": message["content"]})
    return merged


class AnthropicTextGenerator(TextGenerator):
    """Text generator backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 900,
        temperature: float = 0.6,
        timeout: float = 60.0,
        client: AsyncAnthropic | None = None,
    ) -> None:
        super().__init__(model, max_tokens, temperature)
        api_key = _clean_api_key(api_key)
        if client is None and not api_key:
            raise GeneratorUnavailableError("ANTHROPIC_API_KEY is not set")
        self.client = client or AsyncAnthropic(api_key=api_key, timeout=timeout)
        logger.info(f"[{self.__class__.__name__}] Using model: {self.model}")

    async def complete(self, messages: list[ChatMessage]) -> str | None:
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        turns = _merge_consecutive([m for m in messages if m["role"] != "system"])

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": turns,
        }
        if system:
            kwargs["system"] = system

        response = await self.client.messages.create(**kwargs)
        texts = [block.text for block in response.content if getattr(block, "text", None)]
        return "".join(texts) or None


class OpenAITextGenerator(TextGenerator):
    """Text generator backed by the OpenAI Chat Completions API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 900,
        temperature: float = 0.6,
        timeout: float = 60.0,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        super().__init__(model, max_tokens, temperature)
        api_key = _clean_api_key(api_key)
        if client is None and not api_key:
            raise GeneratorUnavailableError("OPENAI_API_KEY is not set")
        self.client = client or openai.AsyncOpenAI(api_key=api_key, timeout=timeout)
        logger.info(f"[{self.__class__.__name__}] Using model: {self.model}")

    async def complete(self, messages: list[ChatMessage]) -> str | None:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": m["role"], "content": m["content"]} for m in messages],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return response.choices[0].message.content


def get_text_generator(config: Settings | None = None) -> TextGenerator | None:
    """
    Build the configured text generator.

    Returns None when the provider has no credentials, which the resolver
    treats as "generator unavailable".
    """
    config = config or default_settings
    try:
        if config.llm_provider == "openai":
            return OpenAITextGenerator(
                api_key=config.openai_api_key,
                model=config.model_interview_openai,
                max_tokens=config.llm_max_tokens,
                temperature=config.llm_temperature,
                timeout=config.llm_timeout_seconds,
            )
        return AnthropicTextGenerator(
            api_key=config.anthropic_api_key,
            model=config.model_interview,
            max_tokens=config.llm_max_tokens,
            temperature=config.llm_temperature,
            timeout=config.llm_timeout_seconds,
        )
    except GeneratorUnavailableError as e:
        logger.warning(f"[TextGenerator] {e}; using fallback interview content")
        return None
