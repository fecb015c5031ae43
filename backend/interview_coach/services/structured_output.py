"""Structured-output resolver.

Turns raw text-generator output into a validated pydantic object:

1. Call the generator. If it is unavailable, raises or returns nothing, the
   resolution fails at once; no retry is spent on a dead generator.
2. Parse the output as JSON (structured values are accepted as-is), falling
   back to the outermost ``{...}`` span for prose- or fence-wrapped payloads.
3. Validate against the expected schema.
4. If that fails and attempts remain, resend the original messages plus a
   strict-JSON reminder.

The resolver never fabricates content. A failed result tells the caller to
substitute its own deterministic fallback.
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from interview_coach.agents.prompts import STRICT_JSON_REMINDER, ChatMessage
from interview_coach.services.text_generator import TextGenerator
from interview_coach.utils.text import safe_json_parse

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MAX_ATTEMPTS = 2


@dataclass
class ResolveResult(Generic[T]):
    """Either success(value) or failure(reason)."""

    ok: bool
    value: T | None = None
    reason: str = ""
    attempts: int = 0

    @classmethod
    def success(cls, value: T, attempts: int) -> "ResolveResult[T]":
        return cls(ok=True, value=value, attempts=attempts)

    @classmethod
    def failure(cls, reason: str, attempts: int) -> "ResolveResult[T]":
        return cls(ok=False, reason=reason, attempts=attempts)


class StructuredOutputResolver:
    """Bounded-retry resolution of generator output into a schema."""

    def __init__(
        self,
        generator: TextGenerator | None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.generator = generator
        self.max_attempts = max_attempts

    async def _generate(self, messages: list[ChatMessage]) -> str | dict[str, Any] | None:
        """Call the generator, mapping every failure to None."""
        if self.generator is None:
            return None
        try:
            raw = await self.generator.complete(messages)
        except Exception as e:
            logger.warning(f"[StructuredOutputResolver] Generator call failed: {e}")
            return None
        return raw or None

    @staticmethod
    def _coerce(raw: str | dict[str, Any], schema: type[T]) -> tuple[T | None, str]:
        parsed = safe_json_parse(raw)
        if not parsed.ok:
            return None, f"invalid JSON: {parsed.error}"
        if not isinstance(parsed.value, dict):
            return None, f"expected a JSON object, got {type(parsed.value).__name__}"
        try:
            return schema.model_validate(parsed.value), ""
        except ValidationError as e:
            return None, f"schema mismatch: {e.error_count()} error(s)"

    async def resolve(self, messages: list[ChatMessage], schema: type[T]) -> ResolveResult[T]:
        """
        Obtain a ``schema`` instance from the generator.

        Args:
            messages: The assembled prompt messages
            schema: Pydantic model the output must validate against

        Returns:
            ResolveResult with the validated value, or a failure reason
        """
        conversation = list(messages)
        reason = ""
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                logger.info(
                    f"[StructuredOutputResolver] Retrying {schema.__name__} "
                    f"with strict JSON instruction ({reason})"
                )
                conversation = [*messages, {"role": "user", "content": STRICT_JSON_REMINDER}]

            raw = await self._generate(conversation)
            if raw is None:
                return ResolveResult.failure("generator unavailable", attempt)

            value, reason = self._coerce(raw, schema)
            if value is not None:
                return ResolveResult.success(value, attempt)

        logger.warning(
            f"[StructuredOutputResolver] Could not resolve {schema.__name__} "
            f"after {self.max_attempts} attempt(s): {reason}"
        )
        return ResolveResult.failure(reason, self.max_attempts)
