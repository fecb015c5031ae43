"""
Tests for the Anthropic and OpenAI text generators.
"""

import pytest
from unittest.mock import MagicMock

from interview_coach.services.text_generator import (
    AnthropicTextGenerator,
    GeneratorUnavailableError,
    OpenAITextGenerator,
    get_text_generator,
)

MESSAGES = [
    {"role": "system", "content": "You are an interview grader and coach."},
    {"role": "user", "content": "Interview question:\nWhy?"},
    {"role": "user", "content": "Return ONLY valid JSON for the schema."},
]


# =============================================================================
# Anthropic
# =============================================================================

class TestAnthropicTextGenerator:
    """Tests for the Anthropic-backed generator."""

    @pytest.mark.unit
    def test_missing_key_is_unavailable(self):
        with pytest.raises(GeneratorUnavailableError, match="ANTHROPIC_API_KEY"):
            AnthropicTextGenerator(api_key="  ", model="claude-haiku-4-5")

    @pytest.mark.unit
    async def test_system_prompt_split_and_turns_merged(self, mock_anthropic_client):
        generator = AnthropicTextGenerator(
            api_key="", model="claude-haiku-4-5", max_tokens=500, client=mock_anthropic_client
        )
        output = await generator.complete(MESSAGES)

        assert output == '{"question": "Mock question", "rubric_focus": "STAR"}'
        kwargs = mock_anthropic_client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-haiku-4-5"
        assert kwargs["max_tokens"] == 500
        assert kwargs["system"] == "You are an interview grader and coach."
        assert kwargs["messages"] == [
            {
                "role": "user",
                "content": "Interview question:\nWhy?\n\nReturn ONLY valid JSON for the schema.",
            }
        ]

    @pytest.mark.unit
    async def test_empty_content_returns_none(self, mock_anthropic_client):
        mock_anthropic_client.messages.create.return_value = MagicMock(content=[])
        generator = AnthropicTextGenerator(api_key="", model="m", client=mock_anthropic_client)

        assert await generator.complete(MESSAGES) is None

    @pytest.mark.unit
    async def test_client_errors_propagate(self, mock_anthropic_client):
        mock_anthropic_client.messages.create.side_effect = RuntimeError("overloaded")
        generator = AnthropicTextGenerator(api_key="", model="m", client=mock_anthropic_client)

        with pytest.raises(RuntimeError, match="overloaded"):
            await generator.complete(MESSAGES)


# =============================================================================
# OpenAI
# =============================================================================

class TestOpenAITextGenerator:
    """Tests for the OpenAI-backed generator."""

    @pytest.mark.unit
    def test_missing_key_is_unavailable(self):
        with pytest.raises(GeneratorUnavailableError, match="OPENAI_API_KEY"):
            OpenAITextGenerator(api_key="", model="gpt-4o-mini")

    @pytest.mark.unit
    async def test_messages_forwarded(self, mock_openai_client):
        generator = OpenAITextGenerator(api_key="", model="gpt-4o-mini", client=mock_openai_client)
        output = await generator.complete(MESSAGES)

        assert output == '{"question": "Mock question", "rubric_focus": "STAR"}'
        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == MESSAGES


# =============================================================================
# Factory
# =============================================================================

class TestGetTextGenerator:
    """Tests for building the configured generator."""

    @pytest.mark.unit
    def test_no_credentials_returns_none(self, test_settings):
        assert get_text_generator(test_settings) is None

    @pytest.mark.unit
    def test_openai_without_key_returns_none(self, test_settings):
        config = test_settings.model_copy(update={"llm_provider": "openai"})
        assert get_text_generator(config) is None

    @pytest.mark.unit
    def test_anthropic_with_quoted_key(self, test_settings):
        config = test_settings.model_copy(update={"anthropic_api_key": '"sk-ant-test"'})
        generator = get_text_generator(config)

        assert isinstance(generator, AnthropicTextGenerator)
        assert generator.model == config.model_interview
        assert generator.max_tokens == config.llm_max_tokens

    @pytest.mark.unit
    def test_openai_with_key(self, test_settings):
        config = test_settings.model_copy(
            update={"llm_provider": "openai", "openai_api_key": "sk-test"}
        )
        generator = get_text_generator(config)

        assert isinstance(generator, OpenAITextGenerator)
        assert generator.model == "gpt-4o-mini"
