"""Tests for the transformation service."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from airfine.config import Settings
from airfine.errors import AuthenticationError, ConfigurationError, InvalidInputError, ProviderError
from airfine.services import OutcomeStatus, TransformRequest, run, select_backend
from airfine.services.llm import ClaudeProvider, GeminiProvider, LLMResponse, OpenAIProvider


# === select_backend Tests ===


class TestSelectBackend:
    """Tests for backend selection."""

    def test_no_keys(self, empty_settings):
        """Without any key selection fails."""
        with pytest.raises(ConfigurationError, match="No API keys configured"):
            select_backend(TransformRequest(prompt="Hello"), empty_settings)

    def test_no_keys_checked_before_prompt(self, empty_settings):
        """A missing key is reported before an empty prompt."""
        with pytest.raises(ConfigurationError):
            select_backend(TransformRequest(prompt=""), empty_settings)

    def test_empty_prompt(self, claude_only_settings):
        """An empty or whitespace prompt is rejected."""
        with pytest.raises(InvalidInputError, match="No prompt specified"):
            select_backend(TransformRequest(prompt=""), claude_only_settings)
        with pytest.raises(InvalidInputError):
            select_backend(TransformRequest(prompt="  \n"), claude_only_settings)

    def test_override_without_key(self, claude_only_settings):
        """Requesting openai with only a claude key uses claude."""
        provider, model = select_backend(
            TransformRequest(prompt="Hello", provider="openai"), claude_only_settings
        )
        assert isinstance(provider, ClaudeProvider)
        assert model == "claude-3-7-sonnet-latest"

    def test_gemini_only(self):
        """Only a gemini key selects gemini with its default model."""
        provider, model = select_backend(TransformRequest(prompt="Hello"), Settings(gemini_api_key="AIza-test"))
        assert isinstance(provider, GeminiProvider)
        assert model == "gemini-2.0-flash"

    def test_model_override(self, all_keys_settings):
        """A model override is passed through."""
        provider, model = select_backend(
            TransformRequest(prompt="Hello", provider="openai", model="o3-mini"), all_keys_settings
        )
        assert isinstance(provider, OpenAIProvider)
        assert model == "o3-mini"


# === run Tests ===


class TestRun:
    """Tests for running a transformation."""

    @pytest.mark.asyncio
    async def test_success(self, claude_only_settings):
        """A vendor answer with text is a success."""
        transform = AsyncMock(return_value=LLMResponse(text="Better text", model="claude-3-7-sonnet-latest"))
        on_start = MagicMock()

        with patch.object(ClaudeProvider, "transform", transform):
            outcome = await run(
                TransformRequest(prompt="Bad text", context="Improve it"),
                claude_only_settings,
                on_start=on_start,
            )

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.ok
        assert outcome.text == "Better text"
        assert outcome.provider == "claude"
        on_start.assert_called_once_with("claude", "claude-3-7-sonnet-latest")
        transform.assert_awaited_once_with("Bad text", "Improve it", "claude-3-7-sonnet-latest")

    @pytest.mark.asyncio
    async def test_empty_prompt_makes_no_call(self, all_keys_settings):
        """An empty prompt never reaches any vendor, even with every key configured."""
        openai_transform = AsyncMock()
        claude_transform = AsyncMock()
        gemini_transform = AsyncMock()

        with patch.object(OpenAIProvider, "transform", openai_transform), \
             patch.object(ClaudeProvider, "transform", claude_transform), \
             patch.object(GeminiProvider, "transform", gemini_transform):
            with pytest.raises(InvalidInputError):
                await run(TransformRequest(prompt=""), all_keys_settings)

        openai_transform.assert_not_awaited()
        claude_transform.assert_not_awaited()
        gemini_transform.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_response(self, claude_only_settings):
        """A vendor answer without text is empty, not a success."""
        transform = AsyncMock(return_value=LLMResponse(text=None, model="claude-3-7-sonnet-latest"))

        with patch.object(ClaudeProvider, "transform", transform):
            outcome = await run(TransformRequest(prompt="Hello"), claude_only_settings)

        assert outcome.status == OutcomeStatus.EMPTY
        assert not outcome.ok
        assert outcome.text is None

    @pytest.mark.asyncio
    async def test_provider_failure(self, claude_only_settings):
        """Vendor errors become a failure carrying the vendor message."""
        transform = AsyncMock(side_effect=AuthenticationError("invalid x-api-key", provider="claude", status_code=401))

        with patch.object(ClaudeProvider, "transform", transform):
            outcome = await run(TransformRequest(prompt="Hello"), claude_only_settings)

        assert outcome.status == OutcomeStatus.FAILURE
        assert outcome.message == "invalid x-api-key"
        transform.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_retry(self, claude_only_settings):
        """A failed call is not retried."""
        transform = AsyncMock(side_effect=ProviderError("overloaded", provider="claude", status_code=529))

        with patch.object(ClaudeProvider, "transform", transform):
            outcome = await run(TransformRequest(prompt="Hello"), claude_only_settings)

        assert outcome.status == OutcomeStatus.FAILURE
        assert transform.await_count == 1

    @pytest.mark.asyncio
    async def test_malformed_vendor_body_is_failure(self):
        """A vendor body with wrong field types becomes a failure, not an exception."""
        settings = Settings(openai_api_key="sk-test")
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "choices": [{"message": {"content": [{"type": "text", "text": "hi"}]}}],
            "model": None,
        }
        mock_response.raise_for_status = MagicMock()

        with patch("airfine.services.llm.base.httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=mock_response
            )

            outcome = await run(TransformRequest(prompt="Hello"), settings)

        assert outcome.status == OutcomeStatus.FAILURE
        assert outcome.message.startswith("Malformed openai response")
