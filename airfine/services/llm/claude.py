"""Anthropic Claude messages provider."""

import logging

from airfine.errors import ProviderError

from .base import DEFAULT_TEMPERATURE, BaseLLMProvider, LLMResponse, has_context

logger = logging.getLogger(__name__)

# Anthropic API endpoints
ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_MODELS_URL = "https://api.anthropic.com/v1/models"
ANTHROPIC_VERSION = "2023-06-01"

# The messages API requires an explicit output limit
MAX_TOKENS = 4096


def wrap_context(context: str, prompt: str) -> str:
    """Prepend context to the prompt as a tagged block."""
    return f"<context>{context}</context>\n\n{prompt}"


class ClaudeProvider(BaseLLMProvider):
    """Anthropic provider using the messages API.

    Context travels inside the user message as a <context> block.
    """

    provider_name = "claude"
    fallback_model = "claude-3-7-sonnet-latest"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    def build_payload(self, prompt: str, context: str | None, model: str) -> dict:
        """Build the messages request body."""
        content = wrap_context(context, prompt) if has_context(context) else prompt

        payload = {
            "model": model,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": "user", "content": content}],
        }
        if self.supports_temperature(model):
            payload["temperature"] = DEFAULT_TEMPERATURE
        return payload

    async def transform(self, prompt: str, context: str | None, model: str) -> LLMResponse:
        """Generate text using Claude.

        Args:
            prompt: User prompt
            context: Optional context, wrapped in a <context> block
            model: Model identifier

        Returns:
            LLMResponse with the text blocks joined by newlines
        """
        model = model or self.get_default_model()

        try:
            data = await self._post_json(
                ANTHROPIC_MESSAGES_URL,
                self.build_payload(prompt, context, model),
                headers=self._headers(),
            )
        except ProviderError as e:
            logger.error(f"Claude API error: {e}")
            raise

        return self._parse_response(data, model)

    def _build_response(self, data: dict, model: str) -> LLMResponse:
        usage = data.get("usage") or {}
        input_tokens = usage.get("input_tokens")
        output_tokens = usage.get("output_tokens")
        total = input_tokens + output_tokens if input_tokens is not None and output_tokens is not None else None

        return LLMResponse(
            text=self._extract_text(data),
            model=data.get("model") or model,
            tokens_used=total,
            prompt_tokens=input_tokens,
            completion_tokens=output_tokens,
            metadata={
                "provider": self.provider_name,
                "id": data.get("id"),
                "stop_reason": data.get("stop_reason"),
            },
        )

    def _extract_text(self, data: dict) -> str | None:
        """Join the text content blocks with newlines."""
        if "content" not in data:
            raise self._malformed("missing 'content'")
        try:
            segments = [
                block.get("text", "")
                for block in data["content"] or []
                if block.get("type") == "text"
            ]
        except (AttributeError, TypeError) as e:
            raise self._malformed(str(e)) from e
        return "\n".join(segments) or None

    async def _fetch_model_ids(self) -> list[str]:
        data = await self._get_json(ANTHROPIC_MODELS_URL, headers=self._headers())
        return [model["id"] for model in data["data"]]

    def _is_listed_model(self, model_id: str) -> bool:
        return model_id.startswith("claude-")
