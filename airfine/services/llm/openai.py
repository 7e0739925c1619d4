"""OpenAI chat completions provider."""

import logging

from airfine.errors import ProviderError

from .base import DEFAULT_TEMPERATURE, BaseLLMProvider, LLMResponse, has_context

logger = logging.getLogger(__name__)

# OpenAI API endpoints
OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_MODELS_URL = "https://api.openai.com/v1/models"

# o1/o3 reasoning models reject the temperature parameter
REASONING_MODEL_PREFIX = "o"


class OpenAIProvider(BaseLLMProvider):
    """OpenAI provider using the chat completions API.

    Context is sent as a dedicated "developer" role message ahead of
    the user prompt.
    """

    provider_name = "openai"
    fallback_model = "gpt-4o"

    def supports_temperature(self, model: str) -> bool:
        return not model.startswith(REASONING_MODEL_PREFIX)

    def build_payload(self, prompt: str, context: str | None, model: str) -> dict:
        """Build the chat completions request body."""
        messages = []
        if has_context(context):
            messages.append({"role": "developer", "content": context})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": model,
            "messages": messages,
        }
        if self.supports_temperature(model):
            payload["temperature"] = DEFAULT_TEMPERATURE
        return payload

    async def transform(self, prompt: str, context: str | None, model: str) -> LLMResponse:
        """Generate text using OpenAI.

        Args:
            prompt: User prompt
            context: Optional developer instruction
            model: Model identifier

        Returns:
            LLMResponse with generated text
        """
        model = model or self.get_default_model()
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            data = await self._post_json(
                OPENAI_CHAT_URL,
                self.build_payload(prompt, context, model),
                headers=headers,
            )
        except ProviderError as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        return self._parse_response(data, model)

    def _build_response(self, data: dict, model: str) -> LLMResponse:
        content, finish_reason = self._extract_text(data)
        usage = data.get("usage") or {}

        return LLMResponse(
            text=content or None,
            model=data.get("model") or model,
            tokens_used=usage.get("total_tokens"),
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            metadata={
                "provider": self.provider_name,
                "id": data.get("id"),
                "finish_reason": finish_reason,
            },
        )

    def _extract_text(self, data: dict) -> tuple[str | None, str | None]:
        """Return (content, finish_reason) of the first choice."""
        if "choices" not in data:
            raise self._malformed("missing 'choices'")
        choices = data["choices"] or []
        if not choices:
            return None, None
        try:
            choice = choices[0]
            message = choice.get("message") or {}
            return message.get("content"), choice.get("finish_reason")
        except (AttributeError, TypeError, IndexError) as e:
            raise self._malformed(str(e)) from e

    async def _fetch_model_ids(self) -> list[str]:
        data = await self._get_json(
            OPENAI_MODELS_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        return [model["id"] for model in data["data"]]

    def _is_listed_model(self, model_id: str) -> bool:
        # Main chat models only, not embeddings/tts/fine-tunes
        return model_id.startswith("gpt-") or model_id.startswith(REASONING_MODEL_PREFIX)
