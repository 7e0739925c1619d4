"""Google Gemini generateContent provider."""

import logging

from airfine.errors import ProviderError

from .base import DEFAULT_TEMPERATURE, BaseLLMProvider, LLMResponse, has_context

logger = logging.getLogger(__name__)

# Gemini API endpoints
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODELS_URL = f"{GEMINI_API_URL}/models"


class GeminiProvider(BaseLLMProvider):
    """Gemini provider using the generateContent API.

    Context is carried as a preceding turn in the conversation history,
    the prompt is the final user turn. The API key goes in the "key"
    query parameter.
    """

    provider_name = "gemini"
    fallback_model = "gemini-2.0-flash"

    def build_payload(self, prompt: str, context: str | None, model: str) -> dict:
        """Build the generateContent request body."""
        contents = []
        if has_context(context):
            contents.append({"role": "user", "parts": [{"text": f"<context>{context}</context>"}]})
        contents.append({"role": "user", "parts": [{"text": prompt}]})

        payload: dict = {"contents": contents}
        if self.supports_temperature(model):
            payload["generationConfig"] = {"temperature": DEFAULT_TEMPERATURE}
        return payload

    async def transform(self, prompt: str, context: str | None, model: str) -> LLMResponse:
        """Generate text using Gemini.

        Args:
            prompt: User prompt
            context: Optional context, sent as a history turn
            model: Model identifier

        Returns:
            LLMResponse with generated text
        """
        model = model or self.get_default_model()
        model_path = model if model.startswith("models/") else f"models/{model}"

        try:
            data = await self._post_json(
                f"{GEMINI_API_URL}/{model_path}:generateContent",
                self.build_payload(prompt, context, model),
                params={"key": self.api_key},
            )
        except ProviderError as e:
            logger.error(f"Gemini API error: {e}")
            raise

        return self._parse_response(data, model)

    def _build_response(self, data: dict, model: str) -> LLMResponse:
        usage = data.get("usageMetadata") or {}

        return LLMResponse(
            text=self._extract_text(data),
            model=data.get("modelVersion") or model,
            tokens_used=usage.get("totalTokenCount"),
            prompt_tokens=usage.get("promptTokenCount"),
            completion_tokens=usage.get("candidatesTokenCount"),
            metadata={
                "provider": self.provider_name,
                "block_reason": (data.get("promptFeedback") or {}).get("blockReason"),
            },
        )

    def _extract_text(self, data: dict) -> str | None:
        """Concatenate the text parts of the first candidate."""
        candidates = data.get("candidates") or []
        if not candidates:
            # A blocked prompt comes back with promptFeedback and no candidates
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                logger.warning(f"Gemini returned no candidates (blockReason: {block_reason})")
            return None
        try:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            text = "".join(part.get("text", "") for part in parts if "text" in part)
        except (AttributeError, TypeError) as e:
            raise self._malformed(str(e)) from e
        return text or None

    async def _fetch_model_ids(self) -> list[str]:
        data = await self._get_json(GEMINI_MODELS_URL, params={"key": self.api_key})
        return [model["name"].replace("models/", "", 1) for model in data["models"]]

    def _is_listed_model(self, model_id: str) -> bool:
        return model_id.startswith("gemini-")
