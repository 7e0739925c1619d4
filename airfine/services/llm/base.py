"""Base LLM provider interface."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from airfine.errors import AuthenticationError, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 120
LIST_MODELS_TIMEOUT = 10


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    text: str | None = Field(default=None, description="Generated text, None if the vendor returned none")
    model: str = Field(..., description="Model that generated the response")
    tokens_used: int | None = Field(default=None, description="Total tokens used")
    prompt_tokens: int | None = Field(default=None, description="Tokens in prompt")
    completion_tokens: int | None = Field(default=None, description="Tokens in completion")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider-specific metadata")

    @property
    def is_empty(self) -> bool:
        """True when the vendor produced no usable text."""
        return not self.text or not self.text.strip()


def has_context(context: str | None) -> bool:
    """Return True if context carries anything besides whitespace."""
    return bool(context and context.strip())


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers.

    Each provider must implement:
    - transform(): Send one prompt (with optional context) and return the text
    - _build_response(): Map the vendor body to an LLMResponse
    - _fetch_model_ids(): Raw model ids from the vendor's listing endpoint
    - _is_listed_model(): Which ids belong to the vendor's own model family

    A provider is bound to one API key for its lifetime and keeps no state
    between calls. Every network call opens its own httpx client.
    """

    # Provider metadata (override in subclass)
    provider_name: str = "base"
    fallback_model: str = ""

    def __init__(
        self,
        api_key: str,
        default_model: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """Initialize provider.

        Args:
            api_key: Vendor API key
            default_model: Configured default model, overrides the vendor fallback
            timeout: Request timeout in seconds for transform calls
        """
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout

    def get_default_model(self) -> str:
        """Return the configured default model, else the vendor fallback."""
        return self.default_model or self.fallback_model

    def supports_temperature(self, model: str) -> bool:
        """Whether the model accepts a sampling temperature."""
        return True

    @abstractmethod
    async def transform(self, prompt: str, context: str | None, model: str) -> LLMResponse:
        """Send a single-turn request to the vendor.

        Args:
            prompt: The user prompt
            context: Optional context/system instruction, skipped when blank
            model: Model identifier

        Returns:
            LLMResponse; its text is None when the vendor returned no text

        Raises:
            ProviderError: On transport failure, non-2xx status or malformed response
            AuthenticationError: If the vendor rejects the API key
        """
        pass

    @abstractmethod
    def _build_response(self, data: dict[str, Any], model: str) -> LLMResponse:
        """Map a decoded vendor body to an LLMResponse."""
        pass

    def _parse_response(self, data: dict[str, Any], model: str) -> LLMResponse:
        """Build the response, treating any unexpected field type as malformed.

        Raises:
            ProviderError: If the body does not fit the expected shape
        """
        try:
            return self._build_response(data, model)
        except (ValidationError, AttributeError, TypeError) as e:
            raise self._malformed(str(e)) from e

    @abstractmethod
    async def _fetch_model_ids(self) -> list[str]:
        """Fetch raw model identifiers from the vendor's listing endpoint."""
        pass

    @abstractmethod
    def _is_listed_model(self, model_id: str) -> bool:
        """Return True if the model id belongs to this vendor's family."""
        pass

    async def list_models(self) -> list[str]:
        """List available models, filtered to the vendor family and sorted.

        Model listing is advisory: any failure is logged and yields an empty list.

        Returns:
            Sorted list of model identifiers
        """
        try:
            model_ids = await self._fetch_model_ids()
            return sorted(
                model_id
                for model_id in model_ids
                if isinstance(model_id, str) and self._is_listed_model(model_id)
            )
        except (ProviderError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Error fetching {self.provider_name} models: {e}")
            return []

    async def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST a JSON payload and return the decoded JSON body."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, headers=headers, params=params, json=payload)
                return self._read_json(response)
        except httpx.RequestError as e:
            raise ProviderError(
                f"{self.provider_name} request failed: {str(e) or type(e).__name__}",
                provider=self.provider_name,
            ) from e

    async def _get_json(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """GET a URL and return the decoded JSON body."""
        try:
            async with httpx.AsyncClient(timeout=LIST_MODELS_TIMEOUT) as client:
                response = await client.get(url, headers=headers, params=params)
                return self._read_json(response)
        except httpx.RequestError as e:
            raise ProviderError(
                f"{self.provider_name} request failed: {str(e) or type(e).__name__}",
                provider=self.provider_name,
            ) from e

    def _read_json(self, response: httpx.Response) -> dict[str, Any]:
        """Check the status and decode a vendor response body."""
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            detail = _error_detail(e.response)
            error_cls = AuthenticationError if status_code in (401, 403) else ProviderError
            raise error_cls(detail, provider=self.provider_name, status_code=status_code) from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.provider_name} returned a response that is not JSON",
                provider=self.provider_name,
            ) from e

        if not isinstance(data, dict):
            raise ProviderError(
                f"{self.provider_name} returned an unexpected response shape",
                provider=self.provider_name,
            )
        return data

    def _malformed(self, what: str) -> ProviderError:
        return ProviderError(f"Malformed {self.provider_name} response: {what}", provider=self.provider_name)


def _error_detail(response: httpx.Response) -> str:
    """Extract the vendor's error message from an error response.

    All three vendors wrap errors as {"error": {"message": ...}}.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])

    text = (response.text or "").strip()
    if text:
        return f"HTTP {response.status_code}: {text[:500]}"
    return f"HTTP {response.status_code}"
