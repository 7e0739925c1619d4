"""Text transformation: resolves a provider and runs a single request."""

import logging
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, Field

from airfine.config import Settings
from airfine.errors import ConfigurationError, InvalidInputError, ProviderError

from .llm import BaseLLMProvider, create_provider, resolve_model, resolve_provider

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "You are a skilled editor. Please improve the following text."


class TransformRequest(BaseModel):
    """A text transformation request."""

    prompt: str = Field("", description="Text to transform")
    context: str | None = Field(None, description="Optional context/system instruction")
    provider: str | None = Field(None, description="Provider override")
    model: str | None = Field(None, description="Model override")


class OutcomeStatus(str, Enum):
    """Terminal states of a transformation."""

    SUCCESS = "success"
    EMPTY = "empty"  # Vendor answered without text
    FAILURE = "failure"


class TransformOutcome(BaseModel):
    """Result of one transformation attempt."""

    status: OutcomeStatus
    text: str | None = None
    message: str | None = None
    provider: str | None = None
    model: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS


def select_backend(request: TransformRequest, settings: Settings) -> tuple[BaseLLMProvider, str]:
    """Validate the request and resolve the backend and model to use.

    Raises:
        ConfigurationError: If no API key is configured or no provider can be used
        InvalidInputError: If the prompt is empty
    """
    available = settings.credentialed_providers()
    if not available:
        raise ConfigurationError("No API keys configured. Run `airfine setup` to configure.")

    if not request.prompt or not request.prompt.strip():
        raise InvalidInputError("No prompt specified. Use the --prompt option or pipe text on stdin.")

    name = resolve_provider(
        request.provider,
        settings.default_provider,
        available,
        settings.provider_priority,
    )
    provider = create_provider(name, settings)
    if provider is None:
        raise ConfigurationError(f"Provider {name} is not available")

    return provider, resolve_model(provider, request.model)


async def run(
    request: TransformRequest,
    settings: Settings,
    on_start: Callable[[str, str], None] | None = None,
) -> TransformOutcome:
    """Run one transformation.

    No retries: a failed vendor call is terminal.

    Args:
        request: Prompt, context and optional overrides
        settings: Credentials and defaults
        on_start: Called with (provider, model) right before the vendor call

    Returns:
        TransformOutcome with status success, empty or failure

    Raises:
        ConfigurationError: If no provider can be used
        InvalidInputError: If the prompt is empty
    """
    provider, model = select_backend(request, settings)
    name = provider.provider_name

    logger.info(f"Starting text transformation using {name} ({model})")
    if on_start:
        on_start(name, model)

    try:
        response = await provider.transform(request.prompt, request.context, model)
    except ProviderError as e:
        logger.debug(f"Transformation failed on {name}: {e}")
        return TransformOutcome(
            status=OutcomeStatus.FAILURE,
            message=str(e),
            provider=name,
            model=model,
        )

    if response.is_empty:
        logger.debug(f"{name} returned no text")
        return TransformOutcome(status=OutcomeStatus.EMPTY, provider=name, model=model)

    logger.debug(f"{name} response: {response.tokens_used} tokens")
    return TransformOutcome(
        status=OutcomeStatus.SUCCESS,
        text=response.text,
        provider=name,
        model=model,
    )
