"""Provider and model resolution.

Precedence for the provider, first match wins:

1. The explicit override, if that provider has an API key
2. The configured default provider, if it has an API key
3. The first provider with an API key in the priority order
   (Settings.provider_priority, default claude, openai, gemini)
"""

import logging
from collections.abc import Iterable, Sequence

from airfine.config import DEFAULT_PROVIDER_PRIORITY, PROVIDER_NAMES
from airfine.errors import ConfigurationError

from .base import BaseLLMProvider

logger = logging.getLogger(__name__)


def resolve_provider(
    override: str | None,
    default_provider: str | None,
    available: Iterable[str],
    priority: Sequence[str] = DEFAULT_PROVIDER_PRIORITY,
) -> str:
    """Pick the provider to use.

    Args:
        override: Provider explicitly requested by the caller
        default_provider: Configured default provider
        available: Providers that have an API key
        priority: Fallback order among the known providers

    Returns:
        The resolved provider name

    Raises:
        ConfigurationError: If the override is not a known provider or no provider has a key
    """
    available = set(available)

    if override and override not in PROVIDER_NAMES:
        raise ConfigurationError(f"Unknown provider: {override}")

    if not available:
        raise ConfigurationError("No API keys configured. Run `airfine setup` to configure.")

    if override:
        if override in available:
            return override
        logger.warning(f"No API key for requested provider {override}, falling back")

    if default_provider and default_provider in available:
        return default_provider

    for name in priority:
        if name in available:
            return name

    # Providers missing from a custom priority list
    for name in PROVIDER_NAMES:
        if name in available:
            return name

    raise ConfigurationError("No API keys configured. Run `airfine setup` to configure.")


def resolve_model(provider: BaseLLMProvider, model_override: str | None) -> str:
    """Return the model override, or the provider's default model."""
    if model_override and model_override.strip():
        return model_override.strip()
    return provider.get_default_model()
