"""Provider registry: maps provider names to backend classes.

Usage:
    from airfine.services.llm.registry import create_provider

    provider = create_provider("claude", settings)
    if provider:
        response = await provider.transform(prompt, context, provider.get_default_model())
"""

import asyncio
import logging

from airfine.config import Settings

from .base import BaseLLMProvider
from .claude import ClaudeProvider
from .gemini import GeminiProvider
from .openai import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[BaseLLMProvider]] = {
    "openai": OpenAIProvider,
    "claude": ClaudeProvider,
    "gemini": GeminiProvider,
}

PROVIDER_LABELS: dict[str, str] = {
    "openai": "OpenAI",
    "claude": "Claude",
    "gemini": "Gemini",
}

MODEL_SUGGESTIONS: dict[str, list[str]] = {
    "openai": ["gpt-4o", "gpt-4o-mini", "o1", "o1-mini", "o3-mini"],
    "claude": ["claude-3-7-sonnet-latest", "claude-3-5-sonnet-latest", "claude-3-5-haiku-latest"],
    "gemini": ["gemini-2.0-flash", "gemini-2.0-flash-lite", "gemini-1.5-pro"],
}


def create_provider(name: str, settings: Settings) -> BaseLLMProvider | None:
    """Create the backend for a provider name.

    Args:
        name: Provider identifier (openai, claude, gemini)
        settings: Credentials and defaults

    Returns:
        Configured provider, or None if the name is unknown or has no API key
    """
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        logger.error(f"Unknown provider: {name}")
        return None

    api_key = settings.api_key_for(name)
    if not api_key:
        logger.error(f"{PROVIDER_LABELS[name]} API key not found. Run `airfine setup` to configure.")
        return None

    return provider_cls(
        api_key=api_key,
        default_model=settings.default_model_for(name),
        timeout=settings.request_timeout,
    )


def get_model_suggestions(name: str) -> list[str]:
    """Curated model ids for a provider; empty for unknown providers."""
    return list(MODEL_SUGGESTIONS.get(name, []))


async def list_available_models(
    settings: Settings,
    providers: list[str] | None = None,
) -> dict[str, list[str]]:
    """List vendor models for every credentialed provider in parallel.

    A failing provider maps to an empty list and never affects the others.

    Args:
        settings: Credentials and defaults
        providers: Restrict to these provider names (default: all credentialed)

    Returns:
        Dict mapping provider name to sorted model ids
    """
    names = [
        name
        for name in settings.credentialed_providers()
        if providers is None or name in providers
    ]
    backends = [(name, create_provider(name, settings)) for name in names]
    backends = [(name, backend) for name, backend in backends if backend is not None]

    tasks = [backend.list_models() for _, backend in backends]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    models: dict[str, list[str]] = {}
    for (name, _), result in zip(backends, results):
        if isinstance(result, BaseException):
            logger.warning(f"Model listing failed for {name}: {result}")
            models[name] = []
        else:
            models[name] = result
    return models
