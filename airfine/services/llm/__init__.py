"""LLM providers behind one interface.

This module provides a uniform backend contract for text transformation
across vendors, plus the registry and selection logic that picks one.

Providers:
    - OpenAIProvider: OpenAI chat completions
    - ClaudeProvider: Anthropic messages API
    - GeminiProvider: Google Gemini generateContent

Usage:
    from airfine.services.llm import create_provider, resolve_provider

    name = resolve_provider(None, settings.default_provider, settings.credentialed_providers())
    provider = create_provider(name, settings)

    response = await provider.transform(
        prompt="Fix the grammar in this sentence...",
        context="You are a skilled editor.",
        model=provider.get_default_model(),
    )
    print(response.text)
"""

from .base import BaseLLMProvider, LLMResponse
from .claude import ClaudeProvider
from .gemini import GeminiProvider
from .openai import OpenAIProvider
from .registry import (
    PROVIDERS,
    create_provider,
    get_model_suggestions,
    list_available_models,
)
from .selection import resolve_model, resolve_provider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "ClaudeProvider",
    "GeminiProvider",
    "PROVIDERS",
    "create_provider",
    "get_model_suggestions",
    "list_available_models",
    "resolve_model",
    "resolve_provider",
]
