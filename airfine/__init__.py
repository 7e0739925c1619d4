"""airfine: a minimal LLM-based text refinement CLI."""

__version__ = "0.2.0"
