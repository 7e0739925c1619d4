"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from airfine.config import Settings

ENV_VARS = (
    "AIRFINE_OPENAI_API_KEY",
    "AIRFINE_CLAUDE_API_KEY",
    "AIRFINE_GEMINI_API_KEY",
    "AIRFINE_DEFAULT_PROVIDER",
    "AIRFINE_DEFAULT_MODELS",
    "AIRFINE_PROVIDER_PRIORITY",
    "AIRFINE_REQUEST_TIMEOUT",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config file at a temp path and clear AIRFINE_* variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config_path = tmp_path / "airfine" / "config.json"
    monkeypatch.setenv("AIRFINE_CONFIG", str(config_path))
    return config_path


# === Settings fixtures ===


@pytest.fixture
def all_keys_settings() -> Settings:
    """Settings with a key for every provider."""
    return Settings(
        openai_api_key="sk-openai-test",
        claude_api_key="sk-ant-test",
        gemini_api_key="AIza-test",
    )


@pytest.fixture
def claude_only_settings() -> Settings:
    """Settings with only a Claude key."""
    return Settings(claude_api_key="sk-ant-test")


@pytest.fixture
def empty_settings() -> Settings:
    """Settings without any API key."""
    return Settings()
