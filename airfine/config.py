"""Application configuration using pydantic-settings.

Settings come from the JSON config file written by ``airfine setup``;
environment variables prefixed with ``AIRFINE_`` fill in anything the
file does not set.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from airfine.errors import ConfigurationError

logger = logging.getLogger(__name__)

ProviderName = Literal["openai", "claude", "gemini"]
PROVIDER_NAMES: tuple[str, ...] = ("openai", "claude", "gemini")

# Fallback order when neither an override nor the default provider is usable
DEFAULT_PROVIDER_PRIORITY: list[str] = ["claude", "openai", "gemini"]

CONFIG_ENV_VAR = "AIRFINE_CONFIG"

# camelCase keys written by earlier releases
LEGACY_KEYS = {
    "openaiApiKey": "openai_api_key",
    "claudeApiKey": "claude_api_key",
    "geminiApiKey": "gemini_api_key",
    "defaultProvider": "default_provider",
    "defaultModels": "default_models",
}


class Settings(BaseSettings):
    """Credentials and provider defaults for one invocation."""

    model_config = SettingsConfigDict(
        env_prefix="AIRFINE_",
        case_sensitive=False,
        extra="ignore",
    )

    # API keys
    openai_api_key: str = ""
    claude_api_key: str = ""
    gemini_api_key: str = ""

    # Provider defaults
    default_provider: ProviderName | None = None
    default_models: dict[str, str] = {}
    provider_priority: list[ProviderName] = list(DEFAULT_PROVIDER_PRIORITY)

    # HTTP
    request_timeout: int = 120  # Seconds per transform call

    @field_validator("default_provider", mode="before")
    @classmethod
    def _blank_provider_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("default_models")
    @classmethod
    def _known_model_providers(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = sorted(set(value) - set(PROVIDER_NAMES))
        if unknown:
            raise ValueError(f"default_models has unknown providers: {', '.join(unknown)}")
        return {name: model for name, model in value.items() if model and model.strip()}

    @field_validator("provider_priority")
    @classmethod
    def _complete_priority(cls, value: list[str]) -> list[str]:
        # Deduplicate, then append providers the user left out in canonical order
        ordered = list(dict.fromkeys(value))
        ordered.extend(name for name in DEFAULT_PROVIDER_PRIORITY if name not in ordered)
        return ordered

    def api_key_for(self, provider: str) -> str | None:
        """Return the API key for a provider, or None if absent or blank."""
        if provider not in PROVIDER_NAMES:
            return None
        key = getattr(self, f"{provider}_api_key", "") or ""
        return key.strip() or None

    def credentialed_providers(self) -> list[str]:
        """Providers with an API key, in fallback priority order."""
        return [name for name in self.provider_priority if self.api_key_for(name)]

    def default_model_for(self, provider: str) -> str | None:
        """Configured default model for a provider, if any."""
        return self.default_models.get(provider)


def default_config_path() -> Path:
    """Return the config file path (AIRFINE_CONFIG or ~/.config/airfine/config.json)."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "airfine" / "config.json"


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    """Read the raw config file into a dict with snake_case keys.

    Args:
        path: Config file path, defaults to default_config_path()

    Returns:
        The stored values, or an empty dict if the file does not exist

    Raises:
        ConfigurationError: If the file cannot be read or is not a JSON object
    """
    path = path or default_config_path()
    if not path.exists():
        logger.debug(f"No configuration file at {path}")
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to read configuration file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a JSON object")

    return {LEGACY_KEYS.get(key, key): value for key, value in raw.items()}


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    """Write config values to the JSON file, readable by the owner only.

    Returns:
        The path written
    """
    path = path or default_config_path()
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created configuration directory: {path.parent}")

    cleaned = {key: value for key, value in data.items() if value not in (None, "", {}, [])}
    # Owner-only from creation; fchmod also tightens a file that already existed
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    os.fchmod(fd, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(json.dumps(cleaned, indent=2) + "\n")
    return path


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from the config file and environment.

    File values take precedence over AIRFINE_* environment variables.

    Raises:
        ConfigurationError: If the file is unreadable or holds invalid values
    """
    path = path or default_config_path()
    data = read_config_file(path)
    try:
        return Settings(**data)
    except (ValidationError, SettingsError) as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e
