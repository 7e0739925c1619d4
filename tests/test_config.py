"""Tests for configuration loading and storage."""

import json
import os
import stat

import pytest

from airfine.config import (
    Settings,
    default_config_path,
    load_settings,
    read_config_file,
    write_config_file,
)
from airfine.errors import ConfigurationError


# === Settings Tests ===


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults(self, empty_settings):
        """Settings without values have no credentials."""
        assert empty_settings.credentialed_providers() == []
        assert empty_settings.default_provider is None
        assert empty_settings.provider_priority == ["claude", "openai", "gemini"]
        assert empty_settings.request_timeout == 120

    def test_blank_key_is_not_a_credential(self):
        """Whitespace-only keys do not count."""
        settings = Settings(openai_api_key="   ", gemini_api_key="AIza-test")
        assert settings.api_key_for("openai") is None
        assert settings.credentialed_providers() == ["gemini"]

    def test_credentialed_providers_in_priority_order(self, all_keys_settings):
        """Credentialed providers follow the fallback priority."""
        assert all_keys_settings.credentialed_providers() == ["claude", "openai", "gemini"]

    def test_partial_priority_is_completed(self):
        """Providers missing from a custom priority are appended."""
        settings = Settings(provider_priority=["gemini", "gemini"])
        assert settings.provider_priority == ["gemini", "claude", "openai"]

    def test_blank_default_provider(self):
        """An empty default provider means none."""
        assert Settings(default_provider="").default_provider is None

    def test_env_variables(self, monkeypatch):
        """AIRFINE_* variables provide values."""
        monkeypatch.setenv("AIRFINE_OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("AIRFINE_DEFAULT_PROVIDER", "openai")
        settings = Settings()
        assert settings.api_key_for("openai") == "sk-env"
        assert settings.default_provider == "openai"


# === Config file Tests ===


class TestConfigFile:
    """Tests for reading and writing the config file."""

    def test_default_path_from_env(self, isolated_config):
        """AIRFINE_CONFIG overrides the default location."""
        assert default_config_path() == isolated_config

    def test_missing_file(self, isolated_config):
        """A missing file yields empty settings."""
        assert read_config_file(isolated_config) == {}
        assert load_settings().credentialed_providers() == []

    def test_write_and_load(self, isolated_config):
        """Written values are loaded back, file readable by owner only."""
        write_config_file(
            {
                "claude_api_key": "sk-ant-test",
                "default_provider": "claude",
                "default_models": {"claude": "claude-3-5-haiku-latest"},
                "openai_api_key": "",
            },
            isolated_config,
        )

        stored = json.loads(isolated_config.read_text())
        assert "openai_api_key" not in stored
        assert stat.S_IMODE(os.stat(isolated_config).st_mode) == 0o600

        settings = load_settings(isolated_config)
        assert settings.api_key_for("claude") == "sk-ant-test"
        assert settings.default_provider == "claude"
        assert settings.default_model_for("claude") == "claude-3-5-haiku-latest"

    def test_legacy_camel_case_keys(self, isolated_config):
        """camelCase keys from older config files are understood."""
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text(json.dumps({"geminiApiKey": "AIza-test", "defaultProvider": "gemini"}))

        settings = load_settings(isolated_config)
        assert settings.api_key_for("gemini") == "AIza-test"
        assert settings.default_provider == "gemini"

    def test_file_beats_environment(self, isolated_config, monkeypatch):
        """File values take precedence over environment variables."""
        monkeypatch.setenv("AIRFINE_CLAUDE_API_KEY", "sk-ant-env")
        write_config_file({"claude_api_key": "sk-ant-file"}, isolated_config)
        assert load_settings(isolated_config).api_key_for("claude") == "sk-ant-file"

    def test_invalid_json(self, isolated_config):
        """A corrupt file raises ConfigurationError."""
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text("{not json")
        with pytest.raises(ConfigurationError, match="Failed to read configuration file"):
            load_settings(isolated_config)

    def test_not_an_object(self, isolated_config):
        """A JSON array is not a valid config file."""
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text("[]")
        with pytest.raises(ConfigurationError, match="must contain a JSON object"):
            read_config_file(isolated_config)

    def test_invalid_values(self, isolated_config):
        """Unknown providers in the file raise ConfigurationError."""
        write_config_file({"default_provider": "mistral"}, isolated_config)
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_settings(isolated_config)

    def test_unparseable_env_value(self, isolated_config, monkeypatch):
        """A complex env value that is not JSON raises ConfigurationError."""
        monkeypatch.setenv("AIRFINE_DEFAULT_MODELS", "gpt-4o")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_settings(isolated_config)

    def test_created_owner_only_under_open_umask(self, isolated_config):
        """The file is owner-only even when the umask allows group/other access."""
        previous = os.umask(0)
        try:
            write_config_file({"openai_api_key": "sk-openai-test"}, isolated_config)
        finally:
            os.umask(previous)

        assert stat.S_IMODE(os.stat(isolated_config).st_mode) == 0o600

    def test_existing_file_permissions_tightened(self, isolated_config):
        """Rewriting a world-readable file restricts it to the owner."""
        isolated_config.parent.mkdir(parents=True)
        isolated_config.write_text("{}")
        os.chmod(isolated_config, 0o644)

        write_config_file({"openai_api_key": "sk-openai-test"}, isolated_config)

        assert stat.S_IMODE(os.stat(isolated_config).st_mode) == 0o600
        assert json.loads(isolated_config.read_text()) == {"openai_api_key": "sk-openai-test"}
