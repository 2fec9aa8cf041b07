"""Tests for configuration loading."""

import pytest

from wabakit.config import DEFAULT_API_VERSION, DEFAULT_BASE_URL, WabaConfig, load_config
from wabakit.errors import ConfigurationError


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()

        assert config == WabaConfig()
        assert config.api_version == DEFAULT_API_VERSION
        assert config.base_url == DEFAULT_BASE_URL

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("META_ACCESS_TOKEN", "tok")
        monkeypatch.setenv("META_APP_SECRET", "sec")
        monkeypatch.setenv("META_GRAPH_BASE_URL", "http://localhost:9000/")

        config = load_config()

        assert config.access_token == "tok"
        assert config.app_secret == "sec"
        assert config.base_url == "http://localhost:9000"

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("META_ACCESS_TOKEN", "env")

        assert load_config(access_token="explicit").access_token == "explicit"

    def test_empty_override_falls_back_to_env(self, monkeypatch):
        monkeypatch.setenv("META_VERIFY_TOKEN", "env")

        assert load_config(verify_token="").verify_token == "env"

    def test_unknown_field(self):
        with pytest.raises(TypeError):
            load_config(token="x")


class TestRequire:
    def test_lists_missing_env_vars(self):
        with pytest.raises(ConfigurationError) as exc_info:
            WabaConfig(access_token="x").require("access_token", "app_secret", "phone_number_id")

        message = str(exc_info.value)
        assert "META_APP_SECRET" in message
        assert "META_PHONE_NUMBER_ID" in message
        assert "META_ACCESS_TOKEN" not in message

    def test_passes_when_present(self):
        WabaConfig(access_token="x", app_secret="y").require("access_token", "app_secret")

    def test_config_is_immutable(self):
        with pytest.raises(AttributeError):
            WabaConfig().access_token = "x"
