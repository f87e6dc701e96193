"""Unit tests for Gatehouse configuration."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from config.base import ConfigLoader
from config.environments import (
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
)
from config.secrets import SecretManager

SECURITY_SECTION = {"callback_url": "/auth/callback", "clients": {}}


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Fresh uncached secrets and a fixed security section for every test"""
    for name in ("SECRET_KEY", "APPLICATION_URL", "HTTP_TIMEOUT", "LOG_LEVEL", "CI"):
        monkeypatch.delenv(name, raising=False)

    with patch(
        "config.base.get_secret_manager",
        side_effect=lambda env: SecretManager(env, enable_caching=False),
    ), patch("config.base.load_security_config", return_value=dict(SECURITY_SECTION)):
        yield


class TestConfigurationSystem:
    """Test the configuration system."""

    def test_get_config_development(self):
        config = get_config("development")
        assert isinstance(config, DevelopmentConfig)
        assert config.DEBUG is True

    def test_get_config_production(self):
        config = get_config("production")
        assert isinstance(config, ProductionConfig)
        assert config.DEBUG is False

    def test_get_config_testing(self):
        config = get_config("testing")
        assert isinstance(config, TestingConfig)
        assert config.TESTING is True

    def test_unknown_environment_falls_back_to_development(self):
        assert isinstance(get_config("staging"), DevelopmentConfig)

    def test_config_from_environment(self, monkeypatch):
        monkeypatch.setenv("FLASK_ENV", "testing")
        assert isinstance(get_config(), TestingConfig)


class TestBaseConfig:
    """Test values shared by every environment."""

    def test_defaults_from_app_yaml(self):
        config = DevelopmentConfig()

        assert config.APPLICATION_URL == "http://localhost:5000"
        assert config.HTTP_TIMEOUT == 30
        assert config.PERMANENT_SESSION_LIFETIME == timedelta(hours=8)
        assert config.SESSION_COOKIE_SAMESITE == "Lax"
        assert config.validate_config() == []

    def test_environment_variables_win(self, monkeypatch):
        monkeypatch.setenv("APPLICATION_URL", "https://gatehouse.example.com/")
        monkeypatch.setenv("HTTP_TIMEOUT", "12")

        config = DevelopmentConfig()

        assert config.APPLICATION_URL == "https://gatehouse.example.com"
        assert config.HTTP_TIMEOUT == 12

    def test_security_config_gets_http_timeout(self):
        security = TestingConfig().get_security_config()

        assert security["http_timeout"] == 5
        assert security["callback_url"] == "/auth/callback"

    def test_invalid_application_url(self, monkeypatch):
        monkeypatch.setenv("APPLICATION_URL", "gatehouse.local")

        issues = DevelopmentConfig().validate_config()

        assert "APPLICATION_URL must be an absolute HTTP/HTTPS URL" in issues


class TestProductionConfig:
    """Test production-specific configuration."""

    def test_secret_key_required(self):
        with pytest.raises(ValueError):
            ProductionConfig().SECRET_KEY

    def test_default_secret_key_rejected(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "dev-secret-key-change-in-production")

        with pytest.raises(ValueError):
            ProductionConfig().SECRET_KEY

    def test_secure_cookies(self):
        assert ProductionConfig().SESSION_COOKIE_SECURE is True

    def test_https_required(self):
        issues = ProductionConfig().validate_config()

        assert "APPLICATION_URL must use HTTPS in production" in issues


class TestConfigLoader:
    """Test YAML loading and environment merging."""

    def test_external_file_overrides_bundled(self, tmp_path, monkeypatch):
        (tmp_path / "app.yaml").write_text("default:\n  http_timeout: 99\n")
        monkeypatch.setenv("GATEHOUSE_CONFIG_DIR", str(tmp_path))

        loader = ConfigLoader("development")
        config = loader.merge_environment_config(loader.load_config_file("app.yaml"))

        assert config["http_timeout"] == 99
        assert config["logging"]["level"] == "DEBUG"

    def test_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GATEHOUSE_CONFIG_DIR", str(tmp_path))

        assert ConfigLoader("testing").load_config_file("missing.yaml") == {}
