"""
ABOUTME: Unit tests for the security configuration loader
ABOUTME: Tests file priority, variable substitution, environment overrides, validation and masking

File: tests/unit/test_security_loader.py

Author: Emfour Solutions
Created: 2026-10-17
"""

from pathlib import Path

import pytest

from config.secrets import SecretManager
from config.security_loader import SecuritySettingsLoader, load_security_config

TEMPLATE = """
security:
  callback_url: "/auth/callback"
  default_client: ${DEFAULT_CLIENT:-keycloak}
  clients:
    keycloak:
      type: "oidc"
      enabled: ${OIDC_ENABLED:-true}
      discovery_url: ${OIDC_DISCOVERY_URL:-https://idp.example.com/.well-known/openid-configuration}
      client_id: "gatehouse"
      client_secret: "${OIDC_CLIENT_SECRET}"
    api:
      type: "api_key"
      enabled: "${API_ENABLED:-false}"
      keys:
        - name: "ci"
          key: ${API_KEY:-}

production:
  security:
    always_use_401: false
"""


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def secret_manager(monkeypatch):
    monkeypatch.delenv("CI", raising=False)
    monkeypatch.setenv("OIDC_CLIENT_SECRET", "from-env")
    return SecretManager("testing", enable_caching=False)


def _write(config_dir: Path, name: str, content: str = TEMPLATE) -> None:
    (config_dir / name).write_text(content)


class TestSecuritySettingsLoader:
    """Test file selection and substitution"""

    def test_default_config_without_files(self, config_dir, secret_manager):
        loader = SecuritySettingsLoader("testing", config_dir, secret_manager)

        config = loader.load_security_config()

        assert config == loader.get_default_config()
        assert config["security"]["clients"] == {}

    def test_template_substitution(self, config_dir, secret_manager):
        _write(config_dir, "security.yaml.template")
        loader = SecuritySettingsLoader("testing", config_dir, secret_manager)

        security = loader.load_security_config()["security"]

        keycloak = security["clients"]["keycloak"]
        assert keycloak["client_secret"] == "from-env"
        assert keycloak["enabled"] is True
        assert keycloak["discovery_url"] == "https://idp.example.com/.well-known/openid-configuration"
        assert security["clients"]["api"]["enabled"] is False
        assert security["default_client"] == "keycloak"

    def test_environment_variables_override_defaults(self, config_dir, secret_manager, monkeypatch):
        monkeypatch.setenv("OIDC_ENABLED", "false")
        monkeypatch.setenv("API_ENABLED", "true")
        _write(config_dir, "security.yaml.template")

        security = SecuritySettingsLoader("testing", config_dir, secret_manager).load_security_config()["security"]

        assert security["clients"]["keycloak"]["enabled"] is False
        assert security["clients"]["api"]["enabled"] is True

    def test_local_file_wins_over_template(self, config_dir, secret_manager):
        _write(config_dir, "security.yaml.template")
        _write(config_dir, "security.yaml", "security:\n  callback_url: /local/callback\n")

        loader = SecuritySettingsLoader("testing", config_dir, secret_manager)

        assert loader.load_security_config()["security"]["callback_url"] == "/local/callback"

    def test_local_file_ignored_in_ci(self, config_dir, secret_manager, monkeypatch):
        monkeypatch.setenv("CI", "true")
        _write(config_dir, "security.yaml.example")
        _write(config_dir, "security.yaml", "security:\n  callback_url: /local/callback\n")

        loader = SecuritySettingsLoader("testing", config_dir, secret_manager)

        assert loader.load_security_config()["security"]["callback_url"] == "/auth/callback"

    def test_environment_block_is_merged(self, config_dir, secret_manager):
        _write(config_dir, "security.yaml.template")

        loader = SecuritySettingsLoader("production", config_dir, secret_manager)
        security = loader.load_security_config()["security"]

        assert security["always_use_401"] is False
        assert "keycloak" in security["clients"]


class TestSecurityConfigValidation:
    """Test validation rules"""

    @pytest.fixture
    def loader(self, config_dir, secret_manager):
        return SecuritySettingsLoader("testing", config_dir, secret_manager)

    def test_valid_config(self, loader):
        config = {
            "security": {
                "callback_url": "/auth/callback",
                "default_client": "api",
                "clients": {"api": {"type": "api_key", "enabled": True, "keys": [{"name": "a", "key": "b"}]}},
            }
        }

        assert loader.validate_config(config) == []

    def test_missing_section(self, loader):
        assert loader.validate_config({}) == ["Missing 'security' section in security config"]

    def test_reports_client_problems(self, loader):
        config = {
            "security": {
                "default_client": "form",
                "clients": {
                    "keycloak": {"type": "oidc", "enabled": True, "client_id": "x"},
                    "saml": {"type": "saml", "enabled": True},
                    "form": {"type": "form", "enabled": False},
                },
            }
        }

        issues = loader.validate_config(config)

        assert "OIDC client 'keycloak' missing required field: discovery_url" in issues
        assert "OIDC client 'keycloak' missing required field: client_secret" in issues
        assert "Client 'saml' has unsupported type: saml" in issues
        assert "Indirect clients are enabled but 'callback_url' is not set" in issues
        assert "Default client 'form' is not an enabled client" in issues

    def test_no_enabled_clients(self, loader):
        issues = loader.validate_config(loader.get_default_config())

        assert issues == ["No security clients are enabled"]

    def test_masked_config(self, loader):
        config = {
            "security": {
                "clients": {
                    "keycloak": {"client_id": "gatehouse", "client_secret": "s3cret"},
                    "api": {"keys": [{"name": "ci", "key": "k"}]},
                }
            }
        }

        masked = loader.get_masked_config(config)

        assert masked["security"]["clients"]["keycloak"]["client_secret"] == "***MASKED***"
        assert masked["security"]["clients"]["keycloak"]["client_id"] == "gatehouse"
        assert masked["security"]["clients"]["api"]["keys"] == "***MASKED***"
        assert config["security"]["clients"]["keycloak"]["client_secret"] == "s3cret"


class TestLoadSecurityConfig:
    """Test the module level entry point"""

    def test_returns_security_section(self, config_dir, secret_manager):
        _write(config_dir, "security.yaml.template")

        security = load_security_config("testing", config_dir, secret_manager)

        assert security["callback_url"] == "/auth/callback"

    def test_invalid_config_fatal_in_production(self, config_dir, secret_manager):
        with pytest.raises(ValueError) as exc_info:
            load_security_config("production", config_dir, secret_manager)

        assert "No security clients are enabled" in str(exc_info.value)

    def test_invalid_config_tolerated_elsewhere(self, config_dir, secret_manager):
        security = load_security_config("development", config_dir, secret_manager)

        assert security["clients"] == {}
