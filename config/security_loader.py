"""
File: config/security_loader.py

Description:
    Security configuration loader with environment variable substitution. Reads the
    client definitions (OIDC, form login, API keys), callback URL and entry point
    behaviour from YAML, resolving ${VAR:-default} placeholders through the secret
    manager so client secrets never have to live in the repository.

Author: Emfour Solutions
Created: 2026-10-17
"""

# Standard library imports
import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

# Third-party imports
import yaml

# Local application imports
from utils.config_helpers import deep_merge

from .secrets import SecretManager, get_secret_manager

logger = logging.getLogger(__name__)

SUPPORTED_CLIENT_TYPES = ("oidc", "form", "api_key")

INDIRECT_CLIENT_TYPES = ("oidc", "form")

# ${NAME} or ${NAME:-default}
_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

_SENSITIVE_FIELDS = (
    "client_secret",
    "password",
    "secret",
    "key",
    "token",
)


class SecuritySettingsLoader:
    """
    Security configuration loader that supports:
    1. Local development files (security.yaml)
    2. Template-based deployments with environment variables (security.yaml.template)
    3. The example file as fallback (security.yaml.example)
    4. A safe default with no clients enabled
    """

    def __init__(
        self,
        environment: str = "development",
        config_dir: Optional[Path] = None,
        secret_manager: Optional[SecretManager] = None,
    ):
        self.environment = environment
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent / "settings"

        self.local_config_path = self.config_dir / "security.yaml"
        self.template_path = self.config_dir / "security.yaml.template"
        self.example_path = self.config_dir / "security.yaml.example"

        self.secret_manager = secret_manager or get_secret_manager(environment)
        self.is_ci = bool(os.getenv("CI"))

        logger.debug(f"Security loader initialized for environment: {environment}")

    def load_security_config(self) -> Dict[str, Any]:
        """
        Load security configuration with the following priority:
        1. Local config file (not in CI)
        2. Template with environment variable substitution
        3. Example file
        4. Default safe configuration
        """
        if not self.is_ci and self.local_config_path.exists():
            logger.info(f"Loading security config from {self.local_config_path}")
            return self._load_file(self.local_config_path)

        if self.template_path.exists():
            logger.info("Loading security config from template with environment variables")
            return self._load_file(self.template_path)

        if self.example_path.exists():
            logger.warning("Loading security config from example file - consider creating security.yaml")
            return self._load_file(self.example_path)

        logger.warning("No security config found - using default safe configuration")
        return self.get_default_config()

    def _load_file(self, path: Path) -> Dict[str, Any]:
        with open(path, "r") as f:
            content = f.read()

        content = self.substitute_environment_variables(content)
        content = self._convert_literal_strings(content)

        config = yaml.safe_load(content) or {}
        return self._apply_environment_overrides(config)

    def substitute_environment_variables(self, content: str) -> str:
        """Replace ${VAR} and ${VAR:-default} placeholders with secret values."""

        def replace(match: "re.Match") -> str:
            name, default = match.group(1), match.group(2)
            value = self.secret_manager.get_secret(name)
            if value is not None:
                return value
            if default is not None:
                return default.strip()
            logger.warning(f"Variable {name} not found in secrets or environment, using empty string")
            return ""

        return _PLACEHOLDER.sub(replace, content)

    def _convert_literal_strings(self, content: str) -> str:
        """Turn quoted booleans/nulls produced by substitution into YAML literals."""
        replacements = {
            ': "true"': ": true",
            ': "True"': ": true",
            ': "TRUE"': ": true",
            ': "false"': ": false",
            ': "False"': ": false",
            ': "FALSE"': ": false",
            ': "null"': ": null",
            ': "None"': ": null",
            ': "NULL"': ": null",
        }
        for old, new in replacements.items():
            content = content.replace(old, new)
        return content

    def _apply_environment_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Merge the `<environment>.security` block over the base `security` block."""
        env_config = config.get(self.environment)
        if isinstance(env_config, dict) and isinstance(env_config.get("security"), dict):
            config["security"] = deep_merge(config.get("security", {}), env_config["security"])
        return config

    def get_default_config(self) -> Dict[str, Any]:
        return {
            "security": {
                "callback_url": "/auth/callback",
                "default_client": None,
                "use_modern_http_codes": True,
                "always_use_401": True,
                "ajax": {"add_redirection_url_as_header": True},
                "clients": {},
            }
        }

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate security configuration.

        Returns:
            List of configuration issues (empty if valid)
        """
        issues = []
        security = config.get("security")

        if not isinstance(security, dict):
            return ["Missing 'security' section in security config"]

        clients = security.get("clients") or {}
        if not isinstance(clients, dict):
            return ["'security.clients' must be a mapping of client name to settings"]

        enabled = {name: c for name, c in clients.items() if isinstance(c, dict) and c.get("enabled", False)}
        if not enabled:
            issues.append("No security clients are enabled")

        for name, client in enabled.items():
            client_type = client.get("type")
            if client_type not in SUPPORTED_CLIENT_TYPES:
                issues.append(f"Client '{name}' has unsupported type: {client_type}")
                continue

            if client_type == "oidc":
                for field in ("discovery_url", "client_id", "client_secret"):
                    if not client.get(field):
                        issues.append(f"OIDC client '{name}' missing required field: {field}")
            elif client_type == "form":
                if not client.get("users"):
                    issues.append(f"Form client '{name}' has no users configured")
            elif client_type == "api_key":
                if not client.get("keys"):
                    issues.append(f"API key client '{name}' has no keys configured")

        if any(c.get("type") in INDIRECT_CLIENT_TYPES for c in enabled.values()):
            if not security.get("callback_url"):
                issues.append("Indirect clients are enabled but 'callback_url' is not set")

        default_client = security.get("default_client")
        if default_client and default_client not in enabled:
            issues.append(f"Default client '{default_client}' is not an enabled client")

        return issues

    def get_masked_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return configuration with sensitive values masked for logging."""
        masked_config = copy.deepcopy(config)

        def mask(obj):
            if isinstance(obj, dict):
                for key, value in obj.items():
                    if any(sensitive in str(key).lower() for sensitive in _SENSITIVE_FIELDS):
                        obj[key] = "***MASKED***"
                    else:
                        mask(value)
            elif isinstance(obj, list):
                for item in obj:
                    mask(item)

        mask(masked_config)
        return masked_config


def load_security_config(
    environment: str = None,
    config_dir: Optional[Path] = None,
    secret_manager: Optional[SecretManager] = None,
) -> Dict[str, Any]:
    """
    Load and validate the security configuration for an environment.

    Returns the `security` section. Invalid configuration is fatal in production;
    other environments log the issues and continue so developers can fix them.
    """
    if environment is None:
        environment = os.getenv("FLASK_ENV", "development")

    loader = SecuritySettingsLoader(environment, config_dir, secret_manager)
    config = loader.load_security_config()

    issues = loader.validate_config(config)
    if issues:
        logger.error(f"Security configuration validation failed: {issues}")
        if environment == "production":
            raise ValueError(f"Invalid security configuration: {issues}")

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Loaded security config: {loader.get_masked_config(config)}")

    return config.get("security", {})
