"""
File: config/base.py

Description:
    Loads the Base Configuration for Gatehouse

Author: Emfour Solutions
Created: 2026-10-17
"""

# Standard library imports
import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List

# Third-party imports
import yaml

# Local application imports
from utils.config_helpers import deep_merge, nested_config_get

from .secrets import get_secret_manager
from .security_loader import load_security_config

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads YAML configuration files from the external and bundled settings directories."""

    def __init__(self, environment: str = "development"):
        self.environment = environment

        self.external_config_dir = Path(
            os.environ.get("GATEHOUSE_CONFIG_DIR", "/app/external_config")
        )
        self.bundled_config_dir = Path(__file__).parent / "settings"
        self._config_cache: Dict[str, Any] = {}

    def load_config_file(self, filename: str) -> Dict[str, Any]:
        """
        Load a YAML configuration file.

        Priority order:
        1. External config directory (mounted volume) overrides
        2. Bundled config directory (defaults)
        """
        if filename in self._config_cache:
            return self._config_cache[filename]

        config: Dict[str, Any] = {}
        sources = []

        for path in (self.bundled_config_dir / filename, self.external_config_dir / filename):
            if not path.exists():
                continue
            with open(path, "r") as f:
                config = deep_merge(config, yaml.safe_load(f) or {})
            sources.append(str(path))

        if sources:
            logger.debug(f"Configuration '{filename}' loaded from: {', '.join(sources)}")
        else:
            logger.warning(f"Configuration file '{filename}' not found in any source")

        self._config_cache[filename] = config
        return config

    def merge_environment_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Merge the environment specific block over the `default` block."""
        base_config = config.get("default", {}) or {}
        env_config = nested_config_get(config, f"environments.{self.environment}", {}) or {}
        return deep_merge(base_config, env_config)


class BaseConfig:
    """Base configuration class with common functionality."""

    def __init__(self, environment: str = None):
        self.environment = environment or os.environ.get("FLASK_ENV", "development")
        self.loader = ConfigLoader(self.environment)
        self.secret_manager = get_secret_manager(self.environment)

        self._load_configurations()

    def _load_configurations(self):
        app_config = self.loader.load_config_file("app.yaml")
        self.app_config = self.loader.merge_environment_config(app_config)

        self.security_config = load_security_config(
            self.environment, secret_manager=self.secret_manager
        )

    @property
    def DEBUG(self) -> bool:
        return False

    @property
    def TESTING(self) -> bool:
        return False

    @property
    def SECRET_KEY(self) -> str:
        return self.secret_manager.get_secret(
            "SECRET_KEY",
            default="dev-secret-key-change-in-production",
            required=self.environment == "production",
        )

    @property
    def APPLICATION_URL(self) -> str:
        """Externally visible base URL, used to build absolute callback URLs."""
        return self.secret_manager.get_secret(
            "APPLICATION_URL", self.app_config.get("application_url", "http://localhost:5000")
        ).rstrip("/")

    @property
    def SESSION_COOKIE_SECURE(self) -> bool:
        value = self.secret_manager.get_secret(
            "SESSION_COOKIE_SECURE", str(self.app_config.get("session", {}).get("secure_cookies", False))
        )
        return str(value).lower() in ("true", "1", "yes", "on")

    @property
    def SESSION_COOKIE_SAMESITE(self) -> str:
        return self.app_config.get("session", {}).get("samesite", "Lax")

    @property
    def PERMANENT_SESSION_LIFETIME(self) -> timedelta:
        hours = int(self.app_config.get("session", {}).get("lifetime_hours", 8))
        return timedelta(hours=hours)

    @property
    def HTTP_TIMEOUT(self) -> int:
        return int(
            self.secret_manager.get_secret(
                "HTTP_TIMEOUT", str(self.app_config.get("http_timeout", 30))
            )
        )

    @property
    def LOG_LEVEL(self) -> str:
        return self.secret_manager.get_secret(
            "LOG_LEVEL", self.app_config.get("logging", {}).get("level", "INFO")
        )

    @property
    def LOG_DIR(self) -> str:
        return self.secret_manager.get_secret(
            "LOG_DIR", self.app_config.get("logging", {}).get("directory", "logs")
        )

    def get_security_config(self) -> Dict[str, Any]:
        """Return the `security` section with the application timeout applied to clients."""
        security = dict(self.security_config)
        security.setdefault("http_timeout", self.HTTP_TIMEOUT)
        return security

    def validate_config(self) -> List[str]:
        issues = []

        if self.HTTP_TIMEOUT <= 0:
            issues.append("HTTP_TIMEOUT must be positive")

        if not self.APPLICATION_URL.startswith(("http://", "https://")):
            issues.append("APPLICATION_URL must be an absolute HTTP/HTTPS URL")

        return issues
