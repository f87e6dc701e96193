"""
File: config/environments.py

Description:
    Loads the Environment Variable Configuration for Gatehouse

Author: Emfour Solutions
Created: 2026-10-17
"""

# Standard library imports
import os
from typing import List

from services.logging_service import get_module_logger

# Local application imports
from .base import BaseConfig

logger = get_module_logger(__name__)


class DevelopmentConfig(BaseConfig):
    """Development environment configuration."""

    def __init__(self):
        super().__init__("development")

    @property
    def DEBUG(self) -> bool:
        return True

    @property
    def LOG_LEVEL(self) -> str:
        return self.secret_manager.get_secret("LOG_LEVEL", "DEBUG")


class ProductionConfig(BaseConfig):
    """Production environment configuration."""

    def __init__(self):
        super().__init__("production")

    @property
    def SECRET_KEY(self) -> str:
        """Require secret key in production."""
        secret_key = self.secret_manager.get_secret("SECRET_KEY", required=True)
        if not secret_key or secret_key == "dev-secret-key-change-in-production":
            raise ValueError("SECRET_KEY must be set to a secure value in production")
        return secret_key

    @property
    def SESSION_COOKIE_SECURE(self) -> bool:
        return True

    def validate_config(self) -> List[str]:
        issues = super().validate_config()

        if not self.APPLICATION_URL.startswith("https://"):
            issues.append("APPLICATION_URL must use HTTPS in production")

        return issues


class TestingConfig(BaseConfig):
    """Testing environment configuration."""

    def __init__(self):
        super().__init__("testing")

    @property
    def TESTING(self) -> bool:
        return True

    @property
    def SECRET_KEY(self) -> str:
        return self.secret_manager.get_secret("SECRET_KEY", "test-secret-key-for-sessions")

    @property
    def HTTP_TIMEOUT(self) -> int:
        return 5

    @property
    def LOG_LEVEL(self) -> str:
        return self.secret_manager.get_secret("LOG_LEVEL", "WARNING")

    @property
    def LOG_DIR(self) -> str:
        # Console only while testing
        return ""


def get_config(environment: str = None) -> BaseConfig:
    """Get configuration instance for the specified environment."""
    if environment is None:
        environment = os.environ.get("FLASK_ENV", "development")

    config_map = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
    }

    config_class = config_map.get(environment)
    if not config_class:
        logger.warning(f"Unknown environment '{environment}', using development config")
        config_class = DevelopmentConfig

    return config_class()
