# =============================================================================
# config/secrets.py - Secret Management for Gatehouse
# =============================================================================

import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class SecretMetadata:
    """Metadata about a retrieved secret."""

    provider: str
    retrieved_at: float
    ttl: Optional[int] = None  # seconds

    def is_expired(self) -> bool:
        if self.ttl is None:
            return False
        return time.time() - self.retrieved_at > self.ttl


class SecretProvider(ABC):
    """Abstract base class for secret providers."""

    @abstractmethod
    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Retrieve a secret by key."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this secret provider is available."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    def priority(self) -> int:
        """Lower number = higher priority."""
        return 100


class EnvironmentSecretProvider(SecretProvider):
    """Retrieve secrets from environment variables."""

    @property
    def name(self) -> str:
        return "Environment Variables"

    @property
    def priority(self) -> int:
        return 20

    def is_available(self) -> bool:
        return True

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return os.environ.get(key, default)


class DockerSecretProvider(SecretProvider):
    """Retrieve secrets from Docker Secrets (mounted files)."""

    SECRETS_PATH = Path("/run/secrets")

    @property
    def name(self) -> str:
        return "Docker Secrets"

    @property
    def priority(self) -> int:
        return 10

    def is_available(self) -> bool:
        return self.SECRETS_PATH.exists() and self.SECRETS_PATH.is_dir()

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        # OIDC_CLIENT_SECRET -> /run/secrets/oidc_client_secret
        secret_file = self.SECRETS_PATH / key.lower()

        if secret_file.exists():
            try:
                value = secret_file.read_text().strip()
                if value:
                    logger.debug(f"Retrieved secret '{key}' from Docker Secrets")
                    return value
            except OSError as e:
                logger.warning(f"Failed to read Docker secret '{key}': {e}")

        return default


class DotEnvSecretProvider(SecretProvider):
    """Retrieve secrets from .env files (development and testing only)."""

    def __init__(self, env_file: str = ".env"):
        self.env_file = env_file
        self._secrets: Dict[str, str] = {}
        self._load_env_file()

    @property
    def name(self) -> str:
        return f"DotEnv File ({self.env_file})"

    @property
    def priority(self) -> int:
        return 30

    def is_available(self) -> bool:
        return Path(self.env_file).exists()

    def _load_env_file(self):
        env_path = Path(self.env_file)
        if not env_path.exists():
            return

        with open(env_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    logger.warning(f"Invalid line {line_num} in {self.env_file}: {line}")
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                if key:
                    self._secrets[key] = value.strip().strip('"').strip("'")

        logger.debug(f"Loaded {len(self._secrets)} secrets from {self.env_file}")

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._secrets.get(key, default)


class SecretManager:
    """
    Manages multiple secret providers with priority-based fallback.
    """

    def __init__(self, environment: str = "development", enable_caching: bool = True):
        self.environment = environment
        self.enable_caching = enable_caching
        self.providers: List[SecretProvider] = []
        self._cache: Dict[str, Tuple[str, SecretMetadata]] = {}
        self._setup_providers()

    def _setup_providers(self):
        potential_providers: List[SecretProvider] = [
            DockerSecretProvider(),
            EnvironmentSecretProvider(),
        ]

        if self.environment in ["development", "testing"]:
            potential_providers.append(DotEnvSecretProvider(f".env.{self.environment}"))
            potential_providers.append(DotEnvSecretProvider(".env"))

        self.providers = [p for p in potential_providers if p.is_available()]
        self.providers.sort(key=lambda p: p.priority)

        for provider in self.providers:
            logger.debug(f"Secret provider available: {provider.name} (priority: {provider.priority})")

    def get_secret(
        self,
        key: str,
        default: Optional[str] = None,
        required: bool = False,
        ttl: Optional[int] = None,
    ) -> Optional[str]:
        """
        Retrieve a secret from available providers in priority order.

        Args:
            key: Secret key to retrieve
            default: Default value if secret not found
            required: Raise exception if secret not found and no default
            ttl: Time to live for cached secrets in seconds

        Returns:
            Secret value or default

        Raises:
            ValueError: If required secret is not found
        """
        if self.enable_caching and key in self._cache:
            cached_value, metadata = self._cache[key]
            if not metadata.is_expired():
                return cached_value
            del self._cache[key]

        for provider in self.providers:
            value = provider.get_secret(key, None)
            if value is not None:
                self._remember(key, value, provider.name, ttl)
                return value

        # KEY_FILE convention (Docker/Kubernetes)
        file_path = os.getenv(f"{key}_FILE")
        if file_path and os.path.isfile(file_path):
            with open(file_path, "r") as f:
                value = f.read().strip()
            self._remember(key, value, "FileEnv", ttl)
            logger.debug(f"Loaded secret '{key}' from file '{file_path}'")
            return value

        if required and default is None:
            available_providers = [p.name for p in self.providers]
            raise ValueError(
                f"Required secret '{key}' not found in any provider. "
                f"Available providers: {', '.join(available_providers)}"
            )

        return default

    def _remember(self, key: str, value: str, provider_name: str, ttl: Optional[int]):
        if self.enable_caching:
            self._cache[key] = (
                value,
                SecretMetadata(provider=provider_name, retrieved_at=time.time(), ttl=ttl),
            )


_secret_manager: Optional[SecretManager] = None


def get_secret_manager(environment: str = None, enable_caching: bool = True) -> SecretManager:
    """Get or create the global secret manager instance."""
    global _secret_manager

    if _secret_manager is None or (environment and _secret_manager.environment != environment):
        env = environment or os.environ.get("FLASK_ENV", "development")
        _secret_manager = SecretManager(env, enable_caching)

    return _secret_manager
