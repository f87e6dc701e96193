"""
File: services/exceptions.py

Description:
    Custom exception hierarchy providing structured error handling for the Gatehouse
    security layer. Configuration mistakes (missing security config, unknown client
    names, invalid client settings) are fatal and propagate to the caller; identity
    provider connectivity and credential problems are typed so the callback flow can
    turn them into the appropriate HTTP action.

Key features:
    - Base SecurityException carrying a details dictionary and timestamp
    - Configuration exceptions for deployment/wiring mistakes
    - Provider configuration and connection exceptions for identity providers
    - Credentials exception for failed callback validation

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

from datetime import datetime, timezone
from typing import Any, Dict


class SecurityException(Exception):
    """Base exception for security layer errors"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary representation"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class SecurityConfigurationException(SecurityException):
    """Raised when the security layer is wired incorrectly (fatal, never retried)"""

    pass


class ProviderConfigurationException(SecurityConfigurationException):
    """Raised when a client's configuration fails validation"""

    pass


class ProviderConnectionException(SecurityException):
    """Raised when an identity provider cannot be reached"""

    pass


class CredentialsException(SecurityException):
    """Raised when credentials returned to the callback are missing or invalid"""

    pass
