"""
ABOUTME: Base client interface for Gatehouse security clients
ABOUTME: Defines direct (in-request credentials) and indirect (identity provider redirect) clients

File: services/security/clients/base_client.py

Description:
    A client is one way of authenticating a user. Indirect clients (OIDC, form login)
    send the browser to an identity provider and receive credentials on the callback
    URL; direct clients (API key) find credentials in the protected request itself.
    The entry point only needs to know which kind a client is and, for indirect
    clients, how to build the redirect; the callback uses credential extraction and
    profile creation.

Key features:
    - Abstract base class defining the client contract
    - Configuration validation at construction with typed exceptions
    - Ajax aware redirection that answers 401 instead of redirecting XHR calls
    - Redirect loop protection after a failed login attempt
    - Per-client callback URL carrying the client name
    - Feature discovery and client information for diagnostics

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

# Standard library imports
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from urllib.parse import urlencode, urlparse, urlunparse, parse_qsl

# Local application imports
from models.profile import UserProfile
from services.exceptions import (
    ProviderConfigurationException,
    SecurityConfigurationException,
)
from services.logging_service import get_module_logger
from utils.config_helpers import ConfigHelper

from ..ajax_resolver import AjaxRequestResolver, DefaultAjaxRequestResolver
from ..http_actions import (
    HttpAction,
    build_redirect_action,
    build_unauthenticated_action,
)
from ..saved_request import REQUESTED_URL_KEY

if TYPE_CHECKING:
    from ..web_context import WebContext

# Module-level logger
logger = get_module_logger(__name__)

CLIENT_NAME_PARAMETER = "client_name"


def add_query_parameter(url: str, name: str, value: str) -> str:
    """Append a query parameter to url, keeping existing ones"""
    parts = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    query.append((name, value))
    return urlunparse(parts._replace(query=urlencode(query)))


class BaseClient(ABC):
    """
    Abstract base class for all security clients
    """

    client_type = "base"

    def __init__(self, name: str, config: Dict[str, Any] = None):
        if not name or not str(name).strip():
            raise ProviderConfigurationException("Client name must not be blank")

        self.name = str(name).strip()
        self.config = config or {}
        self.helper = ConfigHelper(self.config)
        self.enabled = self.helper.get_bool("enabled", True)
        self.logger = get_module_logger(f"{__name__}.{self.name}")

        # Validate configuration on initialization
        self._validate_configuration()

    @property
    def is_indirect(self) -> bool:
        return False

    @abstractmethod
    def get_credentials(self, context: "WebContext") -> Optional[Dict[str, Any]]:
        """
        Extract credentials from the current request

        Returns:
            Credentials dictionary or None when the request carries none
        """
        pass

    @abstractmethod
    def get_user_profile(
        self, credentials: Dict[str, Any], context: "WebContext"
    ) -> Optional[UserProfile]:
        """
        Validate credentials and build the user profile

        Returns:
            UserProfile, or None when the credentials are invalid

        Raises:
            CredentialsException: For protocol errors while validating
            ProviderConnectionException: When the identity provider is unreachable
        """
        pass

    @abstractmethod
    def validate_configuration(self) -> List[str]:
        """
        Validate client configuration

        Returns:
            List of configuration issues (empty if valid)
        """
        pass

    def _validate_configuration(self) -> None:
        issues = self.validate_configuration()
        if issues:
            raise ProviderConfigurationException(
                f"Configuration validation failed for client {self.name}",
                details={"issues": issues},
            )

    def get_redirection_action(self, context: "WebContext") -> HttpAction:
        raise SecurityConfigurationException(
            f"Client {self.name} is a direct client and cannot redirect to an identity provider"
        )

    def add_authentication_challenge(self, context: "WebContext") -> None:
        """Hook for clients that advertise a WWW-Authenticate scheme on 401 answers"""
        pass

    def authenticate(self, context: "WebContext") -> Optional[UserProfile]:
        """Extract credentials and build the profile in one step"""
        credentials = self.get_credentials(context)
        if not credentials:
            return None
        return self.get_user_profile(credentials, context)

    def supports_feature(self, feature: str) -> bool:
        return feature in ("credentials", "user_profile")

    def get_client_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.client_type,
            "indirect": self.is_indirect,
            "enabled": self.enabled,
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, type={self.client_type}, enabled={self.enabled})"


class DirectClient(BaseClient):
    """Client whose credentials travel with every protected request"""

    def supports_feature(self, feature: str) -> bool:
        return feature == "direct" or super().supports_feature(feature)


class IndirectClient(BaseClient):
    """
    Client that authenticates the user at an identity provider

    The callback URL, ajax resolver and redirect code policy are usually supplied
    by the Clients registry through init_defaults.
    """

    def __init__(
        self,
        name: str,
        config: Dict[str, Any] = None,
        callback_url: Optional[str] = None,
        ajax_request_resolver: Optional[AjaxRequestResolver] = None,
        use_modern_http_codes: Optional[bool] = None,
    ):
        self.callback_url = callback_url
        self.ajax_request_resolver = ajax_request_resolver
        self.use_modern_http_codes = use_modern_http_codes
        super().__init__(name, config)

    @property
    def is_indirect(self) -> bool:
        return True

    def init_defaults(
        self,
        callback_url: Optional[str] = None,
        ajax_request_resolver: Optional[AjaxRequestResolver] = None,
        use_modern_http_codes: bool = True,
    ) -> None:
        """Fill the settings the client was not given explicitly"""
        if self.callback_url is None:
            self.callback_url = callback_url
        if self.ajax_request_resolver is None:
            self.ajax_request_resolver = ajax_request_resolver
        if self.use_modern_http_codes is None:
            self.use_modern_http_codes = use_modern_http_codes

    def get_callback_url(self) -> str:
        if not self.callback_url:
            raise SecurityConfigurationException(
                f"Client {self.name} has no callback URL configured"
            )
        return add_query_parameter(self.callback_url, CLIENT_NAME_PARAMETER, self.name)

    @property
    def attempted_authentication_key(self) -> str:
        return f"{self.name}$attemptedAuthentication"

    def mark_attempted_authentication(self, context: "WebContext") -> None:
        context.session_set(self.attempted_authentication_key, "true")

    @abstractmethod
    def build_redirection_url(self, context: "WebContext") -> str:
        """Build the identity provider login URL for this request"""
        pass

    def get_redirection_action(self, context: "WebContext") -> HttpAction:
        resolver = self.ajax_request_resolver or DefaultAjaxRequestResolver()

        if resolver.is_ajax(context):
            self.logger.info("AJAX request detected -> returning the appropriate action")
            action = self._build_redirection_action(context)
            context.session_set(REQUESTED_URL_KEY, None)
            return resolver.build_ajax_response(action, context)

        if context.session_get(self.attempted_authentication_key):
            # The last round trip with the identity provider failed, do not loop
            self.logger.debug("Authentication already attempted -> unauthorized")
            context.session_set(self.attempted_authentication_key, None)
            return self._build_failed_authentication_action(context)

        return self._build_redirection_action(context)

    def _build_failed_authentication_action(self, context: "WebContext") -> HttpAction:
        return build_unauthenticated_action(context)

    def _build_redirection_action(self, context: "WebContext") -> HttpAction:
        use_modern = True if self.use_modern_http_codes is None else self.use_modern_http_codes
        return build_redirect_action(context, self.build_redirection_url(context), use_modern)

    def supports_feature(self, feature: str) -> bool:
        return feature == "redirect" or super().supports_feature(feature)

    def get_client_info(self) -> Dict[str, Any]:
        info = super().get_client_info()
        info["callback_url"] = self.callback_url
        return info
