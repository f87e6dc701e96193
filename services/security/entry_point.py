"""
ABOUTME: Authentication entry point invoked when an anonymous request hits a protected route
ABOUTME: Redirects to the client's identity provider or answers 401 through the action adapter

File: services/security/entry_point.py

Description:
    The EntryPoint connects Flask's error handling to the security layer. It is
    bound to a SecurityConfig and a client name. On each authentication failure it
    builds a WebContext for the request, resolves the client, lets the
    authentication policy choose the HTTP action and renders that action onto the
    response.

    Instances are immutable: with_config / with_client_name return new entry
    points, and create() builds one and validates it immediately. A directly
    constructed entry point reports missing wiring on its first request instead.

Key features:
    - Precondition check for config and client name
    - Client resolution through the configured registry
    - Composition with an injectable AuthenticationPolicy
    - Session store and action adapter picked from config with Flask defaults
    - Client forced actions forwarded unchanged to the adapter

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

# Standard library imports
from typing import Optional

# Third-party imports
from flask import Request, Response

# Local application imports
from services.exceptions import SecurityConfigurationException
from services.logging_service import get_module_logger

from .action_adapter import FlaskHttpActionAdapter
from .security_config import (
    SecurityConfig,
    find_best_http_action_adapter,
    find_best_session_store,
)
from .security_logic import AuthenticationPolicy, DefaultAuthenticationPolicy, decide_action
from .session_store import FlaskSessionStore
from .web_context import WebContext

# Module-level logger
logger = get_module_logger(__name__)


class EntryPoint:
    """
    Starts authentication for a single configured client
    """

    def __init__(
        self,
        config: Optional[SecurityConfig] = None,
        client_name: Optional[str] = None,
        policy: Optional[AuthenticationPolicy] = None,
    ):
        self._config = config
        self._client_name = client_name
        self._injected_policy = policy

        if policy is None:
            always_use_401 = config.always_use_401 if config is not None else True
            policy = DefaultAuthenticationPolicy(always_use_401=always_use_401)
        self._policy = policy

    @classmethod
    def create(
        cls,
        config: SecurityConfig,
        client_name: str,
        policy: Optional[AuthenticationPolicy] = None,
    ) -> "EntryPoint":
        """
        Build an entry point and check its wiring straight away

        Raises:
            SecurityConfigurationException: If config or client name is missing or
                the client is not registered
        """
        entry_point = cls(config, client_name, policy)
        entry_point.validate()
        entry_point._find_client()
        return entry_point

    @property
    def config(self) -> Optional[SecurityConfig]:
        return self._config

    @property
    def client_name(self) -> Optional[str]:
        return self._client_name

    @property
    def policy(self) -> AuthenticationPolicy:
        return self._policy

    def with_config(self, config: SecurityConfig) -> "EntryPoint":
        return EntryPoint(config, self._client_name, self._injected_policy)

    def with_client_name(self, client_name: str) -> "EntryPoint":
        return EntryPoint(self._config, client_name, self._injected_policy)

    def validate(self) -> None:
        """Raise SecurityConfigurationException unless config and client name are set"""
        if self._config is None or not self._client_name or not self._client_name.strip():
            raise SecurityConfigurationException(
                f"EntryPoint has been defined without config, nor client_name: {self}"
            )

    def commence(
        self,
        request: Request,
        response: Optional[Response] = None,
        auth_error: Optional[Exception] = None,
    ) -> Response:
        """
        Answer an unauthenticated request for a protected resource

        Args:
            request: Current Flask request
            response: Response to render onto, a new one is created when omitted
            auth_error: The authentication failure that triggered the call

        Returns:
            The rendered Flask response (redirect, 401/403 or forced action)

        Raises:
            SecurityConfigurationException: For missing wiring or an unknown client
        """
        self.validate()

        session_store = find_best_session_store(self._config, FlaskSessionStore())
        adapter = find_best_http_action_adapter(self._config, FlaskHttpActionAdapter())
        context = WebContext(request, response, session_store)

        if auth_error is not None:
            logger.debug(f"Authentication required for {context.path}: {auth_error}")

        client = self._find_client()

        action = decide_action(
            self._policy,
            context,
            [client],
            self._config.clients.ajax_request_resolver,
        )
        return adapter.adapt(action, context)

    def _find_client(self):
        client = self._config.clients.find_client(self._client_name)
        if client is None:
            raise SecurityConfigurationException(
                f"Cannot find client_name: {self._client_name}",
                details={"client_name": self._client_name},
            )
        return client

    def __str__(self) -> str:
        return f"EntryPoint(config={self._config!r}, client_name={self._client_name!r})"

    def __repr__(self) -> str:
        return (
            f"EntryPoint(config={self._config!r}, client_name={self._client_name!r}, "
            f"policy={self._policy!r})"
        )
