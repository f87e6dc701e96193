"""
ABOUTME: Completes an indirect login when the identity provider returns to the callback URL
ABOUTME: Validates credentials, stores the profile and sends the user back to the saved URL

File: services/security/callback.py

Description:
    The counterpart of the entry point. The callback URL carries the client name;
    the client extracts the credentials from the returned request and validates
    them. On success the session is renewed, the profile stored and the user
    returned to the URL saved before the login redirect. On failure the client is
    marked as attempted and asked for its redirection action again, which answers
    401 instead of looping back to the identity provider.

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

from typing import Optional

from services.exceptions import CredentialsException, SecurityConfigurationException
from services.logging_service import get_module_logger

from .clients.base_client import CLIENT_NAME_PARAMETER, IndirectClient
from .decorators import login_profile
from .http_actions import HttpAction
from .saved_request import SavedRequestHandler
from .security_config import SecurityConfig
from .web_context import WebContext

logger = get_module_logger(__name__)


class CallbackLogic:
    """Finishes the login started by the entry point"""

    def __init__(self, saved_request_handler: Optional[SavedRequestHandler] = None):
        self.saved_request_handler = saved_request_handler or SavedRequestHandler()

    def perform(
        self,
        context: WebContext,
        config: SecurityConfig,
        default_url: str,
        client_name: Optional[str] = None,
    ) -> HttpAction:
        """
        Process the callback request

        Args:
            context: Context of the callback request
            config: Security configuration
            default_url: Where to go when no requested URL was saved
            client_name: Client to use, read from the client_name parameter when omitted

        Returns:
            The action restoring the saved request, or the client's failure answer

        Raises:
            SecurityConfigurationException: Unknown or direct client
        """
        client = self._resolve_client(context, config, client_name)

        try:
            profile = client.authenticate(context)
        except CredentialsException as e:
            logger.warning(f"Login through {client.name} failed: {e.message}")
            profile = None
        except HttpAction as action:
            return action

        if profile is None:
            logger.info(f"No valid credentials returned to client {client.name}")
            client.mark_attempted_authentication(context)
            return client.get_redirection_action(context)

        login_profile(context, profile)
        logger.info(f"User {profile.username} authenticated through {client.name}")

        return self.saved_request_handler.restore(context, default_url)

    @staticmethod
    def _resolve_client(
        context: WebContext, config: SecurityConfig, client_name: Optional[str]
    ) -> IndirectClient:
        name = client_name or context.get_request_parameter(CLIENT_NAME_PARAMETER)
        client = config.clients.find_client(name) if name else config.clients.default_client

        if client is None:
            raise SecurityConfigurationException(
                f"Cannot find client_name: {name}", details={"client_name": name}
            )
        if not isinstance(client, IndirectClient):
            raise SecurityConfigurationException(
                f"Client {client.name} does not support the callback",
                details={"client_name": client.name},
            )
        return client
