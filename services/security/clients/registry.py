"""
ABOUTME: Registry of the configured security clients and the factory that builds it
ABOUTME: Looks clients up by name and hands shared defaults to indirect clients

File: services/security/clients/registry.py

Description:
    The Clients registry is the part of the security configuration the entry point
    queries by client name. It is built once at application start from the loaded
    security YAML and is read-only afterwards, so it can be shared by all request
    threads.

Key features:
    - Ordered, case-insensitive lookup of clients by name
    - Duplicate client name detection
    - Shared callback URL, ajax resolver and redirect code policy for indirect clients
    - Client construction by type from the 'clients' section of security.yaml

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

# Standard library imports
from typing import Any, Dict, Iterator, List, Optional, Type
from urllib.parse import urljoin

# Local application imports
from services.exceptions import SecurityConfigurationException
from services.logging_service import get_module_logger

from ..ajax_resolver import AjaxRequestResolver, DefaultAjaxRequestResolver
from .api_key_client import ApiKeyClient
from .base_client import BaseClient, IndirectClient
from .form_client import FormClient
from .oidc_client import OIDCClient

# Module-level logger
logger = get_module_logger(__name__)

CLIENT_TYPES: Dict[str, Type[BaseClient]] = {
    OIDCClient.client_type: OIDCClient,
    FormClient.client_type: FormClient,
    ApiKeyClient.client_type: ApiKeyClient,
}


class Clients:
    """
    Ordered collection of security clients
    """

    def __init__(
        self,
        clients: List[BaseClient] = None,
        callback_url: Optional[str] = None,
        default_client: Optional[str] = None,
        ajax_request_resolver: Optional[AjaxRequestResolver] = None,
        use_modern_http_codes: bool = True,
    ):
        self.callback_url = callback_url
        self.ajax_request_resolver = ajax_request_resolver or DefaultAjaxRequestResolver()
        self.use_modern_http_codes = use_modern_http_codes
        self._clients: Dict[str, BaseClient] = {}

        for client in clients or []:
            key = client.name.lower()
            if key in self._clients:
                raise SecurityConfigurationException(
                    f"Duplicate client name: {client.name}",
                    details={"client": client.name},
                )
            if isinstance(client, IndirectClient):
                client.init_defaults(
                    callback_url=self.callback_url,
                    ajax_request_resolver=self.ajax_request_resolver,
                    use_modern_http_codes=self.use_modern_http_codes,
                )
            self._clients[key] = client

        if default_client and self.find_client(default_client) is None:
            raise SecurityConfigurationException(
                f"Default client {default_client} is not registered",
                details={"clients": self.client_names},
            )
        self._default_client = default_client

    def find_client(self, name: Optional[str]) -> Optional[BaseClient]:
        """Find a client by name, ignoring case"""
        if not name:
            return None
        return self._clients.get(name.strip().lower())

    @property
    def default_client(self) -> Optional[BaseClient]:
        """The configured default client, else the first registered one"""
        if self._default_client:
            return self.find_client(self._default_client)
        return next(iter(self._clients.values()), None)

    @property
    def client_names(self) -> List[str]:
        return [client.name for client in self._clients.values()]

    def get_client_info(self) -> List[Dict[str, Any]]:
        return [client.get_client_info() for client in self._clients.values()]

    def __iter__(self) -> Iterator[BaseClient]:
        return iter(self._clients.values())

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, name: str) -> bool:
        return self.find_client(name) is not None

    def __repr__(self) -> str:
        return f"Clients(names={self.client_names}, callback_url={self.callback_url})"


def build_clients(
    security: Dict[str, Any], application_url: Optional[str] = None
) -> Clients:
    """
    Build the client registry from the 'security' configuration section

    Args:
        security: Loaded security settings (see config.security_loader)
        application_url: Absolute base URL used to resolve a relative callback_url

    Raises:
        SecurityConfigurationException: For unknown client types or duplicate names
        ProviderConfigurationException: When a client's settings are invalid
    """
    callback_url = security.get("callback_url")
    if callback_url and application_url and not callback_url.startswith(("http://", "https://")):
        callback_url = urljoin(application_url.rstrip("/") + "/", callback_url.lstrip("/"))

    ajax_settings = security.get("ajax") or {}
    resolver = DefaultAjaxRequestResolver(
        add_redirection_url_as_header=ajax_settings.get("add_redirection_url_as_header", True)
    )

    clients: List[BaseClient] = []
    for name, client_config in (security.get("clients") or {}).items():
        client_config = dict(client_config or {})

        if not client_config.get("enabled", False):
            logger.debug(f"Skipping disabled client: {name}")
            continue

        client_type = str(client_config.get("type", "")).lower()
        client_class = CLIENT_TYPES.get(client_type)
        if client_class is None:
            raise SecurityConfigurationException(
                f"Unknown client type '{client_type}' for client {name}",
                details={"supported_types": sorted(CLIENT_TYPES)},
            )

        client_config.setdefault("http_timeout", security.get("http_timeout", 30))
        clients.append(client_class(name, client_config))
        logger.info(f"Registered {client_type} client: {name}")

    registry = Clients(
        clients,
        callback_url=callback_url,
        default_client=security.get("default_client"),
        ajax_request_resolver=resolver,
        use_modern_http_codes=security.get("use_modern_http_codes", True),
    )

    if not len(registry):
        logger.warning("No security clients are enabled, every protected route will answer 401")

    return registry
