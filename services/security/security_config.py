"""
ABOUTME: Immutable security configuration shared by the entry point and the callback
ABOUTME: Wires the client registry, session store and HTTP action adapter together

File: services/security/security_config.py

Description:
    SecurityConfig is built once by the application factory and never changes
    afterwards. Optional collaborators fall back to the Flask defaults through the
    find_best_* helpers so a minimal configuration only needs a client registry.

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from services.logging_service import get_module_logger

from .action_adapter import HttpActionAdapter
from .ajax_resolver import AjaxRequestResolver
from .clients.registry import Clients, build_clients
from .session_store import SessionStore

logger = get_module_logger(__name__)


@dataclass(frozen=True)
class SecurityConfig:
    """Read-only wiring of the security collaborators"""

    clients: Clients = field(default_factory=Clients)
    session_store: Optional[SessionStore] = None
    http_action_adapter: Optional[HttpActionAdapter] = None
    always_use_401: bool = True

    @property
    def ajax_request_resolver(self) -> AjaxRequestResolver:
        return self.clients.ajax_request_resolver

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clients": self.clients.get_client_info(),
            "session_store": repr(self.session_store),
            "http_action_adapter": repr(self.http_action_adapter),
            "always_use_401": self.always_use_401,
        }


def find_best_session_store(
    config: Optional[SecurityConfig], default: SessionStore
) -> SessionStore:
    if config is not None and config.session_store is not None:
        return config.session_store
    return default


def find_best_http_action_adapter(
    config: Optional[SecurityConfig], default: HttpActionAdapter
) -> HttpActionAdapter:
    if config is not None and config.http_action_adapter is not None:
        return config.http_action_adapter
    return default


def build_security_config(
    security: Dict[str, Any],
    application_url: Optional[str] = None,
    session_store: Optional[SessionStore] = None,
    http_action_adapter: Optional[HttpActionAdapter] = None,
) -> SecurityConfig:
    """
    Build the SecurityConfig from the loaded 'security' settings

    Args:
        security: Output of config.load_security_config
        application_url: Base URL for resolving a relative callback_url
        session_store: Optional session store replacing the Flask cookie session
        http_action_adapter: Optional adapter replacing the Flask adapter
    """
    clients = build_clients(security, application_url)

    config = SecurityConfig(
        clients=clients,
        session_store=session_store,
        http_action_adapter=http_action_adapter,
        always_use_401=security.get("always_use_401", True),
    )

    logger.info(f"Security configuration built with clients: {clients.client_names}")
    return config
