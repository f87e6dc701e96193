"""
ABOUTME: Route protection decorators wired to the authentication entry point
ABOUTME: Provides @require_auth, current profile helpers and the Flask error handler hook

File: services/security/decorators.py

Description:
    Protected views are decorated with @require_auth. A request with a profile in
    the session, or with valid direct client credentials (API key header), proceeds.
    Anything else raises AuthenticationRequired, which the error handler installed
    by register_entry_points turns into an EntryPoint.commence call for the chosen
    client: a redirect to the identity provider or a 401.

Key features:
    - @require_auth with an optional client name, usable with or without arguments
    - @require_role for role checks on the authenticated profile
    - Stateless direct client authentication per request
    - Profile caching in flask.g for the duration of a request
    - Logout that destroys the session through the configured session store

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

# Standard library imports
from functools import wraps
from typing import Callable, Optional

# Third-party imports
from flask import Flask, current_app, g, request
from werkzeug.exceptions import HTTPException

# Local application imports
from models.profile import UserProfile
from services.logging_service import get_module_logger

from .action_adapter import FlaskHttpActionAdapter
from .entry_point import EntryPoint
from .http_actions import ForbiddenAction
from .security_config import (
    SecurityConfig,
    find_best_http_action_adapter,
    find_best_session_store,
)
from .session_store import FlaskSessionStore
from .web_context import WebContext

# Module-level logger
logger = get_module_logger(__name__)

PROFILE_SESSION_KEY = "gatehouse_profile"


class AuthenticationRequired(HTTPException):
    """Raised by protected views when the request is anonymous"""

    code = 401
    description = "Authentication required"

    def __init__(self, client_name: Optional[str] = None, description: Optional[str] = None):
        super().__init__(description=description)
        self.client_name = client_name


def get_security_config() -> Optional[SecurityConfig]:
    """Get the security configuration of the current application"""
    if hasattr(current_app, "security_config"):
        return current_app.security_config

    logger.warning("Security configuration not found in app context")
    return None


def _build_context() -> WebContext:
    config = get_security_config()
    return WebContext(request, None, find_best_session_store(config, FlaskSessionStore()))


def get_current_profile() -> Optional[UserProfile]:
    """
    Get the profile of the authenticated user

    Returns:
        UserProfile if authenticated, None otherwise
    """
    if "current_profile" in g:
        return g.current_profile

    data = _build_context().session_get(PROFILE_SESSION_KEY)
    profile = UserProfile.from_dict(data) if data else None

    g.current_profile = profile
    return profile


def is_authenticated() -> bool:
    return get_current_profile() is not None


def login_profile(context: WebContext, profile: UserProfile) -> None:
    """Store profile in a renewed session"""
    context.session_store.renew_session(context)
    context.session_set(PROFILE_SESSION_KEY, profile.to_dict())
    g.current_profile = profile


def logout_user() -> Optional[UserProfile]:
    """
    Destroy the current session

    Returns:
        The profile that was logged out, if any
    """
    profile = get_current_profile()
    context = _build_context()
    context.session_store.destroy_session(context)
    g.current_profile = None

    if profile:
        logger.info(f"User {profile.username} logged out")
    return profile


def _authenticate_direct_clients(client_name: Optional[str]) -> Optional[UserProfile]:
    """Try the direct clients against credentials carried by the request itself"""
    config = get_security_config()
    if config is None:
        return None

    if client_name:
        client = config.clients.find_client(client_name)
        candidates = [client] if client is not None else []
    else:
        candidates = list(config.clients)

    context = _build_context()
    for client in candidates:
        if client.is_indirect:
            continue
        profile = client.authenticate(context)
        if profile is not None:
            logger.debug(f"Request authenticated by direct client {client.name}")
            return profile

    return None


def require_auth(f: Optional[Callable] = None, *, client_name: Optional[str] = None):
    """
    Decorator to require authentication for a route

    Can be used bare (@require_auth) or with the client that should start the
    login (@require_auth(client_name="keycloak")).
    """

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def decorated_function(*args, **kwargs):
            profile = get_current_profile()

            if profile is None:
                profile = _authenticate_direct_clients(client_name)
                if profile is not None:
                    g.current_profile = profile

            if profile is None:
                logger.warning(
                    f"Unauthenticated access attempt to {request.endpoint} from {request.remote_addr}"
                )
                raise AuthenticationRequired(client_name)

            return view(*args, **kwargs)

        return decorated_function

    if f is not None:
        return decorator(f)
    return decorator


def require_role(role: str, client_name: Optional[str] = None) -> Callable:
    """Decorator to require a role on the authenticated profile"""

    def decorator(view: Callable) -> Callable:
        @require_auth(client_name=client_name)
        @wraps(view)
        def decorated_function(*args, **kwargs):
            profile = get_current_profile()
            if not profile.has_role(role):
                logger.warning(
                    f"User {profile.username} denied access to {request.endpoint}: missing role {role}"
                )
                adapter = find_best_http_action_adapter(get_security_config(), FlaskHttpActionAdapter())
                return adapter.adapt(ForbiddenAction(), _build_context())
            return view(*args, **kwargs)

        return decorated_function

    return decorator


def register_entry_points(
    app: Flask, config: SecurityConfig, default_client: Optional[str] = None
) -> None:
    """
    Install the security configuration and the AuthenticationRequired handler

    Args:
        app: Flask application
        config: Security configuration shared by all requests
        default_client: Client used when a view does not name one
    """
    if default_client is None and config.clients.default_client is not None:
        default_client = config.clients.default_client.name

    app.security_config = config
    app.default_client_name = default_client
    app.entry_points = {}

    if default_client:
        app.entry_points[default_client.lower()] = EntryPoint.create(config, default_client)

    @app.errorhandler(AuthenticationRequired)
    def handle_authentication_required(error: AuthenticationRequired):
        name = error.client_name or current_app.default_client_name
        entry_point = current_app.entry_points.get((name or "").lower())
        if entry_point is None:
            entry_point = EntryPoint(current_app.security_config, name)

        return entry_point.commence(request, None, error)

    logger.info(f"Registered authentication entry point (default client: {default_client})")
