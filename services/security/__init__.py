"""
ABOUTME: Gatehouse security layer: entry point, clients, policy and Flask adapters
ABOUTME: Re-exports the objects the application factory and routes use

File: services/security/__init__.py

Author: Emfour Solutions
Created: 2026-10-17
"""

from .action_adapter import FlaskHttpActionAdapter, HttpActionAdapter
from .ajax_resolver import AjaxRequestResolver, DefaultAjaxRequestResolver
from .callback import CallbackLogic
from .clients import (
    ApiKeyClient,
    BaseClient,
    Clients,
    DirectClient,
    FormClient,
    IndirectClient,
    OIDCClient,
    build_clients,
)
from .decorators import (
    PROFILE_SESSION_KEY,
    AuthenticationRequired,
    get_current_profile,
    is_authenticated,
    logout_user,
    register_entry_points,
    require_auth,
    require_role,
)
from .entry_point import EntryPoint
from .http_actions import (
    BadRequestAction,
    FoundAction,
    ForbiddenAction,
    HttpAction,
    OkAction,
    SeeOtherAction,
    UnauthorizedAction,
)
from .saved_request import REQUESTED_URL_KEY, SavedRequestHandler
from .security_config import (
    SecurityConfig,
    build_security_config,
    find_best_http_action_adapter,
    find_best_session_store,
)
from .security_logic import (
    ActionOutcome,
    AuthenticationPolicy,
    DefaultAuthenticationPolicy,
    NeedsDecision,
    decide_action,
)
from .session_store import FlaskSessionStore, SessionStore
from .web_context import WebContext
