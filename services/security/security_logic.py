"""
ABOUTME: Authentication policy deciding between identity provider redirect and 401
ABOUTME: Returns tagged outcomes instead of letting client actions escape as exceptions

File: services/security/security_logic.py

Description:
    When an anonymous request reaches a protected resource the policy answers one
    question: should authentication be started? If the first client is indirect the
    browser is sent to the identity provider (after saving the requested URL so the
    callback can return to it); otherwise the request is rejected as unauthorized.

    Clients may raise an HttpAction from inside the check to force a specific
    answer. The policy catches it and reports it as an ActionOutcome so callers
    never have to handle actions as exceptions.

Key features:
    - ActionOutcome / NeedsDecision tagged outcomes
    - Pluggable policy through the AuthenticationPolicy base class
    - Requested URL saving that skips ajax requests
    - Client challenge headers collected before the 401 is built

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

# Standard library imports
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Union

# Local application imports
from services.logging_service import get_module_logger

from .ajax_resolver import AjaxRequestResolver
from .http_actions import HttpAction, build_unauthenticated_action
from .saved_request import SavedRequestHandler

if TYPE_CHECKING:
    from .clients.base_client import BaseClient
    from .web_context import WebContext

# Module-level logger
logger = get_module_logger(__name__)


@dataclass(frozen=True)
class ActionOutcome:
    """A client forced a specific HTTP action during the check"""

    action: HttpAction


@dataclass(frozen=True)
class NeedsDecision:
    """The check completed; start_authentication tells which way to go"""

    start_authentication: bool


Outcome = Union[ActionOutcome, NeedsDecision]


class AuthenticationPolicy(ABC):
    """
    Decides how an unauthenticated request is answered
    """

    @abstractmethod
    def start_authentication(
        self, context: "WebContext", clients: Sequence["BaseClient"]
    ) -> bool:
        """Whether the request should be sent to an identity provider"""
        pass

    def decide(self, context: "WebContext", clients: Sequence["BaseClient"]) -> Outcome:
        """
        Run the start_authentication check

        Returns:
            ActionOutcome when a client raised an HttpAction, NeedsDecision otherwise
        """
        try:
            return NeedsDecision(bool(self.start_authentication(context, clients)))
        except HttpAction as action:
            return ActionOutcome(action)

    @abstractmethod
    def save_requested_url(
        self,
        context: "WebContext",
        clients: Sequence["BaseClient"],
        ajax_request_resolver: Optional[AjaxRequestResolver],
    ) -> None:
        pass

    @abstractmethod
    def redirect_to_identity_provider(
        self, context: "WebContext", clients: Sequence["BaseClient"]
    ) -> HttpAction:
        pass

    @abstractmethod
    def unauthorized(
        self, context: "WebContext", clients: Sequence["BaseClient"]
    ) -> HttpAction:
        pass


class DefaultAuthenticationPolicy(AuthenticationPolicy):
    """Redirects for indirect clients, answers 401 for direct ones"""

    def __init__(
        self,
        saved_request_handler: Optional[SavedRequestHandler] = None,
        always_use_401: bool = True,
    ):
        self.saved_request_handler = saved_request_handler or SavedRequestHandler()
        self.always_use_401 = always_use_401

    def start_authentication(
        self, context: "WebContext", clients: Sequence["BaseClient"]
    ) -> bool:
        return bool(clients) and clients[0].is_indirect

    def save_requested_url(
        self,
        context: "WebContext",
        clients: Sequence["BaseClient"],
        ajax_request_resolver: Optional[AjaxRequestResolver],
    ) -> None:
        if ajax_request_resolver is not None and ajax_request_resolver.is_ajax(context):
            logger.debug("Ajax request, requested URL not saved")
            return
        self.saved_request_handler.save(context)

    def redirect_to_identity_provider(
        self, context: "WebContext", clients: Sequence["BaseClient"]
    ) -> HttpAction:
        return clients[0].get_redirection_action(context)

    def unauthorized(
        self, context: "WebContext", clients: Sequence["BaseClient"]
    ) -> HttpAction:
        for client in clients:
            client.add_authentication_challenge(context)
        return build_unauthenticated_action(context, always_use_401=self.always_use_401)

    def __repr__(self) -> str:
        return f"DefaultAuthenticationPolicy(always_use_401={self.always_use_401})"


def decide_action(
    policy: AuthenticationPolicy,
    context: "WebContext",
    clients: List["BaseClient"],
    ajax_request_resolver: Optional[AjaxRequestResolver] = None,
) -> HttpAction:
    """
    Turn the policy's outcome into the final HTTP action

    An action raised while building either branch replaces that branch, the
    same way an action raised during the check does.
    """
    outcome = policy.decide(context, clients)

    if isinstance(outcome, ActionOutcome):
        logger.debug(f"extra HTTP action required in EntryPoint: {outcome.action.code}")
        return outcome.action

    try:
        if outcome.start_authentication:
            logger.debug("Redirecting to identity provider for login")
            policy.save_requested_url(context, clients, ajax_request_resolver)
            return policy.redirect_to_identity_provider(context, clients)
        return policy.unauthorized(context, clients)
    except HttpAction as action:
        logger.debug(f"extra HTTP action required in EntryPoint: {action.code}")
        return action
