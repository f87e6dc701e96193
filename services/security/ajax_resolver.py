"""
ABOUTME: Detects background (XHR/JSON) requests that must not receive browser redirects
ABOUTME: Also shapes the 401 answer returned to such requests

File: services/security/ajax_resolver.py

Author: Emfour Solutions
Created: 2026-10-17
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .http_actions import LOCATION_HEADER, HttpAction, UnauthorizedAction, WithLocationAction

if TYPE_CHECKING:
    from .web_context import WebContext


class AjaxRequestResolver(ABC):
    """Decides whether a request is a background call"""

    @abstractmethod
    def is_ajax(self, context: "WebContext") -> bool:
        pass

    def build_ajax_response(self, action: HttpAction, context: "WebContext") -> HttpAction:
        return UnauthorizedAction()


class DefaultAjaxRequestResolver(AjaxRequestResolver):
    """
    A request is treated as ajax when it sends X-Requested-With: XMLHttpRequest,
    carries an is_ajax=true parameter, posts JSON, or asks for JSON without HTML.
    """

    def __init__(self, add_redirection_url_as_header: bool = True):
        self.add_redirection_url_as_header = add_redirection_url_as_header

    def is_ajax(self, context: "WebContext") -> bool:
        if (context.get_request_header("X-Requested-With") or "").lower() == "xmlhttprequest":
            return True

        if (context.get_request_parameter("is_ajax") or "").lower() == "true":
            return True

        if context.is_json:
            return True

        accept = (context.get_request_header("Accept") or "").lower()
        return "application/json" in accept and "text/html" not in accept

    def build_ajax_response(self, action: HttpAction, context: "WebContext") -> HttpAction:
        """
        Answer 401 instead of redirecting; the identity provider URL is exposed in
        the Location header so a single page app can navigate there itself.
        """
        if self.add_redirection_url_as_header and isinstance(action, WithLocationAction):
            context.set_response_header(LOCATION_HEADER, action.location)
        return UnauthorizedAction()

    def __repr__(self) -> str:
        return (
            f"DefaultAjaxRequestResolver("
            f"add_redirection_url_as_header={self.add_redirection_url_as_header})"
        )
