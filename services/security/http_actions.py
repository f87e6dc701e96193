"""
ABOUTME: Abstract HTTP actions produced by the security layer before rendering
ABOUTME: Redirect, unauthorized, forbidden and content actions plus builder helpers

File: services/security/http_actions.py

Description:
    An HttpAction describes the response the security layer wants (status code,
    redirect location, optional body) without touching the Flask response. Actions
    are exceptions so a client can raise one from deep inside a check to short
    circuit the normal flow; the authentication policy converts a raised action into
    an explicit outcome and the action adapter renders it.

Author: Emfour Solutions
Created: 2026-10-17
Last Modified: 2026-10-17
Version: 1.0.0
"""

import html
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .web_context import WebContext

AUTHENTICATE_HEADER = "WWW-Authenticate"
LOCATION_HEADER = "Location"
DEFAULT_REALM = "gatehouse"


class HttpAction(Exception):
    """Base class for all HTTP actions"""

    code: int = 200

    def __init__(self, code: Optional[int] = None):
        if code is not None:
            self.code = code
        super().__init__(f"HTTP action {self.code}")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.__class__.__name__, "code": self.code}

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self), self.code))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code})"


class WithLocationAction(HttpAction):
    """Action carrying a redirect target"""

    def __init__(self, location: str, code: Optional[int] = None):
        super().__init__(code)
        self.location = location

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["location"] = self.location
        return data

    def __hash__(self) -> int:
        return hash((type(self), self.code, self.location))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code}, location={self.location!r})"


class WithContentAction(HttpAction):
    """Action carrying a response body"""

    def __init__(self, content: str = "", code: Optional[int] = None):
        super().__init__(code)
        self.content = content

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["content"] = self.content
        return data

    def __hash__(self) -> int:
        return hash((type(self), self.code, self.content))


class FoundAction(WithLocationAction):
    code = 302


class SeeOtherAction(WithLocationAction):
    code = 303


class OkAction(WithContentAction):
    code = 200


class BadRequestAction(HttpAction):
    code = 400


class UnauthorizedAction(HttpAction):
    code = 401


class ForbiddenAction(HttpAction):
    code = 403


def build_redirect_action(
    context: "WebContext", location: str, use_modern_http_codes: bool = True
) -> WithLocationAction:
    """
    Build a redirect to location.

    A POST that ends in a redirect must be followed with a GET, so non-GET requests
    get a 303 when modern codes are enabled and a 302 otherwise.
    """
    if use_modern_http_codes and context.request_method != "GET":
        return SeeOtherAction(location)
    return FoundAction(location)


def build_unauthenticated_action(
    context: "WebContext", always_use_401: bool = True, realm: str = DEFAULT_REALM
) -> HttpAction:
    """
    Build the response for a request that cannot be authenticated.

    A 401 must carry a WWW-Authenticate header. Clients may already have set one
    (API key, basic auth); otherwise a Bearer challenge is added. With
    always_use_401 disabled, requests without a challenge get a 403 instead.
    """
    has_header = context.get_response_header(AUTHENTICATE_HEADER) is not None

    if always_use_401:
        if not has_header:
            context.set_response_header(AUTHENTICATE_HEADER, f'Bearer realm="{realm}"')
        return UnauthorizedAction()

    if has_header:
        return UnauthorizedAction()
    return ForbiddenAction()


def build_form_post_content_action(
    context: "WebContext", url: str, params: Dict[str, Any]
) -> OkAction:
    """Build a page that re-posts params to url as soon as it loads."""
    inputs = "".join(
        f'<input type="hidden" name="{html.escape(str(name))}" value="{html.escape(str(value))}" />'
        for name, value in params.items()
    )
    content = (
        "<html><body onload=\"document.forms[0].submit()\">"
        f'<form action="{html.escape(url)}" method="post">{inputs}'
        '<noscript><input type="submit" value="Continue" /></noscript>'
        "</form></body></html>"
    )
    return OkAction(content)
