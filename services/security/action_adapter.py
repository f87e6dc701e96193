"""
ABOUTME: Renders abstract HTTP actions onto Flask responses
ABOUTME: Sets status, headers, redirect location and body (JSON for API callers)

File: services/security/action_adapter.py

Description:
    The last step of every security flow. The adapter takes the HttpAction chosen by
    the entry point or callback and writes it onto the caller supplied Flask response
    (or a new one), including any headers clients collected on the WebContext. Error
    actions without a body get the same JSON error shape the rest of the application
    uses for API callers and a short text body for browsers.

Author: Emfour Solutions
Created: 2026-10-17
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from flask import Response, json

from services.logging_service import get_module_logger

from .http_actions import LOCATION_HEADER, HttpAction, WithContentAction, WithLocationAction

if TYPE_CHECKING:
    from .web_context import WebContext

logger = get_module_logger(__name__)

ERROR_MESSAGES = {
    400: ("Bad request", "The authentication request was malformed"),
    401: ("Authentication required", "You must be logged in to access this resource"),
    403: ("Forbidden", "You do not have permission to access this resource"),
}


class HttpActionAdapter(ABC):
    """Renders an HttpAction onto the transport response"""

    @abstractmethod
    def adapt(self, action: HttpAction, context: "WebContext") -> Response:
        pass


class FlaskHttpActionAdapter(HttpActionAdapter):
    """Default adapter for Flask/Werkzeug responses"""

    def adapt(self, action: HttpAction, context: "WebContext") -> Response:
        if action is None:
            raise ValueError("No action provided to the HTTP action adapter")

        response = context.response if context.response is not None else Response()
        response.status_code = action.code

        for name, value in context.response_headers.items():
            response.headers[name] = value

        if isinstance(action, WithLocationAction):
            response.headers[LOCATION_HEADER] = action.location
            response.set_data(b"")
        elif isinstance(action, WithContentAction):
            response.set_data(action.content)
            response.mimetype = "text/html"
        elif action.code in ERROR_MESSAGES:
            self._write_error_body(response, action, context)

        logger.debug(f"Adapted {action!r} onto response for {context.path}")
        return response

    def _write_error_body(self, response: Response, action: HttpAction, context: "WebContext"):
        error, message = ERROR_MESSAGES[action.code]

        if self._wants_json(context):
            response.set_data(
                json.dumps({"error": error, "message": message, "status": action.code})
            )
            response.mimetype = "application/json"
        else:
            response.set_data(error)
            response.mimetype = "text/plain"

    @staticmethod
    def _wants_json(context: "WebContext") -> bool:
        if context.is_json:
            return True
        accept = (context.get_request_header("Accept") or "").lower()
        return "application/json" in accept and "text/html" not in accept

    def __repr__(self) -> str:
        return "FlaskHttpActionAdapter()"
