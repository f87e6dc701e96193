"""
ABOUTME: Per-request context wrapping the Flask request, response and session store
ABOUTME: Built fresh for each entry point or callback invocation and then discarded

File: services/security/web_context.py

Description:
    WebContext is what clients, the authentication policy and the action adapter see
    of the current HTTP exchange. Response headers requested by clients (for example
    a WWW-Authenticate challenge) are collected on the context and applied by the
    action adapter when the final response is rendered.

Author: Emfour Solutions
Created: 2026-10-17
"""

from typing import Any, Dict, Optional

from flask import Request, Response

from .session_store import FlaskSessionStore, SessionStore


class WebContext:
    """Request scoped view of a Flask request"""

    def __init__(
        self,
        request: Request,
        response: Optional[Response] = None,
        session_store: Optional[SessionStore] = None,
    ):
        self.request = request
        self.response = response
        self.session_store = session_store or FlaskSessionStore()
        self.response_headers: Dict[str, str] = {}

    # Request accessors

    @property
    def request_method(self) -> str:
        return self.request.method.upper()

    @property
    def full_request_url(self) -> str:
        return self.request.url

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def host_url(self) -> str:
        return self.request.host_url

    @property
    def remote_addr(self) -> Optional[str]:
        return self.request.remote_addr

    @property
    def is_json(self) -> bool:
        return self.request.is_json

    def get_request_parameter(self, name: str) -> Optional[str]:
        value = self.request.args.get(name)
        if value is None and self.request.method in ("POST", "PUT", "PATCH"):
            value = self.request.form.get(name)
        return value

    def get_request_header(self, name: str) -> Optional[str]:
        return self.request.headers.get(name)

    # Response headers

    def set_response_header(self, name: str, value: str) -> None:
        self.response_headers[name] = value

    def get_response_header(self, name: str) -> Optional[str]:
        for header, value in self.response_headers.items():
            if header.lower() == name.lower():
                return value
        if self.response is not None:
            return self.response.headers.get(name)
        return None

    # Session helpers

    def session_get(self, key: str) -> Any:
        return self.session_store.get(self, key)

    def session_set(self, key: str, value: Any) -> None:
        self.session_store.set(self, key, value)

    def session_pop(self, key: str) -> Any:
        return self.session_store.pop(self, key)

    def __repr__(self) -> str:
        return f"WebContext(method={self.request_method}, path={self.path})"
