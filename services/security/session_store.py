"""
ABOUTME: Session store abstraction used by the security layer
ABOUTME: Flask cookie session implementation with id generation and renewal

File: services/security/session_store.py

Description:
    The security layer never touches flask.session directly; it goes through a
    SessionStore so deployments can swap in a server-side store. The Flask
    implementation keeps a generated session id inside the signed cookie session so
    logs and profiles can reference the session, and renews it after login to
    prevent session fixation.

Author: Emfour Solutions
Created: 2026-10-17
"""

import secrets
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from flask import session

from services.logging_service import get_module_logger

if TYPE_CHECKING:
    from .web_context import WebContext

logger = get_module_logger(__name__)

SESSION_ID_KEY = "_gatehouse_sid"


class SessionStore(ABC):
    """Abstract session store"""

    @abstractmethod
    def get_session_id(self, context: "WebContext", create: bool = True) -> Optional[str]:
        pass

    @abstractmethod
    def get(self, context: "WebContext", key: str) -> Any:
        pass

    @abstractmethod
    def set(self, context: "WebContext", key: str, value: Any) -> None:
        """Store value under key; a None value removes the key."""
        pass

    @abstractmethod
    def destroy_session(self, context: "WebContext") -> bool:
        pass

    @abstractmethod
    def renew_session(self, context: "WebContext") -> bool:
        pass

    def pop(self, context: "WebContext", key: str) -> Any:
        value = self.get(context, key)
        if value is not None:
            self.set(context, key, None)
        return value


class FlaskSessionStore(SessionStore):
    """Session store backed by flask.session (must be used inside a request context)"""

    def get_session_id(self, context: "WebContext", create: bool = True) -> Optional[str]:
        session_id = session.get(SESSION_ID_KEY)
        if session_id is None and create:
            session_id = secrets.token_urlsafe(24)
            session[SESSION_ID_KEY] = session_id
        return session_id

    def get(self, context: "WebContext", key: str) -> Any:
        return session.get(key)

    def set(self, context: "WebContext", key: str, value: Any) -> None:
        if value is None:
            session.pop(key, None)
        else:
            session[key] = value

    def destroy_session(self, context: "WebContext") -> bool:
        session.clear()
        return True

    def renew_session(self, context: "WebContext") -> bool:
        data = {k: v for k, v in session.items() if k != SESSION_ID_KEY}
        old_id = session.get(SESSION_ID_KEY)

        session.clear()
        session.update(data)
        new_id = self.get_session_id(context)

        logger.debug(f"Renewed session {old_id} -> {new_id}")
        return True

    def __repr__(self) -> str:
        return "FlaskSessionStore()"
