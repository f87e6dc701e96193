"""
ABOUTME: Saves the originally requested URL before a login redirect and restores it after
ABOUTME: Restores POST requests through an auto-submitting form

File: services/security/saved_request.py

Author: Emfour Solutions
Created: 2026-10-17
"""

from typing import TYPE_CHECKING, Any, Dict, Optional
from urllib.parse import urlparse

from services.logging_service import get_module_logger

from .http_actions import FoundAction, HttpAction, build_form_post_content_action

if TYPE_CHECKING:
    from .web_context import WebContext

logger = get_module_logger(__name__)

REQUESTED_URL_KEY = "gatehouse_requested_url"


class SavedRequestHandler:
    """Persists the requested URL in the session store"""

    def save(self, context: "WebContext") -> None:
        saved: Dict[str, Any] = {
            "method": context.request_method,
            "url": context.full_request_url,
        }
        if context.request_method == "POST":
            saved["params"] = context.request.form.to_dict()

        logger.debug(f"Saving requested URL: {saved['url']} ({saved['method']})")
        context.session_set(REQUESTED_URL_KEY, saved)

    def clear(self, context: "WebContext") -> None:
        context.session_set(REQUESTED_URL_KEY, None)

    def get(self, context: "WebContext") -> Optional[str]:
        saved = context.session_get(REQUESTED_URL_KEY)
        return saved.get("url") if isinstance(saved, dict) else None

    def restore(self, context: "WebContext", default_url: str) -> HttpAction:
        """
        Pop the saved request and build the action returning the user to it.

        URLs pointing at another host are discarded so the callback cannot be used
        as an open redirect.
        """
        saved = context.session_pop(REQUESTED_URL_KEY)

        if not isinstance(saved, dict) or not saved.get("url"):
            return FoundAction(default_url)

        url = saved["url"]
        if not self._is_same_host(context, url):
            logger.warning(f"Discarding saved URL pointing to a foreign host: {url}")
            return FoundAction(default_url)

        if saved.get("method") == "POST":
            logger.debug(f"Restoring POST request to {url}")
            return build_form_post_content_action(context, url, saved.get("params") or {})

        logger.debug(f"Restoring requested URL: {url}")
        return FoundAction(url)

    @staticmethod
    def _is_same_host(context: "WebContext", url: str) -> bool:
        parsed = urlparse(url)
        if not parsed.netloc:
            # Relative paths only, not scheme-relative ones; browsers read a backslash as a slash
            return url.startswith("/") and not url.startswith(("//", "/\\"))
        return parsed.netloc == urlparse(context.host_url).netloc
