"""
ABOUTME: Form login indirect client with bcrypt verified credentials
ABOUTME: Redirects to the local login page and validates the posted form on callback

File: services/security/clients/form_client.py

Author: Emfour Solutions
Created: 2026-10-17
"""

# Standard library imports
from typing import TYPE_CHECKING, Any, Dict, List, Optional

# Third-party imports
import bcrypt

# Local application imports
from models.profile import UserProfile
from services.logging_service import get_module_logger
from utils.config_helpers import ConfigHelper

from ..http_actions import HttpAction, build_redirect_action
from .base_client import CLIENT_NAME_PARAMETER, IndirectClient, add_query_parameter

if TYPE_CHECKING:
    from ..web_context import WebContext

logger = get_module_logger(__name__)

ERROR_PARAMETER = "error"

# bcrypt only reads this many bytes of a password
MAX_PASSWORD_BYTES = 72


class FormClient(IndirectClient):
    """
    Username/password login through the application's own login page

    Users are configured with bcrypt hashes:

        users:
          alice:
            password_hash: "$2b$12$..."
            roles: [admin]
    """

    client_type = "form"

    def __init__(self, name: str, config: Dict[str, Any] = None, **kwargs):
        config = config or {}
        helper = ConfigHelper(config)

        self.login_url = helper.get_str("login_url", "/auth/form")
        self.username_parameter = helper.get_str("username_parameter", "username")
        self.password_parameter = helper.get_str("password_parameter", "password")
        self.users: Dict[str, Dict[str, Any]] = dict(helper.get_section("users"))

        super().__init__(name, config, **kwargs)

        # Compared against when the username is unknown so both paths cost one bcrypt check
        self._dummy_hash = bcrypt.hashpw(b"gatehouse-dummy", bcrypt.gensalt(rounds=4))

    def validate_configuration(self) -> List[str]:
        issues = []

        if not self.login_url:
            issues.append(f"Login URL is required for {self.name}")

        if not self.users:
            issues.append(f"At least one user is required for {self.name}")

        for username, user in self.users.items():
            password_hash = (user or {}).get("password_hash", "")
            if not str(password_hash).startswith("$2"):
                issues.append(f"User {username} must have a bcrypt password_hash")

        return issues

    def build_redirection_url(self, context: "WebContext") -> str:
        return add_query_parameter(self.login_url, CLIENT_NAME_PARAMETER, self.name)

    def _build_failed_authentication_action(self, context: "WebContext") -> HttpAction:
        # Back to the form with an error flag rather than a bare 401
        url = add_query_parameter(self.build_redirection_url(context), ERROR_PARAMETER, "1")
        use_modern = True if self.use_modern_http_codes is None else self.use_modern_http_codes
        return build_redirect_action(context, url, use_modern)

    def get_credentials(self, context: "WebContext") -> Optional[Dict[str, Any]]:
        if context.request_method != "POST":
            return None

        username = context.request.form.get(self.username_parameter, "").strip()
        password = context.request.form.get(self.password_parameter, "")

        if not username or not password:
            logger.debug(f"Form login for {self.name} missing username or password")
            return None

        return {"username": username, "password": password}

    def get_user_profile(
        self, credentials: Dict[str, Any], context: "WebContext"
    ) -> Optional[UserProfile]:
        username = credentials["username"]
        user = self.users.get(username)
        password = credentials["password"].encode("utf-8")

        if len(password) > MAX_PASSWORD_BYTES:
            logger.warning(f"Rejected over-long password for user {username} from {context.remote_addr}")
            return None

        stored_hash = user.get("password_hash").encode("utf-8") if user else self._dummy_hash
        password_ok = bcrypt.checkpw(password, stored_hash)

        if not user or not password_ok:
            logger.warning(f"Invalid form login for user {username} from {context.remote_addr}")
            return None

        logger.info(f"Successful form login for user: {username}")
        return UserProfile(
            id=username,
            client_name=self.name,
            username=username,
            email=user.get("email"),
            display_name=user.get("display_name") or username,
            roles=list(user.get("roles") or []),
        )

    def supports_feature(self, feature: str) -> bool:
        return feature == "password_login" or super().supports_feature(feature)
