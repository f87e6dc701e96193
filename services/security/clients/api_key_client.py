"""
ABOUTME: Direct client authenticating API callers by a static key header
ABOUTME: Keys are compared in constant time and map to a named profile with roles

File: services/security/clients/api_key_client.py

Author: Emfour Solutions
Created: 2026-10-17
"""

import hmac
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from models.profile import UserProfile
from services.logging_service import get_module_logger
from utils.config_helpers import ConfigHelper

from ..http_actions import AUTHENTICATE_HEADER, DEFAULT_REALM
from .base_client import DirectClient

if TYPE_CHECKING:
    from ..web_context import WebContext

logger = get_module_logger(__name__)


class ApiKeyClient(DirectClient):
    """Authenticates requests carrying a configured key in a header"""

    client_type = "api_key"

    def __init__(self, name: str, config: Dict[str, Any] = None):
        helper = ConfigHelper(config)

        self.header_name = helper.get_str("header_name", "X-API-Key")
        self.realm = helper.get_str("realm", DEFAULT_REALM)
        self.keys: List[Dict[str, Any]] = [k for k in helper.get_list("keys") if k]

        super().__init__(name, config)

    def validate_configuration(self) -> List[str]:
        issues = []

        if not self.header_name:
            issues.append(f"Header name is required for {self.name}")

        if not self.keys:
            issues.append(f"At least one API key is required for {self.name}")

        for index, entry in enumerate(self.keys):
            if not entry.get("name"):
                issues.append(f"API key #{index} has no name")
            if not entry.get("key"):
                issues.append(f"API key {entry.get('name', index)} has an empty key")

        return issues

    def get_credentials(self, context: "WebContext") -> Optional[Dict[str, Any]]:
        api_key = context.get_request_header(self.header_name)
        if not api_key:
            return None
        return {"api_key": api_key.strip()}

    def get_user_profile(
        self, credentials: Dict[str, Any], context: "WebContext"
    ) -> Optional[UserProfile]:
        presented = credentials["api_key"].encode("utf-8")

        matched = None
        for entry in self.keys:
            # Check every key so timing does not reveal the match position
            if hmac.compare_digest(presented, str(entry["key"]).encode("utf-8")):
                matched = entry

        if matched is None:
            logger.warning(f"Invalid API key presented to {self.name} from {context.remote_addr}")
            return None

        return UserProfile(
            id=f"api_key:{matched['name']}",
            client_name=self.name,
            username=matched["name"],
            display_name=matched.get("display_name") or matched["name"],
            roles=list(matched.get("roles") or []),
        )

    def add_authentication_challenge(self, context: "WebContext") -> None:
        context.set_response_header(
            AUTHENTICATE_HEADER, f'ApiKey realm="{self.realm}", header="{self.header_name}"'
        )
