"""
ABOUTME: User profile data transfer object produced by security clients
ABOUTME: Serializable to the Flask session, no database dependencies

File: models/profile.py

Description:
    Authenticated user profile built by a client after a successful login (OIDC claims,
    form login, API key). Profiles are stored in the Flask session as plain dictionaries
    so they survive the cookie round trip, and rebuilt on access.

Author: Emfour Solutions
Created: 2026-10-17
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class UserProfile:
    """Immutable authenticated user profile"""

    id: str
    client_name: str
    username: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
    roles: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    authenticated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "client_name": self.client_name,
            "username": self.username,
            "email": self.email,
            "display_name": self.display_name,
            "roles": list(self.roles),
            "attributes": dict(self.attributes),
            "authenticated_at": self.authenticated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        """Rebuild a profile from its session representation"""
        kwargs = {
            "id": str(data["id"]),
            "client_name": data["client_name"],
            "username": data.get("username"),
            "email": data.get("email"),
            "display_name": data.get("display_name"),
            "roles": list(data.get("roles") or []),
            "attributes": dict(data.get("attributes") or {}),
        }
        if data.get("authenticated_at"):
            kwargs["authenticated_at"] = data["authenticated_at"]
        return cls(**kwargs)
