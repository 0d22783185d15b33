"""
User Domain Model - Profile returned by the Remote Session API.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Union


def _parse_time(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


@dataclass
class User:
    """
    User entity - the authenticated account's profile.

    Domain rules:
    - user_id is immutable
    - roles are plain strings assigned by the server
    """
    user_id: Union[int, str]
    username: str
    status: str = "active"
    roles: List[str] = field(default_factory=list)

    # Optional fields
    phone: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def has_role(self, role: str) -> bool:
        """Check if the user holds a role (case-insensitive)."""
        wanted = role.lower()
        return any(r.lower() == wanted for r in self.roles)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "user_id": self.user_id,
            "username": self.username,
            "status": self.status,
            "roles": list(self.roles),
            "phone": self.phone,
            "email": self.email,
            "full_name": self.full_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """
        Deserialize from dict.

        Accepts both the snake_case layout of to_dict() and the camelCase
        layout the server sends (id, fullName, createdAt, updatedAt).

        Raises:
            KeyError: If neither user_id nor id is present, or username is missing
        """
        user_id = data["user_id"] if "user_id" in data else data["id"]
        return cls(
            user_id=user_id,
            username=data["username"],
            status=data.get("status") or "active",
            roles=list(data.get("roles") or []),
            phone=data.get("phone"),
            email=data.get("email"),
            full_name=data.get("full_name", data.get("fullName")),
            created_at=_parse_time(data.get("created_at", data.get("createdAt"))),
            updated_at=_parse_time(data.get("updated_at", data.get("updatedAt"))),
            metadata=data.get("metadata", {}),
        )
