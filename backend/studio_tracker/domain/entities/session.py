"""Domain entity for the signed-in identity and its role-based permissions."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class UserRole(str, Enum):
    """Roles a studio member can hold."""

    ADMIN = "admin"
    EDITOR = "editor"
    SCRIPT_WRITER = "script_writer"
    CLIENT = "client"
    USER = "user"


ROLE_LABELS: dict[str, str] = {
    UserRole.ADMIN.value: "Administrator",
    UserRole.EDITOR.value: "Editor",
    UserRole.SCRIPT_WRITER.value: "Script Writer",
    UserRole.CLIENT.value: "Client",
    UserRole.USER.value: "User",
}

# Navigation tabs each role may open.
ROLE_PERMISSIONS: dict[str, list[str]] = {
    UserRole.ADMIN.value: [
        "dashboard", "projects", "videos", "scripts", "post-productions",
        "comments", "reports", "manage-users",
    ],
    UserRole.EDITOR.value: ["dashboard", "videos", "post-productions", "comments"],
    UserRole.SCRIPT_WRITER.value: ["dashboard", "scripts", "videos", "comments"],
    UserRole.CLIENT.value: ["dashboard", "projects", "videos", "comments"],
    UserRole.USER.value: [
        "dashboard", "projects", "videos", "scripts", "post-productions",
        "comments", "reports",
    ],
}


@dataclass
class Session:
    """The authenticated identity. Persisted across reloads, dropped on logout."""

    id: str
    email: str
    name: str
    role: str = UserRole.USER.value
    is_admin: bool = False

    def has_permission(self, tab: str) -> bool:
        permissions = ROLE_PERMISSIONS.get(self.role) or ROLE_PERMISSIONS[UserRole.USER.value]
        return tab in permissions

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        role = data.get("role") or UserRole.USER.value
        return cls(
            id=str(data["id"]),
            email=data.get("email", ""),
            name=data.get("name", ""),
            role=role,
            is_admin=bool(data.get("is_admin")) or role == UserRole.ADMIN.value,
        )
