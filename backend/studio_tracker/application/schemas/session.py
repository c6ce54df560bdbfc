"""Pydantic DTOs for sign-in and the current session."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, examples=["editor@studio.test"])
    password: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """The signed-in identity plus the tabs its role may open."""

    id: str
    email: str
    name: str
    role: str
    role_label: str
    is_admin: bool
    permissions: list[str]


class UserUpdateRequest(BaseModel):
    """Profile changes made by an admin; applied only to the matching session."""

    id: str
    name: str | None = None
    email: str | None = None
    role: str | None = None
