"""Session and login data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

ADMIN_ROLE = "admin"


class LoginRequest(BaseModel):
    password: str


class LoginResponse(BaseModel):
    token: str
    expires_in: int


class SessionClaims(BaseModel):
    """JWT payload for console sessions."""

    role: str = ADMIN_ROLE
    iat: int
    exp: int

    def to_jwt_payload(self) -> dict[str, Any]:
        return self.model_dump()
