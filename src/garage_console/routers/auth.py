"""Authentication API endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from garage_console.auth.dependencies import require_session
from garage_console.auth.models import LoginRequest, LoginResponse, SessionClaims
from garage_console.auth.service import SessionAuthenticator
from garage_console.errors import Unauthenticated

router = APIRouter(prefix="/auth", tags=["auth"])

_service: SessionAuthenticator | None = None


def init_router(service: SessionAuthenticator) -> None:
    global _service  # noqa: PLW0603
    _service = service


def _svc() -> SessionAuthenticator:
    assert _service is not None, "SessionAuthenticator not initialized"
    return _service


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest) -> LoginResponse:
    token = _svc().login(body.password)
    if token is None:
        raise Unauthenticated("Invalid credentials")
    return LoginResponse(token=token, expires_in=_svc().ttl_seconds)


@router.post("/logout")
def logout() -> dict:
    # Stateless JWT: logout is client-side token removal.
    return {"ok": True}


@router.get("/me", response_model=SessionClaims)
def me(user: Annotated[SessionClaims, Depends(require_session)]) -> SessionClaims:
    return user
