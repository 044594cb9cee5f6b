"""FastAPI dependencies for session authentication."""

from __future__ import annotations

from fastapi import Request

from garage_console.auth.models import SessionClaims
from garage_console.auth.service import SessionAuthenticator
from garage_console.errors import Unauthenticated

# Module-level service reference, set by app factory.
_authenticator: SessionAuthenticator | None = None


def init_auth(authenticator: SessionAuthenticator) -> None:
    """Called by the app factory to inject the authenticator."""
    global _authenticator  # noqa: PLW0603
    _authenticator = authenticator


def _get_authenticator() -> SessionAuthenticator:
    assert _authenticator is not None, "SessionAuthenticator not initialized"
    return _authenticator


def extract_bearer_token(request: Request) -> str:
    """Return the token from ``Authorization: Bearer <token>``.

    Raises:
        Unauthenticated: The header is missing or not in bearer form.
    """
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    token = token.strip()
    if scheme != "Bearer" or not token or " " in token:
        raise Unauthenticated()
    return token


def require_session(request: Request) -> SessionClaims:
    """Require a valid session: 401 when absent, 403 when invalid or expired."""
    token = extract_bearer_token(request)
    return _get_authenticator().verify(token)
