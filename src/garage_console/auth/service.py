"""Stateless session tokens for the console.

A session is an HS256 JWT signed with the deployment's shared secret. There
is no server-side session store and therefore no per-session revocation:
a token is valid until it expires or the secret is rotated, which ends
every outstanding session at once. Logout is the client discarding its
token.
"""

from __future__ import annotations

import hmac
import logging
import time
from typing import Any

import jwt
from pydantic import ValidationError

from garage_console.auth.models import ADMIN_ROLE, SessionClaims
from garage_console.errors import Forbidden

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 24 * 3600
_ALGORITHM = "HS256"


class SessionAuthenticator:
    """Issues and verifies signed session tokens. Nothing else."""

    def __init__(
        self,
        signing_secret: str,
        admin_password: str,
        ttl_seconds: int = SESSION_TTL_SECONDS,
    ) -> None:
        if not signing_secret:
            raise ValueError("Signing secret must not be empty")
        self._signing_secret = signing_secret
        self._admin_password = admin_password
        self._ttl = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def issue(self, claims: dict[str, Any] | None = None) -> str:
        """Sign *claims* (default: the admin role) with a fixed expiry."""
        now = int(time.time())
        payload: dict[str, Any] = {"role": ADMIN_ROLE, **(claims or {})}
        payload["iat"] = now
        payload["exp"] = now + self._ttl
        return jwt.encode(payload, self._signing_secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        """Check signature and expiry.

        Raises:
            Forbidden: The token is mis-signed, expired, or malformed.
        """
        try:
            payload = jwt.decode(
                token,
                self._signing_secret,
                algorithms=[_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
            return SessionClaims(**payload)
        except jwt.ExpiredSignatureError as exc:
            raise Forbidden("Session expired") from exc
        except (jwt.PyJWTError, ValidationError) as exc:
            logger.debug("Rejected session token: %s", exc)
            raise Forbidden() from exc

    def login(self, password: str) -> str | None:
        """Return a fresh session token if *password* matches, else ``None``."""
        if not hmac.compare_digest(
            password.encode("utf-8"), self._admin_password.encode("utf-8")
        ):
            return None
        return self.issue()
