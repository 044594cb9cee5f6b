"""BFF-level error taxonomy.

Every failure the console detects itself is a ``ConsoleError`` carrying the
HTTP status it maps to and a message that is safe to show to the client.
Upstream responses are never errors: whatever status the cluster returns is
relayed as-is.
"""

from __future__ import annotations


class ConsoleError(Exception):
    """Base class for failures rendered as ``{"error": message}``."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ConsoleError):
    """No bearer credential, or one not in ``Bearer <token>`` form."""

    status_code = 401
    default_message = "Authentication required"


class Forbidden(ConsoleError):
    """A well-formed session token that is mis-signed or expired."""

    status_code = 403
    default_message = "Invalid or expired session"


class ClusterNotFound(ConsoleError):
    status_code = 404
    default_message = "Cluster not found"

    def __init__(self, cluster_id: str) -> None:
        self.cluster_id = cluster_id
        super().__init__()


class BadGateway(ConsoleError):
    """The upstream cluster could not be reached (refused, DNS, timeout)."""

    status_code = 502
    default_message = "Bad Gateway"
