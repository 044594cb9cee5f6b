"""Single-attempt relay of console requests to a cluster's admin API.

The forwarder swaps in the cluster's bearer credential, carries the method,
body and query string through unmodified, and hands back whatever the
upstream answered, status code included. Only network-level failures
(refused connection, DNS, timeout) become errors.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import quote

import httpx

from garage_console.errors import BadGateway
from garage_console.proxy.routing import UpstreamTarget

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

# Characters left as-is when escaping a raw query string. Existing %XX
# escapes and the usual delimiters pass through, other bytes get escaped.
QUERY_SAFE_CHARS = "&=+%/?:@,;!$'()*~[]"

# Inbound headers copied to the upstream request when present.
FORWARDED_REQUEST_HEADERS: tuple[str, ...] = ("content-type", "accept")

# Upstream response headers copied back to the client when present.
RELAYED_RESPONSE_HEADERS: tuple[str, ...] = (
    "content-type",
    "content-disposition",
    "cache-control",
    "etag",
    "last-modified",
)


@dataclass(frozen=True)
class ProxiedResponse:
    """An upstream answer, reduced to what the console relays."""

    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)


def build_upstream_headers(token: str, inbound: Mapping[str, str]) -> dict[str, str]:
    """Outbound headers: the cluster credential plus the allow-listed few.

    Any ``Authorization`` the client sent (the console session) is replaced.
    """
    lowered = {k.lower(): v for k, v in inbound.items()}
    headers = {"Authorization": f"Bearer {token}"}
    for name in FORWARDED_REQUEST_HEADERS:
        value = lowered.get(name)
        if value:
            headers[name.title()] = value
    return headers


def encode_query(raw: bytes) -> bytes:
    """Percent-escape bytes a URL query cannot carry, leaving the rest intact."""
    return quote(raw, safe=QUERY_SAFE_CHARS).encode("ascii")


def filter_response_headers(upstream: Mapping[str, str]) -> dict[str, str]:
    lowered = {k.lower(): v for k, v in upstream.items()}
    return {name: lowered[name] for name in RELAYED_RESPONSE_HEADERS if name in lowered}


class ForwardingEngine:
    """Issues upstream calls over one shared ``httpx.AsyncClient``.

    Args:
        timeout: Bound on every upstream call, in seconds.
        transport: Optional transport override (``httpx.MockTransport`` in
            tests).
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
            follow_redirects=False,
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    async def forward(
        self,
        target: UpstreamTarget,
        method: str,
        *,
        body: bytes = b"",
        query: bytes = b"",
        headers: Mapping[str, str] | None = None,
    ) -> ProxiedResponse:
        """Send one request upstream and relay the answer.

        Raises:
            BadGateway: The upstream could not be reached or timed out.
        """
        url = httpx.URL(target.url)
        if query:
            url = url.copy_with(query=encode_query(query))

        request = self._client.build_request(
            method,
            url,
            headers=build_upstream_headers(target.token, headers or {}),
            content=body or None,
        )

        logger.info("[proxy] %s %s", method, target.url)
        try:
            response = await self._client.send(request)
        except httpx.RequestError as exc:
            logger.warning(
                "[proxy] %s %s failed for cluster %s: %s: %s",
                method,
                target.url,
                target.cluster_id,
                type(exc).__name__,
                exc,
            )
            raise BadGateway() from exc

        logger.info("[proxy] %s %s -> %d", method, target.url, response.status_code)
        return ProxiedResponse(
            status_code=response.status_code,
            content=response.content,
            headers=filter_response_headers(response.headers),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
