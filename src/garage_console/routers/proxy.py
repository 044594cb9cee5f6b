"""Authenticated pass-through to a cluster's admin API.

``/proxy/{cluster_id}/v2/GetClusterStatus`` is forwarded to
``{endpoint}/v2/GetClusterStatus`` with the cluster's own bearer token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from garage_console.auth.dependencies import require_session
from garage_console.proxy.forwarder import ForwardingEngine
from garage_console.proxy.routing import CredentialRouter

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

router = APIRouter(
    prefix="/proxy",
    tags=["proxy"],
    dependencies=[Depends(require_session)],
)

_router: CredentialRouter | None = None
_engine: ForwardingEngine | None = None


def init_router(credential_router: CredentialRouter, engine: ForwardingEngine) -> None:
    global _router, _engine  # noqa: PLW0603
    _router = credential_router
    _engine = engine


def _routing() -> CredentialRouter:
    assert _router is not None, "CredentialRouter not initialized"
    return _router


def _forwarder() -> ForwardingEngine:
    assert _engine is not None, "ForwardingEngine not initialized"
    return _engine


async def _relay(request: Request, cluster_id: str, sub_path: str) -> Response:
    target = await _routing().resolve(cluster_id, sub_path)
    upstream = await _forwarder().forward(
        target,
        request.method,
        body=await request.body(),
        query=request.scope.get("query_string", b""),
        headers=request.headers,
    )
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=upstream.headers,
    )


@router.api_route("/{cluster_id}", methods=PROXY_METHODS)
async def proxy_root(request: Request, cluster_id: str) -> Response:
    return await _relay(request, cluster_id, "")


@router.api_route("/{cluster_id}/{sub_path:path}", methods=PROXY_METHODS)
async def proxy_path(request: Request, cluster_id: str, sub_path: str) -> Response:
    return await _relay(request, cluster_id, sub_path)
