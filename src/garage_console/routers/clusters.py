"""Cluster registration endpoints. Tokens go in, never come back out."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from garage_console.auth.dependencies import require_session
from garage_console.clusters.models import (
    ClusterCreateRequest,
    ClusterInfo,
    ClusterUpdateRequest,
)
from garage_console.clusters.service import ClusterService
from garage_console.errors import ClusterNotFound

router = APIRouter(
    prefix="/clusters",
    tags=["clusters"],
    dependencies=[Depends(require_session)],
)

_service: ClusterService | None = None


def init_router(service: ClusterService) -> None:
    global _service  # noqa: PLW0603
    _service = service


def _svc() -> ClusterService:
    assert _service is not None, "ClusterService not initialized"
    return _service


@router.get("", response_model=list[ClusterInfo])
def list_clusters() -> list[ClusterInfo]:
    return _svc().list_clusters()


@router.post("", response_model=ClusterInfo, status_code=201)
def create_cluster(body: ClusterCreateRequest) -> ClusterInfo:
    return _svc().create_cluster(
        name=body.name,
        endpoint=body.endpoint,
        admin_token=body.admin_token,
        metric_token=body.metric_token,
    )


@router.get("/{cluster_id}", response_model=ClusterInfo)
def get_cluster(cluster_id: str) -> ClusterInfo:
    cluster = _svc().get_cluster(cluster_id)
    if cluster is None:
        raise ClusterNotFound(cluster_id)
    return cluster


@router.put("/{cluster_id}", response_model=ClusterInfo)
def update_cluster(cluster_id: str, body: ClusterUpdateRequest) -> ClusterInfo:
    changes = {
        name: getattr(body, name)
        for name in ("name", "endpoint", "admin_token")
        if getattr(body, name) is not None
    }
    # Only an explicit metricToken (including null) touches the metric token.
    if "metric_token" in body.model_fields_set:
        changes["metric_token"] = body.metric_token

    cluster = _svc().update_cluster(cluster_id, **changes)
    if cluster is None:
        raise ClusterNotFound(cluster_id)
    return cluster


@router.delete("/{cluster_id}", status_code=204)
def delete_cluster(cluster_id: str) -> Response:
    if not _svc().delete_cluster(cluster_id):
        raise ClusterNotFound(cluster_id)
    return Response(status_code=204)
