"""Resolve a proxied request to an upstream URL and bearer credential."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from starlette.concurrency import run_in_threadpool

from garage_console.clusters.models import ClusterRecord
from garage_console.crypto.cipher import CipherError, TokenCipher
from garage_console.errors import ClusterNotFound

logger = logging.getLogger(__name__)

METRICS_PATH = "metrics"


@runtime_checkable
class ClusterRegistry(Protocol):
    """Anything that can look a cluster record up by id."""

    def get(self, cluster_id: str) -> ClusterRecord | None:
        """Return the record, or ``None`` if no such cluster exists."""
        ...


@dataclass(frozen=True)
class UpstreamTarget:
    """Where to send a proxied request and which credential to present."""

    cluster_id: str
    url: str
    token: str

    def __repr__(self) -> str:
        return f"UpstreamTarget(cluster_id={self.cluster_id!r}, url={self.url!r})"


def normalize_sub_path(value: str | Sequence[str] | None) -> str:
    """Collapse a wildcard capture into one canonical sub-path string.

    Segment arrays are rejoined with ``/`` in their original order; strings
    pass through verbatim.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return "/".join(value)


def build_target_url(endpoint: str, sub_path: str) -> str:
    """Join the cluster endpoint and sub-path with exactly one ``/``.

    An empty sub-path addresses the cluster root, i.e. the bare endpoint.
    """
    base = endpoint.rstrip("/")
    return f"{base}/{sub_path}" if sub_path else base


class CredentialRouter:
    """Picks the destination URL and decrypts the matching credential."""

    def __init__(self, registry: ClusterRegistry, cipher: TokenCipher) -> None:
        self._registry = registry
        self._cipher = cipher

    def select_token(self, record: ClusterRecord, sub_path: str) -> str:
        """Decrypt the metric token for the metrics path, else the admin token.

        Falls back to the admin token when no metric token is configured.
        Cipher errors propagate: a credential that cannot be decrypted is
        unusable until it is re-entered.
        """
        if sub_path == METRICS_PATH and record.metric_token:
            return self._cipher.decrypt(record.metric_token)
        return self._cipher.decrypt(record.admin_token)

    async def resolve(
        self, cluster_id: str, sub_path: str | Sequence[str] | None
    ) -> UpstreamTarget:
        """Look the cluster up and build its upstream target.

        Raises:
            ClusterNotFound: No cluster has this id. No network activity
                has happened at this point.
            CipherError: The stored credential could not be decrypted.
        """
        path = normalize_sub_path(sub_path)
        record = await run_in_threadpool(self._registry.get, cluster_id)
        if record is None:
            raise ClusterNotFound(cluster_id)

        try:
            token = self.select_token(record, path)
        except CipherError:
            logger.error("Stored credential for cluster %s could not be decrypted", cluster_id)
            raise
        return UpstreamTarget(
            cluster_id=record.id,
            url=build_target_url(record.endpoint, path),
            token=token,
        )
