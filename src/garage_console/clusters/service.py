"""Cluster registration and credential storage."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from garage_console.clusters.models import ClusterInfo, ClusterRecord
from garage_console.crypto.cipher import TokenCipher
from garage_console.db.connection import Database

logger = logging.getLogger(__name__)

# Distinguishes "leave metric_token alone" from "clear it" (None).
_UNSET: Any = object()


class ClusterService:
    """Manages cluster rows. Tokens are encrypted before they touch the DB."""

    def __init__(self, db: Database, cipher: TokenCipher) -> None:
        self._db = db
        self._cipher = cipher

    # ------------------------------------------------------------------
    # Registry lookup (consumed by the proxy)
    # ------------------------------------------------------------------

    def get(self, cluster_id: str) -> ClusterRecord | None:
        """Return the stored record, ciphertext included, or ``None``."""
        row = self._db.fetchone("SELECT * FROM clusters WHERE id = ?", (cluster_id,))
        return self._row_to_record(row) if row else None

    # ------------------------------------------------------------------
    # Cluster CRUD
    # ------------------------------------------------------------------

    def create_cluster(
        self,
        name: str,
        endpoint: str,
        admin_token: str,
        metric_token: str | None = None,
    ) -> ClusterInfo:
        """Register a cluster, encrypting its tokens."""
        if not admin_token:
            raise ValueError("admin_token is required")

        cluster_id = str(uuid.uuid4())
        now = datetime.now(tz=UTC).isoformat()
        self._db.write(
            """INSERT INTO clusters
               (id, name, endpoint, admin_token, metric_token, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                cluster_id,
                name,
                endpoint,
                self._cipher.encrypt(admin_token),
                self._cipher.encrypt(metric_token) if metric_token else None,
                now,
                now,
            ),
        )
        logger.info("Registered cluster %s (%s)", cluster_id, name)
        return ClusterInfo(
            id=cluster_id,
            name=name,
            endpoint=endpoint,
            has_metric_token=bool(metric_token),
            created_at=now,
            updated_at=now,
        )

    def list_clusters(self) -> list[ClusterInfo]:
        rows = self._db.fetchall("SELECT * FROM clusters ORDER BY created_at")
        return [self._to_info(self._row_to_record(r)) for r in rows]

    def get_cluster(self, cluster_id: str) -> ClusterInfo | None:
        record = self.get(cluster_id)
        return self._to_info(record) if record else None

    def update_cluster(
        self,
        cluster_id: str,
        *,
        name: str | None = None,
        endpoint: str | None = None,
        admin_token: str | None = None,
        metric_token: str | None = _UNSET,
    ) -> ClusterInfo | None:
        """Apply a partial update. Rotated tokens are re-encrypted.

        Passing ``metric_token=None`` clears the metric token; omitting it
        leaves the stored value untouched.
        """
        if self.get(cluster_id) is None:
            return None

        updates: list[str] = []
        params: list[Any] = []

        if name is not None:
            updates.append("name = ?")
            params.append(name)
        if endpoint is not None:
            updates.append("endpoint = ?")
            params.append(endpoint)
        if admin_token is not None:
            if not admin_token:
                raise ValueError("admin_token cannot be empty")
            updates.append("admin_token = ?")
            params.append(self._cipher.encrypt(admin_token))
        if metric_token is not _UNSET:
            updates.append("metric_token = ?")
            params.append(self._cipher.encrypt(metric_token) if metric_token else None)

        if updates:
            updates.append("updated_at = ?")
            params.append(datetime.now(tz=UTC).isoformat())
            params.append(cluster_id)
            self._db.write(
                f"UPDATE clusters SET {', '.join(updates)} WHERE id = ?",  # noqa: S608
                tuple(params),
            )
            logger.info("Updated cluster %s", cluster_id)

        return self.get_cluster(cluster_id)

    def delete_cluster(self, cluster_id: str) -> bool:
        cursor = self._db.write("DELETE FROM clusters WHERE id = ?", (cluster_id,))
        if cursor.rowcount > 0:
            logger.info("Deleted cluster %s", cluster_id)
            return True
        return False

    def cluster_count(self) -> int:
        row = self._db.fetchone("SELECT COUNT(*) AS cnt FROM clusters")
        return int(row["cnt"]) if row else 0

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: Any) -> ClusterRecord:
        return ClusterRecord(
            id=row["id"],
            name=row["name"],
            endpoint=row["endpoint"],
            admin_token=row["admin_token"],
            metric_token=row["metric_token"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _to_info(record: ClusterRecord) -> ClusterInfo:
        return ClusterInfo(
            id=record.id,
            name=record.name,
            endpoint=record.endpoint,
            has_metric_token=bool(record.metric_token),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
