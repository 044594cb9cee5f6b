"""Shared fixtures: config, registry, and a recording upstream transport."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from garage_console.app import create_app
from garage_console.clusters.service import ClusterService
from garage_console.config import ConsoleConfig
from garage_console.crypto.cipher import TokenCipher
from garage_console.db.connection import Database
from garage_console.db.migrations import run_migrations

ENCRYPTION_KEY = "01234567890123456789012345678901"
JWT_SECRET = "test-jwt-secret-" + "a" * 48
ADMIN_PASSWORD = "test-admin-password"


class RecordingUpstream:
    """An ``httpx.MockTransport`` that remembers every request it saw."""

    def __init__(
        self,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler or (lambda _req: httpx.Response(200, json={"ok": True}))
        self.transport = httpx.MockTransport(self._record)

    def _record(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "upstream was never called"
        return self.requests[-1]


@pytest.fixture()
def config(tmp_path: Path) -> ConsoleConfig:
    return ConsoleConfig(
        encryption_key=ENCRYPTION_KEY,
        jwt_secret=JWT_SECRET,
        admin_password=ADMIN_PASSWORD,
        db_path=str(tmp_path / "console.db"),
    )


@pytest.fixture()
def cipher() -> TokenCipher:
    return TokenCipher(ENCRYPTION_KEY.encode())


@pytest.fixture()
def db(tmp_path: Path) -> Generator[Database, None, None]:
    d = Database(str(tmp_path / "registry.db"))
    run_migrations(d)
    yield d
    d.close()


@pytest.fixture()
def cluster_svc(db: Database, cipher: TokenCipher) -> ClusterService:
    return ClusterService(db, cipher)


@pytest.fixture()
def upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture()
def client(
    config: ConsoleConfig, upstream: RecordingUpstream
) -> Generator[TestClient, None, None]:
    app = create_app(config, transport=upstream.transport)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    login = client.post("/auth/login", json={"password": ADMIN_PASSWORD})
    assert login.status_code == 200
    return {"Authorization": f"Bearer {login.json()['token']}"}
