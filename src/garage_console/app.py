"""FastAPI application factory for the console BFF."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from garage_console import __version__
from garage_console.auth.dependencies import init_auth
from garage_console.auth.service import SessionAuthenticator
from garage_console.clusters.service import ClusterService
from garage_console.config import ConsoleConfig, load_config
from garage_console.crypto.cipher import CipherError, TokenCipher
from garage_console.db.connection import Database
from garage_console.db.migrations import run_migrations
from garage_console.errors import ConsoleError
from garage_console.proxy.forwarder import ForwardingEngine
from garage_console.proxy.routing import CredentialRouter
from garage_console.routers import auth as auth_router
from garage_console.routers import clusters as clusters_router
from garage_console.routers import health
from garage_console.routers import proxy as proxy_router

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def _console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
    return _error(exc.status_code, exc.message)


async def _cipher_error_handler(request: Request, exc: CipherError) -> JSONResponse:
    # Already logged with the cluster id where it was raised.
    return _error(500, "Stored cluster credential could not be decrypted")


async def _http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _error(400, "Invalid request", issues=jsonable_encoder(exc.errors()))


def create_app(
    config: ConsoleConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Configuration is validated before anything else is constructed, so a
    bad key or missing secret stops the process at startup. Services are
    injected into each router via its ``init_router()`` function.
    *transport* replaces the upstream HTTP transport (used by tests).
    """
    config = load_config() if config is None else config.validate()

    cipher = TokenCipher(config.encryption_key_bytes)
    authenticator = SessionAuthenticator(
        config.jwt_secret, config.admin_password, ttl_seconds=config.session_ttl
    )
    db = Database(config.db_path)
    run_migrations(db)
    cluster_svc = ClusterService(db, cipher)
    engine = ForwardingEngine(timeout=config.proxy_timeout, transport=transport)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info("Console BFF ready (%d clusters registered)", cluster_svc.cluster_count())
        yield
        await engine.aclose()
        db.close()

    app = FastAPI(
        title="Garage Console BFF",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --- CORS (dev mode only) ---
    if config.dev_mode:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["http://localhost:5173"],  # Vite dev server
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # --- Error envelope ---
    app.add_exception_handler(ConsoleError, _console_error_handler)
    app.add_exception_handler(CipherError, _cipher_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # --- Routers ---
    init_auth(authenticator)
    auth_router.init_router(authenticator)
    clusters_router.init_router(cluster_svc)
    proxy_router.init_router(CredentialRouter(cluster_svc, cipher), engine)

    app.include_router(health.router)
    app.include_router(auth_router.router)
    app.include_router(clusters_router.router)
    app.include_router(proxy_router.router)

    app.state.config = config
    app.state.db = db
    app.state.cluster_service = cluster_svc
    app.state.authenticator = authenticator
    app.state.cipher = cipher

    return app
