"""
FastAPI application factory.

``create_app`` wires the profile store, the credential cipher, the session
manager and the cluster services together in the application lifespan and
mounts every router under ``/api``. In production the built frontend is
served from ``STATIC_DIR`` with a single-page-app fallback.
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from . import __version__
from .api import ROUTERS
from .api.errors import register_exception_handlers
from .config.settings import DEFAULT_ENCRYPTION_KEY, AppSettings
from .exceptions import EntityNotFoundError
from .security.cipher import CredentialCipher
from .services.cluster_gateway import ClusterGateway
from .services.copy_orchestrator import CopyOrchestrator
from .services.elasticsearch_client import ElasticsearchClientFactory
from .services.session_manager import SessionManager
from .storage.database import Database
from .storage.stores import ConnectionStore, SavedQueryStore
from .utils.logging import (
    clear_correlation_id,
    get_logger,
    log_api_request,
    log_api_response,
    set_correlation_id,
)

logger = get_logger(__name__)

API_PREFIX = "/api"
CORRELATION_HEADER = "X-Correlation-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: AppSettings = app.state.settings

    if settings.encryption_key == DEFAULT_ENCRYPTION_KEY:
        logger.warning("ENCRYPTION_KEY is not set; stored passwords use the default key")

    database = Database(
        settings.resolve_database_url(),
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
    )
    await database.initialize()

    cipher = CredentialCipher(settings.encryption_key)
    connection_store = ConnectionStore(database, cipher)
    session_manager = SessionManager(
        connection_store,
        ElasticsearchClientFactory(verify_certs=settings.verify_certs),
    )

    app.state.database = database
    app.state.connection_store = connection_store
    app.state.query_store = SavedQueryStore(database)
    app.state.session_manager = session_manager
    app.state.gateway = ClusterGateway(session_manager)
    app.state.copy_orchestrator = CopyOrchestrator(session_manager, settings.copy_concurrency)

    logger.info(
        "ElasticScope started",
        extra={
            "version": __version__,
            "environment": settings.environment,
            "database_backend": database.backend,
        },
    )
    try:
        yield
    finally:
        await session_manager.close()
        await database.close()
        logger.info("ElasticScope stopped")


def mount_frontend(app: FastAPI, static_dir: str) -> None:
    """Serve the built frontend, falling back to ``index.html`` for client routes."""
    root = Path(static_dir).resolve()
    index_file = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def frontend(full_path: str) -> FileResponse:
        if full_path == "api" or full_path.startswith("api/"):
            raise EntityNotFoundError("NOT_FOUND")
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)
        return FileResponse(index_file)

    logger.info("Serving static files", extra={"static_dir": str(root)})


def create_app(settings: AppSettings | None = None) -> FastAPI:
    settings = settings or AppSettings()

    app = FastAPI(title="ElasticScope", version=__version__, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        start = time.perf_counter()
        log_api_request(request.method, request.url.path)
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            log_api_response(request.method, request.url.path, response.status_code, duration_ms)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()

    register_exception_handlers(app)

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    if settings.is_production:
        mount_frontend(app, settings.static_dir)

    return app
