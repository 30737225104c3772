import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from boba_pos.core.config import CORS_ORIGINS, DATABASE_URL, ENV
from boba_pos.core.database import StorageClient
from boba_pos.core.errors import Conflict, DomainError, NotFound, PersistenceFailure, ValidationError
from boba_pos.core.logging_setup import configure_logging
from boba_pos.core.startup_checks import (
    ensure_migrations_applied,
    log_feature_state,
    validate_database_environment,
)
from boba_pos.middleware.observability import ObservabilityMiddleware
from boba_pos.routers.internal_metrics import router as internal_metrics_router
from boba_pos.routers.inventory import router as inventory_router
from boba_pos.routers.managers import router as managers_router
from boba_pos.routers.menu import router as menu_router
from boba_pos.routers.orders import router as orders_router
from boba_pos.routers.reports import router as reports_router

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
HTTP_ERROR_KINDS = {
    400: ValidationError.kind,
    401: "unauthorized",
    403: "forbidden",
    404: NotFound.kind,
    405: "method_not_allowed",
    409: Conflict.kind,
}
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


def _startup_tasks(storage: StorageClient) -> None:
    validate_database_environment(storage)
    if storage.is_sqlite:
        storage.create_all()
    ensure_migrations_applied(storage, alembic_config_path=ALEMBIC_CONFIG_PATH)
    log_feature_state(storage)
    logger.info("%s ready env=%s dialect=%s", STARTUP_PREFIX, ENV, storage.engine.dialect.name)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error("%s %s %s", exc.kind, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        kind = HTTP_ERROR_KINDS.get(exc.status_code, "http_error")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": kind, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid input')}" if location else "Invalid request"
        return JSONResponse(status_code=400, content=ValidationError(message).to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("persistence failure path=%s", request.url.path, exc_info=exc)
        failure = PersistenceFailure("Database operation failed")
        return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


def create_app(storage: Optional[StorageClient] = None) -> FastAPI:
    """Build the API. A storage client passed in is used as-is and left open."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        owned = storage is None
        client = storage or StorageClient(DATABASE_URL)
        app.state.storage = client
        try:
            _startup_tasks(client)
            yield
        finally:
            if owned:
                client.dispose()

    app = FastAPI(
        title="Boba POS API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    if storage is not None:
        app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ObservabilityMiddleware)
    _register_exception_handlers(app)

    app.include_router(menu_router)
    app.include_router(orders_router)
    app.include_router(inventory_router)
    app.include_router(reports_router)
    app.include_router(managers_router)
    app.include_router(internal_metrics_router)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "boba-pos"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
