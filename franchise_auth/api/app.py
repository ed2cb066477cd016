"""
FastAPI application for the franchise auth backend.

Wires storage, the token service, the credential hasher and the
orchestrating services together, and renders every error as the same
JSON shape:

    {"statusCode": 401, "message": "...", "timestamp": "...", "path": "/auth/profile"}

with a "stacktrace" field outside production.
"""

from __future__ import annotations

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from franchise_auth.admin.routes import router as admin_router
from franchise_auth.auth.jwt import TokenService
from franchise_auth.auth.passwords import CredentialHasher
from franchise_auth.auth.routes import router as auth_router
from franchise_auth.config import Settings, get_settings
from franchise_auth.core.errors import AuthError
from franchise_auth.core.utils import utc_now
from franchise_auth.integrations.sentry import capture_exception, init_sentry
from franchise_auth.services.admin import AdminService
from franchise_auth.services.auth import AuthService
from franchise_auth.services.notification import NotificationPublisher
from franchise_auth.services.seed import ensure_admin, seed_roles
from franchise_auth.storage import (
    InMemoryAccountStore,
    InMemoryQueueStorage,
    RabbitMQQueueStorage,
    StorageProvider,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Logging
# =============================================================================


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# =============================================================================
# Storage
# =============================================================================


def create_storage(settings: Settings) -> StorageProvider:
    """Pick the queue backend from settings. Accounts stay in-process."""
    if settings.use_rabbitmq:
        queue = RabbitMQQueueStorage(settings.rabbitmq_url)
    else:
        logger.warning("RABBITMQ_URL not set - notifications stay in memory")
        queue = InMemoryQueueStorage()
    return StorageProvider(accounts=InMemoryAccountStore(), queue=queue)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup app resources."""
    settings: Settings = app.state.settings

    if init_sentry(settings):
        logger.info("Sentry error tracking enabled")

    storage: StorageProvider = app.state.storage or create_storage(settings)
    app.state.storage = storage

    tokens = TokenService(settings)
    hasher = CredentialHasher(settings)
    notifications = NotificationPublisher(storage.queue, settings)
    auth_service = AuthService(storage, tokens, hasher, notifications)

    app.state.tokens = tokens
    app.state.auth_service = auth_service
    app.state.admin_service = AdminService(auth_service)

    await seed_roles(storage.accounts)
    await ensure_admin(auth_service, settings)

    logger.info(f"Franchise auth API starting in {settings.environment} mode")

    yield

    await auth_service.drain()
    await storage.queue.close()
    logger.info("Franchise auth API shutting down")


# =============================================================================
# Error Responses
# =============================================================================


def error_body(
    request: Request,
    settings: Settings,
    status_code: int,
    message: Any,
    exc: BaseException,
) -> dict[str, Any]:
    body = {
        "statusCode": status_code,
        "message": message,
        "timestamp": utc_now().isoformat(),
        "path": request.url.path,
    }
    if not settings.is_production:
        body["stacktrace"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def register_exception_handlers(app: FastAPI) -> None:
    settings: Settings = app.state.settings

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request, settings, exc.status_code, exc.message, exc),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request, settings, exc.status_code, exc.detail, exc),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = [
            f"{'.'.join(str(p) for p in error['loc'] if p != 'body')}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=error_body(request, settings, 400, messages, exc),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        capture_exception(exc, path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_body(request, settings, 500, "Internal server error", exc),
        )


# =============================================================================
# App Setup
# =============================================================================


def create_app(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to the cached environment settings
        storage: Defaults to in-memory accounts plus a queue chosen by settings
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Franchise Auth API",
        description="Registration, authentication and franchise-scoped user management",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "environment": settings.environment}

    return app
