import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fanvault import __version__
from fanvault.api.deps import get_context, get_rules, get_settings
from fanvault.api.routes import (
    admin,
    earnings,
    messages,
    notifications,
    posts,
    profiles,
    purchases,
    reports,
    subscriptions,
    tips,
)
from fanvault.app_shell.config import validate_ops_rules
from fanvault.domain.errors import (
    AlreadyExists,
    FanVaultError,
    InvalidState,
    NotAuthenticated,
    NotFound,
    PaymentFailed,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[FanVaultError], int] = {
    NotAuthenticated: 401,
    PermissionDenied: 403,
    NotFound: 404,
    InvalidState: 422,
    PaymentFailed: 402,
    AlreadyExists: 409,
}


def status_for(exc: FanVaultError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = get_rules()
    except (FileNotFoundError, ValueError) as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)
    validate_ops_rules(rules, settings)
    logger.info("Rules loaded from %s", settings.rules_path)

    get_context()
    yield


async def fanvault_error_handler(request: Request, exc: FanVaultError) -> JSONResponse:
    status_code = status_for(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    if isinstance(exc, AlreadyExists):
        # Managers normalise these; reaching the API means a missed case
        logger.warning("Unhandled uniqueness conflict on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="FanVault API",
        version=__version__,
        lifespan=lifespan if with_lifespan else None,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.add_exception_handler(FanVaultError, fanvault_error_handler)  # type: ignore[arg-type]

    # --- Routers ---
    app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
    app.include_router(posts.router, prefix="/api/posts", tags=["Posts"])
    app.include_router(subscriptions.router, prefix="/api/subscriptions", tags=["Subscriptions"])
    app.include_router(purchases.router, prefix="/api/purchases", tags=["Purchases"])
    app.include_router(tips.router, prefix="/api/tips", tags=["Tips"])
    app.include_router(earnings.router, prefix="/api/earnings", tags=["Earnings"])
    app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
    app.include_router(messages.router, prefix="/api/conversations", tags=["Messages"])
    app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])

    # CORS (Allow Frontend)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "service": "api"}

    return app


app = create_app()
