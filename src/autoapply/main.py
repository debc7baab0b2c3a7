"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from autoapply import __version__
from autoapply.api.dependencies import get_orchestrator
from autoapply.api.routes import auto_apply, platforms, sessions
from autoapply.automation.backends.gateway import get_gateway
from autoapply.config import settings
from autoapply.db.session import get_session, init_db
from autoapply.exceptions import AutoApplyError, ConfigurationError, ContinuationError
from autoapply.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    configure_logging()
    await init_db()
    try:
        mode = get_gateway().mode.value
    except ConfigurationError as e:
        # Platform and session routes still work; submissions answer 503
        logger.error(f"No automation backend available, submissions are disabled: {e}")
        mode = "none"
    logger.info(f"Auto-apply API started ({settings.app_env.value}, backend: {mode})")
    yield
    # Shutdown
    await get_orchestrator().shutdown()
    if get_gateway.cache_info().currsize:
        await get_gateway().aclose()
    logger.info("Auto-apply API stopped")


app = FastAPI(
    title="Auto-Apply API",
    description="Automated job application submission",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc), "code": "CONFIGURATION_ERROR"})


@app.exception_handler(ContinuationError)
async def continuation_error_handler(request: Request, exc: ContinuationError):
    return JSONResponse(status_code=409, content={"detail": str(exc), "code": "CONTINUATION_INVALID"})


@app.exception_handler(AutoApplyError)
async def auto_apply_error_handler(request: Request, exc: AutoApplyError):
    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# CORS middleware
_dev_origins = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]
_prod_origins = [settings.frontend_url] if settings.frontend_url else []
app.add_middleware(
    CORSMiddleware,
    allow_origins=_dev_origins if settings.is_development else _prod_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Auto-Apply API",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health():
    """Health check endpoint, including the automation mode in use."""
    try:
        automation = get_gateway().status()
    except ConfigurationError as e:
        automation = {"mode": None, "error": str(e)}

    try:
        async with get_session() as db:
            await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        database = "unavailable"

    return {
        "status": "ok" if automation.get("mode") and database == "ok" else "degraded",
        "environment": settings.app_env.value,
        "database": database,
        "automation": automation,
    }


app.include_router(auto_apply.router, prefix="/api/auto-apply", tags=["auto-apply"])
app.include_router(platforms.router, prefix="/api/platforms", tags=["platforms"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
