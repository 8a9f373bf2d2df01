"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import redis.asyncio as redis
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from accessgate.api.middleware.logging import LoggingMiddleware
from accessgate.api.middleware.rate_limit import RateLimitMiddleware
from accessgate.api.middleware.request_id import RequestIdMiddleware
from accessgate.api.routes import router as api_router
from accessgate.core.config import settings
from accessgate.core.logging import configure_logging
from accessgate.models.database import async_session_factory, close_db, init_db
from accessgate.services.admin import sweep_expired_grants

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    # Startup
    configure_logging()

    # Server databases are managed by migrations
    if settings.database.is_sqlite:
        await init_db()

    if settings.access.sweep_on_startup:
        removed = await sweep_expired_grants(async_session_factory)
        logger.info("Startup grant sweep finished", removed=removed)

    yield

    # Shutdown
    if app.state.redis is not None:
        await app.state.redis.aclose()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.state.redis = (
        redis.from_url(
            settings.redis.url,
            max_connections=settings.redis.max_connections,
            decode_responses=True,
        )
        if settings.redis.url
        else None
    )

    # Middleware (last added is outermost)
    app.add_middleware(RateLimitMiddleware, redis_client=app.state.redis)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # Routes
    app.include_router(api_router, prefix="/api")

    # Exception handlers
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": str(exc) if settings.debug else "An error occurred",
            },
        )

    # Health checks
    @app.get("/health")
    async def health_check():
        """Quick health check endpoint (for load balancers)."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "accessgate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=settings.workers,
    )
