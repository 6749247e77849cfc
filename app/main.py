"""Push Campaign Manager API - Main Application Module.

This module initializes the FastAPI application with proper configuration,
middleware, routing, and lifecycle management for the campaign manager.
"""

import logging
import sys
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

# Add the project root to Python path if running directly
if __name__ == "__main__":
    project_root = Path(__file__).parent.parent
    sys.path.insert(0, str(project_root))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import ConfigValidator, get_config_summary, settings
from app.core.logging_config import configure_logging
from app.database import AsyncSessionLocal, engine
from models import Base, utcnow

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Manage application lifecycle events."""
    configure_logging()
    logger.info(f"🚀 Starting {settings.app_name}...")
    ConfigValidator.validate_required_settings()
    logger.info("Configuration: %s", get_config_summary())

    # Development mode: Auto-create tables if they don't exist
    if settings.is_development:
        logger.info("📝 Development mode: Creating/updating database tables...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables created/verified")

    if not settings.has_push_enabled:
        logger.warning("⚠️ VAPID keys are not configured; campaigns cannot be sent")

    yield

    logger.info(f"🛑 Shutting down {settings.app_name}...")
    await engine.dispose()
    logger.info("✅ Database connections closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Web Push campaign manager with delivery tracking and RSS auto-send",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Add middleware
    setup_middleware(app)

    # Add exception handlers
    setup_exception_handlers(app)

    # Include routers
    setup_routers(app)

    return app


def setup_middleware(app: FastAPI):
    """Configure application middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        # Keep an upstream proxy's id so log lines can be correlated
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def error_response(
    request: Request,
    status_code: int,
    message: str,
    error_code: str,
    details=None,
    headers: dict | None = None,
) -> JSONResponse:
    """Standard error envelope shared by every handler."""
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "message": message,
            "error_code": error_code,
            "details": details,
            "timestamp": utcnow().isoformat(),
            "request_id": getattr(request.state, "request_id", None),
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI):
    """Configure global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Application exceptions carry a structured detail
        if isinstance(exc.detail, dict) and "message" in exc.detail:
            return error_response(
                request,
                exc.status_code,
                exc.detail["message"],
                exc.detail.get("error_code", "HTTP_ERROR"),
                exc.detail.get("details"),
                headers=getattr(exc, "headers", None),
            )

        return error_response(
            request,
            exc.status_code,
            str(exc.detail) if exc.detail else "An error occurred",
            "HTTP_ERROR",
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            error_dict = {
                "loc": error.get("loc", []),
                "msg": str(error.get("msg", "Validation error")),
                "type": error.get("type", "value_error"),
            }
            if "input" in error:
                error_dict["input"] = str(error["input"])
            errors.append(error_dict)

        return error_response(request, 422, "Validation error", "VALIDATION_ERROR", errors)

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(
            f"❌ Storage error on {request.method} {request.url.path}: {str(exc)}",
            extra={"request_id": getattr(request.state, "request_id", None)},
        )
        return error_response(request, 503, "Storage temporarily unavailable", "STORAGE_UNAVAILABLE")


def setup_routers(app: FastAPI):
    """Configure application routers."""
    from app.domains.campaign.controller import public_router as click_router
    from app.domains.campaign.controller import router as campaign_router
    from app.domains.rss_feed.controller import router as rss_feed_router
    from app.domains.subscriber.controller import public_router as subscription_router
    from app.domains.subscriber.controller import router as subscriber_router
    from app.domains.template.controller import router as template_router
    from app.domains.user.controller import router as user_router

    @app.get("/health")
    async def health_check():
        """Health check covering the database and push configuration."""
        db_status = "healthy"
        try:
            async with AsyncSessionLocal() as db:
                await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Health check database query failed: {str(e)}")
            db_status = "unhealthy"

        push_status = "configured" if settings.has_push_enabled else "not_configured"

        body = {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": settings.version,
            "environment": settings.environment,
            "timestamp": utcnow().isoformat(),
            "services": {
                "database": db_status,
                "web_push": push_status,
            },
        }
        if db_status != "healthy":
            return JSONResponse(status_code=503, content=body)
        return body

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "description": "Web Push campaigns with delivery and click tracking",
            "docs_url": "/docs" if settings.is_development else None,
        }

    # Include domain routers
    app.include_router(user_router)
    app.include_router(subscription_router)
    app.include_router(subscriber_router)
    app.include_router(click_router)
    app.include_router(campaign_router)
    app.include_router(template_router)
    app.include_router(rss_feed_router)


# Create the application instance
app = create_app()


def main():
    """Entry point for running the application directly."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="info",
    )


if __name__ == "__main__":
    main()
