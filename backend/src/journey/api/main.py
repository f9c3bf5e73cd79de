"""Main FastAPI application for the waitlist API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from journey import __version__
from journey.api.rate_limit import limiter
from journey.api.v1.preferences import router as preferences_router
from journey.api.v1.referral import router as referral_router
from journey.api.v1.sequence import router as sequence_router
from journey.api.v1.waitlist import router as waitlist_router
from journey.api.v1.webhooks import router as webhooks_router
from journey.logging_config import configure_logging, get_logger
from journey.settings import settings
from journey.storage.db import db

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = (
            "accelerometer=(), "
            "camera=(), "
            "geolocation=(), "
            "microphone=(), "
            "usb=()"
        )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("app_starting", env=settings.env)

    db.create_tables()
    logger.info("database_tables_created")

    yield

    logger.info("app_shutting_down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app
    """
    configure_logging()

    # Hide API docs in production
    is_production = settings.env == "production"

    app = FastAPI(
        title="Journey Waitlist API",
        description="Waitlist, referrals and drip campaign for The Ultimate Journey",
        version=__version__,
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(SecurityHeadersMiddleware)

    allowed_origins = [
        origin.strip()
        for origin in settings.allowed_origins.split(",")
        if origin.strip()
    ]

    # Block wildcard in production
    if is_production and "*" in allowed_origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed in production")
        allowed_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Stripe-Signature"],
        max_age=3600,
    )

    # Rate limiting (shared instance from rate_limit module)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please try again later."},
        )

    app.include_router(waitlist_router, prefix="/api/v1")
    app.include_router(referral_router, prefix="/api/v1")
    app.include_router(preferences_router, prefix="/api/v1")
    app.include_router(sequence_router, prefix="/api/v1")
    app.include_router(webhooks_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "env": settings.env,
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Journey Waitlist API",
            "version": __version__,
            "docs": "/api/docs",
        }

    return app


# Create app instance
app = create_app()
