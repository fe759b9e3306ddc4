"""FastAPI application for the ServeWell volunteer service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.servewell_service.routers import admin_router, member_router
from slowapi.errors import RateLimitExceeded


def create_app() -> FastAPI:
    """Create and configure the ServeWell FastAPI app."""
    app = FastAPI(
        title="ServeWell Volunteer Service",
        version="0.1.0",
        description="Volunteer matching and approval: gifts assessment, scored matches, coordinator decisions, and background checks.",
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "servewell"}

    app.include_router(member_router)
    app.include_router(admin_router)

    return app


app = create_app()
