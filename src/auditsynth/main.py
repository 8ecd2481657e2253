"""FastAPI application factory."""

import logging

from fastapi import FastAPI

from auditsynth.config import settings
from auditsynth.logging_config import configure_logging

configure_logging(log_level=settings.log_level, json_output=settings.json_logs)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="auditsynth API",
        version="0.3.0",
        description="Deterministic synthesis of multi-analyzer security findings.",
    )

    # Add middleware (order matters: last added = first executed)
    from auditsynth.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(TraceIdMiddleware)

    # Register error handlers
    from auditsynth.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    # Import and mount routers
    from auditsynth.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
