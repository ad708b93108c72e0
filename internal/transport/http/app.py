"""
FastAPI application factory.

Assembles middleware, exception handlers and routers. Resource wiring lives
in the process entry point.
"""

from typing import Any, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from internal.transport.http.errors import register_exception_handlers
from internal.transport.http.middleware import MetricsMiddleware, RequestIdMiddleware
from internal.transport.http.v1.banking import router as banking_router
from internal.transport.http.v1.handlers import router


SERVICE_VERSION = "1.0.0"


def create_app(
    lifespan: Optional[Callable[[FastAPI], Any]] = None,
    cors_origins: Optional[list[str]] = None,
    service_name: str = "customer-service",
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        lifespan: Startup/shutdown context manager.
        cors_origins: Allowed CORS origins, all when omitted.
        service_name: Name reported by the root endpoint.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Customer Service API",
        description="Customer management with product eligibility rules",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)
    # Added last so it runs first and every log line carries the request ID
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(router)
    app.include_router(banking_router)

    @app.get("/")
    async def root() -> dict:
        """Root endpoint with service information."""
        return {
            "service": service_name,
            "version": SERVICE_VERSION,
            "status": "running",
        }

    return app
