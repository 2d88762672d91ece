"""FastAPI application factory"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from booking_stats.api.dependencies import get_request_id
from booking_stats.api.middleware import RequestIDMiddleware, MetricsMiddleware
from booking_stats.api.v1 import groups, payments, stats
from booking_stats.config import settings
from booking_stats.domain.exceptions import DomainException
from booking_stats.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Booking Stats",
        description="Grouping, sorting and aggregate statistics over venue bookings",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Domain errors that escape a route are caller mistakes, not server faults
    @app.exception_handler(DomainException)
    async def domain_error_handler(request: Request, exc: DomainException):
        logging.error(f"Unhandled domain error: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(stats.router, prefix="/v1", tags=["stats"])
    app.include_router(groups.router, prefix="/v1", tags=["groups"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])

    return app


app = create_app()
