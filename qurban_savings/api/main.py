"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from qurban_savings.api.middleware import RequestIDMiddleware, MetricsMiddleware
from qurban_savings.api.v1 import savings, deposits
from qurban_savings.infrastructure.observability.logging import setup_logging
from qurban_savings.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Qurban Savings Service",
        description="Installment savings toward qurban packages and deposit verification",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(savings.router, prefix="/v1", tags=["savings"])
    app.include_router(deposits.router, prefix="/v1", tags=["deposits"])

    return app


app = create_app()
