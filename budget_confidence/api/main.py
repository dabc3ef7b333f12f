"""FastAPI application factory"""

from contextlib import asynccontextmanager
from typing import Callable, Optional
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session
from starlette.responses import Response

from budget_confidence.api.middleware import RequestIDMiddleware, MetricsMiddleware
from budget_confidence.api.v1 import confidence, cron
from budget_confidence.infrastructure.database.session import SessionLocal
from budget_confidence.infrastructure.observability.logging import setup_logging
from budget_confidence.services.update_queue import ConfidenceUpdateQueue
from budget_confidence.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app(
    session_factory: Callable[[], Session] = SessionLocal,
    update_queue: Optional[ConfidenceUpdateQueue] = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    queue = update_queue or ConfidenceUpdateQueue(session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await queue.start()
        yield
        # Finish anything still queued before shutting down
        await queue.stop(drain=True)

    app = FastAPI(
        title="Budget Confidence Service",
        description="Affordability confidence for planned expenses",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.update_queue = queue

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(confidence.router, prefix="/v1", tags=["confidence"])
    app.include_router(cron.router, prefix="/v1", tags=["cron"])

    return app


app = create_app()
