"""
FastAPI application for the detailing booking backend

Request handlers stay thin - booking rules live in services,
notifications are delivered by the Celery worker
"""
import logging
from collections import defaultdict
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from detailing.api.v1.router import api_v1_router
from detailing.config.settings import get_settings
from detailing.core.middleware import correlation_id_middleware, request_logging_middleware
from detailing.core.monitoring import health_router
from detailing.utils.my_logging import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging()
    logger.info(f"{settings.APP_NAME} starting up, API at /api/v1/, health check at /health")

    if settings.DEBUG:
        routes_by_tag = defaultdict(list)
        for route in app.routes:
            if isinstance(route, APIRoute):
                tag = route.tags[0] if route.tags else "other"
                for method in route.methods:
                    routes_by_tag[tag].append((method, route.path))

        for tag, routes in sorted(routes_by_tag.items()):
            for method, path in sorted(routes, key=lambda x: (x[1], x[0])):
                logger.debug(f"[{tag}] {method:8} {path}")

    yield

    # Shutdown
    logger.info(f"{settings.APP_NAME} shutting down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Booking of detailing services: slots, appointments and reviews",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["*"],
    )

    app.middleware("http")(correlation_id_middleware)
    app.middleware("http")(request_logging_middleware)

    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/v1/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "detailing.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
