# backend/vendor_search/main.py
"""
FastAPI application for the vendor search backend.

Mounts the versioned search API under /api/v1, plus /health and /metrics.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes import health
from .routes.v1 import search as search_v1
from .services.search.config import get_search_config

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info("%s starting up (environment=%s)", API_TITLE, settings.environment)
    logger.info("Search config: %s", get_search_config().to_dict())
    yield
    logger.info("%s shutting down", API_TITLE)


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)
    app.add_middleware(PrometheusMiddleware)

    api_v1 = APIRouter(prefix=settings.api_prefix)
    api_v1.include_router(search_v1.router, prefix="/search")
    app.include_router(api_v1)
    app.include_router(health.router)
    return app


app = create_app()
