"""FastAPI application factory for the class cache admin API."""

import logging
from contextlib import asynccontextmanager
from typing import Mapping, Optional

from fastapi import FastAPI

from ..__version__ import __version__
from ..config.logging_config import setup_logging
from ..features.cache.entities.config import CacheSettings
from ..features.cache.services.cache_service import CacheService, create_cache_service
from ..features.classes.entities.views import ClassCacheView
from ..features.classes.routers.cache_router import class_cache_router
from ..features.classes.services.class_cache_service import ClassCacheService
from .exception_handlers import register_exception_handlers

logger = logging.getLogger(__name__)


def create_app(settings: Optional[CacheSettings] = None,
               cache_service: Optional[CacheService] = None,
               class_cache_ttls: Optional[Mapping[ClassCacheView, int]] = None) -> FastAPI:
    """Create the admin API.

    Args:
        settings: Cache settings, read from the environment when omitted
        cache_service: Prebuilt cache service; built from settings when omitted
        class_cache_ttls: Per-view TTL overrides for the class cache
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        setup_logging()
        service = cache_service or create_cache_service(settings)
        await service.initialize()
        app.state.cache_service = service
        app.state.class_cache_service = ClassCacheService(service, ttls=class_cache_ttls)
        logger.info(f"Class cache API started with {service.backend_type.value} backend")

        yield

        # Shutdown
        await service.shutdown()
        app.state.class_cache_service = None
        app.state.cache_service = None
        logger.info("Class cache API stopped")

    app = FastAPI(
        title="School Commons Cache API",
        description="Administration endpoints for the class cache",
        version=__version__,
        lifespan=lifespan,
    )
    register_exception_handlers(app)
    app.include_router(class_cache_router)
    return app
