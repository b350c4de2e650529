import logging
from typing import Optional

from fastapi import FastAPI

from .api.images import create_router
from .api.routes_health import create_health_router
from .core.config import ImagePrinterConfig, Settings, settings as default_settings
from .core.operations import OperationRegistry, default_registry
from .logs import debug


def create_app(
    settings: Optional[Settings] = None,
    config: Optional[ImagePrinterConfig] = None,
    registry: Optional[OperationRegistry] = None,
) -> FastAPI:
    """Build the image printer application.

    ``config`` overrides what ``settings`` describe; use it for resolver
    sources or custom validators, which cannot come from the environment.
    """
    settings = settings or default_settings
    config = config or ImagePrinterConfig.from_settings(settings)
    registry = registry if registry is not None else default_registry

    if settings.DEBUG:
        debug(True)

    app = FastAPI(title="Image Printer", description="Resizing image proxy with on-disk cache")
    app.include_router(create_health_router(config, registry))
    app.include_router(create_router(config, registry, prefix=settings.PREFIX.rstrip("/")))
    logging.getLogger(__name__).info(
        "[imageprinter] serving %s from %s", settings.PREFIX, config.destination
    )
    return app


app = create_app()
