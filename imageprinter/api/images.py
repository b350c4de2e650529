"""
Derived image endpoint.

Serves ``<dir>/<base>__<options><ext>`` from the cache directory, rendering
the file from its source first when it is missing or stale.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from ..core.cache_key import parse_request
from ..core.config import ImagePrinterConfig
from ..core.errors import ImagePrinterError
from ..core.materializer import Materializer
from ..core.operations import OperationRegistry
from ..core.sources import check_source
from ..core.staleness import validate_cache

logger = logging.getLogger(__name__)


def create_router(
    config: ImagePrinterConfig,
    registry: Optional[OperationRegistry] = None,
    materializer: Optional[Materializer] = None,
    prefix: str = "",
) -> APIRouter:
    """Build the image router for ``config``.

    Mount it under the same prefix the link helper uses::

        app.include_router(create_router(config, prefix="/ip"))
        scale = create_helper("/ip")
    """
    materializer = materializer or Materializer(config, registry)
    cache_control = f"public, max-age={max(int(config.max_age or 0), 0)}"
    router = APIRouter(prefix=prefix, tags=["images"])

    @router.api_route("/{image_path:path}", methods=["GET", "HEAD"])
    async def serve_image(image_path: str):
        try:
            request = parse_request(image_path)
        except ImagePrinterError as exc:
            logger.debug("[images] rejected %s: %s", image_path, exc)
            raise HTTPException(status_code=404, detail="Invalid path")

        valid, modified = await asyncio.to_thread(check_source, config.validate, request.source)
        if not valid:
            raise HTTPException(status_code=404, detail="Invalid request")

        cache_path = config.cache_path(request.cache_file)
        cached = await asyncio.to_thread(validate_cache, cache_path, modified)
        logger.debug("[images] cache %s for %s", "hit" if cached else "miss", image_path)

        if not cached:
            try:
                await materializer.materialize(request)
            except ImagePrinterError as exc:
                log = logger.warning if exc.status_code < 500 else logger.error
                log("[images] could not render %s: %s", image_path, exc)
                raise HTTPException(status_code=exc.status_code, detail=exc.detail)

        return FileResponse(cache_path, headers={"Cache-Control": cache_control})

    return router
