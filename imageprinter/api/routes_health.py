import asyncio
import os
from typing import Optional

from fastapi import APIRouter, status

from ..core.config import ImagePrinterConfig
from ..core.operations import OperationRegistry
from ..core.sources import PathRoot


def check_destination(config: ImagePrinterConfig) -> Optional[str]:
    """Return an error message when the cache directory is not writable."""
    destination = config.destination
    probe = destination
    while not probe.exists():
        if probe.parent == probe:
            return "no existing parent directory"
        probe = probe.parent
    if not os.access(probe, os.W_OK):
        return f"{probe} is not writable"
    return None


def check_source_root(config: ImagePrinterConfig) -> Optional[str]:
    if not isinstance(config.source, PathRoot):
        return None
    if not config.source.root.is_dir():
        return f"{config.source.root} is not a directory"
    return None


def create_health_router(config: ImagePrinterConfig, registry: OperationRegistry) -> APIRouter:
    router = APIRouter()

    @router.get("/health", status_code=status.HTTP_200_OK)
    async def health() -> dict:
        return {"status": "ok"}

    @router.get("/health/detailed", status_code=status.HTTP_200_OK)
    async def detailed_health() -> dict:
        """Cache and source directory status."""
        destination_error, source_error = await asyncio.gather(
            asyncio.to_thread(check_destination, config),
            asyncio.to_thread(check_source_root, config),
        )
        system_status = "online" if not (destination_error or source_error) else "degraded"
        return {
            "status": system_status,
            "cache": {
                "path": str(config.destination),
                "status": "online" if not destination_error else "offline",
                "last_error": destination_error,
            },
            "source": {
                "status": "online" if not source_error else "offline",
                "last_error": source_error,
            },
            "operations": registry.names(),
        }

    return router
