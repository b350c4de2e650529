"""
Resizing image proxy with an on-disk cache.

    from imageprinter import ImagePrinterConfig, PathRoot, create_helper, create_router

    config = ImagePrinterConfig(destination="/tmp/image-cache", source=PathRoot("./public/images"), max_age=86400)
    app.include_router(create_router(config, prefix="/ip"))

    scale = create_helper("/ip")
    scale("logo.jpg", {"width": 200, "height": 120})
"""

from .api.images import create_router
from .core.cache_key import ImageRequest, build_cache_key, create_helper, parse_request
from .core.config import ImagePrinterConfig, Settings
from .core.errors import (
    CacheWriteFailed,
    DirectoryCreateFailed,
    ImagePrinterError,
    InvalidRequestPath,
    MalformedOptions,
    ProcessingFailed,
    SourceUnavailable,
    UnknownOperation,
)
from .core.materializer import Materializer
from .core.operations import OperationRegistry, default_registry, set_operation
from .core.options import OptionSet, deserialize_options, serialize_options
from .core.sources import PathRoot, Resolver, http_resolver
from .core.staleness import validate_cache
from .logs import debug

__all__ = [
    "CacheWriteFailed",
    "DirectoryCreateFailed",
    "ImagePrinterConfig",
    "ImagePrinterError",
    "ImageRequest",
    "InvalidRequestPath",
    "MalformedOptions",
    "Materializer",
    "OperationRegistry",
    "OptionSet",
    "PathRoot",
    "ProcessingFailed",
    "Resolver",
    "Settings",
    "SourceUnavailable",
    "UnknownOperation",
    "build_cache_key",
    "create_helper",
    "create_router",
    "debug",
    "default_registry",
    "deserialize_options",
    "http_resolver",
    "parse_request",
    "serialize_options",
    "set_operation",
    "validate_cache",
]
