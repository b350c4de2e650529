"""
Render derived images into the cache directory.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from .cache_key import ImageRequest
from .config import ImagePrinterConfig
from .errors import CacheWriteFailed, DirectoryCreateFailed
from .operations import (
    OperationRegistry,
    PillowProcessor,
    format_for_path,
    default_registry,
    get_processor,
)
from .sources import resolve_source

logger = logging.getLogger(__name__)


class Materializer:
    """Create cache files for decoded image requests.

    Concurrent misses of the same file both render and the last write wins;
    renders are deterministic, so either result is correct. With
    ``single_flight`` the second request awaits the first render instead.
    """

    def __init__(
        self,
        config: ImagePrinterConfig,
        registry: Optional[OperationRegistry] = None,
        processor: Optional[PillowProcessor] = None,
    ):
        self.config = config
        self.registry = registry if registry is not None else default_registry
        self.processor = processor or get_processor(config.use_alternate_processor)
        self._in_flight: Dict[Path, asyncio.Future] = {}

    async def materialize(self, request: ImageRequest) -> Path:
        cache_path = self.config.cache_path(request.cache_file)
        if not self.config.single_flight:
            return await self._run(request, cache_path)

        pending = self._in_flight.get(cache_path)
        if pending is not None:
            logger.debug("[materialize] joining in-flight render of %s", cache_path)
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._run(request, cache_path))
        self._in_flight[cache_path] = task
        task.add_done_callback(lambda _: self._in_flight.pop(cache_path, None))
        task.add_done_callback(lambda done: _log_outcome(done, cache_path))
        return await asyncio.shield(task)

    async def _run(self, request: ImageRequest, cache_path: Path) -> Path:
        # The write completes even if the client that asked for it goes away.
        task = asyncio.ensure_future(asyncio.to_thread(self.render, request, cache_path))
        task.add_done_callback(lambda done: _log_outcome(done, cache_path))
        return await asyncio.shield(task)

    def render(self, request: ImageRequest, cache_path: Path) -> Path:
        """Blocking render of ``request`` into ``cache_path``."""
        # Unknown operations and formats fail before the cache tree is touched.
        operation = self.registry.resolve(request.options.get_str("op") or None)
        fmt = format_for_path(cache_path)

        try:
            cache_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("[materialize] could not create path %s: %s", cache_path.parent, exc)
            raise DirectoryCreateFailed(str(exc)) from exc

        data = resolve_source(self.config.source, request.source)
        image = self.processor.open(data, request.options)
        image = self.processor.run(operation, image, request.options)

        self._write(image, cache_path, request, fmt)
        logger.info("[materialize] wrote %s", cache_path)
        return cache_path

    def _write(self, image, cache_path: Path, request: ImageRequest, fmt: str) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=".tmp-", suffix=cache_path.suffix, dir=cache_path.parent
        )
        os.close(fd)
        try:
            self.processor.save(image, Path(tmp_name), request.options, fmt)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, cache_path)
        except (OSError, ValueError) as exc:
            _discard(tmp_name)
            logger.error("[materialize] write failed for %s: %s", cache_path, exc)
            raise CacheWriteFailed(str(exc)) from exc
        except BaseException:
            _discard(tmp_name)
            raise


def _log_outcome(task: asyncio.Future, cache_path: Path) -> None:
    # Consumes the result of a render that may have no awaiter left.
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("[materialize] render of %s failed: %s", cache_path, exc)


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
