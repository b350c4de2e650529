"""
Cache validity checks.

A cache file may be served when it exists, is not older than its source and
is not empty. Only ``os.stat`` is used, so the check is safe to run from any
number of requests at once.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def stat_mtime(path: Union[str, Path]) -> Optional[float]:
    """Modification time of ``path`` or None when it cannot be stat'ed."""
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None


def validate_cache(cache_file: Union[str, Path], source_modified: Optional[float] = None) -> bool:
    """Return True when ``cache_file`` can be served as-is.

    Args:
        cache_file: Absolute path of the derived image.
        source_modified: POSIX timestamp of the source, or None when the
            source location cannot report one.
    """
    try:
        cache_stat = os.stat(cache_file)
    except OSError:
        logger.debug("[cache] missing %s", cache_file)
        return False

    if source_modified is not None and cache_stat.st_mtime < source_modified:
        logger.debug("[cache] too old %s", cache_file)
        return False

    if not cache_stat.st_size:
        logger.debug("[cache] empty %s", cache_file)
        return False

    return True
