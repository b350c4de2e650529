"""
Where source images come from.

A source is either a directory on disk (``PathRoot``) or a callable that
turns an image name into a path or raw bytes (``Resolver``).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

import httpx

from .errors import SourceUnavailable
from .staleness import stat_mtime

logger = logging.getLogger(__name__)

SourceData = Union[str, Path, bytes]
ValidateResult = Tuple[bool, Optional[Union[float, datetime]]]
Validator = Callable[[str], ValidateResult]


@dataclass(frozen=True)
class PathRoot:
    """Source images live under ``root``."""
    root: Path

    def __post_init__(self):
        object.__setattr__(self, "root", Path(self.root))

    def path_for(self, name: str) -> Path:
        return self.root / name.lstrip("/")


@dataclass(frozen=True)
class Resolver:
    """Source images are looked up by name through ``resolve``."""
    resolve: Callable[[str], SourceData]


Source = Union[PathRoot, Resolver]


def http_resolver(
    base_url: str,
    timeout: float = 10.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> Resolver:
    """Resolver that downloads ``<base_url>/<name>`` over HTTP."""
    base = base_url.rstrip("/")

    def download(name: str) -> bytes:
        url = f"{base}/{name.lstrip('/')}"
        with httpx.Client(timeout=timeout, follow_redirects=False, transport=transport) as client:
            resp = client.get(url)
            resp.raise_for_status()
            return resp.content

    return Resolver(download)


def _as_timestamp(modified: Optional[Union[float, datetime]]) -> Optional[float]:
    if modified is None:
        return None
    if isinstance(modified, datetime):
        return modified.timestamp()
    return float(modified)


def resolve_source(source: Source, name: str) -> SourceData:
    """Return a readable path or the image bytes for ``name``."""
    if isinstance(source, PathRoot):
        path = source.path_for(name)
        if not path.is_file():
            raise SourceUnavailable(f"source file not found: {path}")
        return path
    if isinstance(source, Resolver):
        try:
            data = source.resolve(name)
        except Exception as exc:
            raise SourceUnavailable(f"could not resolve source {name!r}: {exc}") from exc
        if data is None:
            raise SourceUnavailable(f"resolver returned nothing for {name!r}")
        if isinstance(data, (str, Path)) and not Path(data).is_file():
            raise SourceUnavailable(f"resolved source file not found: {data}")
        return data
    raise TypeError(f"unsupported source type: {type(source).__name__}")


def path_root_validator(source: PathRoot) -> Validator:
    """Existence check that also reports the source modification time."""

    def validate(name: str) -> ValidateResult:
        modified = stat_mtime(source.path_for(name))
        return modified is not None, modified

    return validate


def bypass_validator(name: str) -> ValidateResult:
    return True, None


def default_validator(source: Source) -> Validator:
    if isinstance(source, PathRoot):
        return path_root_validator(source)
    return bypass_validator


def check_source(validator: Validator, name: str) -> Tuple[bool, Optional[float]]:
    """Run ``validator`` and normalise its timestamp to POSIX seconds."""
    try:
        valid, modified = validator(name)
    except Exception as exc:
        logger.warning("[source] validator failed for %s: %s", name, exc)
        return False, None
    if valid is not True:
        logger.debug("[source] rejected %s", name)
        return False, None
    return True, _as_timestamp(modified)
