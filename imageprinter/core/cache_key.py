"""Mapping between (source path, options) and derived-image cache paths."""

import posixpath
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .errors import InvalidRequestPath
from .options import (
    OPTS_SEPARATOR,
    OptionPairs,
    OptionSet,
    deserialize_options,
    serialize_options,
)

# Defaults applied by link helpers when a caller omits an option.
IMAGE_OPTION_DEFAULTS = OptionSet([
    ("width", 300),
    ("height", 200),
    ("crop", True),
    ("quality", 80),
])

LinkHelper = Callable[..., str]


@dataclass(frozen=True)
class ImageRequest:
    """Decoded derived-image request.

    ``source`` and ``cache_file`` are relative paths with ``/`` separators;
    the caller roots them under the source and destination directories.
    """
    source: str
    options: OptionSet
    cache_file: str


def _normalize(path: str) -> str:
    return (path or "").replace("\\", "/")


def _split(path: str) -> Tuple[str, str, str]:
    """Split into (directory, base name, extension) using ``/`` semantics."""
    directory, filename = posixpath.split(path)
    base, ext = posixpath.splitext(filename)
    return directory, base, ext


def _join(*parts: str) -> str:
    joined = "/".join(part for part in parts if part and part != ".")
    while "//" in joined:
        joined = joined.replace("//", "/")
    return joined


def build_cache_key(source: str, options: OptionPairs, prefix: str = "") -> str:
    """Return the derived-image path for ``source`` rendered with ``options``.

    ``large/image.jpg`` with ``{"width": 200}`` and prefix ``/ip`` becomes
    ``/ip/large/image__width-200.jpg``.
    """
    directory, base, ext = _split(_normalize(source))
    filename = f"{base}{OPTS_SEPARATOR}{serialize_options(options)}{ext}"
    return _join(_normalize(prefix), directory, filename)


def parse_request(request_path: str) -> ImageRequest:
    """Recover source path and options from a derived-image path.

    The last ``__`` in the base name starts the options fragment. Paths
    without it are not derived-image requests.
    """
    path = _normalize(request_path).lstrip("/")
    if any(segment == ".." for segment in path.split("/")):
        raise InvalidRequestPath(f"parent directory segment in {request_path!r}")

    directory, base, ext = _split(path)
    opts_point = base.rfind(OPTS_SEPARATOR)
    if opts_point == -1:
        raise InvalidRequestPath(f"no options separator in {request_path!r}")

    filename = base[:opts_point]
    if not filename:
        raise InvalidRequestPath(f"no source file name in {request_path!r}")
    options = deserialize_options(base[opts_point + len(OPTS_SEPARATOR):])

    return ImageRequest(
        source=_join(directory, filename + ext),
        options=options,
        cache_file=path,
    )


def create_helper(prefix: str = "", defaults: Optional[OptionPairs] = None) -> LinkHelper:
    """Create a link generator for templates.

    Use the same prefix the image router is mounted under::

        scale = create_helper("/ip")
        scale("logo.jpg", {"width": 200, "height": 120})
    """
    base_options = OptionSet(defaults).with_defaults(IMAGE_OPTION_DEFAULTS)

    def helper(source: str, options: Optional[OptionPairs] = None) -> str:
        image_options = OptionSet(options).with_defaults(base_options)
        return build_cache_key(source, image_options, prefix)

    return helper
