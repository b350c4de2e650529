"""
Named image operations and the Pillow backends that run them.

Operations are selected per request with the ``op`` option. They receive a
Pillow image and the decoded options and return the processed image::

    def grayscale(image, options):
        return ImageOps.grayscale(image)

    registry.register("gray", grayscale)
"""

import logging
import threading
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

from PIL import Image, ImageOps

from .errors import ProcessingFailed, UnknownOperation
from .options import OptionSet
from .sources import SourceData

logger = logging.getLogger(__name__)

DEFAULT_OPERATION = "default"

Operation = Callable[[Image.Image, OptionSet], Optional[Image.Image]]


class OperationRegistry:
    """Name -> operation mapping.

    Populated at startup and read on every render. Lookups take no lock;
    registrations are serialised.
    """

    def __init__(self, operations: Optional[Dict[str, Operation]] = None):
        self._operations: Dict[str, Operation] = {DEFAULT_OPERATION: resize}
        self._lock = threading.Lock()
        for name, func in (operations or {}).items():
            self.register(name, func)

    def register(self, name: Union[str, Operation], func: Optional[Operation] = None) -> None:
        """Register ``func`` under ``name``; ``register(func)`` replaces the default."""
        if func is None:
            func, name = name, DEFAULT_OPERATION
        if not callable(func):
            raise TypeError("operation must be callable")
        if not isinstance(name, str) or not name:
            raise TypeError("operation name must be a non-empty string")
        with self._lock:
            operations = dict(self._operations)
            operations[name] = func
            self._operations = operations
        logger.debug("[operations] registered %s", name)

    def resolve(self, name: Optional[str] = None) -> Operation:
        name = name or DEFAULT_OPERATION
        try:
            return self._operations[name]
        except KeyError:
            raise UnknownOperation(f"Operation not defined: {name}") from None

    def names(self):
        return sorted(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._operations


def _center_crop(image: Image.Image, width: int, height: int) -> Image.Image:
    """Crop a ``width`` x ``height`` box around the image center.

    Areas of the box outside the image are filled, like an extent.
    """
    left = (image.width - width) // 2
    top = (image.height - height) // 2
    return image.crop((left, top, left + width, top + height))


def resize(image: Image.Image, options: OptionSet) -> Image.Image:
    """Default operation: aspect-preserving resize, then optional center crop."""
    width = options.get_int("width")
    height = options.get_int("height")
    crop = (width, height)

    if width and height:
        # Both branches crop to the swapped box.
        crop = (height, width)
        if width > height:
            target = (width, max(1, round(image.height * width / image.width)))
        else:
            target = (max(1, round(image.width * height / image.height)), height)
    elif width:
        target = (width, max(1, round(image.height * width / image.width)))
    elif height:
        target = (max(1, round(image.width * height / image.height)), height)
    else:
        target = image.size

    if target != image.size:
        image = image.resize(target, Image.Resampling.LANCZOS)

    if options.get_str("crop") == "true" and crop[0] and crop[1]:
        image = _center_crop(image, crop[0], crop[1])
    return image


class PillowProcessor:
    """Decode, transform and encode images with Pillow."""

    name = "pillow"

    def open(self, data: SourceData, options: OptionSet) -> Image.Image:
        stream = BytesIO(data) if isinstance(data, (bytes, bytearray)) else data
        try:
            with Image.open(stream) as img:
                self._prepare(img, options)
                img.load()
                return ImageOps.exif_transpose(img)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ProcessingFailed(f"could not decode source image: {exc}") from exc

    def _prepare(self, img: Image.Image, options: OptionSet) -> None:
        return None

    def run(self, operation: Operation, image: Image.Image, options: OptionSet) -> Image.Image:
        try:
            result = operation(image, options)
        except Exception as exc:
            raise ProcessingFailed(f"operation failed: {exc}") from exc
        if result is None:
            return image
        if not isinstance(result, Image.Image):
            raise ProcessingFailed(
                f"operation returned {type(result).__name__}, expected an image"
            )
        return result

    def save(self, image: Image.Image, path: Path, options: OptionSet, fmt: Optional[str] = None) -> None:
        fmt = fmt or format_for_path(path)
        save_kwargs = {}
        quality = options.get_int("quality")
        if quality is not None and fmt in ("JPEG", "WEBP"):
            save_kwargs["quality"] = quality
        if fmt == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
            image = image.convert("RGB")
        image.save(path, fmt, **save_kwargs)


class DraftPillowProcessor(PillowProcessor):
    """Pillow backend that lets the decoder downscale JPEGs while reading.

    Much faster on large photos; output is slightly softer.
    """

    name = "pillow-draft"

    def _prepare(self, img: Image.Image, options: OptionSet) -> None:
        size = _requested_size(options)
        if size and img.format == "JPEG":
            img.draft("RGB", size)


def _requested_size(options: OptionSet) -> Optional[Tuple[int, int]]:
    width = options.get_int("width")
    height = options.get_int("height")
    if not width or not height:
        return None
    longest = max(width, height)
    return longest, longest


def format_for_path(path: Path) -> str:
    fmt = Image.registered_extensions().get(Path(path).suffix.lower())
    if not fmt:
        raise ProcessingFailed(f"unsupported image extension: {Path(path).suffix!r}")
    return fmt


def get_processor(use_alternate_processor: bool = False) -> PillowProcessor:
    return DraftPillowProcessor() if use_alternate_processor else PillowProcessor()


# Process-wide registry used when no registry is injected.
default_registry = OperationRegistry()


def set_operation(name: Union[str, Operation], func: Optional[Operation] = None) -> None:
    """Register an operation on ``default_registry``."""
    default_registry.register(name, func)
