"""
Shared fixtures: a source directory with a test image and an empty cache root.
"""

import threading

import pytest
from PIL import Image

from imageprinter.core.config import ImagePrinterConfig
from imageprinter.core.materializer import Materializer
from imageprinter.core.operations import OperationRegistry
from imageprinter.core.sources import PathRoot


def make_image(path, size=(400, 300), color=(200, 40, 40), fmt="JPEG"):
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, color)
    # A darker block so resampling has something to work on
    img.paste((20, 20, 160), (size[0] // 4, size[1] // 4, size[0] // 2, size[1] // 2))
    img.save(path, fmt)
    return path


@pytest.fixture
def source_root(tmp_path):
    root = tmp_path / "images"
    make_image(root / "image.jpg")
    make_image(root / "image.png", fmt="PNG")
    make_image(root / "large" / "image.jpg", size=(800, 600))
    return root


@pytest.fixture
def cache_root(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def registry():
    return OperationRegistry()


@pytest.fixture
def config(source_root, cache_root):
    return ImagePrinterConfig(
        destination=cache_root,
        source=PathRoot(source_root),
        max_age=86400,
    )


class CountingMaterializer(Materializer):
    """Materializer that records every render it performs."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []
        self._calls_lock = threading.Lock()

    def render(self, request, cache_path):
        with self._calls_lock:
            self.calls.append(request)
        return super().render(request, cache_path)


@pytest.fixture
def counting_materializer():
    return CountingMaterializer
