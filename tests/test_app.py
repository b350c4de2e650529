"""
Tests for the application factory, health routes and debug logging.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from imageprinter import debug
from imageprinter.core.config import ImagePrinterConfig, Settings
from imageprinter.core.operations import OperationRegistry
from imageprinter.core.sources import PathRoot, Resolver
from imageprinter.main import create_app


@pytest.fixture
def settings(source_root, cache_root):
    return Settings(
        DESTINATION=str(cache_root),
        SOURCE_ROOT=str(source_root),
        PREFIX="/ip",
        MAX_AGE=3600,
    )


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings=settings, registry=OperationRegistry()))


class TestCreateApp:

    def test_serves_images_under_prefix(self, client, cache_root):
        response = client.get("/ip/image__width-50,height-40.jpg")
        assert response.status_code == 200
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert (cache_root / "image__width-50,height-40.jpg").exists()

    def test_config_from_settings(self, settings, source_root, cache_root):
        config = ImagePrinterConfig.from_settings(settings)
        assert config.destination == cache_root
        assert config.source == PathRoot(source_root)
        assert config.max_age == 3600
        assert config.use_alternate_processor is False

    def test_explicit_config_with_resolver(self, settings, source_root, cache_root):
        data = (source_root / "image.jpg").read_bytes()
        config = ImagePrinterConfig(destination=cache_root, source=Resolver(lambda name: data))
        client = TestClient(create_app(settings=settings, config=config, registry=OperationRegistry()))
        response = client.get("/ip/anything/at/all__width-20,height-10.jpg")
        assert response.status_code == 200
        assert response.headers["cache-control"] == "public, max-age=0"


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_detailed_health(self, client, cache_root):
        data = client.get("/health/detailed").json()
        assert data["status"] == "online"
        assert data["cache"]["path"] == str(cache_root)
        assert data["operations"] == ["default"]

    def test_detailed_health_missing_source_root(self, tmp_path):
        settings = Settings(DESTINATION=str(tmp_path / "cache"), SOURCE_ROOT=str(tmp_path / "nope"))
        client = TestClient(create_app(settings=settings, registry=OperationRegistry()))
        data = client.get("/health/detailed").json()
        assert data["status"] == "degraded"
        assert data["source"]["status"] == "offline"


def test_debug_toggle():
    logger = logging.getLogger("imageprinter")
    previous = logger.level
    try:
        debug(True)
        assert logger.level == logging.DEBUG
        debug(False)
        assert logger.level == logging.WARNING
    finally:
        logger.setLevel(previous)
