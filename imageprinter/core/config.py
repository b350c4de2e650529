from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

from .sources import PathRoot, Source, Validator, default_validator


class Settings(BaseSettings):
    # Load env from .env file, e.g. IMAGEPRINTER_DESTINATION=/var/cache/ip
    model_config = {"env_file": ".env", "env_prefix": "IMAGEPRINTER_", "extra": "ignore"}

    # Where derived images are stored
    DESTINATION: str = "/tmp/imageprinter"
    # Root directory of source images
    SOURCE_ROOT: str = "./images"
    # URI prefix the image router is mounted under
    PREFIX: str = "/ip"

    # Cache-Control max-age for served images, in seconds
    MAX_AGE: int = 0
    USE_ALTERNATE_PROCESSOR: bool = False
    # Share one in-flight render between concurrent misses of the same file
    SINGLE_FLIGHT: bool = False
    DEBUG: bool = False

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 3000


@dataclass
class ImagePrinterConfig:
    """Runtime configuration of the image router."""
    destination: Path
    source: Source
    validate: Optional[Validator] = None
    max_age: int = 0
    use_alternate_processor: bool = False
    single_flight: bool = False

    def __post_init__(self):
        self.destination = Path(self.destination)
        if self.validate is None:
            self.validate = default_validator(self.source)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImagePrinterConfig":
        return cls(
            destination=Path(settings.DESTINATION),
            source=PathRoot(Path(settings.SOURCE_ROOT)),
            max_age=settings.MAX_AGE,
            use_alternate_processor=settings.USE_ALTERNATE_PROCESSOR,
            single_flight=settings.SINGLE_FLIGHT,
        )

    def cache_path(self, cache_file: str) -> Path:
        return self.destination / cache_file.lstrip("/")


# Instantiate settings
settings = Settings()
