import uvicorn

from .core.config import settings


def main() -> None:
    uvicorn.run("imageprinter.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
