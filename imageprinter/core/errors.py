"""
Error taxonomy for derived-image requests.

Every error carries the HTTP status the router answers with, so the
request boundary can translate any of them without inspecting the type.
"""


class ImagePrinterError(Exception):
    """Base error for the image printer."""
    status_code = 500
    detail = "Image processing failed"

    def __init__(self, message: str = "", detail: str | None = None):
        super().__init__(message or self.detail)
        if detail is not None:
            self.detail = detail


class InvalidRequestPath(ImagePrinterError):
    """Request path carries no options marker: not a derived image."""
    status_code = 404
    detail = "Invalid request"


class MalformedOptions(ImagePrinterError):
    """Options fragment present but not parseable (or not encodable)."""
    status_code = 404
    detail = "Invalid request"


class SourceUnavailable(ImagePrinterError):
    status_code = 404
    detail = "Invalid request"


class UnknownOperation(ImagePrinterError):
    status_code = 404
    detail = "Invalid request"


class DirectoryCreateFailed(ImagePrinterError):
    status_code = 500
    detail = "Could not create cache directory"


class ProcessingFailed(ImagePrinterError):
    status_code = 500
    detail = "Image processing failed"


class CacheWriteFailed(ImagePrinterError):
    status_code = 500
    detail = "Could not write cache file"
