from __future__ import annotations

import logging

_LOGGER_NAME = "imageprinter"
_handler: logging.Handler | None = None


def _attach_handler(logger: logging.Logger) -> None:
    global _handler
    if _handler is not None:
        return
    # Only add our own output when the application has not configured logging.
    if logging.getLogger().handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    _handler = handler
    logger.addHandler(handler)


def debug(enable: bool = True) -> None:
    """Turn debug logging of cache decisions on or off."""
    logger = logging.getLogger(_LOGGER_NAME)
    if enable:
        _attach_handler(logger)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.WARNING)
