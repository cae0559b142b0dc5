"""Logging configuration helpers."""

import logging

_LOGGER_NAME = "artspark"

# Per-request and realtime heartbeat chatter from client libraries.
_THIRD_PARTY_LOGGERS = ("httpx", "httpcore", "hpack", "realtime", "websockets")


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach a single stream handler to the ``artspark`` logger.

    ``level`` accepts a level number or name (``"debug"``, ``"INFO"``).
    Library loggers listed in ``_THIRD_PARTY_LOGGERS`` are held at WARNING
    unless the application itself runs at DEBUG.
    """
    resolved = _resolve_level(level)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(resolved)
    library_level = (
        resolved if resolved <= logging.DEBUG else max(resolved, logging.WARNING)
    )
    for name in _THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved
