"""Logging for the link shortener package and the editors embedding it."""

import logging
import sys
from typing import Optional


LOGGER_NAME = "link_shortener"

# Client libraries that log every request at INFO
CHATTY_LOGGERS = ("httpx", "httpcore")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}'
)


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return logging.Formatter(JSON_FORMAT)
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    console: bool = True,
) -> logging.Logger:
    """Configure the package logger.

    Backends and the trigger handler log through children of this logger, so
    one call covers everything the package emits. Calling again replaces the
    previous handlers.

    Args:
        level: Logging level name; unknown names fall back to INFO
        log_file: Optional log file path
        json_format: Emit one JSON object per line
        console: Write to stdout. Full-screen editors own the terminal and
            should pass False together with a log_file.

    Returns:
        The package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = _formatter(json_format)
    handlers = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if not handlers:
        logger.addHandler(logging.NullHandler())

    # Request lines from the HTTP client only matter when debugging a backend
    client_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    return logger
