"""Logging setup; the terminal belongs to the TUI, so logs go to a file."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(path: str | None, level: str = "INFO") -> logging.Handler | None:
    """
    Send package logs to ``path``.

    Returns the installed handler, or None when logging is disabled
    (``path`` is None or "-").
    """
    package_logger = logging.getLogger("vatsim_online")
    if path is None or path == "-":
        package_logger.addHandler(logging.NullHandler())
        return None

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper())
    # Don't let a root handler print over the TUI
    package_logger.propagate = False
    return handler
