"""Logging setup for devagent: one ``devagent`` logger tree, console + rotating file."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from devagent.core.config import get_settings

ROOT_LOGGER = "devagent"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# httpx logs every request line at INFO; gateway calls already log their own summary
_NOISY_LOGGERS = ("httpx", "httpcore")

_configured = False


def setup_logging(level: str | None = None) -> logging.Logger:
    """Attach handlers to the ``devagent`` logger once. Later calls are no-ops.

    *level* overrides ``settings.log_level``. An empty ``settings.log_file``
    disables the file handler.
    """
    global _configured
    logger = logging.getLogger(ROOT_LOGGER)
    if _configured:
        return logger

    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.propagate = False

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if settings.log_file:
        # rotating, 5 MB × 3 backups
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    logger.info("Logging initialised (level=%s, file=%s)", level_name, settings.log_file or "-")
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return ``devagent.<name>``; names already under ``devagent`` are kept as-is."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
