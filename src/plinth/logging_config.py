"""
Logging configuration for Plinth.

Configures the ``plinth`` logger hierarchy with a console handler and an
optional rotating file handler per process context (api, cli).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

from plinth.config import settings

STANDARD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _build_formatter() -> logging.Formatter:
    if settings.log_format == "json":
        return JsonFormatter()
    return logging.Formatter(STANDARD_FORMAT)


def setup_logging(context: str = "api", force: bool = False) -> logging.Logger:
    """
    Configure logging for the given process context.

    Args:
        context: Name of the running process ("api" or "cli"), used as the
            log file name
        force: Reconfigure even if logging was already set up

    Returns:
        The configured ``plinth`` logger

    Raises:
        PermissionError: If the log directory cannot be created
    """
    global _configured

    logger = logging.getLogger("plinth")
    if _configured and not force:
        return logger

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(settings.log_level.upper())
    formatter = _build_formatter()

    if settings.log_console_enabled:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        logger.addHandler(console)

    if settings.log_file_enabled:
        log_dir = settings.log_directory
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / f"{context}.log",
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    _configured = True
    logger.debug(f"Logging configured for context '{context}'")
    return logger
