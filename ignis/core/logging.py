"""
structlog on top of stdlib logging.

Both structlog loggers and plain ``logging.getLogger`` loggers (services,
middleware, SQLAlchemy) end up in the same handlers, rendered as JSON lines
or, with LOG_FORMAT=console, as coloured dev output. Values bound with
``structlog.contextvars`` (the request id) are merged into every line.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from ignis.core.config import settings

LOG_FILE_NAME = "ignis.log"

# Chatty below WARNING: one line per pooled checkout / outgoing request
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


def _pre_chain():
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _renderer(log_format: str):
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def setup_logging(log_dir: Optional[Path] = None, log_format: Optional[str] = None):
    """Route every logger through structlog's formatter to stdout and ``<log_dir>/ignis.log``."""
    log_dir = Path(log_dir or settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=_renderer(log_format or settings.LOG_FORMAT),
        foreign_pre_chain=_pre_chain(),
    )

    handlers = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8"),
    ]
    root = logging.getLogger()
    root.handlers = []
    root.setLevel(level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = structlog.get_logger("ignis")
    logger.info("logging_configured", level=settings.LOG_LEVEL, log_file=str(log_dir / LOG_FILE_NAME))
    return logger
