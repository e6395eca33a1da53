"""structlog setup shared by the API and the CLI.

Both structlog loggers and stdlib loggers (uvicorn, sqlalchemy, alembic) go
through one stdout handler. ``settings.log_format`` picks the renderer:
colored key-value lines for development, one JSON object per line otherwise.
"""

import logging
import sys

import structlog
from structlog.typing import Processor

from freightbid.config import settings

# Loggers that are too chatty at the application level
QUIET_LOGGERS: dict[str, int] = {
    "asyncio": logging.INFO,
    "aiosqlite": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "alembic.runtime.migration": logging.INFO,
}


def _shared_processors(log_format: str) -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        # JSON lines go to collectors that expect UTC
        structlog.processors.TimeStamper(fmt="iso", utc=log_format == "json"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(default=str)
    return structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)


def configure_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """Route structlog and stdlib logging through a single stdout handler."""
    log_format = log_format or settings.log_format
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    shared = _shared_processors(log_format)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *([structlog.processors.format_exc_info] if log_format == "json" else []),
            _renderer(log_format),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, quiet_level))


_configured = False


def setup_logging() -> None:
    """Configure logging on first call; later calls are no-ops."""
    global _configured
    if not _configured:
        configure_logging()
        _configured = True
