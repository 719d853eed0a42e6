"""Structured logging for SumLog.

Every log entry goes through structlog and ends up on stdout via the
standard library's root handler, so uvicorn and SQLAlchemy records share
the same format:

- JSON lines when ``LOG_FORMAT=json`` (or in production)
- coloured console output otherwise

Entries carry the service name, version and environment, plus whatever is
bound to the current context: the request ID set by the HTTP middleware
and any fields bound with ``log_context``.

Usage:
    from sumlog.core.logging import configure_logging, get_logger

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info("calculation_served", num1=2.0, num2=3.0, cache_hit=False)
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from sumlog.config import Settings

REQUEST_ID_KEY = "request_id"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


# ========================================
# Request ID
# ========================================
def bind_request_id(request_id: str) -> None:
    """Attach a request ID to every entry logged in the current context."""
    structlog.contextvars.bind_contextvars(**{REQUEST_ID_KEY: request_id})


def get_request_id() -> str | None:
    """Get the request ID bound to the current context, if any."""
    return structlog.contextvars.get_contextvars().get(REQUEST_ID_KEY)


def clear_request_id() -> None:
    """Detach the request ID from the current context."""
    structlog.contextvars.unbind_contextvars(REQUEST_ID_KEY)


# ========================================
# Processors
# ========================================
def app_context_processor(settings: Settings) -> Processor:
    """Build a processor stamping entries with the service identity."""
    app_context = {
        "service": settings.app_name.lower(),
        "version": settings.app_version,
        "environment": settings.app_env.value,
    }

    def add_app_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        for key, value in app_context.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_app_context


def _renderers(settings: Settings) -> list[Processor]:
    if settings.use_json_logs:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the root logger from settings.

    Safe to call more than once; the root handler is replaced each time.
    """
    log_level = getattr(logging, settings.log_level.value, logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        app_context_processor(settings),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderers(settings),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # Emitted SQL only in debug mode
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, typically with ``__name__``."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """Bind fields to every entry logged inside the ``with`` block.

    Example:
        with log_context(cache_key="2:3"):
            logger.info("cache_miss")  # includes cache_key
    """
    return structlog.contextvars.bound_contextvars(**kwargs)


def mask_password(url: str) -> str:
    """Replace the password of a connection URL with ``****``.

    URLs without credentials are returned unchanged.
    """
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    credentials, host = rest.rsplit("@", 1)
    user, has_password, _ = credentials.partition(":")
    if not has_password:
        return url
    return f"{scheme}://{user}:****@{host}"
