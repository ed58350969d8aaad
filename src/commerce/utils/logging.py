"""Logging configuration for the Commerce domain.

Standard library logging carries the output and structlog renders it. The
level follows ``PROTEAN_ENV`` unless ``LOG_LEVEL`` overrides it. JSON lines are
emitted in production and staging, a plain console format elsewhere. A rotating
``sportshop.log`` is only written when ``LOG_DIR`` is set.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

import structlog

_ENV_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_JSON_ENVS = {"production", "staging"}

# Library loggers that drown out request-level events below WARNING
_NOISY_LOGGERS = ("protean", "asyncio", "uvicorn.access")


def _environment() -> str:
    return (os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", _ENV_LEVELS.get(_environment(), "INFO")).upper()


def _handlers(level) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_dir = os.getenv("LOG_DIR")
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                Path(log_dir) / "sportshop.log",
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Route stdlib and structlog output through the same handlers."""
    level = (level or get_log_level()).upper()
    if json_output is None:
        json_output = _environment() in _JSON_ENVS

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = _handlers(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(request_id: str, method: str, path: str) -> None:
    """Attach request identifiers to every event logged while handling it."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
