"""Logging helpers for the storefront client."""

import logging

import structlog


def quiet_http_loggers(level: int = logging.WARNING) -> None:
    """Keep per-request httpx/httpcore chatter out of application logs."""
    logging.getLogger("httpx").setLevel(level)
    logging.getLogger("httpcore").setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
