"""Failure envelope for the Commerce API.

Domain validation errors become 400, unknown aggregates 404 and malformed
requests 422. Every failure body has the shape
``{"success": false, "message": str, "errors": {field: [messages]}}``.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from commerce.utils.logging import get_logger

logger = get_logger(__name__)


def _as_error_map(messages, default_key):
    if isinstance(messages, dict):
        return {key: value if isinstance(value, list) else [str(value)] for key, value in messages.items()}
    return {default_key: [str(messages)]}


def _first_message(errors, fallback):
    for value in errors.values():
        if value:
            return str(value[0])
    return fallback


def failure(status_code, message, errors):
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "errors": errors},
    )


async def domain_validation_handler(request: Request, exc: ValidationError):
    errors = _as_error_map(getattr(exc, "messages", str(exc)), "_entity")
    logger.info("request_rejected", path=request.url.path, errors=errors)
    return failure(400, _first_message(errors, "Validation failed"), errors)


async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    errors = _as_error_map(getattr(exc, "messages", str(exc)), "_entity")
    logger.info("object_not_found", path=request.url.path)
    return failure(404, "Resource not found", errors)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.setdefault(".".join(location) or "body", []).append(error.get("msg", "Invalid value"))
    return failure(422, "Request validation failed", errors)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, domain_validation_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
