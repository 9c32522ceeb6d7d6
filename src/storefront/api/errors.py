"""Exception handlers translating domain errors into the response envelope.

Every error body is ``{"success": false, "message": str, "errors": [...]}``.
Unexpected exceptions are logged with their traceback and reported generically.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import (
    ExpectedVersionError,
    InvalidOperationError,
    ObjectNotFoundError,
    ValidationError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.errors import StateConflictError, StockError

logger = structlog.get_logger(__name__)


def _first_message(messages, default: str) -> str:
    if isinstance(messages, str):
        return messages
    if isinstance(messages, dict):
        for value in messages.values():
            if isinstance(value, list | tuple) and value:
                return str(value[0])
            if value:
                return str(value)
    return default


def _error(status_code: int, message: str, errors=None, **extra) -> JSONResponse:
    content = {"success": False, "message": message, "errors": errors or []}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    messages = exc.messages if isinstance(exc.messages, dict) else {"_entity": [str(exc.messages)]}
    errors = [{"field": field, "messages": msgs} for field, msgs in messages.items()]
    return _error(400, _first_message(messages, "Validation failed"), errors)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err["loc"] if part != "body"), "messages": [err["msg"]]}
        for err in exc.errors()
    ]
    return _error(400, "Validation failed", errors)


async def handle_state_conflict(request: Request, exc: StateConflictError) -> JSONResponse:
    return _error(400, exc.message, exc.violations)


async def handle_stock_error(request: Request, exc: StockError) -> JSONResponse:
    return _error(
        400,
        exc.message,
        [{"product_id": exc.product_id, "available_stock": exc.available_stock}],
        available_stock=exc.available_stock,
    )


async def handle_invalid_operation(request: Request, exc: InvalidOperationError) -> JSONResponse:
    return _error(400, _first_message(exc.messages, "Operation not allowed"))


async def handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _error(404, _first_message(exc.messages, "Resource not found"))


async def handle_version_conflict(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.info("concurrent_modification", path=request.url.path)
    return _error(409, "The resource was modified by another request. Please retry", retryable=True)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return _error(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StateConflictError, handle_state_conflict)
    app.add_exception_handler(StockError, handle_stock_error)
    app.add_exception_handler(InvalidOperationError, handle_invalid_operation)
    app.add_exception_handler(ObjectNotFoundError, handle_not_found)
    app.add_exception_handler(ExpectedVersionError, handle_version_conflict)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
