"""
Error taxonomy for the shop API.

Every business failure is raised as a ShopError subclass and rendered by
the handlers registered in register_error_handlers() as
{"error": <kind>, "detail": <message>} with a stable status code.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ShopError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 500
    kind = "InternalError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(ShopError):
    status_code = 400
    kind = "BadRequest"


class UnauthorizedError(ShopError):
    status_code = 401
    kind = "Unauthorized"


class ForbiddenError(ShopError):
    status_code = 403
    kind = "Forbidden"


class NotFoundError(ShopError):
    status_code = 404
    kind = "NotFound"


class ConflictError(ShopError):
    status_code = 409
    kind = "Conflict"


class InternalError(ShopError):
    status_code = 500
    kind = "InternalError"


async def shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.message},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a BadRequest, not FastAPI's default 422"""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(
        status_code=BadRequestError.status_code,
        content={"error": BadRequestError.kind, "detail": "; ".join(messages)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
