"""
Error taxonomy for the auth service.

Every failure leaves the API as a single JSON body ``{"message": str}``.
Unexpected exceptions are logged with their traceback and returned to the
caller as an opaque "Server error".
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(AuthServiceError):
    status_code = 400
    default_message = "Invalid request"


class InvalidResetCode(InvalidRequest):
    default_message = "Invalid or expired code"


class Unauthorized(AuthServiceError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(AuthServiceError):
    status_code = 404
    default_message = "Not found"


class Conflict(AuthServiceError):
    status_code = 409
    default_message = "Conflict"


class Unexpected(AuthServiceError):
    pass


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def auth_error_handler(request: Request, exc: AuthServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _message(exc.status_code, Unexpected.default_message)
    return _message(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _message(400, "Invalid request body")


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _message(500, Unexpected.default_message)


class UnexpectedErrorMiddleware:
    """
    Turns unhandled exceptions into the opaque 500 body.

    Installed inside the origin middleware so the 500 still carries CORS
    headers and the browser can read it. Starlette's own ``Exception``
    handler runs outermost and would lose them.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if response_started:
                raise
            logger.exception("Unhandled error on %s %s", scope["method"], scope["path"])
            response = _message(500, Unexpected.default_message)
            await response(scope, receive, send)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthServiceError, auth_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
