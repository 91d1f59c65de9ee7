"""Domain errors and their JSON rendering.

Every error carries the HTTP status it maps to and a public message. The
public message is the only text that ever reaches a response body.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class SalonError(Exception):
    status_code = 500
    public_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.public_message
        super().__init__(self.message)


class ValidationError(SalonError):
    status_code = 400
    public_message = "Missing or invalid fields"


class PayloadTooLarge(ValidationError):
    status_code = 413
    public_message = "File too large"


class AuthError(SalonError):
    # Subclasses share one public message so callers cannot tell why a
    # session was refused.
    status_code = 401
    public_message = "Not logged in"

    def __init__(self, reason: str | None = None):
        super().__init__(self.public_message)
        self.reason = reason


class Unauthenticated(AuthError):
    pass


class InvalidToken(AuthError):
    pass


class InvalidCredentials(SalonError):
    status_code = 401
    public_message = "Invalid login"


class Conflict(SalonError):
    status_code = 409
    public_message = "Already exists"


class NotFoundOrNotOwned(SalonError):
    status_code = 404
    public_message = "Not found"


class EmptyCartError(SalonError):
    status_code = 400
    public_message = "Cart is empty"


class OrderFailed(SalonError):
    status_code = 500
    public_message = "Order failed"


class InvalidStatus(SalonError):
    status_code = 400
    public_message = "Invalid status"


def error_body(message: str) -> dict:
    return {"error": message}


def register_error_handlers(app: FastAPI):
    @app.exception_handler(SalonError)
    async def salon_error(request: Request, exc: SalonError):
        if isinstance(exc, AuthError) and exc.reason:
            logger.info("refused session on %s: %s", request.url.path, exc.reason)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body(ValidationError.public_message))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))

    @app.exception_handler(SQLAlchemyError)
    async def store_error(request: Request, exc: SQLAlchemyError):
        logger.exception("store error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body(SalonError.public_message))
