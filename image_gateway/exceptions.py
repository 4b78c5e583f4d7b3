"""
    Centralized exception handling for the FastAPI application.

    Every failure leaves the gateway as the uniform envelope
    ``{"code": <status>, "message": <text>, "data": null}``.
"""
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from image_gateway.responses import error_response

log = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Not Found: Invalid API endpoint or method"

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class AuthError(APIException):
    """Missing, invalid or expired token, or a token without identity."""
    def __init__(self, detail: str = "Unauthorized: Missing or invalid token"):
        super().__init__(status_code=401, detail=detail)

class ValidationError(APIException):
    """Malformed UUID, wrong or missing content, bad transport."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class RateLimitError(APIException):
    """Quota exceeded for the rate limit key."""
    def __init__(self, detail: str = "Too Many Requests"):
        super().__init__(status_code=429, detail=detail)

class NotFoundError(APIException):
    """Unknown route or missing object."""
    def __init__(self, detail: str = NOT_FOUND_MESSAGE):
        super().__init__(status_code=404, detail=detail)

class StorageError(APIException):
    """Backing store failure."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    if exc.status_code >= 500:
        log.error(f"API Exception: {exc.detail}", exc_info=exc)
    else:
        log.warning("API Exception %s on %s %s: %s", exc.status_code, request.method, request.url.path, exc.detail)
    return error_response(exc.status_code, exc.detail)

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handles routing errors; unknown paths and wrong methods are both 404."""
    if exc.status_code in (404, 405):
        return error_response(404, NOT_FOUND_MESSAGE)
    log.warning(f"HTTP Exception: {exc.detail}")
    return error_response(exc.status_code, str(exc.detail))

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles request parsing errors raised by FastAPI."""
    log.warning(f"Request validation failed: {exc.errors()}")
    return error_response(400, "Bad Request: Invalid request parameters")

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return error_response(500, f"Internal Server Error: {exc}")

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
