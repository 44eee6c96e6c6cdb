"""
HTTP error types and exception handlers

Every error leaves the API as a JSON envelope:

    {"error": "<message>", "status": <code>}

Services raise the HttpError subclasses below; the handlers registered by
register_exception_handlers() render them.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class HttpError(Exception):
    """Base error carrying an HTTP status"""

    status: int = 500

    def __init__(self, message: str, status: Optional[int] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        self.headers = headers


class BadRequestError(HttpError):
    status = 400


class UnauthorizedError(HttpError):
    status = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(HttpError):
    status = 403


class NotFoundError(HttpError):
    status = 404


class ConflictError(HttpError):
    status = 409


class PayloadTooLargeError(HttpError):
    status = 413


class UnprocessableEntityError(HttpError):
    status = 422


class InternalServerError(HttpError):
    status = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


def error_body(message: str, status: int) -> Dict:
    return {"error": message, "status": status}


@contextmanager
def wrap_unexpected(action: str, **context):
    """
    Let HttpError through unchanged; log anything else and raise it as
    InternalServerError("Failed to <action>: <reason>").

    Usage:
        with wrap_unexpected("get popular albums", user_id=user_id):
            ...
    """
    try:
        yield
    except HttpError:
        raise
    except Exception as e:
        logger.error(f"❌ Failed to {action}: {e}", extra={"context": context}, exc_info=True)
        raise InternalServerError(f"Failed to {action}: {e}") from e


def register_exception_handlers(app: FastAPI, is_production: bool = False) -> None:
    """Attach JSON error handlers to the app"""

    @app.exception_handler(HttpError)
    async def http_error_handler(request: Request, exc: HttpError):
        if exc.status >= 500:
            logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status,
            content=error_body(exc.message, exc.status),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))

        content = {"error": "Validation failed", "message": message}
        if not is_production:
            content["details"] = [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                for err in errors
            ]
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = "Route not found"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message, exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
        message = "Internal server error" if is_production else (str(exc) or "Internal server error")
        return JSONResponse(status_code=500, content=error_body(message, 500))
