import logging
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Terminal failure of a single operation, rendered as a JSON envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized request"


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not permitted"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class Internal(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class CascadeError(Internal):
    """A cascade step failed. ``result`` tells which steps already ran."""

    def __init__(self, message: str, result):
        super().__init__(message)
        self.result = result


def parse_id(value: str, name: str = "id") -> str:
    if not value or not value.strip():
        raise BadRequest(f"{name} is required")
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise BadRequest(f"Invalid {name} format")


def error_body(status_code: int, message: str) -> dict:
    return {"status_code": status_code, "message": message, "success": False}


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected (%d): %s", request.method, request.url.path,
                        exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message))

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, message),
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
            message = f"{field}: {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request"
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                            content=error_body(status.HTTP_400_BAD_REQUEST, message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"))
