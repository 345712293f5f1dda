"""
Error taxonomy and the wrapper that turns unexpected failures into a generic 500.
"""
import functools
import logging
from typing import Callable

from fastapi import HTTPException
from fastapi.responses import JSONResponse

from config import is_production

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors rendered as {"success": false, "error": ...}"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(AppError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"


class ServiceError(AppError):
    """A downstream integration failed in a way worth naming to the client"""
    status_code = 500
    default_message = "Upstream service failed"


def error_body(message: str, detail: str = None) -> dict:
    body = {"success": False, "error": message}
    if detail and not is_production():
        body["detail"] = detail
    return body


def api_errors(message: str):
    """Decorator for route handlers: known errors pass through, anything else becomes a 500."""
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (AppError, HTTPException):
                raise
            except Exception as e:
                logger.exception(f"{func.__name__} failed: {e}")
                return JSONResponse(status_code=500, content=error_body(message, str(e)))
        return wrapper
    return decorator
