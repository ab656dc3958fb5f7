"""
Error taxonomy shared by every router.

Routers raise these exceptions; the handlers registered in ``main`` turn them
into ``{"message": ...}`` JSON bodies with the matching status code.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for errors that map to a fixed HTTP status"""
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def body(self) -> Dict[str, Any]:
        return {"message": self.message}

    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(APIError):
    status_code = 400
    message = "Validation error."

    def __init__(self, issues: List[Dict[str, Any]], message: Optional[str] = None):
        super().__init__(message)
        self.issues = issues

    def body(self) -> Dict[str, Any]:
        return {"message": self.message, "issues": self.issues}


class InvalidCredentials(APIError):
    status_code = 400
    message = "Invalid credentials."


class Unauthorized(APIError):
    status_code = 401
    message = "Unauthorized."

    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class NotFound(APIError):
    status_code = 404
    message = "Not found"


class Conflict(APIError):
    status_code = 409
    message = "Conflict"


class InUse(APIError):
    status_code = 400
    message = "Cannot delete category that is being used by expenses"

    def __init__(self, expenses_count: int, message: Optional[str] = None):
        super().__init__(message)
        self.expenses_count = expenses_count

    def body(self) -> Dict[str, Any]:
        return {"message": self.message, "expensesCount": self.expenses_count}


class InternalError(APIError):
    status_code = 500


def format_issues(errors) -> List[Dict[str, Any]]:
    """Flatten pydantic error dicts into JSON-safe issue entries"""
    issues = []
    for error in errors:
        loc = list(error.get("loc", ()))
        location = str(loc[0]) if loc else None
        field = ".".join(str(part) for part in loc[1:]) if len(loc) > 1 else None
        issues.append({
            "location": location,
            "field": field,
            "message": error.get("msg"),
            "type": error.get("type"),
        })
    return issues


async def api_error_handler(request: Request, exc: APIError):
    return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=exc.headers())


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(format_issues(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.body())


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.body())


def register_error_handlers(app):
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
