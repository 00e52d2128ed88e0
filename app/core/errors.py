"""
Error Handling
Every failure leaves the API as a JSON body shaped {"error": ..., "code": ...}
"""
import logging
import re
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised from handlers to produce a JSON error body with a machine-readable code."""

    def __init__(self, status_code: int, error: str, code: str, **extra: Any) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.code = code
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.error, "code": self.code}
        body.update(self.extra)
        return body


def _field_code(name: str) -> str:
    # userId -> USER_ID, limitAmount -> LIMIT_AMOUNT
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).upper()


def validation_error_body(exc: RequestValidationError) -> dict:
    errors = exc.errors()
    if not errors:
        return {"error": "Invalid request", "code": "VALIDATION_ERROR"}

    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if not isinstance(part, int)]
    field = loc[-1] if len(loc) > 1 else loc[0] if loc else "request"

    if first.get("type") == "missing":
        return {"error": f"{field} is required", "code": f"MISSING_{_field_code(field)}"}
    return {
        "error": f"{field}: {first.get('msg', 'invalid value')}",
        "code": f"INVALID_{_field_code(field)}",
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.error}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=validation_error_body(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = "NOT_FOUND" if exc.status_code == 404 else f"HTTP_{exc.status_code}"
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail), "code": code})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
        )
