"""
Unified error handling for consistent API error responses.

All API errors use the same response format:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "detail": "Optional additional context"
    }
}

Engine errors (core.errors.StatsError) are translated by
``stats_error_handler`` so routers can let them propagate.
"""

from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from ..core.errors import (
    MissingAccountError,
    PersistenceError,
    StatsError,
    UpstreamError,
    UpstreamTransientError,
)


class APIError(HTTPException):
    """Base API error class for consistent error responses."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        detail: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.code = code
        self.message = message
        self.error_detail = detail
        super().__init__(
            status_code=status_code,
            detail={"code": code, "message": message, "detail": detail},
            headers=headers,
        )


class NotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            status_code=404,
            code="NOT_FOUND",
            message=f"{resource} not found",
            detail=f"{resource} with ID {identifier}",
        )


# Engine error -> HTTP status.  Subclasses must precede their bases.
STATUS_BY_ERROR: list[tuple[type[StatsError], int]] = [
    (MissingAccountError, 400),
    (PersistenceError, 502),
    (UpstreamTransientError, 503),
    (UpstreamError, 502),
]


def _error_response(
    status_code: int,
    code: str,
    message: str,
    detail: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {"error": {"code": code, "message": message}}
    if detail:
        content["error"]["detail"] = detail
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Convert APIError exceptions to consistent JSON responses."""
    return _error_response(exc.status_code, exc.code, exc.message, exc.error_detail, exc.headers)


async def stats_error_handler(request: Request, exc: StatsError) -> JSONResponse:
    """Convert engine errors to consistent JSON responses."""
    status_code = next((s for cls, s in STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    detail = None
    if isinstance(exc, MissingAccountError):
        detail = f"{exc.game} on {exc.platform}"
    return _error_response(status_code, exc.code, exc.message, detail)
