"""RFC 7807 Problem Details error handling."""

import logging
from typing import TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studio_app.services.errors import StudioError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProblemDetailError(Exception):
    """Raise for RFC 7807 problem+json responses."""

    def __init__(
        self,
        status: int,
        title: str,
        detail: str,
        error_type: str | None = None,
        extensions: dict | None = None,
    ):
        self.status = status
        self.title = title
        self.detail = detail
        self.error_type = error_type or "about:blank"
        self.extensions = extensions or {}


class AccessRedirect(Exception):
    """Raise from page-style entry points to send the caller elsewhere (303)."""

    def __init__(self, location: str):
        self.location = location


def problem_from_error(error: StudioError) -> ProblemDetailError:
    """Convert a service-level StudioError into a ProblemDetailError."""
    extensions: dict = {"kind": error.kind.value}
    if error.join_limit is not None:
        extensions["join_limit"] = {
            "recent_count": error.join_limit.recent_count,
            "daily_limit": error.join_limit.daily_limit,
            "window_ms": error.join_limit.window_ms,
            "limit_reached": error.join_limit.limit_reached,
        }
    if error.membership_status is not None:
        extensions["membership_status"] = error.membership_status.value
    if error.studio_id is not None:
        extensions["studio_id"] = str(error.studio_id)

    return ProblemDetailError(
        status=error.status,
        title=error.kind.title,
        detail=error.message,
        error_type=f"urn:studio:error:{error.kind.value}",
        extensions=extensions,
    )


async def problem_detail_handler(request: Request, exc: ProblemDetailError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status,
        content={
            **exc.extensions,
            "type": exc.error_type,
            "title": exc.title,
            "status": exc.status,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def access_redirect_handler(request: Request, exc: AccessRedirect) -> RedirectResponse:
    return RedirectResponse(exc.location, status_code=303)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": "about:blank",
            "title": exc.detail if isinstance(exc.detail, str) else "Error",
            "status": exc.status_code,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "type": "about:blank",
            "title": "Validation Error",
            "status": 422,
            "detail": exc.errors(),
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        exc_info=exc,
        extra={
            "path": str(request.url.path),
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "Something went wrong. Please try again.",
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


def unwrap(result: T | StudioError) -> T:
    """Return a service success value or raise its error as problem+json."""
    if isinstance(result, StudioError):
        raise problem_from_error(result)
    return result
