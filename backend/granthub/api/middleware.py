"""HTTP middleware and exception handlers of the GrantHub API."""

import time
import traceback
import uuid
from typing import Awaitable, Callable, Union

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from granthub.core.config import settings
from granthub.core.exceptions import (
    ContactValidationError,
    GrantHubException,
    NotFoundException,
    PermissionException,
    unpack_validation_error,
)
from granthub.core.logging import logger

CallNext = Callable[[Request], Awaitable[Response]]

# Most specific first; anything else derived from GrantHubException is a server error.
_STATUS_BY_EXCEPTION: tuple[tuple[type[GrantHubException], int], ...] = (
    (PermissionException, 403),
    (NotFoundException, 404),
    (ContactValidationError, 400),
)

_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Methods": "GET,POST,PUT,PATCH,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Credentials": "true",
}


async def add_request_id(request: Request, call_next: CallNext) -> Response:
    """Tag the request with a fresh id and echo it in ``X-Request-ID``."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


async def log_requests(request: Request, call_next: CallNext) -> Response:
    """Log method, path, status and duration of every request."""
    started = time.monotonic()
    response = await call_next(request)
    logger.with_context(request_id=getattr(request.state, "request_id", None)).info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({(time.monotonic() - started) * 1000:.0f} ms)"
    )
    return response


async def exception_logging_middleware(request: Request, call_next: CallNext) -> Response:
    """Turn an exception no handler caught into a logged 500 response."""
    try:
        return await call_next(request)
    except Exception as exc:
        trace = traceback.format_exc()
        logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}\n{trace}")

        body = {"detail": f"Internal Server Error: {type(exc).__name__}: {exc}"}
        if settings.DEBUG:
            body["trace"] = trace
        return JSONResponse(status_code=500, content=body)


class DynamicCORSMiddleware(BaseHTTPMiddleware):
    """CORS for the configured origins; ``"*"`` admits every origin."""

    def __init__(self, app, default_origins: list[str]):
        """Remember the origins that may call the API."""
        super().__init__(app)
        self.default_origins = default_origins

    def _is_allowed(self, origin: str) -> bool:
        return "*" in self.default_origins or origin in self.default_origins

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        """Answer preflights and decorate responses to allowed origins."""
        origin = request.headers.get("origin")
        if not origin:
            return await call_next(request)

        allowed = self._is_allowed(origin)
        if request.method == "OPTIONS":
            if not allowed:
                logger.debug(f"Preflight from {origin} refused")
                return Response(status_code=403)
            return Response(
                headers={"Access-Control-Allow-Origin": origin, **_PREFLIGHT_HEADERS}
            )

        response = await call_next(request)
        if allowed:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
        return response


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, ValidationError]
) -> JSONResponse:
    """Answer 422 with one ``{location: message}`` entry per failing input.

    Example body:
        {"errors": [{"body.email": "value is not a valid email address"}]}
    """
    errors = unpack_validation_error(exc)
    logger.warning(f"Rejected input on {request.method} {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content=errors)


def _detail(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def permission_exception_handler(request: Request, exc: PermissionException) -> JSONResponse:
    """403 for a caller lacking a module, a team or a user identity."""
    return _detail(403, exc)


async def not_found_exception_handler(request: Request, exc: NotFoundException) -> JSONResponse:
    """404 for rows that are missing or belong to another team."""
    return _detail(404, exc)


async def contact_validation_exception_handler(
    request: Request, exc: ContactValidationError
) -> JSONResponse:
    """400 with the user-facing contact validation message."""
    return _detail(400, exc)


async def granthub_exception_handler(request: Request, exc: GrantHubException) -> JSONResponse:
    """Fallback for GrantHub errors that have no dedicated handler."""
    status_code = next(
        (code for exc_type, code in _STATUS_BY_EXCEPTION if isinstance(exc, exc_type)), 500
    )
    if status_code == 500:
        logger.error(f"Unmapped {type(exc).__name__}: {exc}")
    return _detail(status_code, exc)
