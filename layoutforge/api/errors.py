"""Map domain exceptions to HTTP responses."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from layoutforge.core.exceptions import (
    AuthWalledDomainError,
    ContentTooLargeError,
    FormatError,
    GenerationInProgressError,
    InputError,
    LayoutForgeError,
    NotFoundError,
    SchemaMismatchError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)


def _error_response(
    request: Request,
    exc: LayoutForgeError,
    status_code: int,
    **extra: Any,
) -> JSONResponse:
    logger.warning(
        "Request failed",
        extra={
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "status_code": status_code,
            "error_details": exc.details,
        },
    )
    body = {"error": type(exc).__name__, "detail": exc.message, "details": exc.details, **extra}
    return JSONResponse(status_code=status_code, content=body)


def upstream_http_status(exc: UpstreamStatusError) -> int:
    """Pass upstream client/server errors through; anything else becomes 502."""
    if 400 <= exc.status_code <= 599:
        return exc.status_code
    return status.HTTP_502_BAD_GATEWAY


async def _input_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, InputError)
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST)


async def _auth_walled(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, AuthWalledDomainError)
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, guidance=exc.guidance)


async def _too_large(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ContentTooLargeError)
    return _error_response(request, exc, 413)


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, NotFoundError)
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND)


async def _upstream_status(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, UpstreamStatusError)
    return _error_response(request, exc, upstream_http_status(exc))


async def _upstream_timeout(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, UpstreamTimeoutError)
    return _error_response(request, exc, status.HTTP_504_GATEWAY_TIMEOUT, hint=exc.HINT)


async def _format_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, FormatError)
    return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY)


async def _schema_mismatch(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, SchemaMismatchError)
    return _error_response(request, exc, 422)


async def _in_progress(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, GenerationInProgressError)
    return _error_response(request, exc, status.HTTP_409_CONFLICT)


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, LayoutForgeError)
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers; the most specific class in an exception's MRO wins."""
    app.add_exception_handler(InputError, _input_error)
    app.add_exception_handler(AuthWalledDomainError, _auth_walled)
    app.add_exception_handler(ContentTooLargeError, _too_large)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(UpstreamStatusError, _upstream_status)
    app.add_exception_handler(UpstreamTimeoutError, _upstream_timeout)
    app.add_exception_handler(FormatError, _format_error)
    app.add_exception_handler(SchemaMismatchError, _schema_mismatch)
    app.add_exception_handler(GenerationInProgressError, _in_progress)
    app.add_exception_handler(LayoutForgeError, _unhandled)
