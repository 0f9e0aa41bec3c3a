"""Shared retry policy for external calls (schema extraction and generation)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

import httpx

from layoutforge.config import settings
from layoutforge.core.exceptions import UpstreamStatusError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")

RATE_LIMIT_STATUS = 429


def status_code_of(exc: BaseException) -> int | None:
    """Return the HTTP status carried by an upstream exception, if any."""
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    return None


# Provider SDK connection failures that do not derive from httpx.RequestError.
_PROVIDER_CONNECTION_ERRORS = frozenset({"APIConnectionError"})
_PROVIDER_TIMEOUT_ERRORS = frozenset({"APITimeoutError"})


def _raised_as(exc: BaseException, names: frozenset[str]) -> bool:
    return any(cls.__name__ in names for cls in type(exc).__mro__)


def is_timeout_error(exc: BaseException) -> bool:
    return isinstance(exc, httpx.TimeoutException) or _raised_as(exc, _PROVIDER_TIMEOUT_ERRORS)


def is_transport_error(exc: BaseException) -> bool:
    """True for connection-level failures that never produced an HTTP status."""
    return isinstance(exc, (httpx.RequestError, ConnectionError)) or _raised_as(
        exc, _PROVIDER_CONNECTION_ERRORS
    )


def upstream_message_of(exc: BaseException) -> str:
    """Best-effort upstream error message for a failed call."""
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return str(exc) or exc.__class__.__name__


async def call_with_rate_limit_retry(
    operation: Callable[[], Awaitable[_ResultT]],
    *,
    service: str,
    attempts: int | None = None,
    base_delay_seconds: float | None = None,
    deadline_seconds: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    log_context: Mapping[str, Any] | None = None,
) -> _ResultT:
    """Run an external call under the shared retry policy.

    Rate-limit responses are retried up to ``attempts`` times with a delay of
    ``attempt * base_delay_seconds``. Any other upstream status is raised
    immediately as ``UpstreamStatusError``. The whole call, backoff included,
    is bounded by ``deadline_seconds``; expiry cancels the in-flight request
    and raises ``UpstreamTimeoutError``.
    """
    max_attempts = attempts if attempts is not None else settings.llm_rate_limit_attempts
    base_delay = (
        base_delay_seconds
        if base_delay_seconds is not None
        else settings.llm_rate_limit_backoff_seconds
    )
    if max_attempts < 1:
        raise ValueError("attempts must be >= 1")

    context = dict(log_context or {})

    async def _attempt_loop() -> _ResultT:
        for attempt in range(1, max_attempts + 1):
            try:
                return await operation()
            except (UpstreamStatusError, UpstreamTimeoutError):
                raise
            except Exception as exc:
                if is_timeout_error(exc):
                    raise UpstreamTimeoutError(service, deadline_seconds or 0.0) from exc
                status = status_code_of(exc)
                if status is None and is_transport_error(exc):
                    logger.warning(
                        "Upstream call could not connect",
                        extra={**context, "service": service, "error": str(exc)},
                    )
                    raise UpstreamStatusError(
                        service, 502, str(exc) or exc.__class__.__name__
                    ) from exc
                if status is None:
                    raise
                if status != RATE_LIMIT_STATUS:
                    logger.warning(
                        "Upstream call failed",
                        extra={**context, "service": service, "status": status},
                    )
                    raise UpstreamStatusError(service, status, upstream_message_of(exc)) from exc
                if attempt == max_attempts:
                    logger.warning(
                        "Upstream rate limit persisted; giving up",
                        extra={**context, "service": service, "attempts": attempt},
                    )
                    raise UpstreamStatusError(
                        service, RATE_LIMIT_STATUS, "Rate limit exceeded"
                    ) from exc
                delay = base_delay * attempt
                logger.warning(
                    "Upstream rate limited; retrying",
                    extra={
                        **context,
                        "service": service,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "delay_s": delay,
                    },
                )
                await sleep(delay)

        raise RuntimeError(f"Retry loop exhausted unexpectedly for service: {service}")

    if deadline_seconds is None:
        return await _attempt_loop()

    try:
        return await asyncio.wait_for(_attempt_loop(), timeout=deadline_seconds)
    except UpstreamTimeoutError:
        raise
    except asyncio.TimeoutError as exc:
        logger.warning(
            "Upstream call exceeded deadline",
            extra={**context, "service": service, "deadline_s": deadline_seconds},
        )
        raise UpstreamTimeoutError(service, deadline_seconds) from exc
