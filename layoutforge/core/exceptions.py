"""Custom exception classes for the application."""

from typing import Any


class LayoutForgeError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Input Errors
class InputError(LayoutForgeError):
    """Missing, too short, or otherwise invalid user input."""

    pass


class AuthWalledDomainError(InputError):
    """The requested page sits behind a login wall the fetcher cannot pass."""

    GUIDANCE = (
        "This site requires signing in before its articles can be read. "
        "Open the article in your browser, use \"Save Page As\" to store it as an "
        "HTML file, then upload that file for analysis instead."
    )

    def __init__(self, domain: str, upstream_status: int | None = None) -> None:
        self.domain = domain
        self.upstream_status = upstream_status
        self.guidance = self.GUIDANCE
        super().__init__(
            f"{domain} requires authentication and cannot be fetched directly",
            details={"domain": domain, "upstream_status": upstream_status},
        )


class ContentTooLargeError(InputError):
    """Fetched or uploaded content exceeds the size ceiling."""

    def __init__(self, limit_bytes: int) -> None:
        self.limit_bytes = limit_bytes
        limit = (
            f"{limit_bytes / (1024 * 1024):g}MB" if limit_bytes >= 1024 * 1024 else f"{limit_bytes} bytes"
        )
        super().__init__(
            f"Content is too large (max {limit})",
            details={"limit_bytes": limit_bytes},
        )


class NotFoundError(LayoutForgeError):
    """A template, library document, or published article does not exist."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} not found: {item_id}", details={"id": item_id})


# External call Errors
class UpstreamStatusError(LayoutForgeError):
    """An external call answered with a non-success status."""

    def __init__(self, service: str, status_code: int, message: str) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(
            f"{service} error ({status_code}): {message}",
            details={"service": service, "status_code": status_code},
        )


class UpstreamTimeoutError(LayoutForgeError, TimeoutError):
    """An external call exceeded its client-side deadline."""

    HINT = "The request took too long. Try again, or shorten the input."

    def __init__(self, service: str, deadline_seconds: float) -> None:
        self.service = service
        self.deadline_seconds = deadline_seconds
        super().__init__(
            f"{service} did not respond within {deadline_seconds:g}s",
            details={"service": service, "deadline_seconds": deadline_seconds},
        )


class FormatError(LayoutForgeError):
    """Model output did not parse as the expected shape."""

    def __init__(self, message: str, raw_text: str, excerpt_chars: int = 200) -> None:
        self.excerpt = (raw_text or "")[:excerpt_chars]
        super().__init__(message, details={"excerpt": self.excerpt})


# Generation Errors
class SchemaMismatchError(LayoutForgeError):
    """Generated article violates the active template's structural contract."""

    def __init__(self, message: str, repairs: list[Any] | None = None) -> None:
        self.repairs = list(repairs or [])
        super().__init__(message, details={"repair_count": len(self.repairs)})


class GenerationInProgressError(LayoutForgeError):
    """A generation is already outstanding for this session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"A generation is already running for session: {session_id}",
            details={"session_id": session_id},
        )
