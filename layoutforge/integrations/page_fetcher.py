"""Fetch remote article pages for layout analysis."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from layoutforge.config import settings
from layoutforge.core.exceptions import (
    AuthWalledDomainError,
    ContentTooLargeError,
    InputError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "Page fetch"
AUTH_STATUSES = {401, 403}


@dataclass(slots=True)
class FetchedPage:
    url: str
    final_url: str
    status_code: int
    content_type: str
    html: str


def is_auth_walled(host: str, domains: list[str]) -> bool:
    host = host.lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in domains)


class PageFetcher:
    """Fetcher for raw page markup with size and time ceilings."""

    def __init__(
        self,
        timeout: float | None = None,
        max_bytes: int | None = None,
        user_agent: str | None = None,
        auth_walled_domains: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self.max_bytes = max_bytes if max_bytes is not None else settings.fetch_max_bytes
        self.user_agent = user_agent or settings.fetch_user_agent
        self.auth_walled_domains = [
            domain.lower()
            for domain in (
                auth_walled_domains
                if auth_walled_domains is not None
                else settings.auth_walled_domains
            )
        ]
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "PageFetcher":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
            follow_redirects=True,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client:
            await self._client.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("PageFetcher must be used as async context manager")
        return self._client

    def validate_url(self, url: str) -> str:
        """Return the trimmed URL, or raise InputError for anything but http(s)."""
        candidate = (url or "").strip()
        if not candidate:
            raise InputError("Missing URL")
        parsed = urlparse(candidate)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InputError(
                "Only http(s) URLs can be fetched",
                details={"url": candidate},
            )
        return candidate

    async def fetch(self, url: str) -> FetchedPage:
        """Fetch a page's markup within the configured deadline.

        Raises:
            InputError: the URL is not http(s).
            AuthWalledDomainError: a known login-walled host refused the request.
            ContentTooLargeError: the body exceeds the size ceiling.
            UpstreamStatusError: any other non-success status.
            UpstreamTimeoutError: the deadline expired.
        """
        target = self.validate_url(url)
        host = urlparse(target).hostname or ""
        logger.info("Fetching page", extra={"url": target})

        try:
            return await asyncio.wait_for(self._fetch(target, host), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Page fetch timed out", extra={"url": target, "timeout_s": self.timeout})
            raise UpstreamTimeoutError(SERVICE_NAME, self.timeout) from exc
        except httpx.TimeoutException as exc:
            logger.warning("Page fetch timed out", extra={"url": target, "timeout_s": self.timeout})
            raise UpstreamTimeoutError(SERVICE_NAME, self.timeout) from exc
        except httpx.RequestError as exc:
            logger.warning("Page fetch failed", extra={"url": target, "error": str(exc)})
            raise UpstreamStatusError(SERVICE_NAME, 502, str(exc) or "connection failed") from exc

    async def _fetch(self, url: str, host: str) -> FetchedPage:
        async with self.client.stream("GET", url) as response:
            status = response.status_code
            if status in AUTH_STATUSES and is_auth_walled(host, self.auth_walled_domains):
                logger.warning(
                    "Auth-walled domain refused fetch",
                    extra={"url": url, "host": host, "status": status},
                )
                raise AuthWalledDomainError(host, upstream_status=status)
            if not response.is_success:
                logger.warning("Page fetch failed", extra={"url": url, "status": status})
                raise UpstreamStatusError(
                    SERVICE_NAME, status, response.reason_phrase or "request failed"
                )

            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                raise ContentTooLargeError(self.max_bytes)

            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) > self.max_bytes:
                    raise ContentTooLargeError(self.max_bytes)

            html = bytes(body).decode("utf-8", errors="replace")
            logger.info(
                "Page fetched",
                extra={"url": url, "status": status, "bytes": len(body)},
            )
            return FetchedPage(
                url=url,
                final_url=str(response.url),
                status_code=status,
                content_type=response.headers.get("content-type", ""),
                html=html,
            )
