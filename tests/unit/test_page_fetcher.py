"""Tests for the page fetcher's ceilings and refusal handling."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import httpx
import pytest

from layoutforge.core.exceptions import (
    AuthWalledDomainError,
    ContentTooLargeError,
    InputError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)
from layoutforge.integrations.page_fetcher import PageFetcher, is_auth_walled


def _fetcher(handler, **kwargs) -> PageFetcher:
    return PageFetcher(transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_fetch_returns_decoded_markup() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Mozilla" in request.headers["user-agent"]
        return httpx.Response(
            200,
            content="<html><body>héllo</body></html>".encode("utf-8"),
            headers={"content-type": "text/html; charset=utf-8"},
        )

    async with _fetcher(handler) as fetcher:
        page = await fetcher.fetch("https://example.com/post")

    assert page.html == "<html><body>héllo</body></html>"
    assert page.status_code == 200
    assert page.content_type.startswith("text/html")


@pytest.mark.asyncio
async def test_invalid_utf8_is_replaced_not_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<p>\xff\xfe ok</p>")

    async with _fetcher(handler) as fetcher:
        page = await fetcher.fetch("https://example.com")

    assert page.html.endswith(" ok</p>")
    assert "�" in page.html


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["ftp://example.com/file", "javascript:alert(1)", "", "example.com"])
async def test_non_http_urls_are_rejected(url: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with _fetcher(handler) as fetcher:
        with pytest.raises(InputError):
            await fetcher.fetch(url)


@pytest.mark.asyncio
async def test_declared_oversize_body_is_refused() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"x" * 2048)

    async with _fetcher(handler, max_bytes=1024) as fetcher:
        with pytest.raises(ContentTooLargeError):
            await fetcher.fetch("https://example.com")


@pytest.mark.asyncio
async def test_streamed_oversize_body_is_refused() -> None:
    async def chunks() -> AsyncIterator[bytes]:
        for _ in range(10):
            yield b"y" * 512

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=chunks())

    async with _fetcher(handler, max_bytes=1024) as fetcher:
        with pytest.raises(ContentTooLargeError) as exc_info:
            await fetcher.fetch("https://example.com")

    assert exc_info.value.limit_bytes == 1024


@pytest.mark.asyncio
async def test_auth_walled_domain_gets_guidance() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401)

    async with _fetcher(handler) as fetcher:
        with pytest.raises(AuthWalledDomainError) as exc_info:
            await fetcher.fetch("https://mp.weixin.qq.com/s/abc")

    assert exc_info.value.upstream_status == 401
    assert "Save Page As" in exc_info.value.guidance


@pytest.mark.asyncio
async def test_other_domains_pass_status_through() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403)

    async with _fetcher(handler) as fetcher:
        with pytest.raises(UpstreamStatusError) as exc_info:
            await fetcher.fetch("https://example.com/private")

    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_slow_upstream_times_out() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, content=b"late")

    async with _fetcher(handler, timeout=0.05) as fetcher:
        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await fetcher.fetch("https://example.com")

    assert exc_info.value.deadline_seconds == 0.05


@pytest.mark.asyncio
async def test_connection_failure_maps_to_bad_gateway() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _fetcher(handler) as fetcher:
        with pytest.raises(UpstreamStatusError) as exc_info:
            await fetcher.fetch("https://example.com")

    assert exc_info.value.status_code == 502


def test_auth_walled_matching_covers_subdomains_only() -> None:
    domains = ["weixin.qq.com"]

    assert is_auth_walled("weixin.qq.com", domains)
    assert is_auth_walled("MP.WEIXIN.QQ.COM", domains)
    assert not is_auth_walled("notweixin.qq.com", domains)
