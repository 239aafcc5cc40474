"""Fetcher for remote llms.txt artifacts.

Retrieves a single text resource under a process-wide concurrency gate,
honoring conditional-GET validators, with a wall-clock timeout and a hard
size cap. A fetch either returns a :class:`FetchResult` (fetched or not
modified) or raises :class:`FetchError`.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from llmstxt import __version__
from llmstxt.errors import FetchError

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = 30.0
MAX_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
MAX_CONCURRENT = 5


@dataclass
class FetchResult:
    """Outcome of a successful fetch attempt."""

    content: str
    etag: str | None = None
    last_modified: str | None = None
    not_modified: bool = False


def validate_url(url: str) -> None:
    """Reject non-HTTP URLs and URLs pointing at local or private hosts."""
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise FetchError(f"Invalid URL: {url}", url=url) from e

    if parsed.scheme not in ("http", "https"):
        raise FetchError(
            f'Unsupported protocol "{parsed.scheme or "(none)"}" in URL: {url}', url=url
        )

    hostname = (parsed.hostname or "").lower()
    if not hostname:
        raise FetchError(f"Invalid URL: {url}", url=url)
    if hostname == "localhost" or hostname.endswith(".localhost"):
        raise FetchError(f"URL targets a private/reserved address: {url}", url=url)

    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return
    if ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved or ip.is_unspecified:
        raise FetchError(f"URL targets a private/reserved address: {url}", url=url)


class Fetcher:
    """Bounded-concurrency HTTP fetcher for plain-text artifacts.

    One instance is shared by every fetch in the process; its semaphore is
    the global admission gate. Waiters are admitted in arrival order.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        max_concurrent: int = MAX_CONCURRENT,
        timeout: float = TIMEOUT_SECONDS,
        max_size: int = MAX_SIZE_BYTES,
    ) -> None:
        self.max_concurrent = max_concurrent
        self.timeout = timeout
        self.max_size = max_size
        self._transport = transport
        self._gate = asyncio.Semaphore(max_concurrent)

    async def fetch(
        self,
        url: str,
        etag: str | None = None,
        last_modified: str | None = None,
    ) -> FetchResult:
        """Fetch *url*, sending any stored validators as a conditional GET."""
        validate_url(url)

        async with self._gate:
            try:
                return await asyncio.wait_for(
                    self._request(url, etag, last_modified), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                raise FetchError(
                    f"Request timed out after {self.timeout:g}s: {url}", url=url
                ) from None

    async def _request(
        self, url: str, etag: str | None, last_modified: str | None
    ) -> FetchResult:
        headers = {
            "User-Agent": f"llmstxt-cli/{__version__}",
            "Accept": "text/plain, text/markdown;q=0.9, */*;q=0.5",
        }
        if etag:
            headers["If-None-Match"] = etag
        if last_modified:
            headers["If-Modified-Since"] = last_modified

        logger.debug("GET %s (conditional=%s)", url, bool(etag or last_modified))

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=True,
                timeout=httpx.Timeout(self.timeout),
            ) as client:
                async with client.stream("GET", url, headers=headers) as response:
                    return await self._read(url, response, etag, last_modified)
        except httpx.TimeoutException as e:
            raise FetchError(f"Request timed out: {url}", url=url) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e}", url=url) from e

    async def _read(
        self,
        url: str,
        response: httpx.Response,
        etag: str | None,
        last_modified: str | None,
    ) -> FetchResult:
        if response.status_code == 304:
            return FetchResult(
                content="",
                etag=response.headers.get("etag") or etag,
                last_modified=response.headers.get("last-modified") or last_modified,
                not_modified=True,
            )

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "").lower()
        if "text/html" in content_type:
            raise FetchError(
                f"Received HTML instead of plain text from {url}; the URL may be invalid",
                url=url,
                status_code=response.status_code,
            )

        declared = response.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            raise FetchError(
                f"Response too large ({declared} bytes, max {self.max_size})", url=url
            )

        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > self.max_size:
                raise FetchError(
                    f"Response too large (over {self.max_size} bytes)", url=url
                )

        return FetchResult(
            content=_decode(bytes(body), response.charset_encoding),
            etag=response.headers.get("etag"),
            last_modified=response.headers.get("last-modified"),
        )


def _decode(body: bytes, encoding: str | None) -> str:
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")
