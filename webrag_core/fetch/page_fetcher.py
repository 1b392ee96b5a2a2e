# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Bounded Page Fetcher

Fetches raw HTML for a batch of URLs:
- every URL passes the SSRF guard before any network access
- at most `concurrency` requests are in flight
- each request is cancelled after `timeout_sec`
- bodies over `max_html_bytes` are refused (declared length and received bytes)
- one attempt per URL, no retries

A failing URL yields `None` in its slot; siblings are never affected.
Redirects are followed without re-validating the destination host.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

import httpx

from webrag_core.errors import BlockedURL, ExtractionFailure, FetchFailure
from webrag_core.fetch.readable import extract_readable
from webrag_core.runtime_config import DEFAULT_USER_AGENT, WebRagFetchConfig
from webrag_core.schema import Page
from webrag_core.tools.url_utils import SafeUrl, validate_public_http_url
from webrag_core.utils.trace import Trace

logger = logging.getLogger(__name__)

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class PageFetcher:
    def __init__(
        self,
        *,
        concurrency: int = 3,
        timeout_sec: float = 10.0,
        max_html_bytes: int = 1_200_000,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.concurrency = max(1, int(concurrency))
        self.timeout_sec = float(timeout_sec)
        self.max_html_bytes = int(max_html_bytes)
        self.user_agent = user_agent

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            # The overall deadline is enforced per fetch with asyncio.wait_for.
            timeout=httpx.Timeout(self.timeout_sec),
            limits=httpx.Limits(max_connections=max(4, self.concurrency * 2)),
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        cfg: WebRagFetchConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "PageFetcher":
        return cls(
            concurrency=cfg.concurrency,
            timeout_sec=cfg.timeout_sec,
            max_html_bytes=cfg.max_html_bytes,
            user_agent=cfg.user_agent,
            transport=transport,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _download(self, safe: SafeUrl) -> str:
        headers = {"User-Agent": self.user_agent, "Accept": _ACCEPT}
        try:
            async with self._client.stream("GET", safe.url, headers=headers) as res:
                if not res.is_success:
                    raise FetchFailure(safe.url, f"HTTP {res.status_code}", status_code=res.status_code)

                declared = res.headers.get("content-length")
                if declared and declared.strip().isdigit() and int(declared) > self.max_html_bytes:
                    raise FetchFailure(safe.url, f"HTML too large (content-length={declared})")

                # The server may omit or understate content-length.
                buf = bytearray()
                async for piece in res.aiter_bytes():
                    buf.extend(piece)
                    if len(buf) > self.max_html_bytes:
                        raise FetchFailure(safe.url, f"HTML too large (bytes>{self.max_html_bytes})")

                encoding = res.charset_encoding or "utf-8"
        except httpx.HTTPError as e:
            raise FetchFailure(safe.url, f"{type(e).__name__}: {e}") from e

        try:
            return bytes(buf).decode(encoding, errors="replace")
        except LookupError:
            return bytes(buf).decode("utf-8", errors="replace")

    async def fetch_html(self, url: str) -> str:
        """
        Fetch one URL.

        Raises:
            BlockedURL: the URL failed the SSRF guard (no request was made).
            FetchFailure: timeout, non-2xx, oversize body or transport error.
        """
        safe = validate_public_http_url(url)
        try:
            return await asyncio.wait_for(self._download(safe), timeout=self.timeout_sec)
        except asyncio.TimeoutError as e:
            raise FetchFailure(safe.url, f"timeout after {self.timeout_sec:.1f}s") from e

    async def _guarded(self, sem: asyncio.Semaphore, url: str) -> str:
        async with sem:
            return await self.fetch_html(url)

    async def fetch_all(self, urls: Sequence[str]) -> list[str | None]:
        """Fetch every URL; returns one slot per input URL, in input order."""
        if not urls:
            return []

        sem = asyncio.Semaphore(self.concurrency)
        settled = await asyncio.gather(
            *(self._guarded(sem, u) for u in urls),
            return_exceptions=True,
        )

        out: list[str | None] = []
        for url, res in zip(urls, settled):
            if isinstance(res, BaseException):
                self._log_failure(url, res)
                out.append(None)
            else:
                out.append(res)

        Trace.event(
            "fetch.batch.done",
            {"requested": len(urls), "fetched": sum(1 for r in out if r is not None)},
        )
        return out

    async def fetch_readable_pages(
        self,
        urls: Sequence[str],
        *,
        use_readability: bool = True,
        min_text_chars: int = 200,
    ) -> list[Page | None]:
        """Fetch and extract every URL; one Page-or-None slot per input URL."""
        html_slots = await self.fetch_all(urls)

        pages: list[Page | None] = []
        for url, html in zip(urls, html_slots):
            if html is None:
                pages.append(None)
                continue
            try:
                # lxml parsing is CPU-bound; keep it off the event loop.
                pages.append(
                    await asyncio.to_thread(
                        extract_readable,
                        url,
                        html,
                        use_readability=use_readability,
                        min_text_chars=min_text_chars,
                    )
                )
            except ExtractionFailure as e:
                logger.debug("[Fetch] %s", e)
                Trace.event("extract.skipped", {"url": url, "reason": e.reason})
                pages.append(None)

        readable = sum(1 for p in pages if p is not None)
        Trace.event("extract.done", {"fetched": sum(1 for h in html_slots if h is not None), "readable": readable})
        logger.debug("[Fetch] %d/%d pages readable", readable, len(urls))
        return pages

    def _log_failure(self, url: str, err: BaseException) -> None:
        if isinstance(err, BlockedURL):
            logger.debug("[Fetch] %s", err)
            Trace.event("fetch.blocked", err.to_trace_dict())
        elif isinstance(err, FetchFailure):
            logger.debug("[Fetch] %s", err)
            Trace.event("fetch.error", err.to_trace_dict())
        else:
            logger.warning("[Fetch] Unexpected error for %s: %r", url, err)
            Trace.event("fetch.error", {"url": url, "error_type": type(err).__name__, "error": str(err)})
