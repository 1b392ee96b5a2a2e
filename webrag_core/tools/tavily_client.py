# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

from __future__ import annotations

import asyncio
import logging

import httpx

from webrag_core.utils.trace import Trace

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"


class TavilyClient:
    def __init__(
        self,
        *,
        api_key: str | None,
        timeout_s: float = 12.0,
        concurrency: int = 4,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self._sem = asyncio.Semaphore(max(1, min(int(concurrency or 4), 16)))

        self._client = httpx.AsyncClient(
            timeout=float(timeout_s),
            follow_redirects=True,
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}" if api_key else "",
                "X-Client-Source": "webrag",
            },
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def search(
        self,
        *,
        query: str,
        depth: str,
        max_results: int,
        include_answer: bool = True,
        topic: str = "general",
    ) -> dict:
        payload: dict = {
            "query": query,
            "search_depth": depth,
            "max_results": max_results,
            "topic": topic,
            "include_answer": include_answer,
            "include_images": False,
            "include_raw_content": False,
        }

        async with self._sem:
            Trace.event("search.tavily.request", {"url": TAVILY_SEARCH_URL, "payload": payload})
            r = await self._client.post(TAVILY_SEARCH_URL, json=payload)
            try:
                r.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.debug(
                    "[Tavily] HTTP error %s. Response: %s",
                    e.response.status_code,
                    (e.response.text or "")[:500],
                )
                raise

            Trace.event("search.tavily.response", {"status_code": r.status_code, "text": r.text})
            return r.json()
