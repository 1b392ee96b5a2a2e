# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Search provider capability.

The pipeline only depends on `Searcher`; `TavilySearcher` is the production
implementation and tests substitute deterministic fakes.
"""

from __future__ import annotations

import logging
from typing import Protocol, Tuple, runtime_checkable

import httpx

from webrag_core.schema import SearchResponse
from webrag_core.tools.search_result_normalizer import clean_tavily_results
from webrag_core.tools.tavily_client import TavilyClient
from webrag_core.utils.trace import Trace

logger = logging.getLogger(__name__)


@runtime_checkable
class Searcher(Protocol):
    async def search(self, query: str, *, depth: str = "basic", max_results: int = 6) -> SearchResponse:
        ...


class TavilySearcher:
    def __init__(
        self,
        *,
        api_key: str | None,
        timeout_s: float = 12.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self._tavily = TavilyClient(api_key=api_key, timeout_s=timeout_s, transport=transport)

    def _normalize_params(self, depth: str, max_results: int) -> Tuple[str, int]:
        """Clamp parameters to Tavily API limits (basic|advanced, 1..20)."""
        d = (depth or "basic").lower()
        if d not in ("basic", "advanced"):
            d = "basic"
        m = int(max_results) if max_results else 6
        return d, max(1, min(m, 20))

    async def search(self, query: str, *, depth: str = "basic", max_results: int = 6) -> SearchResponse:
        if not self.api_key:
            logger.debug("[Tavily] API key missing; skipping search")
            return SearchResponse()

        d, limit = self._normalize_params(depth, max_results)
        logger.debug("[Tavily] Searching: '%s...' (depth=%s, limit=%s)", query[:100], d, limit)
        response = await self._tavily.search(query=query, depth=d, max_results=limit)

        results = clean_tavily_results(response.get("results", []))
        answer = response.get("answer")
        answer = answer.strip() if isinstance(answer, str) and answer.strip() else None
        logger.debug("[Tavily] Got %d results (answer=%s)", len(results), bool(answer))
        Trace.event(
            "search.done",
            {
                "query": query,
                "depth": d,
                "limit": limit,
                "results_count": len(results),
                "has_answer": bool(answer),
                "items": [{"title": r.title, "url": r.url, "score": r.score} for r in results[:5]],
            },
        )
        return SearchResponse(results=results, answer=answer)

    async def close(self) -> None:
        await self._tavily.close()
