# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
# WebRAG Engine - main entry point

import contextlib
import json
import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from webrag_core.config import WebRagConfig
from webrag_core.embeddings.embed_service import Embedder, build_embedder
from webrag_core.evidence.assembler import assemble_evidence
from webrag_core.fetch.page_fetcher import PageFetcher
from webrag_core.retrieval.evidence_retriever import EvidenceRetriever
from webrag_core.schema import Chunk, Page, Source, WebRagResult
from webrag_core.tools.search_result_normalizer import build_sources
from webrag_core.tools.web_search_tool import Searcher, TavilySearcher
from webrag_core.utils.text_chunking import build_chunks
from webrag_core.utils.text_processing import normalize_search_query, normalize_whitespace
from webrag_core.utils.trace import Trace

logger = logging.getLogger(__name__)

def snippet_chunks(sources: list[Source]) -> list[Chunk]:
    """One chunk per source from provider snippets, used when fetched pages gave no chunks."""
    out: list[Chunk] = []
    for s in sources:
        text = normalize_whitespace(s.snippet)
        if text:
            out.append(Chunk(source_id=s.id, chunk_index=1, text=text))
    return out


class WebRagEngine:
    """Query -> search -> fetch -> extract -> chunk -> retrieve -> assemble."""

    def __init__(
        self,
        config: WebRagConfig,
        *,
        searcher: Optional[Searcher] = None,
        embedder: Optional[Embedder] = None,
        fetcher: Optional[PageFetcher] = None,
    ):
        self.config = config
        runtime = config.runtime

        self._exit_stack = contextlib.AsyncExitStack()
        if searcher is None:
            searcher = TavilySearcher(api_key=config.tavily_api_key, timeout_s=runtime.search.timeout_sec)
            self._exit_stack.push_async_callback(searcher.close)
        if embedder is None and not runtime.features.disable_embeddings:
            embedder = build_embedder(config)
            if embedder is not None:
                self._exit_stack.push_async_callback(embedder.close)
        if fetcher is None:
            fetcher = PageFetcher.from_config(runtime.fetch)
            self._exit_stack.push_async_callback(fetcher.close)

        self.searcher = searcher
        self.embedder = embedder
        self.fetcher = fetcher
        self.retriever = EvidenceRetriever(
            embedder,
            cfg=runtime.retrieval,
            embeddings_disabled=runtime.features.disable_embeddings,
        )
        logger.debug("Effective config: %s", json.dumps(runtime.to_safe_log_dict(), ensure_ascii=False))

    async def close(self) -> None:
        # Every owned client is closed even if an earlier one raises.
        await self._exit_stack.aclose()

    async def __aenter__(self) -> "WebRagEngine":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _search_sources(self, query: str) -> tuple[list[Source], Optional[str]]:
        runtime = self.config.runtime
        try:
            response = await self.searcher.search(
                query,
                depth=runtime.search.depth,
                max_results=runtime.search.max_results,
            )
        except Exception as e:
            logger.warning("[Engine] Search provider failed: %r", e)
            Trace.event("search.error", {"error_type": type(e).__name__, "error": str(e)})
            return [], None

        results = list(response.results)[: runtime.search.max_results]
        return build_sources(results), response.answer

    async def _fetch_pages(self, sources: list[Source]) -> dict[int, Page]:
        runtime = self.config.runtime
        slots = await self.fetcher.fetch_readable_pages(
            [s.url for s in sources],
            use_readability=runtime.features.use_readability,
            min_text_chars=runtime.fetch.min_text_chars,
        )
        return {s.id: page for s, page in zip(sources, slots) if page is not None}

    async def build_context(self, query: str) -> WebRagResult | None:
        """
        Gather web evidence for `query`.

        Returns None when there is no usable evidence; callers proceed
        without web grounding in that case.
        """
        q = normalize_search_query(query)
        if not q:
            logger.debug("[Engine] Empty query, skipping web evidence")
            return None

        trace_id = f"{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}_{str(uuid4())[:6]}"
        Trace.start(
            trace_id,
            runtime=self.config.runtime,
            secrets=(self.config.tavily_api_key, self.config.openai_api_key),
        )
        try:
            return await self._build(q)
        finally:
            Trace.stop()

    async def _build(self, q: str) -> WebRagResult | None:
        runtime = self.config.runtime
        Trace.event("engine.build_context.start", {"query": q})

        sources, answer = await self._search_sources(q)
        if not sources:
            logger.debug("[Engine] No search results for '%s...'", q[:100])
            Trace.event("engine.build_context.done", {"sources": 0, "evidence": 0})
            return None

        pages = await self._fetch_pages(sources)
        chunks = build_chunks(pages, runtime.chunking)
        if not chunks:
            logger.debug("[Engine] No chunks from fetched pages; falling back to provider snippets")
            chunks = snippet_chunks(sources)
        Trace.event("chunk.done", {"pages": len(pages), "chunks": len(chunks)})

        lines = await self.retriever.retrieve(chunks, q, runtime.retrieval.top_k)
        result = assemble_evidence(
            lines,
            sources,
            answer,
            cfg=runtime.evidence,
            max_lines=runtime.retrieval.top_k,
        )
        Trace.event(
            "assemble.done",
            {"lines": len(lines), "rendered": result is not None, "has_answer": bool(answer)},
        )
        Trace.event(
            "engine.build_context.done",
            {
                "sources": len(sources),
                "pages": len(pages),
                "chunks": len(chunks),
                "evidence": len(lines),
                "context_chars": len(result.context) if result else 0,
            },
        )
        logger.debug(
            "[Engine] %d sources, %d pages, %d chunks, %d evidence lines",
            len(sources),
            len(pages),
            len(chunks),
            len(lines),
        )
        return result
