# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Evidence Retriever

Two tiers, tried in order:
1. Embedding similarity over an in-memory vector index.
2. Keyword scoring with per-source diversity and backfill.

The switch from tier 1 to tier 2 is an explicit state transition
(EMBEDDING_FAILED -> KEYWORD_FALLBACK) taken on any embedding error, a
missing embedder, or embeddings disabled by configuration. It is decided
by outcome only, never by time, and is the only retry-like step in the
pipeline.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from webrag_core.embeddings.embed_service import Embedder
from webrag_core.embeddings.vector_index import VectorIndex
from webrag_core.errors import EmbeddingFailure
from webrag_core.retrieval.keyword_fallback import keyword_select
from webrag_core.runtime_config import WebRagRetrievalConfig
from webrag_core.schema import Chunk, EvidenceLine
from webrag_core.utils.trace import Trace

logger = logging.getLogger(__name__)


class RetrievalState(str, Enum):
    EMBEDDING_ATTEMPTED = "embedding_attempted"
    EMBEDDING_SUCCEEDED = "embedding_succeeded"
    EMBEDDING_FAILED = "embedding_failed"
    KEYWORD_FALLBACK = "keyword_fallback"
    DONE = "done"


_TRANSITIONS: dict[RetrievalState, frozenset[RetrievalState]] = {
    RetrievalState.EMBEDDING_ATTEMPTED: frozenset(
        {RetrievalState.EMBEDDING_SUCCEEDED, RetrievalState.EMBEDDING_FAILED}
    ),
    RetrievalState.EMBEDDING_SUCCEEDED: frozenset({RetrievalState.DONE}),
    RetrievalState.EMBEDDING_FAILED: frozenset({RetrievalState.KEYWORD_FALLBACK}),
    RetrievalState.KEYWORD_FALLBACK: frozenset({RetrievalState.DONE}),
    RetrievalState.DONE: frozenset(),
}


@dataclass
class RetrievalOutcome:
    lines: list[EvidenceLine] = field(default_factory=list)
    states: list[RetrievalState] = field(default_factory=lambda: [RetrievalState.EMBEDDING_ATTEMPTED])
    failure: str | None = None

    @property
    def state(self) -> RetrievalState:
        return self.states[-1]

    @property
    def used_embeddings(self) -> bool:
        return RetrievalState.EMBEDDING_SUCCEEDED in self.states

    def advance(self, nxt: RetrievalState) -> None:
        if nxt not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal retrieval transition {self.state.value} -> {nxt.value}")
        self.states.append(nxt)


class EvidenceRetriever:
    def __init__(
        self,
        embedder: Embedder | None = None,
        *,
        cfg: WebRagRetrievalConfig | None = None,
        embeddings_disabled: bool = False,
    ):
        self.embedder = embedder
        self.cfg = cfg or WebRagRetrievalConfig()
        self.embeddings_disabled = embeddings_disabled

    async def _embed_all(self, texts: Sequence[str]) -> list[list[float]]:
        sem = asyncio.Semaphore(max(1, self.cfg.embed_concurrency))

        async def _one(text: str) -> list[float]:
            async with sem:
                return await self.embedder.embed(text)

        results = await asyncio.gather(*(_one(t) for t in texts), return_exceptions=True)
        for r in results:
            if isinstance(r, BaseException):
                raise r
        return list(results)

    async def _embedding_tier(self, chunks: Sequence[Chunk], query: str, top_k: int) -> list[EvidenceLine]:
        vectors = await self._embed_all([query] + [c.text for c in chunks])
        query_vec, chunk_vecs = vectors[0], vectors[1:]
        index = VectorIndex(list(chunks), chunk_vecs)
        return [
            EvidenceLine(
                source_id=chunk.source_id,
                chunk_index=chunk.chunk_index,
                text=chunk.text,
                score=score,
            )
            for chunk, score in index.query(query_vec, top_k)
        ]

    async def run(self, chunks: Sequence[Chunk], query: str, top_k: int | None = None) -> RetrievalOutcome:
        top_k = self.cfg.top_k if top_k is None else int(top_k)
        outcome = RetrievalOutcome()
        if not chunks or top_k <= 0:
            outcome.advance(RetrievalState.EMBEDDING_FAILED)
            outcome.failure = "no chunks"
            outcome.advance(RetrievalState.KEYWORD_FALLBACK)
            outcome.advance(RetrievalState.DONE)
            return outcome

        if self.embeddings_disabled or self.embedder is None:
            outcome.failure = "embeddings disabled" if self.embeddings_disabled else "no embedder configured"
        else:
            try:
                outcome.lines = await self._embedding_tier(chunks, query, top_k)
            except EmbeddingFailure as e:
                outcome.failure = str(e)
                logger.warning("[Retriever] Embedding tier failed, using keyword fallback: %s", e)
            except Exception as e:
                outcome.failure = f"{type(e).__name__}: {e}"
                logger.warning("[Retriever] Embedding provider error, using keyword fallback: %r", e)

        if outcome.failure is None:
            outcome.advance(RetrievalState.EMBEDDING_SUCCEEDED)
        else:
            outcome.advance(RetrievalState.EMBEDDING_FAILED)
            outcome.advance(RetrievalState.KEYWORD_FALLBACK)
            outcome.lines = keyword_select(
                chunks,
                query,
                top_k=top_k,
                per_source_cap=self.cfg.max_chunks_per_source,
            )
        outcome.advance(RetrievalState.DONE)

        Trace.event(
            "retrieval.done",
            {
                "chunks": len(chunks),
                "top_k": top_k,
                "path": [s.value for s in outcome.states],
                "failure": outcome.failure,
                "selected": [[ln.source_id, ln.chunk_index] for ln in outcome.lines],
            },
        )
        logger.debug(
            "[Retriever] %d/%d chunks selected via %s",
            len(outcome.lines),
            len(chunks),
            "embeddings" if outcome.used_embeddings else "keywords",
        )
        return outcome

    async def retrieve(self, chunks: Sequence[Chunk], query: str, top_k: int | None = None) -> list[EvidenceLine]:
        return (await self.run(chunks, query, top_k)).lines
