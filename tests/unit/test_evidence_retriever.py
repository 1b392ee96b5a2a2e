# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""Unit tests for the two-tier evidence retriever."""

import pytest
from unittest.mock import AsyncMock

from webrag_core.errors import EmbeddingFailure
from webrag_core.retrieval.evidence_retriever import (
    EvidenceRetriever,
    RetrievalOutcome,
    RetrievalState,
)
from webrag_core.runtime_config import WebRagRetrievalConfig
from webrag_core.schema import Chunk


@pytest.fixture
def chunks():
    return [
        Chunk(source_id=1, chunk_index=1, text="gardening tips for tomatoes and basil"),
        Chunk(source_id=2, chunk_index=1, text="python release notes for the new interpreter"),
        Chunk(source_id=2, chunk_index=2, text="python typing improvements and python performance"),
        Chunk(source_id=3, chunk_index=1, text="cooking pasta with basil"),
    ]


@pytest.mark.unit
class TestEmbeddingTier:

    @pytest.mark.asyncio
    async def test_embedding_path_ranks_by_similarity(self, chunks, keyword_embedder_cls):
        embedder = keyword_embedder_cls(["python", "basil", "pasta"])
        retriever = EvidenceRetriever(embedder, cfg=WebRagRetrievalConfig(top_k=2))

        outcome = await retriever.run(chunks, "python")

        assert outcome.used_embeddings
        assert outcome.state is RetrievalState.DONE
        assert outcome.states == [
            RetrievalState.EMBEDDING_ATTEMPTED,
            RetrievalState.EMBEDDING_SUCCEEDED,
            RetrievalState.DONE,
        ]
        assert [(ln.source_id, ln.chunk_index) for ln in outcome.lines] == [(2, 1), (2, 2)]
        assert outcome.lines[0].score >= outcome.lines[1].score
        # Query plus one call per chunk.
        assert embedder.calls == 1 + len(chunks)

    @pytest.mark.asyncio
    async def test_embedding_path_has_no_per_source_cap(self, chunks, keyword_embedder_cls):
        embedder = keyword_embedder_cls(["python"])
        retriever = EvidenceRetriever(embedder, cfg=WebRagRetrievalConfig(top_k=2, max_chunks_per_source=1))

        lines = await retriever.retrieve(chunks, "python")
        assert [ln.source_id for ln in lines] == [2, 2]

    @pytest.mark.asyncio
    async def test_top_k_argument_overrides_config(self, chunks, keyword_embedder_cls):
        retriever = EvidenceRetriever(keyword_embedder_cls(["basil"]), cfg=WebRagRetrievalConfig(top_k=1))
        lines = await retriever.retrieve(chunks, "basil", top_k=3)
        assert len(lines) == 3


@pytest.mark.unit
class TestKeywordFallback:

    @pytest.mark.asyncio
    async def test_embedding_failure_falls_back(self, chunks):
        embedder = AsyncMock()
        embedder.embed = AsyncMock(side_effect=EmbeddingFailure("boom", status_code=500))
        retriever = EvidenceRetriever(embedder, cfg=WebRagRetrievalConfig(top_k=3))

        outcome = await retriever.run(chunks, "python")

        assert not outcome.used_embeddings
        assert outcome.states == [
            RetrievalState.EMBEDDING_ATTEMPTED,
            RetrievalState.EMBEDDING_FAILED,
            RetrievalState.KEYWORD_FALLBACK,
            RetrievalState.DONE,
        ]
        assert "boom" in outcome.failure
        assert [(ln.source_id, ln.chunk_index) for ln in outcome.lines] == [(2, 2), (2, 1), (1, 1)]

    @pytest.mark.asyncio
    async def test_single_failed_chunk_fails_whole_batch(self, chunks, keyword_embedder_cls):
        good = keyword_embedder_cls(["python"])

        async def flaky(text):
            if "cooking" in text:
                raise EmbeddingFailure("provider returned empty embedding")
            return await good.embed(text)

        embedder = AsyncMock()
        embedder.embed = AsyncMock(side_effect=flaky)
        outcome = await EvidenceRetriever(embedder).run(chunks, "python")

        assert outcome.state is RetrievalState.DONE
        assert RetrievalState.KEYWORD_FALLBACK in outcome.states
        assert outcome.lines

    @pytest.mark.asyncio
    async def test_unexpected_provider_error_falls_back(self, chunks):
        embedder = AsyncMock()
        embedder.embed = AsyncMock(side_effect=ConnectionError("refused"))

        outcome = await EvidenceRetriever(embedder).run(chunks, "basil")

        assert "ConnectionError" in outcome.failure
        assert {ln.source_id for ln in outcome.lines} >= {1, 3}

    @pytest.mark.asyncio
    async def test_disabled_embeddings_never_call_embedder(self, chunks):
        embedder = AsyncMock()
        retriever = EvidenceRetriever(embedder, embeddings_disabled=True)

        outcome = await retriever.run(chunks, "python")

        embedder.embed.assert_not_called()
        assert outcome.failure == "embeddings disabled"
        assert outcome.state is RetrievalState.DONE

    @pytest.mark.asyncio
    async def test_missing_embedder_uses_keywords(self, chunks):
        outcome = await EvidenceRetriever(None).run(chunks, "cooking")
        assert outcome.failure == "no embedder configured"
        assert outcome.lines[0].source_id == 3

    @pytest.mark.asyncio
    async def test_no_chunks(self, keyword_embedder_cls):
        embedder = keyword_embedder_cls(["x"])
        outcome = await EvidenceRetriever(embedder).run([], "query")
        assert outcome.lines == []
        assert outcome.state is RetrievalState.DONE
        assert embedder.calls == 0


@pytest.mark.unit
def test_illegal_transition_raises():
    outcome = RetrievalOutcome()
    with pytest.raises(RuntimeError):
        outcome.advance(RetrievalState.DONE)
