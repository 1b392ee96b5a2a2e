# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any


def _parse_bool(raw: Any, *, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if not s:
        return default
    if s in ("1", "true", "yes", "y", "on"):
        return True
    if s in ("0", "false", "no", "n", "off"):
        return False
    return default


def _parse_int(raw: Any, *, default: int, min_v: int, max_v: int) -> int:
    try:
        if raw is None:
            v = default
        elif isinstance(raw, int):
            v = raw
        else:
            v = int(str(raw).strip())
    except (TypeError, ValueError):
        v = default
    return max(min_v, min(max_v, v))


def _parse_float(raw: Any, *, default: float, min_v: float, max_v: float) -> float:
    try:
        if raw is None:
            v = default
        elif isinstance(raw, (int, float)):
            v = float(raw)
        else:
            v = float(str(raw).strip())
    except (TypeError, ValueError):
        v = default
    return max(min_v, min(max_v, v))


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; WebRAGBot/1.0) AppleWebKit/537.36"


@dataclass(frozen=True)
class WebRagSearchConfig:
    max_results: int = 6
    depth: str = "basic"
    timeout_sec: float = 12.0


@dataclass(frozen=True)
class WebRagFetchConfig:
    concurrency: int = 3
    timeout_sec: float = 10.0
    max_html_bytes: int = 1_200_000
    user_agent: str = DEFAULT_USER_AGENT
    # Pages whose readable text is shorter than this are dropped.
    min_text_chars: int = 200


@dataclass(frozen=True)
class WebRagChunkConfig:
    chunk_size: int = 1200
    overlap: int = 200
    min_chunk_size: int = 300


@dataclass(frozen=True)
class WebRagRetrievalConfig:
    top_k: int = 6
    max_chunks_per_source: int = 2
    embed_concurrency: int = 4


@dataclass(frozen=True)
class WebRagEvidenceConfig:
    max_evidence_chars: int = 600
    max_answer_chars: int = 600


@dataclass(frozen=True)
class WebRagFeatureFlags:
    use_readability: bool = True
    disable_embeddings: bool = False
    # Trace is local-only; see utils.trace.
    trace_enabled: bool = True
    trace_dir: str = "data/trace"


@dataclass(frozen=True)
class WebRagRuntimeConfig:
    search: WebRagSearchConfig = field(default_factory=WebRagSearchConfig)
    fetch: WebRagFetchConfig = field(default_factory=WebRagFetchConfig)
    chunking: WebRagChunkConfig = field(default_factory=WebRagChunkConfig)
    retrieval: WebRagRetrievalConfig = field(default_factory=WebRagRetrievalConfig)
    evidence: WebRagEvidenceConfig = field(default_factory=WebRagEvidenceConfig)
    features: WebRagFeatureFlags = field(default_factory=WebRagFeatureFlags)

    @staticmethod
    def load_from_env() -> "WebRagRuntimeConfig":
        search = WebRagSearchConfig(
            max_results=_parse_int(os.getenv("RAG_TAVILY_MAX_RESULTS"), default=6, min_v=1, max_v=20),
            timeout_sec=_parse_float(os.getenv("RAG_TAVILY_TIMEOUT"), default=12.0, min_v=1.0, max_v=120.0),
        )

        fetch = WebRagFetchConfig(
            concurrency=_parse_int(os.getenv("RAG_FETCH_CONCURRENCY"), default=3, min_v=1, max_v=16),
            timeout_sec=_parse_int(
                os.getenv("RAG_FETCH_TIMEOUT_MS"), default=10_000, min_v=500, max_v=120_000
            ) / 1000.0,
            max_html_bytes=_parse_int(
                os.getenv("RAG_MAX_HTML_BYTES"), default=1_200_000, min_v=10_000, max_v=20_000_000
            ),
            user_agent=(os.getenv("RAG_FETCH_USER_AGENT") or "").strip() or DEFAULT_USER_AGENT,
        )

        chunk_size = _parse_int(os.getenv("RAG_CHUNK_SIZE"), default=1200, min_v=100, max_v=20_000)
        chunking = WebRagChunkConfig(
            chunk_size=chunk_size,
            # Overlap must stay below the window width or the window never advances.
            overlap=_parse_int(os.getenv("RAG_CHUNK_OVERLAP"), default=200, min_v=0, max_v=chunk_size - 1),
            min_chunk_size=_parse_int(os.getenv("RAG_MIN_CHUNK_SIZE"), default=300, min_v=1, max_v=chunk_size),
        )

        retrieval = WebRagRetrievalConfig(
            top_k=_parse_int(os.getenv("RAG_SIMILARITY_TOP_K"), default=6, min_v=1, max_v=50),
            max_chunks_per_source=_parse_int(
                os.getenv("RAG_MAX_CHUNKS_PER_SOURCE"), default=2, min_v=1, max_v=50
            ),
            embed_concurrency=_parse_int(os.getenv("RAG_EMBED_CONCURRENCY"), default=4, min_v=1, max_v=32),
        )

        evidence = WebRagEvidenceConfig(
            max_evidence_chars=_parse_int(os.getenv("RAG_MAX_EVIDENCE_CHARS"), default=600, min_v=50, max_v=20_000),
            max_answer_chars=_parse_int(os.getenv("RAG_MAX_ANSWER_CHARS"), default=600, min_v=0, max_v=20_000),
        )

        features = WebRagFeatureFlags(
            use_readability=_parse_bool(os.getenv("RAG_USE_READABILITY"), default=True),
            disable_embeddings=_parse_bool(os.getenv("RAG_DISABLE_EMBEDDINGS"), default=False),
            trace_enabled=not _parse_bool(os.getenv("WEBRAG_TRACE_DISABLE"), default=False),
            trace_dir=(os.getenv("WEBRAG_TRACE_DIR") or "").strip() or "data/trace",
        )

        return WebRagRuntimeConfig(
            search=search,
            fetch=fetch,
            chunking=chunking,
            retrieval=retrieval,
            evidence=evidence,
            features=features,
        )

    def to_safe_log_dict(self) -> dict[str, Any]:
        return {
            "search": {
                "max_results": int(self.search.max_results),
                "depth": self.search.depth,
                "timeout_sec": float(self.search.timeout_sec),
            },
            "fetch": {
                "concurrency": int(self.fetch.concurrency),
                "timeout_sec": float(self.fetch.timeout_sec),
                "max_html_bytes": int(self.fetch.max_html_bytes),
                "min_text_chars": int(self.fetch.min_text_chars),
            },
            "chunking": {
                "chunk_size": int(self.chunking.chunk_size),
                "overlap": int(self.chunking.overlap),
                "min_chunk_size": int(self.chunking.min_chunk_size),
            },
            "retrieval": {
                "top_k": int(self.retrieval.top_k),
                "max_chunks_per_source": int(self.retrieval.max_chunks_per_source),
                "embed_concurrency": int(self.retrieval.embed_concurrency),
            },
            "evidence": {
                "max_evidence_chars": int(self.evidence.max_evidence_chars),
                "max_answer_chars": int(self.evidence.max_answer_chars),
            },
            "features": {
                "use_readability": bool(self.features.use_readability),
                "disable_embeddings": bool(self.features.disable_embeddings),
                "trace_enabled": bool(self.features.trace_enabled),
                "trace_dir": self.features.trace_dir,
            },
        }
