# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""Evidence retrieval: embedding ranking with keyword fallback."""

from webrag_core.retrieval.evidence_retriever import EvidenceRetriever, RetrievalOutcome, RetrievalState
from webrag_core.retrieval.keyword_fallback import keyword_select, score_chunk, tokenize_query

__all__ = [
    "EvidenceRetriever",
    "RetrievalOutcome",
    "RetrievalState",
    "keyword_select",
    "score_chunk",
    "tokenize_query",
]
