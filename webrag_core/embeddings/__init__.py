# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""Embedding providers and the in-memory vector index."""

from webrag_core.embeddings.embed_service import (
    Embedder,
    OllamaEmbedder,
    OpenAIEmbedder,
    build_embedder,
)
from webrag_core.embeddings.vector_index import VectorIndex

__all__ = ["Embedder", "OllamaEmbedder", "OpenAIEmbedder", "VectorIndex", "build_embedder"]
