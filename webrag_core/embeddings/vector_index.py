# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""In-memory cosine-similarity index over chunk embeddings."""

from __future__ import annotations

from typing import Generic, Sequence, TypeVar

import numpy as np

from webrag_core.errors import EmbeddingFailure

T = TypeVar("T")


def _l2_normalize(mat: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(mat, axis=-1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return mat / norms


class VectorIndex(Generic[T]):
    """
    Holds L2-normalized vectors so that a dot product is a cosine similarity.
    Built once per query; never shared across queries.
    """

    def __init__(self, items: Sequence[T], vectors: Sequence[Sequence[float]]):
        if len(items) != len(vectors):
            raise ValueError("items and vectors must have the same length")
        self._items = list(items)
        if not self._items:
            self._matrix = np.zeros((0, 0), dtype=np.float32)
            return
        try:
            mat = np.asarray(vectors, dtype=np.float32)
        except ValueError as e:
            raise EmbeddingFailure("embedding dimensions differ across chunks") from e
        if mat.ndim != 2 or mat.shape[1] == 0:
            raise EmbeddingFailure("embedding dimensions differ across chunks")
        self._matrix = _l2_normalize(mat)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def dim(self) -> int:
        return int(self._matrix.shape[1]) if len(self._items) else 0

    def query(self, vector: Sequence[float], top_k: int) -> list[tuple[T, float]]:
        """Top-k items by cosine similarity, best first; ties keep insertion order."""
        if top_k <= 0 or not self._items:
            return []
        q = np.asarray(vector, dtype=np.float32)
        if q.ndim != 1 or q.shape[0] != self.dim:
            raise EmbeddingFailure(
                f"query embedding dimension {q.shape[0] if q.ndim == 1 else q.shape} != index dimension {self.dim}"
            )
        q = _l2_normalize(q)
        scores = self._matrix @ q
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [(self._items[i], float(scores[i])) for i in order]
