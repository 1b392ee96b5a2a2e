# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Keyword scoring used when embeddings are unavailable.

Deterministic: the same chunks and query always produce the same lines in
the same order.
"""

from __future__ import annotations

import re
from typing import Sequence

from webrag_core.schema import Chunk, EvidenceLine

_TOKEN_RE = re.compile(r"[a-z0-9]+")
# Version numbers and release notes carry freshness that static embeddings miss.
_SEMVER_RE = re.compile(r"v?\d+\.\d+\.\d+", re.IGNORECASE)

TOKEN_HIT_BASE = 3
MAX_COUNTED_OCCURRENCES = 5
SEMVER_BONUS = 2


def tokenize_query(query: str) -> list[str]:
    """Lowercase alphanumeric tokens of length >= 2, deduplicated in order."""
    tokens: list[str] = []
    for tok in _TOKEN_RE.findall((query or "").lower()):
        if len(tok) >= 2 and tok not in tokens:
            tokens.append(tok)
    return tokens


def score_chunk(text: str, tokens: Sequence[str]) -> int:
    lowered = (text or "").lower()
    score = 0
    for tok in tokens:
        count = lowered.count(tok)
        if count:
            score += TOKEN_HIT_BASE + min(count, MAX_COUNTED_OCCURRENCES)
    if _SEMVER_RE.search(text or ""):
        score += SEMVER_BONUS
    return score


def _source_key(source_id: int | None) -> int:
    # Chunks without a source id sort after every real source.
    return source_id if isinstance(source_id, int) else 1 << 62


def keyword_select(
    chunks: Sequence[Chunk],
    query: str,
    *,
    top_k: int,
    per_source_cap: int = 2,
) -> list[EvidenceLine]:
    """
    Greedy keyword selection with a per-source cap, then backfill.

    Chunks are ranked by score (desc), then source id, then chunk index.
    Only chunks with a positive score are taken greedily, at most
    `per_source_cap` per source. When fewer than min(top_k, distinct
    sources) lines result, the first chunk of each unrepresented source is
    added in ascending source id order until `top_k` is reached or every
    source is represented.
    """
    if top_k <= 0 or not chunks:
        return []

    tokens = tokenize_query(query)
    scored = [(score_chunk(c.text, tokens), c) for c in chunks]
    scored.sort(key=lambda sc: (-sc[0], _source_key(sc[1].source_id), sc[1].chunk_index))

    selected: list[EvidenceLine] = []
    per_source: dict[int | None, int] = {}
    for score, chunk in scored:
        if len(selected) >= top_k:
            break
        if score <= 0:
            break
        used = per_source.get(chunk.source_id, 0)
        if used >= per_source_cap:
            continue
        per_source[chunk.source_id] = used + 1
        selected.append(
            EvidenceLine(
                source_id=chunk.source_id,
                chunk_index=chunk.chunk_index,
                text=chunk.text,
                score=float(score),
            )
        )

    first_chunk: dict[int | None, Chunk] = {}
    for chunk in sorted(chunks, key=lambda c: (_source_key(c.source_id), c.chunk_index)):
        first_chunk.setdefault(chunk.source_id, chunk)

    if len(selected) < min(top_k, len(first_chunk)):
        for source_id, chunk in first_chunk.items():
            if len(selected) >= top_k:
                break
            if source_id in per_source:
                continue
            per_source[source_id] = 1
            selected.append(
                EvidenceLine(
                    source_id=source_id,
                    chunk_index=chunk.chunk_index,
                    text=chunk.text,
                    score=0.0,
                )
            )

    return selected
