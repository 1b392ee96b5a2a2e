# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Text Chunking Utilities.

Sliding-window splitter producing overlapping, size-bounded chunks so that
text crossing a window boundary is fully contained in at least one
neighbor.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from webrag_core.runtime_config import WebRagChunkConfig
from webrag_core.schema import Chunk, Page
from webrag_core.utils.text_processing import normalize_whitespace


def chunk_text(
    text: str,
    chunk_size: int = 1200,
    overlap: int = 200,
    min_chunk_size: int = 300,
) -> list[str]:
    """
    Split `text` into windows of `chunk_size` characters that overlap by
    `overlap` characters.

    - Text that fits in one window is returned whole, or dropped when it is
      shorter than `min_chunk_size`.
    - Windows shorter than `min_chunk_size` after trimming are skipped.
    - The last window ends exactly at the end of the text.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError(f"overlap must be in [0, chunk_size), got {overlap}")

    cleaned = normalize_whitespace(text)
    if len(cleaned) <= chunk_size:
        return [cleaned] if cleaned and len(cleaned) >= min_chunk_size else []

    chunks: list[str] = []
    start = 0
    while start < len(cleaned):
        end = min(len(cleaned), start + chunk_size)
        piece = cleaned[start:end].strip()
        if len(piece) >= min_chunk_size:
            chunks.append(piece)
        if end >= len(cleaned):
            break
        start = end - overlap
    return chunks


def build_chunks(
    pages: Mapping[int, Page] | Iterable[tuple[int, Page]],
    cfg: WebRagChunkConfig | None = None,
) -> list[Chunk]:
    """
    Chunk every page and tag each piece with its source id.

    Sources are processed in ascending id order; `chunk_index` is 1-based
    within a source.
    """
    cfg = cfg or WebRagChunkConfig()
    items = pages.items() if isinstance(pages, Mapping) else pages

    out: list[Chunk] = []
    for source_id, page in sorted(items, key=lambda kv: kv[0]):
        if page is None:
            continue
        pieces = chunk_text(
            page.text,
            chunk_size=cfg.chunk_size,
            overlap=cfg.overlap,
            min_chunk_size=cfg.min_chunk_size,
        )
        out.extend(
            Chunk(source_id=source_id, chunk_index=i, text=piece)
            for i, piece in enumerate(pieces, start=1)
        )
    return out
