# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""Unit tests for the sliding-window chunker."""

import pytest

from webrag_core.runtime_config import WebRagChunkConfig
from webrag_core.schema import Page
from webrag_core.utils.text_chunking import build_chunks, chunk_text


@pytest.mark.unit
class TestChunkText:
    """Window sizes, overlap and minimum length."""

    def test_1500_chars_gives_two_overlapping_chunks(self, text_factory):
        text = text_factory(1500)
        chunks = chunk_text(text, chunk_size=1200, overlap=200, min_chunk_size=300)

        assert len(chunks) == 2
        assert len(chunks[0]) <= 1200
        # Second window starts at 1000 and runs to the end of the text.
        assert chunks[1] == text[1000:].strip()
        assert text.endswith(chunks[1])

    def test_short_text_is_returned_whole(self, text_factory):
        text = text_factory(500)
        assert chunk_text(text) == [text]

    def test_text_below_min_size_is_dropped(self, text_factory):
        assert chunk_text(text_factory(250)) == []

    def test_empty_text(self):
        assert chunk_text("") == []
        assert chunk_text("   \n\t  ") == []

    def test_whitespace_is_normalized(self):
        text = "alpha   beta\n\n\tgamma " * 30
        (chunk,) = chunk_text(text, min_chunk_size=10)
        assert "  " not in chunk
        assert "\n" not in chunk
        assert chunk == chunk.strip()

    def test_every_chunk_respects_bounds(self, text_factory):
        text = text_factory(9000, seed=3)
        chunks = chunk_text(text, chunk_size=1000, overlap=150, min_chunk_size=200)

        assert len(chunks) >= 9
        for c in chunks:
            assert 200 <= len(c) <= 1000

    def test_consecutive_chunks_overlap(self, text_factory):
        text = text_factory(5000, seed=1)
        chunks = chunk_text(text, chunk_size=1000, overlap=200, min_chunk_size=100)

        for prev, nxt in zip(chunks, chunks[1:]):
            tail = prev[-150:]
            assert tail in nxt

    def test_zero_overlap_partitions_text(self):
        text = "x" * 3000
        chunks = chunk_text(text, chunk_size=1000, overlap=0, min_chunk_size=1)
        assert chunks == ["x" * 1000] * 3

    def test_short_trailing_window_is_skipped(self):
        text = "y" * 1250
        chunks = chunk_text(text, chunk_size=1000, overlap=100, min_chunk_size=400)
        # Tail window covers [900, 1250): 350 chars, below the minimum.
        assert chunks == ["y" * 1000]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"chunk_size": 0},
            {"chunk_size": -5},
            {"chunk_size": 100, "overlap": 100},
            {"chunk_size": 100, "overlap": 250},
            {"chunk_size": 100, "overlap": -1},
        ],
    )
    def test_invalid_parameters_raise(self, kwargs):
        with pytest.raises(ValueError):
            chunk_text("some text", **kwargs)

    def test_deterministic(self, text_factory):
        text = text_factory(4321, seed=7)
        assert chunk_text(text) == chunk_text(text)


@pytest.mark.unit
class TestBuildChunks:
    """Source tagging across pages."""

    def test_chunks_are_tagged_and_ordered_by_source(self, text_factory):
        pages = {
            3: Page(url="https://c.example/", title="C", text=text_factory(400, seed=3)),
            1: Page(url="https://a.example/", title="A", text=text_factory(1500, seed=1)),
        }
        chunks = build_chunks(pages, WebRagChunkConfig())

        assert [(c.source_id, c.chunk_index) for c in chunks] == [(1, 1), (1, 2), (3, 1)]

    def test_accepts_pairs(self, text_factory):
        pairs = [(2, Page(url="https://b.example/", title="B", text=text_factory(600)))]
        chunks = build_chunks(pairs)
        assert len(chunks) == 1
        assert chunks[0].source_id == 2
        assert chunks[0].chunk_index == 1

    def test_pages_without_chunks_are_skipped(self, text_factory):
        pages = {
            1: Page(url="https://a.example/", title="A", text=text_factory(100)),
            2: Page(url="https://b.example/", title="B", text=text_factory(700)),
        }
        chunks = build_chunks(pages)
        assert [c.source_id for c in chunks] == [2]

    def test_custom_config(self, text_factory):
        pages = {1: Page(url="https://a.example/", title="A", text=text_factory(1000))}
        cfg = WebRagChunkConfig(chunk_size=400, overlap=100, min_chunk_size=50)
        chunks = build_chunks(pages, cfg)
        assert all(len(c.text) <= 400 for c in chunks)
        assert [c.chunk_index for c in chunks] == list(range(1, len(chunks) + 1))
