# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

import asyncio
import dataclasses

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from webrag_core.config import WebRagConfig
from webrag_core.runtime_config import WebRagRuntimeConfig
from webrag_core.schema import SearchResponse, SearchResult
from webrag_core.tools.web_search_tool import Searcher


WORDS = (
    "river stone garden lantern harbor meadow copper violet orchard canyon "
    "signal thunder marble willow falcon ember summit quartz breeze glacier"
).split()


def make_text(length: int, *, seed: int = 0) -> str:
    """Deterministic prose of exactly `length` characters, no edge whitespace."""
    out: list[str] = []
    i = seed
    size = 0
    while size < length + 20:
        w = WORDS[(i * 7 + seed) % len(WORDS)]
        out.append(w)
        size += len(w) + 1
        i += 1
    text = " ".join(out)[:length]
    if text.endswith(" "):
        text = text[:-1] + "x"
    return text


def make_html(body_text: str, *, title: str = "") -> str:
    head = f"<title>{title}</title>" if title else ""
    return f"<html><head>{head}</head><body><p>{body_text}</p></body></html>"


class FakeSearcher:
    """Deterministic Searcher returning canned results."""

    def __init__(self, results: list[dict] | None = None, answer: str | None = None, error: Exception | None = None):
        self.results = [SearchResult(**r) for r in (results or [])]
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, str, int]] = []

    async def search(self, query: str, *, depth: str = "basic", max_results: int = 6) -> SearchResponse:
        self.calls.append((query, depth, max_results))
        if self.error is not None:
            raise self.error
        return SearchResponse(results=self.results, answer=self.answer)


class KeywordEmbedder:
    """Embeds text as counts of a fixed vocabulary; deterministic."""

    def __init__(self, vocab: list[str]):
        self.vocab = vocab
        self.calls = 0

    async def embed(self, text: str) -> list[float]:
        self.calls += 1
        lowered = text.lower()
        return [float(lowered.count(w)) for w in self.vocab] + [0.01]


@pytest.fixture
def runtime_config():
    return WebRagRuntimeConfig()


@pytest.fixture
def keyword_only_config():
    """Config with embeddings disabled and readability off for exact-length pages."""
    runtime = WebRagRuntimeConfig()
    runtime = dataclasses.replace(
        runtime,
        features=dataclasses.replace(runtime.features, disable_embeddings=True, use_readability=False),
        fetch=dataclasses.replace(runtime.fetch, timeout_sec=0.2),
    )
    return WebRagConfig(tavily_api_key="test-tavily-key", runtime=runtime)


@pytest.fixture
def fake_searcher_cls():
    return FakeSearcher


@pytest.fixture
def mock_searcher():
    """Matches the Searcher protocol, returning AsyncMocks."""
    searcher = MagicMock(spec=Searcher)
    searcher.search = AsyncMock(return_value=SearchResponse(
        results=[
            SearchResult(title="Result 1", url="https://example.com/1", content="Content 1"),
            SearchResult(title="Result 2", url="https://example.com/2", content="Content 2"),
        ]
    ))
    return searcher


def html_transport(pages: dict[str, str], *, slow: dict[str, float] | None = None, seen: list | None = None):
    """httpx MockTransport serving `pages` by URL; unknown URLs get 404."""
    slow = slow or {}

    async def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if seen is not None:
            seen.append(url)
        if url in slow:
            await asyncio.sleep(slow[url])
        if url not in pages:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, html=pages[url])

    return httpx.MockTransport(handler)


@pytest.fixture
def html_transport_factory():
    return html_transport


@pytest.fixture
def text_factory():
    return make_text


@pytest.fixture
def html_factory():
    return make_html


@pytest.fixture
def keyword_embedder_cls():
    return KeywordEmbedder
