# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
WebRAG value objects.

Source ids are the only join key between stages: a Chunk, an EvidenceLine
and the rendered citation all refer back to a Source through `source_id`.
"""

from __future__ import annotations

from pydantic import Field

from webrag_core.schema.serialization import SchemaModel
from webrag_core.utils.text_processing import truncate_text


class SearchResult(SchemaModel):
    """One raw hit from the search provider. Untrusted."""

    url: str
    title: str = ""
    content: str = ""
    raw_content: str | None = None
    score: float | None = None


class SearchResponse(SchemaModel):
    results: list[SearchResult] = Field(default_factory=list)
    answer: str | None = None
    """Provider-synthesized direct answer, if any. Never authoritative."""


class Source(SchemaModel):
    """A discovered web result, numbered 1..N in provider order."""

    id: int = Field(..., ge=1)
    title: str = ""
    url: str
    relevance_hint: float | None = None
    snippet: str = Field("", exclude=True)
    """Provider content for this result; used only when no page could be fetched."""


class Page(SchemaModel):
    """Fetched and extracted readable content for a Source."""

    url: str
    title: str
    text: str


class Chunk(SchemaModel):
    source_id: int | None
    chunk_index: int = Field(..., ge=1)
    text: str


class EvidenceLine(SchemaModel):
    source_id: int | None
    chunk_index: int = 1
    text: str
    score: float | None = None

    @property
    def citation(self) -> str:
        if isinstance(self.source_id, int) and self.source_id > 0:
            return f"[{self.source_id}]"
        return "[source]"

    def render(self, max_chars: int | None = None) -> str:
        text = self.text if max_chars is None else truncate_text(self.text, max_chars)
        return f"{self.citation} {text}"


class WebRagResult(SchemaModel):
    """Evidence block handed to the generation step. Built fresh per query."""

    context: str
    sources: list[Source] = Field(default_factory=list)
