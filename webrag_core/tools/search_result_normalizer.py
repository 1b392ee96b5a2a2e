# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from webrag_core.schema import SearchResult, Source
from webrag_core.tools.url_utils import canonical_url_for_dedupe, is_valid_public_http_url
from webrag_core.utils.text_processing import normalize_whitespace

logger = logging.getLogger(__name__)


def _to_score(raw) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    try:
        return float(str(raw).strip())
    except (TypeError, ValueError):
        return None


def clean_tavily_results(results: list[dict] | None) -> list[SearchResult]:
    """
    Turn raw provider rows into SearchResults.

    Rows without a URL are dropped, duplicate URLs keep their first
    occurrence. URL safety is NOT decided here; the fetcher re-validates
    every URL before touching the network.
    """
    cleaned: list[SearchResult] = []
    seen: set[str] = set()

    for obj in (results or []):
        if not isinstance(obj, dict):
            continue
        url = str(obj.get("url") or "").strip()
        if not url:
            continue

        key = canonical_url_for_dedupe(url)
        if key in seen:
            continue
        seen.add(key)

        title = normalize_whitespace(str(obj.get("title") or ""))
        if not title:
            try:
                title = urlsplit(url).netloc or url
            except ValueError:
                title = url

        raw_content = obj.get("raw_content") or obj.get("rawContent")
        cleaned.append(
            SearchResult(
                url=url,
                title=title,
                content=normalize_whitespace(str(obj.get("content") or "")),
                raw_content=normalize_whitespace(str(raw_content)) if raw_content else None,
                score=_to_score(obj.get("score")),
            )
        )

    return cleaned


def build_sources(results: list[SearchResult]) -> list[Source]:
    """
    Number search results 1..N in provider order.

    Ids are assigned once, before any fetch starts, and are the citation key
    for the rest of the pipeline.
    """
    sources: list[Source] = []
    for idx, r in enumerate(results or [], start=1):
        snippet = r.raw_content if r.raw_content and len(r.raw_content) > len(r.content) else r.content
        sources.append(
            Source(
                id=idx,
                title=r.title or r.url,
                url=r.url,
                relevance_hint=r.score,
                snippet=snippet or "",
            )
        )
    if sources and not all(is_valid_public_http_url(s.url) for s in sources):
        logger.debug("[Search] Some results point at non-public URLs; they will be skipped by the fetcher")
    return sources
