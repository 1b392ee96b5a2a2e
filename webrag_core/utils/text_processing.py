# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

import re

_WS_RE = re.compile(r"\s+")


def normalize_whitespace(text: str | None) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WS_RE.sub(" ", text or "").strip()


def normalize_search_query(query: str) -> str:
    """Normalize a search query for consistent search engine behavior."""
    q = normalize_whitespace(query)
    q = q.strip("“”„«»\"'`")
    q = q.replace("…", " ")
    q = normalize_whitespace(q)
    if len(q) > 256:
        q = q[:256].strip()
    return q


def truncate_text(text: str, max_chars: int, *, marker: str = "…") -> str:
    """Cut `text` to at most `max_chars` characters, ending with `marker` when cut."""
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    return text[: max(0, max_chars - len(marker))].rstrip() + marker
