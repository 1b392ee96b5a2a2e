# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Evidence Assembler

Renders selected evidence lines and the numbered source list into the
fixed context template consumed by the generation step. Pure: the same
inputs always render byte-identical context.
"""

from __future__ import annotations

import logging
from typing import Sequence

from webrag_core.runtime_config import WebRagEvidenceConfig
from webrag_core.schema import EvidenceLine, Source, WebRagResult
from webrag_core.utils.text_processing import normalize_whitespace, truncate_text

logger = logging.getLogger(__name__)

EVIDENCE_HEADER = "WEB_EVIDENCE (use these as the primary factual basis; cite with [n]):"
ANSWER_HEADER = (
    "SEARCH_PROVIDER_ANSWER (automated summary, not authoritative; "
    "prefer WEB_EVIDENCE when they disagree):"
)
SOURCES_HEADER = "SOURCES:"


def _select_lines(
    evidence_lines: Sequence[EvidenceLine],
    *,
    per_source_cap: int | None,
    max_lines: int | None,
) -> list[EvidenceLine]:
    kept: list[EvidenceLine] = []
    seen: set[tuple[int | None, str]] = set()
    per_source: dict[int | None, int] = {}
    for line in evidence_lines:
        text = normalize_whitespace(line.text)
        if not text:
            continue
        key = (line.source_id, text)
        if key in seen:
            continue
        used = per_source.get(line.source_id, 0)
        if per_source_cap is not None and used >= per_source_cap:
            continue
        seen.add(key)
        per_source[line.source_id] = used + 1
        kept.append(line if text == line.text else line.model_copy(update={"text": text}))
        if max_lines is not None and len(kept) >= max_lines:
            break
    return kept


def _unique_sources(sources: Sequence[Source]) -> list[Source]:
    by_id: dict[int, Source] = {}
    for s in sources:
        by_id.setdefault(s.id, s)
    return [by_id[k] for k in sorted(by_id)]


def format_sources_markdown(sources: Sequence[Source]) -> str:
    return "\n".join(f"- [{s.id}] {s.title or s.url} ({s.url})" for s in sources)


def assemble_evidence(
    evidence_lines: Sequence[EvidenceLine],
    sources: Sequence[Source],
    search_answer: str | None = None,
    *,
    cfg: WebRagEvidenceConfig | None = None,
    per_source_cap: int | None = None,
    max_lines: int | None = None,
) -> WebRagResult | None:
    """
    Build the WebRagResult, or None when no evidence line survives.

    Line order is preserved from retrieval. Each line is truncated to
    `cfg.max_evidence_chars`; the provider answer, when present, to
    `cfg.max_answer_chars`. Sources are listed by ascending id.
    """
    cfg = cfg or WebRagEvidenceConfig()
    lines = _select_lines(evidence_lines, per_source_cap=per_source_cap, max_lines=max_lines)
    if not lines:
        logger.debug("[Evidence] No evidence lines; nothing to assemble")
        return None

    ordered_sources = _unique_sources(sources)

    parts = [EVIDENCE_HEADER]
    parts.extend(line.render(cfg.max_evidence_chars) for line in lines)

    answer = normalize_whitespace(search_answer)
    if answer and cfg.max_answer_chars > 0:
        parts.extend(["", ANSWER_HEADER, truncate_text(answer, cfg.max_answer_chars)])

    parts.extend(["", SOURCES_HEADER, format_sources_markdown(ordered_sources)])

    return WebRagResult(context="\n".join(parts), sources=ordered_sources)
