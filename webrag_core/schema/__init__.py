# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
WebRAG Schema Module

Immutable value objects passed between pipeline stages.
"""

from webrag_core.schema.serialization import SchemaModel, dump_schema, load_schema
from webrag_core.schema.web_rag import (
    Chunk,
    EvidenceLine,
    Page,
    SearchResponse,
    SearchResult,
    Source,
    WebRagResult,
)

__all__ = [
    "SchemaModel",
    "dump_schema",
    "load_schema",
    "Chunk",
    "EvidenceLine",
    "Page",
    "SearchResponse",
    "SearchResult",
    "Source",
    "WebRagResult",
]
