# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

"""
WebRAG Core Engine
==================

Web evidence retrieval for grounding a generation step: search, safe
bounded fetching, readable-text extraction, chunking, two-tier relevance
retrieval and citation-annotated evidence assembly.
"""

__version__ = "0.3.0"

from webrag_core.config import WebRagConfig
from webrag_core.engine import WebRagEngine
from webrag_core.runtime_config import WebRagRuntimeConfig
from webrag_core.schema import Source, WebRagResult

__all__ = ["WebRagConfig", "WebRagEngine", "WebRagRuntimeConfig", "Source", "WebRagResult", "__version__"]
