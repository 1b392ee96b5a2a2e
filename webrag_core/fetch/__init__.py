# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""Page fetching and readable-text extraction."""

from webrag_core.fetch.page_fetcher import PageFetcher
from webrag_core.fetch.readable import extract_readable

__all__ = ["PageFetcher", "extract_readable"]
