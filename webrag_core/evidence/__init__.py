# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

from webrag_core.evidence.assembler import assemble_evidence, format_sources_markdown

__all__ = ["assemble_evidence", "format_sources_markdown"]
