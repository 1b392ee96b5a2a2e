# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
WebRAG CLI Module

Commands:
- context <query>: Build the web evidence block for a query
- config: Print the effective runtime configuration
- check-url <url>: Check a URL against the SSRF guard

Usage:
    python -m webrag_cli context "what changed in python 3.13.1"
    python -m webrag_cli context "rust 1.80 release notes" --no-embeddings --json
    python -m webrag_cli check-url http://169.254.169.254/latest/meta-data
"""

from webrag_cli.context_cmd import main

__all__ = ["main"]
