# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

import os


def is_local_run() -> bool:
    """
    Best-effort detection of local/dev runs without requiring extra configuration.
    """
    env = (os.getenv("WEBRAG_ENV") or os.getenv("ENV") or "").strip().lower()
    return env in ("local", "dev", "development")
