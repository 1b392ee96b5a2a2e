# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Pipeline Errors

Every failure inside the evidence pipeline degrades to "less evidence" or
"no evidence". These exceptions are raised where a stage fails and absorbed
at that stage's boundary: per URL for fetching and extraction, per batch for
embeddings. None of them escapes `WebRagEngine.build_context`.
"""

from __future__ import annotations

from typing import Any


class WebRagError(Exception):
    """Base class for pipeline failures."""

    def to_trace_dict(self) -> dict[str, Any]:
        return {"error": type(self).__name__, "message": str(self)}


class BlockedURL(WebRagError):
    """URL rejected by the SSRF guard (bad scheme or internal host)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Blocked URL {url!r}: {reason}")

    def to_trace_dict(self) -> dict[str, Any]:
        return {"error": "blocked_url", "url": self.url, "reason": self.reason}


class FetchFailure(WebRagError):
    """Timeout, oversize body, non-2xx status or transport error for one URL."""

    def __init__(self, url: str, reason: str, *, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Fetch failed for {url!r}: {reason}")

    def to_trace_dict(self) -> dict[str, Any]:
        return {
            "error": "fetch_failure",
            "url": self.url,
            "reason": self.reason,
            "status_code": self.status_code,
        }


class ExtractionFailure(WebRagError):
    """Unparsable HTML or readable text too short to ground anything."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Extraction failed for {url!r}: {reason}")


class EmbeddingFailure(WebRagError):
    """Embedding provider error or empty/malformed vector."""

    def __init__(self, message: str, *, status_code: int | None = None):
        self.status_code = status_code
        full_msg = message if status_code is None else f"{message} (status={status_code})"
        super().__init__(full_msg)
