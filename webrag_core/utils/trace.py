# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Local-only JSONL trace of one build_context call.

Every record carries the pipeline stage it came from, taken from the
event name prefix ("fetch.error" -> "fetch"). Secrets are redacted by
value: the API keys held by WebRagConfig are passed to Trace.start and
replaced wherever they appear in event payloads.
"""

from __future__ import annotations

import contextvars
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from webrag_core.runtime_config import WebRagRuntimeConfig
from webrag_core.utils.runtime import is_local_run

logger = logging.getLogger(__name__)

STAGES = ("search", "fetch", "extract", "chunk", "retrieval", "assemble", "engine")

MAX_STR = 2000
MAX_ITEMS = 50
REDACTED = "***"

_SECRET_FIELDS = frozenset({"authorization", "api_key", "tavily_api_key", "openai_api_key"})


@dataclass(frozen=True)
class TraceSession:
    trace_id: str
    path: Path | None = None
    secrets: tuple[str, ...] = ()

    @property
    def enabled(self) -> bool:
        return self.path is not None


_session_var: contextvars.ContextVar[TraceSession | None] = contextvars.ContextVar(
    "webrag_trace_session", default=None
)


def stage_of(name: str) -> str:
    head = str(name).split(".", 1)[0]
    return head if head in STAGES else "engine"


def _compact(obj: Any, secrets: tuple[str, ...]) -> Any:
    if obj is None or isinstance(obj, (bool, int, float)):
        return obj
    if isinstance(obj, bytes):
        return f"<{len(obj)} bytes>"
    if isinstance(obj, dict):
        return {
            str(k): REDACTED if str(k).lower() in _SECRET_FIELDS else _compact(v, secrets)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        out = [_compact(x, secrets) for x in obj[:MAX_ITEMS]]
        if len(obj) > MAX_ITEMS:
            out.append(f"...(+{len(obj) - MAX_ITEMS} more)")
        return out

    s = str(obj)
    for secret in secrets:
        s = s.replace(secret, REDACTED)
    if len(s) > MAX_STR:
        s = f"{s[:MAX_STR]}...(+{len(s) - MAX_STR} chars)"
    return s


def current_session() -> TraceSession | None:
    return _session_var.get()


class Trace:
    """Per-request trace sink. Writes only for local runs with the feature flag on."""

    @staticmethod
    def start(
        trace_id: str,
        *,
        runtime: WebRagRuntimeConfig | None = None,
        secrets: Iterable[str | None] = (),
    ) -> TraceSession:
        runtime = runtime or WebRagRuntimeConfig()
        path = None
        if is_local_run() and runtime.features.trace_enabled:
            safe_tid = "".join(c if c.isalnum() or c in "._-" else "_" for c in trace_id)
            path = Path(runtime.features.trace_dir) / f"{safe_tid}.jsonl"

        # Longest first so a key that contains another is replaced whole.
        kept = sorted({s for s in secrets if s}, key=len, reverse=True)
        session = TraceSession(trace_id=trace_id, path=path, secrets=tuple(kept))
        _session_var.set(session)
        Trace.event("engine.trace.start", {"runtime": runtime.to_safe_log_dict()})
        return session

    @staticmethod
    def stop() -> None:
        Trace.event("engine.trace.stop")
        _session_var.set(None)

    @staticmethod
    def event(name: str, data: Any | None = None) -> None:
        session = _session_var.get()
        if session is None or not session.enabled:
            return

        rec = {
            "ts_ms": int(time.time() * 1000),
            "trace_id": session.trace_id,
            "stage": stage_of(name),
            "event": str(name),
            "data": _compact(data, session.secrets),
        }
        try:
            session.path.parent.mkdir(parents=True, exist_ok=True)
            with session.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(rec, ensure_ascii=False) + "\n")
        except OSError as e:
            # Tracing must never break the main flow.
            logger.debug("[Trace] write failed: %s", e)
