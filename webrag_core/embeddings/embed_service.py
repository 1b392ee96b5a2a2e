# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Embedding providers.

Two backends behind the `Embedder` capability:
- OllamaEmbedder: POST {host}/api/embeddings with {model, prompt}
- OpenAIEmbedder: OpenAI embeddings API (text-embedding-3-small)

Any provider error, non-2xx response or empty/malformed vector is raised as
EmbeddingFailure. The retriever treats one failure as a failure of the whole
batch and falls back to keyword scoring.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from webrag_core.errors import EmbeddingFailure

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from webrag_core.config import WebRagConfig

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_HOST = "http://127.0.0.1:11434"
DEFAULT_OLLAMA_MODEL = "nomic-embed-text"
DEFAULT_OPENAI_MODEL = "text-embedding-3-small"


@runtime_checkable
class Embedder(Protocol):
    async def embed(self, text: str) -> list[float]:
        ...


def _validate_vector(raw: Any) -> list[float]:
    """Reject empty, non-numeric or non-finite vectors."""
    if not isinstance(raw, (list, tuple)) or not raw:
        raise EmbeddingFailure("provider returned empty embedding")
    out: list[float] = []
    for x in raw:
        if isinstance(x, bool) or not isinstance(x, (int, float)) or not math.isfinite(x):
            raise EmbeddingFailure("provider returned malformed embedding")
        out.append(float(x))
    return out


class OllamaEmbedder:
    def __init__(
        self,
        *,
        host: str = DEFAULT_OLLAMA_HOST,
        model: str = DEFAULT_OLLAMA_MODEL,
        timeout_sec: float = 12.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.host = (host or DEFAULT_OLLAMA_HOST).rstrip("/")
        self.model = model
        self._client = httpx.AsyncClient(timeout=float(timeout_sec), transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def embed(self, text: str) -> list[float]:
        try:
            res = await self._client.post(
                f"{self.host}/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
        except httpx.HTTPError as e:
            raise EmbeddingFailure(f"Ollama embeddings request failed: {type(e).__name__}: {e}") from e

        if not res.is_success:
            raise EmbeddingFailure(
                f"Ollama embeddings failed: {(res.text or '')[:300]}",
                status_code=res.status_code,
            )
        try:
            data = res.json()
        except ValueError as e:
            raise EmbeddingFailure("Ollama embeddings returned invalid JSON") from e

        return _validate_vector(data.get("embedding") if isinstance(data, dict) else None)


class OpenAIEmbedder:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_MODEL,
        timeout_sec: float = 12.0,
        client: "AsyncOpenAI | None" = None,
    ):
        self.model = model
        if client is None:
            from openai import AsyncOpenAI

            client = AsyncOpenAI(api_key=api_key, timeout=float(timeout_sec), max_retries=0)
        self._client = client

    async def close(self) -> None:
        await self._client.close()

    async def embed(self, text: str) -> list[float]:
        from openai import OpenAIError

        try:
            response = await self._client.embeddings.create(model=self.model, input=text)
        except OpenAIError as e:
            raise EmbeddingFailure(
                f"OpenAI embeddings failed: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e

        if not response.data:
            raise EmbeddingFailure("OpenAI embeddings returned no data")
        return _validate_vector(list(response.data[0].embedding))


def build_embedder(config: "WebRagConfig") -> Embedder | None:
    """
    Embedder for the configured provider, or None when embeddings are
    disabled or the provider cannot be used.
    """
    if config.runtime.features.disable_embeddings:
        return None
    if config.embedding_provider == "openai":
        if not config.openai_api_key:
            logger.debug("[Embeddings] OpenAI API key not configured; keyword retrieval only")
            return None
        return OpenAIEmbedder(
            api_key=config.openai_api_key,
            model=config.openai_embed_model,
            timeout_sec=config.embed_timeout_sec,
        )
    return OllamaEmbedder(
        host=config.ollama_host,
        model=config.ollama_embed_model,
        timeout_sec=config.embed_timeout_sec,
    )
