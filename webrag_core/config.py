# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field

from webrag_core.runtime_config import WebRagRuntimeConfig


class WebRagConfig(BaseModel):
    """
    Configuration for the WebRAG evidence pipeline.
    Decouples the pipeline from environment variables: every run is
    reproducible from this object and the query alone.
    """

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    # Search Configuration
    tavily_api_key: Optional[str] = Field(None, description="Tavily API Key for web search")

    # Embedding Configuration
    embedding_provider: Literal["ollama", "openai"] = Field(
        "ollama", description="Backend used for chunk/query embeddings"
    )
    ollama_host: str = Field("http://127.0.0.1:11434", description="Base URL of the Ollama server")
    ollama_embed_model: str = Field("nomic-embed-text", description="Ollama embedding model name")
    embed_timeout_sec: float = Field(12.0, gt=0, description="Per-call embedding provider timeout")
    openai_api_key: Optional[str] = Field(None, description="OpenAI API Key (openai embedding provider)")
    openai_embed_model: str = Field("text-embedding-3-small", description="OpenAI embedding model name")

    runtime: WebRagRuntimeConfig = Field(default_factory=WebRagRuntimeConfig)

    @classmethod
    def from_env(cls) -> "WebRagConfig":
        runtime = WebRagRuntimeConfig.load_from_env()
        provider = (os.getenv("RAG_EMBEDDING_PROVIDER") or "ollama").strip().lower()
        return cls(
            tavily_api_key=os.getenv("TAVILY_API_KEY") or None,
            embedding_provider="openai" if provider == "openai" else "ollama",
            ollama_host=os.getenv("OLLAMA_HOST") or "http://127.0.0.1:11434",
            ollama_embed_model=os.getenv("RAG_OLLAMA_EMBED_MODEL") or "nomic-embed-text",
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            runtime=runtime,
        )
