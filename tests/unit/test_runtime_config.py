# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

import dataclasses

import pytest
from pydantic import ValidationError

from webrag_core.config import WebRagConfig
from webrag_core.runtime_config import DEFAULT_USER_AGENT, WebRagRuntimeConfig

_ENV_KEYS = (
    "RAG_TAVILY_MAX_RESULTS",
    "RAG_TAVILY_TIMEOUT",
    "RAG_FETCH_CONCURRENCY",
    "RAG_FETCH_TIMEOUT_MS",
    "RAG_MAX_HTML_BYTES",
    "RAG_FETCH_USER_AGENT",
    "RAG_CHUNK_SIZE",
    "RAG_CHUNK_OVERLAP",
    "RAG_MIN_CHUNK_SIZE",
    "RAG_SIMILARITY_TOP_K",
    "RAG_MAX_CHUNKS_PER_SOURCE",
    "RAG_EMBED_CONCURRENCY",
    "RAG_MAX_EVIDENCE_CHARS",
    "RAG_MAX_ANSWER_CHARS",
    "RAG_USE_READABILITY",
    "RAG_DISABLE_EMBEDDINGS",
    "WEBRAG_TRACE_DISABLE",
    "WEBRAG_TRACE_DIR",
    "TAVILY_API_KEY",
    "OPENAI_API_KEY",
    "RAG_EMBEDDING_PROVIDER",
    "OLLAMA_HOST",
    "RAG_OLLAMA_EMBED_MODEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.mark.unit
class TestRuntimeConfigDefaults:

    def test_defaults_match_documented_values(self, clean_env):
        cfg = WebRagRuntimeConfig.load_from_env()

        assert cfg.search.max_results == 6
        assert cfg.fetch.concurrency == 3
        assert cfg.fetch.timeout_sec == 10.0
        assert cfg.fetch.max_html_bytes == 1_200_000
        assert cfg.fetch.user_agent == DEFAULT_USER_AGENT
        assert (cfg.chunking.chunk_size, cfg.chunking.overlap, cfg.chunking.min_chunk_size) == (1200, 200, 300)
        assert cfg.retrieval.top_k == 6
        assert cfg.retrieval.max_chunks_per_source == 2
        assert cfg.evidence.max_evidence_chars == 600
        assert cfg.features.use_readability is True
        assert cfg.features.trace_dir == "data/trace"
        assert cfg.features.disable_embeddings is False
        assert cfg == WebRagRuntimeConfig()

    def test_is_frozen(self, runtime_config):
        with pytest.raises(dataclasses.FrozenInstanceError):
            runtime_config.retrieval.top_k = 99


@pytest.mark.unit
class TestRuntimeConfigEnv:

    def test_overrides(self, clean_env):
        clean_env.setenv("RAG_TAVILY_MAX_RESULTS", "10")
        clean_env.setenv("RAG_FETCH_CONCURRENCY", "5")
        clean_env.setenv("RAG_FETCH_TIMEOUT_MS", "2500")
        clean_env.setenv("RAG_CHUNK_SIZE", "800")
        clean_env.setenv("RAG_CHUNK_OVERLAP", "100")
        clean_env.setenv("RAG_SIMILARITY_TOP_K", "4")
        clean_env.setenv("RAG_USE_READABILITY", "false")
        clean_env.setenv("RAG_DISABLE_EMBEDDINGS", "yes")
        clean_env.setenv("WEBRAG_TRACE_DISABLE", "1")
        clean_env.setenv("WEBRAG_TRACE_DIR", "  /tmp/webrag-traces ")

        cfg = WebRagRuntimeConfig.load_from_env()

        assert cfg.search.max_results == 10
        assert cfg.fetch.concurrency == 5
        assert cfg.fetch.timeout_sec == 2.5
        assert cfg.chunking.chunk_size == 800
        assert cfg.chunking.overlap == 100
        assert cfg.retrieval.top_k == 4
        assert cfg.features.use_readability is False
        assert cfg.features.disable_embeddings is True
        assert cfg.features.trace_enabled is False
        assert cfg.features.trace_dir == "/tmp/webrag-traces"

    def test_values_are_clamped(self, clean_env):
        clean_env.setenv("RAG_TAVILY_MAX_RESULTS", "500")
        clean_env.setenv("RAG_FETCH_CONCURRENCY", "0")
        clean_env.setenv("RAG_CHUNK_SIZE", "300")
        clean_env.setenv("RAG_CHUNK_OVERLAP", "9000")
        clean_env.setenv("RAG_MIN_CHUNK_SIZE", "9000")

        cfg = WebRagRuntimeConfig.load_from_env()

        assert cfg.search.max_results == 20
        assert cfg.fetch.concurrency == 1
        assert cfg.chunking.overlap == 299
        assert cfg.chunking.min_chunk_size == 300

    def test_garbage_falls_back_to_defaults(self, clean_env):
        clean_env.setenv("RAG_SIMILARITY_TOP_K", "many")
        clean_env.setenv("RAG_TAVILY_TIMEOUT", "soon")
        clean_env.setenv("RAG_USE_READABILITY", "maybe")

        cfg = WebRagRuntimeConfig.load_from_env()

        assert cfg.retrieval.top_k == 6
        assert cfg.search.timeout_sec == 12.0
        assert cfg.features.use_readability is True

    def test_safe_log_dict_has_no_user_agent_or_keys(self, clean_env):
        data = WebRagRuntimeConfig.load_from_env().to_safe_log_dict()
        assert set(data) == {"search", "fetch", "chunking", "retrieval", "evidence", "features"}
        assert "user_agent" not in data["fetch"]


@pytest.mark.unit
class TestWebRagConfig:

    def test_from_env(self, clean_env):
        clean_env.setenv("TAVILY_API_KEY", "tvly-123")
        clean_env.setenv("RAG_EMBEDDING_PROVIDER", "OpenAI")
        clean_env.setenv("OPENAI_API_KEY", "sk-abc")
        clean_env.setenv("RAG_SIMILARITY_TOP_K", "3")

        config = WebRagConfig.from_env()

        assert config.tavily_api_key == "tvly-123"
        assert config.embedding_provider == "openai"
        assert config.openai_api_key == "sk-abc"
        assert config.runtime.retrieval.top_k == 3

    def test_unknown_provider_defaults_to_ollama(self, clean_env):
        clean_env.setenv("RAG_EMBEDDING_PROVIDER", "cohere")
        config = WebRagConfig.from_env()
        assert config.embedding_provider == "ollama"
        assert config.ollama_host == "http://127.0.0.1:11434"
        assert config.tavily_api_key is None

    def test_invalid_provider_rejected(self):
        with pytest.raises(ValidationError):
            WebRagConfig(embedding_provider="cohere")

    def test_frozen(self):
        config = WebRagConfig()
        with pytest.raises(ValidationError):
            config.tavily_api_key = "x"
