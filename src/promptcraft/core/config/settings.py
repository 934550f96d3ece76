"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """PromptCraft server and engine configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the MCP server.
    promptcraft_host: str = "127.0.0.1"
    promptcraft_port: int = 8010
    promptcraft_log_level: str = "info"
    promptcraft_allow_insecure_bind: bool = False
    # stdio serves a single local client and never opens a socket.
    promptcraft_transport: Literal["streamable-http", "stdio"] = "streamable-http"

    # Enhancement LLM
    llm_provider: Literal["anthropic", "openai", "mock"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    enhancement_enabled: bool = True
    enhancement_timeout_s: float = 8.0
    enhancement_max_tokens: int = 2048

    # Retrieval
    retrieval_timeout_s: float = 3.0
    document_similarity_threshold: float = 0.6
    template_similarity_threshold: float = 0.5
    max_document_results: int = 8
    max_template_results: int = 5
    knowledge_excerpt_limit: int = 3
    # auto: OpenAI embeddings when OPENAI_API_KEY is set, local hashing otherwise.
    embedding_provider: Literal["auto", "hashing", "openai"] = "auto"
    embedding_dimensions: int = 1024
    openai_embedding_model: str = "text-embedding-3-small"

    # Storage (knowledge store + generation events)
    knowledge_db_path: str = "~/.promptcraft/knowledge.db"

    # Bundled data overrides (empty = use the packaged directories)
    profile_dir: str = ""
    knowledge_seed_dir: str = ""

    # Analytics
    analytics_enabled: bool = True


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
