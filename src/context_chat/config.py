"""Centralized configuration for the chat engine."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful and accurate assistant. If context is provided, "
    "prioritize it and clearly say when information is uncertain. If internet "
    "search context is present, answer from that context and never use "
    'knowledge-cutoff disclaimers like "as of my last update". If local '
    "context is present and the user asks about internal/project notes, use "
    "local context first and do not claim that internal notes are missing "
    "unless local context is empty. If context is insufficient, say so "
    "explicitly."
)


class AIConfig(BaseSettings):
    """Completion endpoint and retrieval settings."""

    model_config = SettingsConfigDict(env_prefix="AI_", frozen=True)

    enabled: bool = False
    api_base_url: str = "https://router.huggingface.co/v1/chat/completions"
    api_key: str | None = None
    model: str = "Qwen/Qwen2.5-7B-Instruct"
    timeout_s: float = Field(default=20.0, gt=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_tokens: int = Field(default=512, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_history_messages: int = Field(default=20, gt=0)
    enable_rag: bool = True
    enable_web_search: bool = True
    rag_top_k: int = Field(default=3, gt=0)
    web_search_top_k: int = Field(default=3, gt=0)
    rag_max_file_bytes: int = Field(default=120_000, gt=0)
    search_timeout_s: float = Field(default=10.0, gt=0)

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, v: object) -> object:
        """Treat an empty or whitespace-only key as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_", frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, le=65535)


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    model_config = SettingsConfigDict(frozen=True)

    rag_dir: str = "./rag"
    ai: AIConfig = Field(default_factory=AIConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
