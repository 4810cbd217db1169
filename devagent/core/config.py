"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration for devagent. Reads from .env automatically."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # LLM API keys. Empty or placeholder values switch the agent to demo mode.
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # Provider endpoints - override for proxies or OpenAI-compatible servers
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_version: str = "2023-06-01"
    openai_base_url: str = "https://api.openai.com"

    # Model identifiers - the name decides the provider:
    #   "claude-*"      → Anthropic Messages API
    #   anything else   → OpenAI Chat Completions API
    guidance_model: str = "claude-3-5-sonnet-20241022"
    generation_model: str = "gpt-4"

    guidance_max_tokens: int = 4000
    generation_max_tokens: int = 4000
    guidance_temperature: float = 0.3
    code_guidance_temperature: float = 0.1   # more deterministic for code guidelines
    generation_temperature: float = 0.1

    # Bounded wait per external call. Text-generation backends are slow.
    gateway_timeout_seconds: float = 300.0

    # Test generation
    default_test_framework: str = "xUnit"
    default_mocking_framework: str = "Moq"

    # Optional root that confines the change-summary reads.
    # Leave empty to allow any readable path.
    workspace_root: str = ""

    @field_validator("workspace_root")
    @classmethod
    def _resolve_workspace(cls, value: str) -> str:
        if value:
            return str(Path(value).expanduser().resolve())
        return value

    # Web host
    web_host: str = "127.0.0.1"
    web_port: int = 5210

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/agent.log"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Singleton accessor."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (used in tests after changing the environment)."""
    global _settings
    _settings = None
