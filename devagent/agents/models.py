"""Model gateway configuration and factory.

Provider routing is done via model name:
  - "claude-*"        → Anthropic Messages API
  - anything else     → OpenAI Chat Completions API (or compatible server)

Set GUIDANCE_MODEL and GENERATION_MODEL in .env to choose freely.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import httpx

from devagent.core.config import Settings, get_settings
from devagent.core.logging import get_logger
from infra.factory import build_gateway, is_anthropic_model
from infra.gateway import ModelGateway

logger = get_logger("agents.models")

GatewayRole = Literal["guidance", "generation"]
PromptName = Literal["guidance", "code_guidance", "generation", "refactor", "tests"]

PROMPTS_DIR = Path(__file__).parent / "prompts"

_PROMPT_FILES: dict[str, str] = {
    "guidance": "guidance_system.txt",
    "code_guidance": "code_guidance_system.txt",
    "generation": "generation_system.txt",
    "refactor": "refactor_system.txt",
    "tests": "tests_system.txt",
}


def _model_for_role(role: GatewayRole, settings: Settings) -> str:
    if role == "guidance":
        return settings.guidance_model
    if role == "generation":
        return settings.generation_model
    raise ValueError(f"Unknown gateway role: {role}")


def get_gateway(role: GatewayRole, http: httpx.AsyncClient, settings: Settings | None = None) -> ModelGateway:
    """Create the gateway for *role* on the shared HTTP client.

    The provider is determined entirely by the model string in .env;
    no provider is hardcoded.
    """
    settings = settings or get_settings()
    model = _model_for_role(role, settings)
    gateway = build_gateway(
        model,
        http,
        name=role,
        anthropic_api_key=settings.anthropic_api_key,
        openai_api_key=settings.openai_api_key,
        anthropic_base_url=settings.anthropic_base_url,
        anthropic_version=settings.anthropic_version,
        openai_base_url=settings.openai_base_url,
    )
    provider = "Anthropic" if is_anthropic_model(model) else "OpenAI"
    if gateway.credentials_configured():
        logger.info("Using %s model '%s' for %s", provider, model, role)
    else:
        logger.warning("No %s API key for %s model '%s' - demo mode", provider, role, model)
    return gateway


def load_system_prompt(name: PromptName, **values: str) -> str:
    """Load a system prompt and fill its ``{placeholders}`` from *values*."""
    if name not in _PROMPT_FILES:
        raise ValueError(f"Unknown prompt: {name!r}")
    prompt_file = PROMPTS_DIR / _PROMPT_FILES[name]
    if not prompt_file.exists():
        raise FileNotFoundError(f"System prompt not found: {prompt_file}")
    text = prompt_file.read_text(encoding="utf-8")
    return text.format(**values) if values else text
