"""Model-gateway factory.

:func:`build_gateway` is the single entry-point for obtaining a
``ModelGateway`` instance.  The provider is detected from the model name.

Usage::

    from infra.factory import build_gateway

    # Anthropic (any model containing "claude")
    gateway = build_gateway("claude-3-5-sonnet-20241022", http=http, anthropic_api_key=key)

    # OpenAI or a compatible server (everything else)
    gateway = build_gateway("gpt-4", http=http, openai_api_key=key)
"""

from __future__ import annotations

import httpx

from infra.anthropic_client import AnthropicGateway
from infra.gateway import ModelGateway
from infra.openai_client import OpenAIGateway


def is_anthropic_model(model_name: str) -> bool:
    """Anthropic models contain 'claude' in their name."""
    return "claude" in model_name.lower()


def build_gateway(
    model: str,
    http: httpx.AsyncClient,
    *,
    name: str,
    anthropic_api_key: str = "",
    openai_api_key: str = "",
    anthropic_base_url: str = "https://api.anthropic.com",
    anthropic_version: str = "2023-06-01",
    openai_base_url: str = "https://api.openai.com",
) -> ModelGateway:
    """Return a :class:`~infra.gateway.ModelGateway` for *model*.

    Detection rules (first match wins):

    1. Model name contains ``"claude"`` → :class:`AnthropicGateway`.
    2. Otherwise → :class:`OpenAIGateway` (OpenAI or compatible server).

    A missing key is not an error here: the gateway reports it through
    ``credentials_configured()`` and raises ``CredentialsMissingError`` on use.
    """
    if is_anthropic_model(model):
        return AnthropicGateway(
            api_key=anthropic_api_key,
            http=http,
            model=model,
            base_url=anthropic_base_url,
            version=anthropic_version,
            name=name,
        )
    return OpenAIGateway(
        api_key=openai_api_key,
        http=http,
        model=model,
        base_url=openai_base_url,
        name=name,
    )
