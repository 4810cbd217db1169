"""Anthropic model gateway.

Implements :class:`~infra.gateway.ModelGateway` against the Anthropic
Messages API.  Authentication uses the ``x-api-key`` header supplied via the
``ANTHROPIC_API_KEY`` environment variable / config key.

Usage::

    async with httpx.AsyncClient(timeout=300) as http:
        gateway = AnthropicGateway(api_key, http=http)
        text = await gateway.complete("You are ...", [HumanMessage("...")], 4000, 0.3)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from langchain_core.messages import BaseMessage

from infra.gateway import (
    CredentialsMissingError,
    GatewayError,
    GatewayTimeoutError,
    is_placeholder_key,
    to_provider_messages,
)

logger = logging.getLogger("devagent.infra.anthropic")

_ANTHROPIC_API = "https://api.anthropic.com"
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"


class AnthropicGateway:
    """Anthropic Messages API gateway.

    Args:
        api_key:  Anthropic API key.  Empty / placeholder → demo mode.
        http:     Shared ``httpx.AsyncClient`` owned by the hosting process.
        model:    Model identifier.
        base_url: API base URL.  Override in tests or for a proxy.
        version:  ``anthropic-version`` header value.
        name:     Gateway label used in logs and error messages.
    """

    def __init__(
        self,
        api_key: str,
        http: httpx.AsyncClient,
        model: str = DEFAULT_MODEL,
        base_url: str = _ANTHROPIC_API,
        version: str = "2023-06-01",
        name: str = "guidance",
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._version = version
        self.model = model
        self.name = name

    def credentials_configured(self) -> bool:
        return not is_placeholder_key(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post(self, path: str, json: dict[str, Any]) -> Any:
        url = f"{self._base_url}{path}"
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": self._version,
            "content-type": "application/json",
        }
        try:
            response = await self._http.post(url, json=json, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise GatewayError(
                f"Anthropic POST {path} failed: {exc.response.status_code} {exc.response.text[:200]}",
                gateway=self.name,
                kind="status",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TimeoutException as exc:
            raise GatewayTimeoutError(self.name, f"Anthropic POST {path}") from exc
        except httpx.RequestError as exc:
            raise GatewayError(
                f"Anthropic POST {path} network error: {exc}", gateway=self.name, kind="transport"
            ) from exc
        except ValueError as exc:
            raise GatewayError(
                f"Anthropic POST {path} returned a non-JSON body", gateway=self.name, kind="malformed"
            ) from exc

    def _first_text(self, data: Any) -> str:
        if not isinstance(data, dict) or not isinstance(data.get("content"), list):
            raise GatewayError("Anthropic response has no content list", gateway=self.name, kind="malformed")
        for block in data["content"]:
            if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
                return block["text"]
        raise GatewayError("Anthropic response contained no text fragment", gateway=self.name, kind="empty")

    # ------------------------------------------------------------------
    # ModelGateway implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system: str,
        messages: list[BaseMessage],
        max_tokens: int,
        temperature: float,
    ) -> str:
        if not self.credentials_configured():
            raise CredentialsMissingError(self.name)

        payload = {
            "model": self.model,
            "system": system,
            "messages": to_provider_messages(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        logger.info("Anthropic request | gateway=%s model=%s", self.name, self.model)
        data = await self._post("/v1/messages", json=payload)

        usage = data.get("usage") if isinstance(data, dict) else None
        if isinstance(usage, dict):
            logger.debug(
                "Anthropic usage | input=%s output=%s",
                usage.get("input_tokens", 0),
                usage.get("output_tokens", 0),
            )
        return self._first_text(data)
