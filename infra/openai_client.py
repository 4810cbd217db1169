"""OpenAI model gateway.

Implements :class:`~infra.gateway.ModelGateway` against the OpenAI Chat
Completions API (or any compatible server).  Authentication uses a bearer
token supplied via the ``OPENAI_API_KEY`` environment variable / config key.
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

logger = logging.getLogger("devagent.infra.openai")

_OPENAI_API = "https://api.openai.com"
DEFAULT_MODEL = "gpt-4"


class OpenAIGateway:
    """OpenAI Chat Completions gateway.

    Args:
        api_key:  OpenAI API key.  Empty / placeholder → demo mode.
        http:     Shared ``httpx.AsyncClient`` owned by the hosting process.
        model:    Model identifier.
        base_url: API base URL.  Override in tests or for compatible servers.
        name:     Gateway label used in logs and error messages.
    """

    def __init__(
        self,
        api_key: str,
        http: httpx.AsyncClient,
        model: str = DEFAULT_MODEL,
        base_url: str = _OPENAI_API,
        name: str = "generation",
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._http = http
        self._base_url = base_url.rstrip("/")
        self.model = model
        self.name = name

    def credentials_configured(self) -> bool:
        return not is_placeholder_key(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post(self, path: str, json: dict[str, Any]) -> Any:
        url = f"{self._base_url}{path}"
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            response = await self._http.post(url, json=json, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise GatewayError(
                f"OpenAI POST {path} failed: {exc.response.status_code} {exc.response.text[:200]}",
                gateway=self.name,
                kind="status",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TimeoutException as exc:
            raise GatewayTimeoutError(self.name, f"OpenAI POST {path}") from exc
        except httpx.RequestError as exc:
            raise GatewayError(
                f"OpenAI POST {path} network error: {exc}", gateway=self.name, kind="transport"
            ) from exc
        except ValueError as exc:
            raise GatewayError(
                f"OpenAI POST {path} returned a non-JSON body", gateway=self.name, kind="malformed"
            ) from exc

    def _first_text(self, data: Any) -> str:
        if not isinstance(data, dict) or not isinstance(data.get("choices"), list):
            raise GatewayError("OpenAI response has no choices list", gateway=self.name, kind="malformed")
        if not data["choices"]:
            raise GatewayError("OpenAI response contained zero choices", gateway=self.name, kind="empty")
        first = data["choices"][0]
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise GatewayError("OpenAI first choice has no text content", gateway=self.name, kind="empty")
        return content

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
            "messages": [{"role": "system", "content": system}, *to_provider_messages(messages)],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        logger.info("OpenAI request | gateway=%s model=%s", self.name, self.model)
        data = await self._post("/v1/chat/completions", json=payload)

        usage = data.get("usage") if isinstance(data, dict) else None
        if isinstance(usage, dict):
            logger.debug(
                "OpenAI usage | prompt=%s completion=%s total=%s",
                usage.get("prompt_tokens", 0),
                usage.get("completion_tokens", 0),
                usage.get("total_tokens", 0),
            )
        return self._first_text(data)
