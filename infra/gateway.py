"""Unified model-gateway interface - protocol, errors and credential checks.

All code that needs to talk to a text-generation endpoint must go through a
``ModelGateway`` implementation.  Direct HTTP calls to model APIs outside
this package are not allowed.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from langchain_core.messages import BaseMessage

# Values that ship in sample configs and mean "no key configured".
PLACEHOLDER_KEYS: frozenset[str] = frozenset({
    "",
    "changeme",
    "change-me",
    "demo",
    "none",
    "null",
    "placeholder",
    "your-api-key",
    "your_api_key",
    "api-key",
    "xxx",
})
_PLACEHOLDER_RE = re.compile(r"^(?:<.*>|\{.*\}|your[-_].*|sk-x+|sk-ant-x+|x+)$", re.IGNORECASE)


def is_placeholder_key(value: str | None) -> bool:
    """True when *value* is empty or an obvious placeholder rather than a real key."""
    key = (value or "").strip()
    return key.lower() in PLACEHOLDER_KEYS or bool(_PLACEHOLDER_RE.match(key))


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ModelGateway(Protocol):
    """Minimal text-completion operations required by the orchestrator.

    Both ``AnthropicGateway`` and ``OpenAIGateway`` implement this protocol.
    Callers should type-hint against ``ModelGateway``, not against a concrete
    implementation class.

    Gateways are stateless: the shared ``httpx.AsyncClient`` they use is
    owned by the hosting process and is never closed by a gateway.
    """

    name: str

    def credentials_configured(self) -> bool:
        """Return False when the API key is absent or a placeholder."""
        ...

    async def complete(
        self,
        system: str,
        messages: list[BaseMessage],
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Send one completion request and return the first text fragment.

        Args:
            system:      System prompt / context.
            messages:    Ordered conversation (``HumanMessage`` → user,
                         ``AIMessage`` → assistant).
            max_tokens:  Upper bound on generated tokens.
            temperature: Sampling temperature.

        Raises:
            CredentialsMissingError: the key is absent or a placeholder.
            GatewayTimeoutError:     the transport timed out.
            GatewayError:            any other transport, status or payload failure.
        """
        ...


def to_provider_messages(messages: list[BaseMessage]) -> list[dict[str, str]]:
    """Convert langchain_core messages to ``{"role", "content"}`` dicts."""
    roles = {"human": "user", "ai": "assistant", "system": "system"}
    converted = []
    for message in messages:
        role = roles.get(message.type)
        if role is None:
            raise ValueError(f"Unsupported message type for a model gateway: {message.type!r}")
        converted.append({"role": role, "content": str(message.content)})
    return converted


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GatewayError(Exception):
    """Raised for any model-gateway failure.

    ``kind`` is one of ``credentials``, ``timeout``, ``transport``,
    ``status``, ``malformed`` or ``empty``.  The exception message may hold
    provider detail for the logs; ``public_message`` is safe to show a user.
    """

    def __init__(
        self,
        message: str,
        *,
        gateway: str,
        kind: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.gateway = gateway
        self.kind = kind
        self.status_code = status_code

    @property
    def public_message(self) -> str:
        if self.kind == "status":
            return f"The {self.gateway} model service returned an error (HTTP {self.status_code})."
        if self.kind == "timeout":
            return f"The {self.gateway} model service timed out."
        if self.kind == "transport":
            return f"The {self.gateway} model service could not be reached."
        if self.kind in ("malformed", "empty"):
            return f"The {self.gateway} model service returned an unusable response."
        return f"The {self.gateway} model service is not available."

    def __repr__(self) -> str:  # pragma: no cover
        return f"GatewayError({self.args[0]!r}, gateway={self.gateway!r}, kind={self.kind!r})"


class CredentialsMissingError(GatewayError):
    """No usable API key. The orchestrator answers in demo mode instead of failing."""

    def __init__(self, gateway: str) -> None:
        super().__init__(f"No API key configured for the {gateway} gateway", gateway=gateway, kind="credentials")


class GatewayTimeoutError(GatewayError):
    def __init__(self, gateway: str, detail: str = "") -> None:
        super().__init__(
            f"{gateway} request timed out{': ' + detail if detail else ''}",
            gateway=gateway,
            kind="timeout",
        )
