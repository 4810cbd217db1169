"""Tests for the model-gateway layer.

Covers:
- Placeholder key detection
- ModelGateway protocol satisfaction (AnthropicGateway, OpenAIGateway)
- AnthropicGateway / OpenAIGateway against mocked HTTP (respx)
- Error translation: status, timeout, transport, malformed, empty
- factory.build_gateway provider routing

No real network calls are made; all HTTP is mocked via respx.
"""

from __future__ import annotations

import json

import httpx
import pytest
import respx
from langchain_core.messages import AIMessage, HumanMessage

from infra.anthropic_client import AnthropicGateway
from infra.factory import build_gateway, is_anthropic_model
from infra.gateway import (
    CredentialsMissingError,
    GatewayError,
    GatewayTimeoutError,
    ModelGateway,
    is_placeholder_key,
    to_provider_messages,
)
from infra.openai_client import OpenAIGateway

ANTHROPIC = "https://anthropic.test"
OPENAI = "https://openai.test"


def _anthropic_body(text="Use dependency injection."):
    return {
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": 12, "output_tokens": 7},
    }


def _openai_body(content="```csharp\nclass A {}\n```"):
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


# ═══════════════════════════════════════════════════════════════════════════
# 1. Credentials
# ═══════════════════════════════════════════════════════════════════════════

class TestPlaceholderKeys:
    @pytest.mark.parametrize("value", ["", "   ", None, "changeme", "YOUR-API-KEY", "<anthropic-key>", "sk-xxxx", "xxx"])
    def test_placeholders_detected(self, value):
        assert is_placeholder_key(value)

    @pytest.mark.parametrize("value", ["sk-ant-api03-abc123", "sk-proj-9f8e7d"])
    def test_real_looking_keys_accepted(self, value):
        assert not is_placeholder_key(value)

    def test_gateway_reports_missing_key(self):
        http = httpx.AsyncClient()
        assert not AnthropicGateway("", http).credentials_configured()
        assert not OpenAIGateway("your_api_key", http).credentials_configured()
        assert OpenAIGateway("sk-proj-123", http).credentials_configured()


class TestProtocol:
    def test_both_gateways_satisfy_protocol(self):
        http = httpx.AsyncClient()
        assert isinstance(AnthropicGateway("k", http), ModelGateway)
        assert isinstance(OpenAIGateway("k", http), ModelGateway)

    def test_message_roles_mapped(self):
        converted = to_provider_messages([HumanMessage(content="hi"), AIMessage(content="hello")])
        assert converted == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]


# ═══════════════════════════════════════════════════════════════════════════
# 2. AnthropicGateway
# ═══════════════════════════════════════════════════════════════════════════

class TestAnthropicGateway:
    @pytest.mark.asyncio
    async def test_complete_returns_first_text_fragment(self):
        with respx.mock(base_url=ANTHROPIC) as mock:
            route = mock.post("/v1/messages").mock(return_value=httpx.Response(200, json=_anthropic_body()))
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("sk-ant-real", http, model="claude-test", base_url=ANTHROPIC)
                text = await gateway.complete("system prompt", [HumanMessage(content="question")], 100, 0.3)

        assert text == "Use dependency injection."
        request = route.calls.last.request
        assert request.headers["x-api-key"] == "sk-ant-real"
        assert request.headers["anthropic-version"] == "2023-06-01"
        sent = json.loads(request.content)
        assert sent["model"] == "claude-test"
        assert sent["system"] == "system prompt"
        assert sent["messages"] == [{"role": "user", "content": "question"}]
        assert sent["max_tokens"] == 100
        assert sent["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_skips_non_text_blocks(self):
        body = {"content": [{"type": "tool_use", "id": "x"}, {"type": "text", "text": "second"}]}
        with respx.mock(base_url=ANTHROPIC) as mock:
            mock.post("/v1/messages").mock(return_value=httpx.Response(200, json=body))
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("sk-ant-real", http, base_url=ANTHROPIC)
                assert await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0) == "second"

    @pytest.mark.asyncio
    async def test_missing_key_raises_before_any_request(self):
        with respx.mock(base_url=ANTHROPIC, assert_all_called=False) as mock:
            route = mock.post("/v1/messages")
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("", http, base_url=ANTHROPIC)
                with pytest.raises(CredentialsMissingError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        assert exc_info.value.kind == "credentials"
        assert not route.called

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        with respx.mock(base_url=ANTHROPIC) as mock:
            mock.post("/v1/messages").mock(return_value=httpx.Response(529, text="overloaded"))
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("sk-ant-real", http, base_url=ANTHROPIC)
                with pytest.raises(GatewayError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        err = exc_info.value
        assert err.kind == "status"
        assert err.status_code == 529
        assert "529" in err.public_message
        assert "overloaded" not in err.public_message

    @pytest.mark.asyncio
    async def test_timeout(self):
        with respx.mock(base_url=ANTHROPIC) as mock:
            mock.post("/v1/messages").mock(side_effect=httpx.ReadTimeout("too slow"))
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("sk-ant-real", http, base_url=ANTHROPIC)
                with pytest.raises(GatewayTimeoutError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        assert exc_info.value.kind == "timeout"
        assert exc_info.value.gateway == "guidance"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        with respx.mock(base_url=ANTHROPIC) as mock:
            mock.post("/v1/messages").mock(side_effect=httpx.ConnectError("refused"))
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("sk-ant-real", http, base_url=ANTHROPIC)
                with pytest.raises(GatewayError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        assert exc_info.value.kind == "transport"

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self):
        with respx.mock(base_url=ANTHROPIC) as mock:
            mock.post("/v1/messages").mock(return_value=httpx.Response(200, text="<html>oops</html>"))
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("sk-ant-real", http, base_url=ANTHROPIC)
                with pytest.raises(GatewayError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        assert exc_info.value.kind == "malformed"

    @pytest.mark.asyncio
    async def test_no_text_fragment_is_empty(self):
        with respx.mock(base_url=ANTHROPIC) as mock:
            mock.post("/v1/messages").mock(return_value=httpx.Response(200, json={"content": []}))
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("sk-ant-real", http, base_url=ANTHROPIC)
                with pytest.raises(GatewayError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        assert exc_info.value.kind == "empty"

    @pytest.mark.asyncio
    async def test_shared_client_stays_open(self):
        with respx.mock(base_url=ANTHROPIC) as mock:
            mock.post("/v1/messages").mock(return_value=httpx.Response(200, json=_anthropic_body()))
            async with httpx.AsyncClient() as http:
                gateway = AnthropicGateway("sk-ant-real", http, base_url=ANTHROPIC)
                await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
                assert not http.is_closed


# ═══════════════════════════════════════════════════════════════════════════
# 3. OpenAIGateway
# ═══════════════════════════════════════════════════════════════════════════

class TestOpenAIGateway:
    @pytest.mark.asyncio
    async def test_complete_prepends_system_message(self):
        with respx.mock(base_url=OPENAI) as mock:
            route = mock.post("/v1/chat/completions").mock(return_value=httpx.Response(200, json=_openai_body("done")))
            async with httpx.AsyncClient() as http:
                gateway = OpenAIGateway("sk-proj-real", http, model="gpt-4", base_url=OPENAI)
                text = await gateway.complete("be precise", [HumanMessage(content="write code")], 50, 0.1)

        assert text == "done"
        request = route.calls.last.request
        assert request.headers["authorization"] == "Bearer sk-proj-real"
        sent = json.loads(request.content)
        assert sent["messages"][0] == {"role": "system", "content": "be precise"}
        assert sent["messages"][1] == {"role": "user", "content": "write code"}
        assert sent["model"] == "gpt-4"

    @pytest.mark.asyncio
    async def test_zero_choices_is_empty(self):
        with respx.mock(base_url=OPENAI) as mock:
            mock.post("/v1/chat/completions").mock(return_value=httpx.Response(200, json={"choices": []}))
            async with httpx.AsyncClient() as http:
                gateway = OpenAIGateway("sk-proj-real", http, base_url=OPENAI)
                with pytest.raises(GatewayError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        assert exc_info.value.kind == "empty"

    @pytest.mark.asyncio
    async def test_missing_choices_is_malformed(self):
        with respx.mock(base_url=OPENAI) as mock:
            mock.post("/v1/chat/completions").mock(return_value=httpx.Response(200, json={"id": "x"}))
            async with httpx.AsyncClient() as http:
                gateway = OpenAIGateway("sk-proj-real", http, base_url=OPENAI)
                with pytest.raises(GatewayError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        assert exc_info.value.kind == "malformed"

    @pytest.mark.asyncio
    async def test_unauthorized_status(self):
        with respx.mock(base_url=OPENAI) as mock:
            mock.post("/v1/chat/completions").mock(return_value=httpx.Response(401, json={"error": "bad key"}))
            async with httpx.AsyncClient() as http:
                gateway = OpenAIGateway("sk-proj-real", http, base_url=OPENAI)
                with pytest.raises(GatewayError) as exc_info:
                    await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)
        assert exc_info.value.kind == "status"
        assert exc_info.value.status_code == 401
        assert "sk-proj-real" not in exc_info.value.public_message

    @pytest.mark.asyncio
    async def test_placeholder_key_raises_credentials_missing(self):
        async with httpx.AsyncClient() as http:
            gateway = OpenAIGateway("<your key>", http, base_url=OPENAI)
            with pytest.raises(CredentialsMissingError):
                await gateway.complete("s", [HumanMessage(content="q")], 10, 0.0)


# ═══════════════════════════════════════════════════════════════════════════
# 4. Factory
# ═══════════════════════════════════════════════════════════════════════════

class TestFactory:
    def test_claude_models_route_to_anthropic(self):
        assert is_anthropic_model("claude-3-5-sonnet-20241022")
        assert is_anthropic_model("Claude-Opus")
        assert not is_anthropic_model("gpt-4")

    def test_build_gateway_routes_by_model_name(self):
        http = httpx.AsyncClient()
        anthropic = build_gateway("claude-3-haiku", http, name="guidance", anthropic_api_key="a")
        openai = build_gateway("gpt-4o", http, name="generation", openai_api_key="o")
        assert isinstance(anthropic, AnthropicGateway)
        assert isinstance(openai, OpenAIGateway)
        assert anthropic.name == "guidance"
        assert openai.model == "gpt-4o"

    def test_build_gateway_uses_the_matching_key(self):
        http = httpx.AsyncClient()
        gateway = build_gateway("gpt-4", http, name="generation", anthropic_api_key="only-anthropic")
        assert not gateway.credentials_configured()
