"""Tests for the FastAPI web server endpoints."""

from unittest.mock import patch

import pytest

from devagent.core.config import Settings


@pytest.fixture
def client():
    """Test client in demo mode (no API keys)."""
    settings = Settings(anthropic_api_key="", openai_api_key="")
    with patch("devagent.web.server.get_settings", return_value=settings), \
            patch("devagent.web.server.setup_logging"):
        from fastapi.testclient import TestClient

        from devagent.web.server import app
        with TestClient(app) as c:
            yield c


@pytest.fixture
def live_client():
    settings = Settings(anthropic_api_key="sk-ant-live", openai_api_key="sk-proj-live")
    with patch("devagent.web.server.get_settings", return_value=settings), \
            patch("devagent.web.server.setup_logging"):
        from fastapi.testclient import TestClient

        from devagent.web.server import app
        with TestClient(app) as c:
            yield c


class TestHealthEndpoint:
    def test_health(self, client):
        resp = client.get("/api/agent/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["version"]
        assert "T" in data["timestamp"]


class TestConfigStatusEndpoint:
    def test_demo_mode(self, client):
        data = client.get("/api/agent/config-status").json()
        assert data == {"guidance_configured": False, "generation_configured": False, "mode": "demo"}

    def test_live_mode_never_echoes_keys(self, live_client):
        resp = live_client.get("/api/agent/config-status")
        data = resp.json()
        assert data["mode"] == "live"
        assert data["guidance_configured"] is True
        assert data["generation_configured"] is True
        assert "sk-ant-live" not in resp.text
        assert "sk-proj-live" not in resp.text


class TestProcessEndpoint:
    def test_camel_case_round_trip(self, client):
        resp = client.post(
            "/api/agent/process",
            json={
                "message": "",
                "instruction": "refactor",
                "selectedCode": "class Foo : Service {}",
                "filePath": "Foo.txt",
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["errorMessage"] is None
        assert len(data["modifiedFiles"]) == 1
        mod = data["modifiedFiles"][0]
        assert mod["modificationType"] == "update"
        assert mod["path"] == "Foo.txt"
        assert mod["newContent"]
        assert "diffSummary" in mod

    def test_general_request(self, client):
        data = client.post("/api/agent/process", json={"message": "What is MVC?"}).json()
        assert data["success"] is True
        assert data["modifiedFiles"] == []


class TestConvenienceEndpoints:
    def test_analyze_code(self, client):
        data = client.post(
            "/api/agent/analyze-code",
            json={"code": "public class HomeController : ControllerBase { }", "filePath": "HomeController.cs"},
        ).json()
        assert data["success"] is True
        assert data["explanation"] == "Detected kind: Controller"
        assert data["suggestions"]

    def test_refactor(self, client):
        data = client.post(
            "/api/agent/refactor",
            json={"code": "public class OrderService { }", "filePath": "OrderService.cs", "refactorType": "extract-interface"},
        ).json()
        assert data["success"] is True
        assert "IOrderService" in data["modifiedFiles"][0]["newContent"]

    def test_generate_tests(self, client):
        data = client.post(
            "/api/agent/generate-tests",
            json={
                "code": "public class Calc { public int Add(int a, int b) => a + b; }",
                "filePath": "src/Calc.cs",
                "testFramework": "xUnit",
            },
        ).json()
        assert data["success"] is True
        assert data["modifiedFiles"][0]["path"] == "tests/CalcTests.cs"
        assert "[Fact]" in data["modifiedFiles"][0]["newContent"]
