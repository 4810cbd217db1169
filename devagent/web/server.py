"""FastAPI host for the agent core.

Translates HTTP bodies into ``AgentRequest`` objects and returns the
``AgentResponse`` as-is. The shared ``httpx.AsyncClient`` is created and
closed by the lifespan; gateways only borrow it.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime

import httpx
from fastapi import APIRouter, FastAPI, Request

from devagent.core.config import get_settings
from devagent.core.logging import get_logger, setup_logging
from devagent.core.orchestrator import AgentOrchestrator, build_orchestrator
from devagent.core.state import AgentRequest, CodeAnalysisRequest, RefactorRequest, TestGenerationRequest

logger = get_logger("web.server")

VERSION = "0.1.0"


# ── Lifespan ──────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    http = httpx.AsyncClient(timeout=settings.gateway_timeout_seconds)
    app.state.http = http
    app.state.orchestrator = build_orchestrator(http, settings)
    mode = "live" if app.state.orchestrator.live_mode else "demo"
    logger.info("Web server started | agent mode: %s", mode)
    try:
        yield
    finally:
        await http.aclose()
        logger.info("Lifespan cleanup complete")


def _orchestrator(request: Request) -> AgentOrchestrator:
    return request.app.state.orchestrator


# ── API Endpoints ─────────────────────────────────────────────────────────

router = APIRouter(prefix="/api/agent")


@router.post("/process")
async def process_request(body: AgentRequest, request: Request):
    response = await _orchestrator(request).process(body)
    return response.to_wire()


@router.post("/analyze-code")
async def analyze_code(body: CodeAnalysisRequest, request: Request):
    response = await _orchestrator(request).process(body.to_agent_request())
    return response.to_wire()


@router.post("/refactor")
async def refactor(body: RefactorRequest, request: Request):
    response = await _orchestrator(request).process(body.to_agent_request())
    return response.to_wire()


@router.post("/generate-tests")
async def generate_tests(body: TestGenerationRequest, request: Request):
    response = await _orchestrator(request).process(body.to_agent_request())
    return response.to_wire()


@router.get("/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now(UTC).isoformat(), "version": VERSION}


@router.get("/config-status")
async def config_status(request: Request):
    orchestrator = _orchestrator(request)
    guidance = orchestrator.guidance is not None and orchestrator.guidance.credentials_configured()
    generation = orchestrator.generation is not None and orchestrator.generation.credentials_configured()
    return {
        "guidance_configured": guidance,
        "generation_configured": generation,
        "mode": "live" if orchestrator.live_mode else "demo",
    }


app = FastAPI(title="devagent", version=VERSION, lifespan=lifespan)
app.include_router(router)
