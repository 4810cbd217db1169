"""Agent orchestrator: instruction dispatch, strategy selection and the live graph.

Two strategies produce the same ``AgentResponse`` shape:

- ``LiveOrchestration``  - guidance model → generation model → extraction,
  run as a compiled LangGraph ``StateGraph``.
- ``HeuristicFallback``  - local heuristics, used when no credentials exist.

The strategy is chosen once per request from the guidance gateway's
credential check.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import httpx
from langchain_core.messages import HumanMessage
from langgraph.graph import END, StateGraph

from devagent.agents.directives import generation_request, guidance_request
from devagent.agents.models import get_gateway, load_system_prompt
from devagent.analysis.heuristics import analyze, format_analysis
from devagent.analysis.synthesis import build_test_class, code_skeleton, rewrite_for_refactor
from devagent.core.config import Settings, get_settings
from devagent.core.extraction import derive_test_path, extract_modifications, find_code_block, wrap_in_fence
from devagent.core.intents import classify_instruction, requires_code_generation
from devagent.core.logging import get_logger
from devagent.core.state import AgentRequest, AgentResponse, Instruction, PipelineState
from infra.gateway import CredentialsMissingError, GatewayError, ModelGateway

logger = get_logger("core.orchestrator")

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while processing the request."
DEMO_NOTE = "ℹ️ Demo mode: no model API key is configured, this answer comes from local heuristics."


class AgentStrategy(Protocol):
    name: str

    async def run(self, request: AgentRequest, instruction: Instruction) -> AgentResponse:
        ...


def _metadata_value(request: AgentRequest, key: str, default: str) -> str:
    value = (request.metadata or {}).get(key)
    return str(value) if value else default


def _target_path(request: AgentRequest, instruction: Instruction) -> str:
    if instruction == Instruction.GENERATE_TESTS:
        return derive_test_path(request.file_path) or ""
    return request.file_path or ""


# ---------------------------------------------------------------------------
# Live graph routing
# ---------------------------------------------------------------------------

def route_after_guidance(state: PipelineState) -> str:
    if state.needs_generation:
        return "generation"
    logger.info("No action requested - answering with guidance only")
    return "complete"


def build_graph(
    guidance_node,
    generation_node,
    extract_node,
) -> StateGraph:
    """Construct the two-stage pipeline graph."""
    graph = StateGraph(PipelineState)

    graph.add_node("guidance", guidance_node)
    graph.add_node("generation", generation_node)
    graph.add_node("extract", extract_node)

    graph.set_entry_point("guidance")
    graph.add_conditional_edges(
        "guidance",
        route_after_guidance,
        {"generation": "generation", "complete": END},
    )
    graph.add_edge("generation", "extract")
    graph.add_edge("extract", END)

    return graph


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class LiveOrchestration:
    """Two-stage protocol against the guidance and generation gateways."""

    name = "live"

    def __init__(self, guidance: ModelGateway, generation: ModelGateway, settings: Settings | None = None) -> None:
        self.guidance = guidance
        self.generation = generation
        self.settings = settings or get_settings()
        # compiled once; the graph holds no request state
        self._graph = build_graph(self._guidance_node, self._generation_node, self._extract_node).compile()

    # ── Nodes ─────────────────────────────────────────────────────────

    async def _guidance_node(self, state: PipelineState) -> dict:
        if state.instruction == Instruction.GENERATE_CODE:
            system = load_system_prompt("code_guidance")
            temperature = self.settings.code_guidance_temperature
        else:
            system = load_system_prompt("guidance")
            temperature = self.settings.guidance_temperature

        guidance = await self.guidance.complete(
            system,
            [HumanMessage(content=guidance_request(state))],
            self.settings.guidance_max_tokens,
            temperature,
        )
        if state.instruction == Instruction.GENERAL:
            needs_generation = requires_code_generation(state.message, guidance)
        else:
            needs_generation = True
        return {"guidance": guidance, "needs_generation": needs_generation}

    async def _generation_node(self, state: PipelineState) -> dict:
        if state.instruction == Instruction.REFACTOR:
            system = load_system_prompt("refactor")
        elif state.instruction == Instruction.GENERATE_TESTS:
            system = load_system_prompt(
                "tests",
                test_framework=state.test_framework,
                mocking_framework=state.mocking_framework or "no mocking framework",
            )
        else:
            system = load_system_prompt("generation")

        generation = await self.generation.complete(
            system,
            [HumanMessage(content=generation_request(state))],
            self.settings.generation_max_tokens,
            self.settings.generation_temperature,
        )
        return {"generation": generation}

    async def _extract_node(self, state: PipelineState) -> dict:
        return {"modified_files": extract_modifications(state.generation, state.target_path)}

    # ── Strategy ──────────────────────────────────────────────────────

    async def run(self, request: AgentRequest, instruction: Instruction) -> AgentResponse:
        initial = PipelineState(
            instruction=instruction,
            message=request.message,
            project_context=request.project_context,
            selected_code=request.selected_code or "",
            file_path=request.file_path or "",
            target_path=_target_path(request, instruction),
            test_framework=_metadata_value(request, "test_framework", self.settings.default_test_framework),
            mocking_framework=_metadata_value(request, "mocking_framework", self.settings.default_mocking_framework),
        )
        final = PipelineState(**await self._graph.ainvoke(initial.model_dump()))
        return _assemble_live_response(final)


def _assemble_live_response(state: PipelineState) -> AgentResponse:
    if not state.needs_generation:
        return AgentResponse(response_text=state.guidance)

    if state.instruction == Instruction.ANALYZE_CODE:
        text = f"🔍 **Code analysis:**\n\n{state.guidance}\n\n🔧 **Improved code:**\n{state.generation}"
    elif state.instruction == Instruction.REFACTOR:
        text = f"🔄 **Refactoring:**\n\n{state.generation}"
    elif state.instruction == Instruction.GENERATE_TESTS:
        text = f"🧪 **Generated tests:**\n\n{state.generation}"
    else:
        text = f"💡 **Guidance:**\n{state.guidance}\n\n🔧 **Generated code:**\n{state.generation}"

    return AgentResponse(
        response_text=text,
        modified_files=list(state.modified_files),
        explanation=state.guidance,
    )


class HeuristicFallback:
    """Demo mode: same response shape, produced without any external call."""

    name = "heuristic"

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    async def run(self, request: AgentRequest, instruction: Instruction) -> AgentResponse:
        source = request.selected_code or find_code_block(request.message) or request.message

        if instruction == Instruction.ANALYZE_CODE:
            return self._analysis(source)
        if instruction == Instruction.REFACTOR:
            return self._refactor(request, source)
        if instruction == Instruction.GENERATE_TESTS:
            return self._tests(request, source)
        if instruction == Instruction.GENERATE_CODE:
            return self._generate(request)
        return self._general(request)

    def _analysis(self, source: str) -> AgentResponse:
        analysis = analyze(source)
        return AgentResponse(
            response_text=f"{DEMO_NOTE}\n\n🔍 **Code analysis:**\n\n{format_analysis(analysis)}",
            explanation=f"Detected kind: {analysis.detected_kind}",
            suggestions=list(analysis.suggestions),
        )

    def _refactor(self, request: AgentRequest, source: str) -> AgentResponse:
        analysis = analyze(source)
        rewritten = rewrite_for_refactor(source, analysis)
        text = f"{DEMO_NOTE}\n\n🔄 **Refactoring:**\n\n{format_analysis(analysis)}"
        if rewritten:
            text += f"\n\n{wrap_in_fence(rewritten)}"
        return AgentResponse(
            response_text=text,
            modified_files=extract_modifications(text, request.file_path),
            explanation=f"Detected kind: {analysis.detected_kind}",
            suggestions=list(analysis.suggestions),
        )

    def _tests(self, request: AgentRequest, source: str) -> AgentResponse:
        framework = _metadata_value(request, "test_framework", self.settings.default_test_framework)
        mocking = _metadata_value(request, "mocking_framework", self.settings.default_mocking_framework)
        tests = wrap_in_fence(build_test_class(source, framework, mocking))
        text = f"{DEMO_NOTE}\n\n🧪 **Generated tests:**\n\n{tests}"
        return AgentResponse(
            response_text=text,
            modified_files=extract_modifications(tests, _target_path(request, Instruction.GENERATE_TESTS)),
            explanation=f"{framework} skeleton with one test per public method.",
        )

    def _generate(self, request: AgentRequest) -> AgentResponse:
        code = wrap_in_fence(code_skeleton(request.message))
        text = (
            f"{DEMO_NOTE}\n\n💡 **Guidance:**\nStarting skeleton for: {request.message.strip()}\n\n"
            f"🔧 **Generated code:**\n{code}"
        )
        return AgentResponse(
            response_text=text,
            modified_files=extract_modifications(code, request.file_path),
            explanation="Skeleton generated from the request keywords.",
        )

    def _general(self, request: AgentRequest) -> AgentResponse:
        if requires_code_generation(request.message, ""):
            return self._generate(request)
        return AgentResponse(
            response_text=(
                f"{DEMO_NOTE}\n\nAvailable instructions: analyze-code, refactor, generate-tests, "
                "generate-code. Configure ANTHROPIC_API_KEY and OPENAI_API_KEY for model answers."
            ),
        )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class AgentOrchestrator:
    """Entry point for the core: ``await orchestrator.process(request)``.

    Never raises for request failures; a ``success=False`` response is
    returned instead. Task cancellation propagates unchanged.
    """

    def __init__(
        self,
        guidance: ModelGateway | None = None,
        generation: ModelGateway | None = None,
        settings: Settings | None = None,
        live: AgentStrategy | None = None,
        fallback: AgentStrategy | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.guidance = guidance
        self.generation = generation
        if live is None and guidance is not None and generation is not None:
            live = LiveOrchestration(guidance, generation, self.settings)
        self.live = live
        self.fallback = fallback or HeuristicFallback(self.settings)

    @property
    def live_mode(self) -> bool:
        return self.live is not None and self.guidance is not None and self.guidance.credentials_configured()

    def select_strategy(self) -> AgentStrategy:
        return self.live if self.live_mode else self.fallback

    async def process(self, request: AgentRequest) -> AgentResponse:
        instruction = classify_instruction(request.instruction)
        strategy = self.select_strategy()
        logger.info(
            "Processing request | instruction=%s path=%s strategy=%s file=%s",
            request.instruction or "(empty)",
            instruction.value,
            strategy.name,
            request.file_path or "-",
        )

        try:
            try:
                response = await strategy.run(request, instruction)
            except CredentialsMissingError as exc:
                logger.warning("%s gateway has no credentials - answering in demo mode", exc.gateway)
                response = await self.fallback.run(request, instruction)
        except asyncio.CancelledError:
            logger.warning("Request cancelled | path=%s", instruction.value)
            raise
        except GatewayError as exc:
            logger.error(
                "Gateway failure | gateway=%s kind=%s | %s", exc.gateway, exc.kind, exc, exc_info=True
            )
            return AgentResponse.failure(exc.public_message)
        except Exception:
            logger.exception("Unexpected error while processing request | path=%s", instruction.value)
            return AgentResponse.failure(UNEXPECTED_ERROR_MESSAGE)

        logger.info(
            "Response ready | path=%s modifications=%d", instruction.value, len(response.modified_files)
        )
        return response


def build_orchestrator(http: httpx.AsyncClient, settings: Settings | None = None) -> AgentOrchestrator:
    """Wire both gateways on the shared HTTP client."""
    settings = settings or get_settings()
    return AgentOrchestrator(
        guidance=get_gateway("guidance", http, settings),
        generation=get_gateway("generation", http, settings),
        settings=settings,
    )
