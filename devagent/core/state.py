"""Request, response and pipeline state models shared by the agent core."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ModificationType = Literal["update", "create", "delete"]


class Instruction(StrEnum):
    """Recognised instruction values. Anything else dispatches to GENERAL."""

    ANALYZE_CODE = "analyze-code"
    REFACTOR = "refactor"
    GENERATE_TESTS = "generate-tests"
    GENERATE_CODE = "generate-code"
    GENERAL = "general"


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ── Inbound ──────────────────────────────────────────────────────────────

class AgentRequest(_WireModel):
    """A natural-language request coming from the IDE."""

    message: str = ""
    project_context: str = ""
    instruction: str = ""   # free-form; not validated against Instruction
    file_path: str | None = None
    selected_code: str | None = None
    metadata: dict[str, Any] | None = None


class CodeAnalysisRequest(_WireModel):
    code: str = ""
    project_context: str = ""
    file_path: str = ""
    analysis_type: str = "general"   # general | performance | security | ...

    def to_agent_request(self) -> AgentRequest:
        return AgentRequest(
            message=f"Analyse this code and suggest improvements:\n\n```csharp\n{self.code}\n```",
            project_context=self.project_context,
            instruction=Instruction.ANALYZE_CODE.value,
            file_path=self.file_path or None,
            selected_code=self.code,
            metadata={"analysis_type": self.analysis_type},
        )


class RefactorRequest(_WireModel):
    code: str = ""
    project_context: str = ""
    file_path: str = ""
    refactor_type: str = ""   # extract-method | dependency-injection | ...
    instructions: str | None = None

    def to_agent_request(self) -> AgentRequest:
        return AgentRequest(
            message=(
                f"Refactor this code ({self.refactor_type}):\n\n```csharp\n{self.code}\n```\n\n"
                f"Specific instructions: {self.instructions or ''}"
            ),
            project_context=self.project_context,
            instruction=Instruction.REFACTOR.value,
            file_path=self.file_path or None,
            selected_code=self.code,
            metadata={"refactor_type": self.refactor_type},
        )


class TestGenerationRequest(_WireModel):
    __test__ = False   # not a pytest class

    code: str = ""
    project_context: str = ""
    file_path: str = ""
    class_name: str = ""
    test_framework: str = "xUnit"   # xUnit | NUnit | MSTest
    include_mocking_framework: bool = True
    mocking_framework: str | None = "Moq"

    def to_agent_request(self) -> AgentRequest:
        metadata: dict[str, Any] = {"test_framework": self.test_framework, "class_name": self.class_name}
        if self.include_mocking_framework and self.mocking_framework:
            metadata["mocking_framework"] = self.mocking_framework
        return AgentRequest(
            message=(
                f"Generate complete unit tests for this class:\n\n```csharp\n{self.code}\n```\n\n"
                f"Test framework: {self.test_framework}"
            ),
            project_context=self.project_context,
            instruction=Instruction.GENERATE_TESTS.value,
            file_path=self.file_path or None,
            selected_code=self.code,
            metadata=metadata,
        )


# ── Outbound ─────────────────────────────────────────────────────────────

class FileModification(_WireModel):
    """A single file change proposed to the caller. Never mutated after creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    path: str
    diff_summary: str | None = None
    new_content: str = ""
    modification_type: ModificationType = "update"
    backup_content: str | None = None


class AgentResponse(_WireModel):
    """The structured answer returned for every request, successful or not."""

    response_text: str = ""
    modified_files: list[FileModification] = Field(default_factory=list)
    explanation: str | None = None
    suggestions: list[str] | None = None
    success: bool = True
    error_message: str | None = None

    @model_validator(mode="after")
    def _failure_is_consistent(self) -> AgentResponse:
        if not self.success:
            if not self.error_message:
                raise ValueError("a failed AgentResponse must carry an error_message")
            if self.modified_files:
                raise ValueError("a failed AgentResponse cannot carry modified files")
        return self

    @classmethod
    def failure(cls, error_message: str, response_text: str = "") -> AgentResponse:
        return cls(
            response_text=response_text or "❌ An error occurred while processing your request.",
            success=False,
            error_message=error_message,
        )


class CodeAnalysis(BaseModel):
    """Result of the heuristic analyzer. Request-scoped, never cached."""

    model_config = ConfigDict(frozen=True)

    detected_kind: str = "Unknown"   # Controller | Service | Component | Unknown
    issues: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()


# ── Live pipeline state ──────────────────────────────────────────────────

class PipelineState(BaseModel):
    """State passed between the nodes of the live two-stage graph."""

    instruction: Instruction = Instruction.GENERAL
    message: str = ""
    project_context: str = ""
    selected_code: str = ""
    file_path: str = ""
    target_path: str = ""
    test_framework: str = ""
    mocking_framework: str = ""

    # ── Stage outputs ─────────────────────────────────────────────────
    guidance: str = ""
    generation: str = ""
    needs_generation: bool = False   # stage 2 runs (always, except un-escalated general requests)
    modified_files: list[FileModification] = Field(default_factory=list)
