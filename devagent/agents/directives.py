"""User-message builders for the two pipeline stages, one pair per path."""

from __future__ import annotations

from devagent.core.state import Instruction, PipelineState


def _fenced(code: str) -> str:
    return f"```csharp\n{code}\n```"


def guidance_request(state: PipelineState) -> str:
    """Stage 1: project context + the code or message + the path directive."""
    context = state.project_context or "(no project context provided)"
    code = state.selected_code or state.message

    if state.instruction == Instruction.ANALYZE_CODE:
        directive = f"Analyse this code and suggest improvements:\n\n{_fenced(code)}"
    elif state.instruction == Instruction.REFACTOR:
        directive = (
            f"Analyse this code for refactoring:\n\n{_fenced(state.selected_code)}\n\n"
            f"Objective: {state.message}"
        )
    elif state.instruction == Instruction.GENERATE_TESTS:
        directive = (
            f"Plan the unit tests ({state.test_framework}) needed for this code: list the "
            f"behaviours, edge cases and dependencies to mock.\n\n{_fenced(code)}"
        )
    elif state.instruction == Instruction.GENERATE_CODE:
        directive = f"Give implementation guidelines for this request:\n\n{state.message}"
    else:
        directive = state.message

    return f"PROJECT CONTEXT:\n{context}\n\nUSER REQUEST:\n{directive}"


def generation_request(state: PipelineState) -> str:
    """Stage 2: the original request + the stage-1 guidance."""
    if state.instruction == Instruction.ANALYZE_CODE:
        return (
            f"Apply the following review to the code and return the improved version.\n\n"
            f"REVIEW:\n{state.guidance}\n\nCODE:\n{_fenced(state.selected_code or state.message)}\n\n"
            "Answer with:\n1. A short summary of the changes\n2. The complete improved code"
        )
    if state.instruction == Instruction.REFACTOR:
        return (
            f"Refactor this C# code according to the following instructions.\n\n"
            f"REFACTORING INSTRUCTIONS:\n{state.guidance}\n\nCODE TO REFACTOR:\n{_fenced(state.selected_code)}\n\n"
            "Provide:\n1. An explanation of the improvements\n2. The complete refactored code\n"
            "3. A justification of the changes"
        )
    if state.instruction == Instruction.GENERATE_TESTS:
        return (
            f"Generate complete unit tests for this C# code.\n\n{_fenced(state.selected_code or state.message)}\n\n"
            f"TEST PLAN:\n{state.guidance}\n\n"
            f"REQUIREMENTS:\n- Test framework: {state.test_framework}\n"
            f"- Mocking framework: {state.mocking_framework} (if needed)\n"
            "- Cover nominal and error cases\n- Use descriptive test names\n"
            "- Include the required using directives"
        )
    return (
        f"{state.guidance}\n\nSPECIFIC REQUEST:\n{state.message}\n\n"
        "Generate complete, working C# code. Format your answer as:\n"
        "1. A brief explanation of what the code does\n2. The complete code\n"
        "3. Integration instructions if needed"
    )
