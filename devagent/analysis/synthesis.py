"""Deterministic code synthesis for demo mode.

Produces the rewritten / generated code that a model would otherwise return,
from nothing but the submitted text and the heuristic analysis.
"""

from __future__ import annotations

import re

from devagent.analysis.heuristics import KIND_SERVICE, has_interface
from devagent.core.state import CodeAnalysis

_CLASS_DECL_RE = re.compile(r"(?P<decl>\bclass\s+(?P<name>\w+))(?P<bases>\s*:\s*[^{\n]*?)?(?P<tail>\s*\{)")
_CLASS_NAME_RE = re.compile(r"\bclass\s+(\w+)")
_PUBLIC_METHOD_RE = re.compile(
    r"\bpublic\s+(?:(?:static|virtual|override|async)\s+)*"
    r"(?P<ret>[\w.<>\[\],?]+(?:\s*<[^>()]*>)?)\s+(?P<name>\w+)\s*\((?P<params>[^)]*)\)"
)
_PASCAL_WORD_RE = re.compile(r"\b[A-Z][a-z0-9]+(?:[A-Z][a-z0-9]*)+\b")

DEFAULT_CLASS_NAME = "GeneratedComponent"

# attribute names per supported test framework: (class attribute, method attribute, using)
_TEST_FRAMEWORKS: dict[str, tuple[str, str, str]] = {
    "xunit": ("", "[Fact]", "using Xunit;"),
    "nunit": ("[TestFixture]", "[Test]", "using NUnit.Framework;"),
    "mstest": ("[TestClass]", "[TestMethod]", "using Microsoft.VisualStudio.TestTools.UnitTesting;"),
}


def _public_methods(code: str, class_name: str | None = None) -> list[tuple[str, str, str]]:
    """``(return_type, name, params)`` of every public method, constructors excluded."""
    methods = []
    for match in _PUBLIC_METHOD_RE.finditer(code):
        ret, name, params = match.group("ret"), match.group("name"), match.group("params")
        if ret in ("class", "interface", "record", "struct", "enum") or name == class_name:
            continue
        methods.append((ret, name, " ".join(params.split())))
    return methods


def _normalise(code: str) -> str:
    lines = [line.expandtabs(4).rstrip() for line in code.split("\n")]
    return "\n".join(lines).strip("\n")


def _extract_interface(code: str) -> str:
    match = _CLASS_DECL_RE.search(code)
    if match is None:
        return code
    name = match.group("name")
    interface = f"I{name}"
    bases = match.group("bases")
    if bases:
        new_decl = f"{match.group('decl')}{bases.rstrip()}, {interface}{match.group('tail')}"
    else:
        new_decl = f"{match.group('decl')} : {interface}{match.group('tail')}"

    line_start = code.rfind("\n", 0, match.start()) + 1
    line = code[line_start:]
    indent = line[:len(line) - len(line.lstrip(" \t"))]
    members = [f"{indent}    {ret} {method}({params});" for ret, method, params in _public_methods(code, name)]
    block = [f"{indent}public interface {interface}", f"{indent}{{", *members, f"{indent}}}", ""]

    rewritten = code[:match.start()] + new_decl + code[match.end():]
    return rewritten[:line_start] + "\n".join(block) + "\n" + rewritten[line_start:]


def rewrite_for_refactor(code: str, analysis: CodeAnalysis) -> str:
    """Normalise whitespace, extract a missing service interface, annotate issues."""
    rewritten = _normalise(code)
    if not rewritten:
        return ""
    if analysis.detected_kind == KIND_SERVICE and not has_interface(rewritten):
        rewritten = _extract_interface(rewritten)
    if analysis.issues:
        header = ["// Refactoring notes:"] + [f"// - {issue}" for issue in analysis.issues]
        rewritten = "\n".join(header) + "\n" + rewritten
    return rewritten


def build_test_class(code: str, framework: str = "xUnit", mocking_framework: str = "") -> str:
    """A test class with one placeholder test per public method of the first class."""
    match = _CLASS_NAME_RE.search(code or "")
    class_name = match.group(1) if match else "Subject"
    class_attr, method_attr, using = _TEST_FRAMEWORKS.get(framework.lower(), _TEST_FRAMEWORKS["xunit"])

    usings = [using]
    if mocking_framework:
        usings.append(f"using {mocking_framework};")

    methods = _public_methods(code or "", class_name) or [("void", "Constructor", "")]
    body: list[str] = []
    for _, method, _ in methods:
        body.extend([
            f"    {method_attr}",
            f"    public void {method}_ShouldBehaveAsExpected()",
            "    {",
            "        // Arrange",
            f"        var sut = new {class_name}();",
            "",
            "        // Act",
            "",
            "        // Assert",
            "    }",
            "",
        ])
    if body:
        body.pop()

    lines = [*usings, ""]
    if class_attr:
        lines.append(class_attr)
    lines.extend([f"public class {class_name}Tests", "{", *body, "}"])
    return "\n".join(lines)


def guess_type_name(message: str) -> str:
    """First PascalCase word of *message* (``OrderService``), else a default."""
    match = _PASCAL_WORD_RE.search(message or "")
    return match.group(0) if match else DEFAULT_CLASS_NAME


def code_skeleton(message: str) -> str:
    """A starting point for the requested type, shaped by keywords in *message*."""
    name = guess_type_name(message)
    lowered = (message or "").lower()

    if "controller" in lowered or name.endswith("Controller"):
        return "\n".join([
            "using Microsoft.AspNetCore.Mvc;",
            "using Microsoft.Extensions.Logging;",
            "",
            "[ApiController]",
            '[Route("api/[controller]")]',
            f"public class {name} : ControllerBase",
            "{",
            f"    private readonly ILogger<{name}> _logger;",
            "",
            f"    public {name}(ILogger<{name}> logger)",
            "    {",
            "        _logger = logger;",
            "    }",
            "",
            "    [HttpGet]",
            "    public async Task<IActionResult> GetAsync()",
            "    {",
            '        _logger.LogInformation("GET handled");',
            "        return Ok(await Task.FromResult(Array.Empty<object>()));",
            "    }",
            "}",
        ])

    if "service" in lowered or name.endswith("Service"):
        return "\n".join([
            f"public interface I{name}",
            "{",
            "    Task ExecuteAsync(CancellationToken cancellationToken = default);",
            "}",
            "",
            f"public class {name} : I{name}",
            "{",
            "    public Task ExecuteAsync(CancellationToken cancellationToken = default)",
            "    {",
            "        return Task.CompletedTask;",
            "    }",
            "}",
        ])

    return "\n".join([
        f"public class {name}",
        "{",
        f"    public {name}()",
        "    {",
        "    }",
        "}",
    ])
