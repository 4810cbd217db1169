"""Lexical code heuristics used when no model credentials are configured.

This is deliberately a keyword scanner, not a parser: it only powers the demo
mode text, never anything that is applied to a file without review.

Rules
-----
1. Controller   - ``ControllerBase`` / ``: Controller``: async, logging and
                  DbContext scoping checks
2. Service      - ``class`` + ``Service``: interface check
3. Component    - Razor/HTML template markers: UI library suggestion
4. Cross-cutting - unfiltered queries (performance), string-built SQL (CRITICAL)
5. API design   - four fixed suggestions for every controller

The first matching kind wins; rules 4 and 5 always run.

Public API
----------
``analyze(source_text)`` → ``CodeAnalysis``
``format_analysis(analysis)`` → markdown summary
"""

from __future__ import annotations

import re

from devagent.core.logging import get_logger
from devagent.core.state import CodeAnalysis

logger = get_logger("analysis.heuristics")

KIND_CONTROLLER = "Controller"
KIND_SERVICE = "Service"
KIND_COMPONENT = "Component"
KIND_UNKNOWN = "Unknown"

_CONTROLLER_MARKERS = ("ControllerBase", ": Controller")
_ASYNC_RE = re.compile(r"\basync\b")
_LOGGING_MARKERS = ("ILogger", "_logger", "Log.")
_UI_MARKERS = ("@page", "@code", "@inject", "<div", ".razor")

_INTERFACE_DECL_RE = re.compile(r"\binterface\s+\w+")
# header runs from "class Name" to the opening brace; its base list is checked separately
_CLASS_HEADER_RE = re.compile(r"\bclass\s+\w+([^{;]*)")
# ": Base, IFoo" / ": IFoo" - a base list naming an I + UpperCamel type
_INTERFACE_BASE_RE = re.compile(r"[:,]\s*I[A-Z]")
_STATEMENT_BREAK_RE = re.compile(r"[;=\n]")
_STATIC_RE = re.compile(r"\bstatic\b")
_DBCONTEXT_TYPE_RE = re.compile(r"DbContext\b")
_NEW_DBCONTEXT_RE = re.compile(r"\bnew\s+\w*DbContext\s*\(")

_QUERY_RE = re.compile(r"\.ToList(?:Async)?\s*\(|\bSELECT\b")
_FILTER_RE = re.compile(r"\.Where\s*\(|\bWHERE\b")
# A string literal holding a SQL verb, concatenated with "+" on either side
_STRING_SQL_RE = re.compile(r'"[^"\n]*\b(?:SELECT|INSERT|UPDATE|DELETE)\b[^"\n]*"', re.IGNORECASE)
_CONCAT_RE = re.compile(r'"\s*\+|\+\s*"')

ISSUE_NO_ASYNC = "No asynchronous methods detected: controller actions should be async and return Task<IActionResult>."
ISSUE_NO_LOGGING = "No logging detected: inject ILogger<T> and log request handling and failures."
ISSUE_DBCONTEXT_SCOPE = (
    "DbContext is held in a static field or created with 'new': inject it through the constructor "
    "so it stays request-scoped."
)
ISSUE_NO_INTERFACE = "Service class does not implement an interface: extract one to allow dependency injection and mocking."
ISSUE_UNFILTERED_QUERY = "Performance: a query materialises results without a filtering clause (Where / WHERE)."
ISSUE_SQL_INJECTION = "CRITICAL: SQL built by string concatenation (SQL injection risk): use parameterised queries."

SUGGEST_MUDBLAZOR = "Adopt MudBlazor components (MudTable, MudForm, MudButton) for a consistent UI."
API_DESIGN_SUGGESTIONS: tuple[str, ...] = (
    "Validate input models with data annotations and check ModelState.IsValid.",
    "Return explicit HTTP status codes (Ok, CreatedAtAction, NotFound, BadRequest).",
    "Use DTOs instead of exposing entity types directly.",
    "Centralise error handling with middleware or exception filters.",
)


def _contains_any(text: str, markers: tuple[str, ...]) -> bool:
    return any(marker in text for marker in markers)


# ---------------------------------------------------------------------------
# Rules 1-3 - kind detection
# ---------------------------------------------------------------------------

def _holds_static_dbcontext(text: str) -> bool:
    """``static`` before a ``...DbContext`` type within one declaration (up to ``;``, ``=`` or newline)."""
    for segment in _STATEMENT_BREAK_RE.split(text):
        static = _STATIC_RE.search(segment)
        if static and _DBCONTEXT_TYPE_RE.search(segment, static.end()):
            return True
    return False


def _rule_controller(text: str) -> list[str] | None:
    if not _contains_any(text, _CONTROLLER_MARKERS):
        return None
    issues = []
    if not _ASYNC_RE.search(text):
        issues.append(ISSUE_NO_ASYNC)
    if not _contains_any(text, _LOGGING_MARKERS):
        issues.append(ISSUE_NO_LOGGING)
    if _holds_static_dbcontext(text) or _NEW_DBCONTEXT_RE.search(text):
        issues.append(ISSUE_DBCONTEXT_SCOPE)
    return issues


def has_interface(text: str) -> bool:
    if _INTERFACE_DECL_RE.search(text):
        return True
    return any(_INTERFACE_BASE_RE.search(header.group(1)) for header in _CLASS_HEADER_RE.finditer(text))


def _rule_service(text: str) -> list[str] | None:
    if "class" not in text or "Service" not in text:
        return None
    return [] if has_interface(text) else [ISSUE_NO_INTERFACE]


def _rule_component(text: str) -> list[str] | None:
    if not _contains_any(text, _UI_MARKERS):
        return None
    return []


# ---------------------------------------------------------------------------
# Rule 4 - cross-cutting
# ---------------------------------------------------------------------------

def _rule_cross_cutting(text: str) -> list[str]:
    issues = []
    if _QUERY_RE.search(text) and not _FILTER_RE.search(text):
        issues.append(ISSUE_UNFILTERED_QUERY)
    if _STRING_SQL_RE.search(text) and _CONCAT_RE.search(text):
        issues.append(ISSUE_SQL_INJECTION)
    return issues


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def analyze(source_text: str | None) -> CodeAnalysis:
    """Classify *source_text* and collect issues and suggestions. Never raises."""
    text = source_text or ""
    if not text.strip():
        return CodeAnalysis()

    kind = KIND_UNKNOWN
    issues: list[str] = []
    suggestions: list[str] = []

    controller_issues = _rule_controller(text)
    if controller_issues is not None:
        kind = KIND_CONTROLLER
        issues.extend(controller_issues)
    else:
        service_issues = _rule_service(text)
        if service_issues is not None:
            kind = KIND_SERVICE
            issues.extend(service_issues)
        elif _rule_component(text) is not None:
            kind = KIND_COMPONENT
            suggestions.append(SUGGEST_MUDBLAZOR)

    issues.extend(_rule_cross_cutting(text))

    if kind == KIND_CONTROLLER:
        suggestions.extend(API_DESIGN_SUGGESTIONS)

    logger.debug("heuristics: kind=%s issues=%d suggestions=%d", kind, len(issues), len(suggestions))
    return CodeAnalysis(detected_kind=kind, issues=tuple(issues), suggestions=tuple(suggestions))


def format_analysis(analysis: CodeAnalysis) -> str:
    """Markdown rendering used in demo-mode response text."""
    lines = [f"**Detected kind:** {analysis.detected_kind}", ""]
    if analysis.issues:
        lines.append("**Issues:**")
        lines.extend(f"- {issue}" for issue in analysis.issues)
    else:
        lines.append("**Issues:** none detected")
    if analysis.suggestions:
        lines.append("")
        lines.append("**Suggestions:**")
        lines.extend(f"- {suggestion}" for suggestion in analysis.suggestions)
    return "\n".join(lines)
