"""Recover fenced code blocks from free-form model output.

The scan is line based and linear in the size of the input: find an opening
fence, read its language tag, collect lines up to the first closing fence.
Only the first accepted block is used.
"""

from __future__ import annotations

from pathlib import PurePosixPath, PureWindowsPath

from devagent.core.change_summary import summarize_change
from devagent.core.logging import get_logger
from devagent.core.state import FileModification

logger = get_logger("core.extraction")

FENCE = "```"

# Language tags accepted on an opening fence ("" = untagged fence)
LANGUAGE_ALIASES: frozenset[str] = frozenset({"", "csharp", "cs", "c#"})


def _fence_tag(line: str) -> str | None:
    """Return the lower-cased tag if *line* opens a fence, else None."""
    stripped = line.strip()
    if not stripped.startswith(FENCE):
        return None
    return stripped[len(FENCE):].strip().lower()


def _is_closing_fence(line: str) -> bool:
    return line.strip() == FENCE


def find_code_block(text: str) -> str | None:
    """Return the trimmed body of the first accepted fenced block, or None.

    Blocks tagged with a language outside ``LANGUAGE_ALIASES`` are consumed
    (so their closing fence is never mistaken for an opening one) and skipped.
    An unclosed block is not a match.
    """
    if not text or FENCE not in text:
        return None

    lines = text.split("\n")
    i = 0
    total = len(lines)
    while i < total:
        tag = _fence_tag(lines[i])
        if tag is None:
            i += 1
            continue

        body: list[str] = []
        j = i + 1
        while j < total and not _is_closing_fence(lines[j]):
            body.append(lines[j])
            j += 1
        if j >= total:
            return None   # unclosed

        if tag in LANGUAGE_ALIASES:
            return "\n".join(body).strip()
        logger.debug("Skipping fenced block tagged '%s'", tag[:20])
        i = j + 1
    return None


def wrap_in_fence(content: str, language: str = "csharp") -> str:
    """Wrap *content* in a fenced block that find_code_block() accepts."""
    return f"{FENCE}{language}\n{content}\n{FENCE}"


def extract_modifications(raw_text: str, target_path: str | None) -> list[FileModification]:
    """Turn the first fenced block of *raw_text* into a FileModification.

    Returns an empty list when there is no block or no target path; callers
    treat that as a normal outcome, not an error.
    """
    if not target_path:
        return []
    content = find_code_block(raw_text)
    if content is None:
        logger.info("No fenced code block found for %s", target_path)
        return []
    return [
        FileModification(
            path=target_path,
            new_content=content,
            modification_type="update",
            diff_summary=summarize_change(target_path, content),
        )
    ]


def derive_test_path(original_path: str | None) -> str | None:
    """Derive the test file path: ``src/Api/Foo.cs`` → ``tests/Api/FooTests.cs``."""
    if not original_path:
        return None
    is_windows = "\\" in original_path and "/" not in original_path
    path = PureWindowsPath(original_path) if is_windows else PurePosixPath(original_path)
    parent_parts = ["tests" if part == "src" else part for part in path.parent.parts]
    parent = type(path)(*parent_parts) if parent_parts else type(path)()
    return str(parent / f"{path.stem}Tests{path.suffix}")
