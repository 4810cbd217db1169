"""One-line change summaries for proposed file modifications.

The summary is advisory text shown in the IDE; it is never used to apply a
change, so every failure degrades to a generic message instead of raising.
"""

from __future__ import annotations

from pathlib import Path

from devagent.core.config import get_settings
from devagent.core.logging import get_logger

logger = get_logger("core.change_summary")

NEW_FILE_MESSAGE = "New file created"
DEGRADED_MESSAGE = "Modification detected"


class PathEscapeError(Exception):
    """Raised when a path would escape the configured workspace root."""


def count_lines(text: str) -> int:
    """Number of segments after splitting on line breaks (an empty text is one line)."""
    return len(text.split("\n"))


def _resolve_confined(path: str, root: str) -> Path:
    target = Path(path).expanduser()
    if not root:
        return target
    root_path = Path(root).resolve()
    resolved = (root_path / target).resolve()
    try:
        resolved.relative_to(root_path)
    except ValueError as exc:
        raise PathEscapeError(f"Path escapes workspace root: {path!r} resolved to {resolved}") from exc
    return resolved


def summarize_change(path: str, new_content: str, root: str | None = None) -> str:
    """Compare the file at *path* (if any) with *new_content*.

    *root* defaults to ``settings.workspace_root``; when set, paths resolving
    outside it are treated like unreadable files.
    """
    try:
        if root is None:
            root = get_settings().workspace_root
        target = _resolve_confined(path, root)
        if not target.exists():
            return NEW_FILE_MESSAGE
        original = target.read_text(encoding="utf-8", errors="replace")
        return f"File modified: {count_lines(original)} lines → {count_lines(new_content)} lines"
    except Exception as exc:
        logger.debug("Change summary degraded for %s: %s", path, exc)
        return DEGRADED_MESSAGE
