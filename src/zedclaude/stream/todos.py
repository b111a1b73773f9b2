"""Render a task-list tool's input as a bordered progress report."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from zedclaude.i18n import Localizer, Message

TASK_LIST_TOOLS = frozenset({"TodoWrite"})

STATUS_GLYPHS = {
    "completed": "✅",
    "in_progress": "🔄",
    "pending": "⏳",
}
DEFAULT_GLYPH = "📋"

BAR_WIDTH = 20


def is_task_list_call(tool_name: str, tool_input: Mapping[str, Any]) -> bool:
    return tool_name in TASK_LIST_TOOLS and isinstance(tool_input.get("todos"), list)


def progress_bar(done: int, total: int, width: int = BAR_WIDTH) -> str:
    ratio = done / total if total else 0.0
    filled = round(ratio * width)
    return f"[{'█' * filled}{'░' * (width - filled)}] {round(ratio * 100)}%"


def render_todo_list(todos: Iterable[Any], localizer: Localizer) -> str:
    """Format ``todos`` (dicts with ``content`` and ``status``) for display."""
    items = [
        (str(todo.get("content", "")), str(todo.get("status", "")))
        for todo in todos
        if isinstance(todo, Mapping)
    ]
    counts = Counter(status for _, status in items)

    lines = [
        f"┌─ {localizer(Message.TODO_TITLE)}",
        "│ "
        + localizer(
            Message.TODO_SUMMARY,
            completed=counts["completed"],
            in_progress=counts["in_progress"],
            pending=counts["pending"],
        ),
        f"│ {progress_bar(counts['completed'], len(items))}",
        "├" + "─" * (BAR_WIDTH + 8),
    ]
    if not items:
        lines.append(f"│ {localizer(Message.TODO_EMPTY)}")
    for index, (content, status) in enumerate(items, start=1):
        lines.append(f"│ {index:>2}. {STATUS_GLYPHS.get(status, DEFAULT_GLYPH)} {content}")
    lines.append("└" + "─" * (BAR_WIDTH + 8))
    return "\n" + "\n".join(lines) + "\n"
