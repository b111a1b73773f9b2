"""Map upstream tool names onto ACP tool kinds."""

from __future__ import annotations

from typing import Literal

ToolKind = Literal[
    "read", "edit", "delete", "move", "search", "execute", "think", "fetch", "other"
]

# Exact names take precedence over the substring rules.
EXACT_TOOL_KINDS: dict[str, ToolKind] = {
    "TodoWrite": "think",
}

# Checked in order; the first rule with a matching substring wins.
TOOL_KIND_RULES: tuple[tuple[ToolKind, tuple[str, ...]], ...] = (
    ("read", ("read", "view", "get")),
    ("edit", ("write", "create", "update", "edit")),
    ("delete", ("delete", "remove")),
    ("move", ("move", "rename")),
    ("search", ("search", "find", "grep")),
    ("execute", ("run", "execute", "bash")),
    ("think", ("think", "plan", "todo")),
    ("fetch", ("fetch", "download", "web")),
)


def map_tool_kind(tool_name: str) -> ToolKind:
    """Classify ``tool_name``: exact names first, then the ordered substring rules."""
    exact = EXACT_TOOL_KINDS.get(tool_name)
    if exact is not None:
        return exact
    lowered = tool_name.lower()
    for kind, needles in TOOL_KIND_RULES:
        if any(needle in lowered for needle in needles):
            return kind
    return "other"
