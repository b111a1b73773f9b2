"""Upstream message normalization and translation into ACP updates."""

from zedclaude.stream.buffering import TextBufferer
from zedclaude.stream.messages import UpstreamMessage, coerce_message
from zedclaude.stream.todos import render_todo_list
from zedclaude.stream.tool_kinds import map_tool_kind
from zedclaude.stream.translator import StreamTranslator
from zedclaude.stream.truncate import truncate

__all__ = [
    "StreamTranslator",
    "TextBufferer",
    "UpstreamMessage",
    "coerce_message",
    "map_tool_kind",
    "render_todo_list",
    "truncate",
]
