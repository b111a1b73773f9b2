"""Typed view of the upstream message stream.

The Claude Agent SDK yields dataclass instances (``SystemMessage``,
``AssistantMessage``, ``StreamEvent``...) while older CLI transports emit raw
dicts with a ``type`` discriminator. ``coerce_message`` folds both shapes into
one closed union so the translator can match exhaustively. Anything it does
not recognize becomes ``UnknownMessage`` rather than an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class ContentBlock:
    """A single block inside a user or assistant message."""

    type: str
    text: str | None = None
    id: str | None = None
    name: str | None = None
    input: dict[str, Any] = field(default_factory=dict)
    tool_use_id: str | None = None
    content: str | None = None
    is_error: bool = False


@dataclass(frozen=True, slots=True)
class SystemMessage:
    subtype: str = ""
    session_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UserMessage:
    blocks: tuple[ContentBlock, ...] = ()
    session_id: str | None = None


@dataclass(frozen=True, slots=True)
class AssistantMessage:
    blocks: tuple[ContentBlock, ...] = ()
    text: str | None = None  # bare text when the message carries no blocks
    session_id: str | None = None


@dataclass(frozen=True, slots=True)
class ResultMessage:
    result: str | None = None
    subtype: str = ""
    is_error: bool = False
    session_id: str | None = None


@dataclass(frozen=True, slots=True)
class TextMessage:
    text: str = ""
    session_id: str | None = None


@dataclass(frozen=True, slots=True)
class ToolUseStart:
    id: str = ""
    tool_name: str = ""
    input: dict[str, Any] = field(default_factory=dict)
    session_id: str | None = None


@dataclass(frozen=True, slots=True)
class ToolUseOutput:
    id: str = ""
    output: str = ""
    session_id: str | None = None


@dataclass(frozen=True, slots=True)
class ToolUseError:
    id: str = ""
    error: str = "Unknown error"
    session_id: str | None = None


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """Incremental token events (``content_block_start``/``delta``/``stop``)."""

    event_type: str = ""
    block_type: str | None = None  # content_block.type or delta.type
    text: str | None = None
    session_id: str | None = None


@dataclass(frozen=True, slots=True)
class UnknownMessage:
    kind: str
    raw: Any = None
    session_id: str | None = None


UpstreamMessage = Union[
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ResultMessage,
    TextMessage,
    ToolUseStart,
    ToolUseOutput,
    ToolUseError,
    StreamEvent,
    UnknownMessage,
]

# SDK class name -> wire discriminator
_SDK_MESSAGE_KINDS = {
    "SystemMessage": "system",
    "UserMessage": "user",
    "AssistantMessage": "assistant",
    "ResultMessage": "result",
    "StreamEvent": "stream_event",
}

_SDK_BLOCK_KINDS = {
    "TextBlock": "text",
    "ThinkingBlock": "thinking",
    "ToolUseBlock": "tool_use",
    "ToolResultBlock": "tool_result",
}


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def result_text(content: Any) -> str:
    """Flatten tool-result content (string or list of text parts) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                parts.append(item["text"])
            elif isinstance(getattr(item, "text", None), str):
                parts.append(item.text)
        return "\n".join(parts)
    return str(content)


def _coerce_block(raw: Any) -> ContentBlock | None:
    if isinstance(raw, dict):
        kind = raw.get("type")
        get = raw.get
    else:
        kind = _SDK_BLOCK_KINDS.get(type(raw).__name__)

        def get(name: str, default: Any = None) -> Any:
            return getattr(raw, name, default)

    if not isinstance(kind, str):
        return None

    text = get("text")
    if kind == "thinking":
        text = get("thinking", text)
    content = get("content")
    return ContentBlock(
        type=kind,
        text=_str_or_none(text),
        id=_str_or_none(get("id")),
        name=_str_or_none(get("name")),
        input=_as_dict(get("input")),
        tool_use_id=_str_or_none(get("tool_use_id")),
        content=result_text(content) if content is not None else None,
        is_error=bool(get("is_error", False)),
    )


def _coerce_blocks(content: Any) -> tuple[ContentBlock, ...]:
    if isinstance(content, str):
        return (ContentBlock(type="text", text=content),)
    if not isinstance(content, list):
        return ()
    blocks = (_coerce_block(item) for item in content)
    return tuple(b for b in blocks if b is not None)


def _from_sdk(raw: Any, kind: str) -> UpstreamMessage:
    session_id = _str_or_none(getattr(raw, "session_id", None))
    if kind == "system":
        data = _as_dict(getattr(raw, "data", None))
        return SystemMessage(
            subtype=getattr(raw, "subtype", "") or "",
            session_id=session_id or _str_or_none(data.get("session_id")),
            data=data,
        )
    if kind == "user":
        return UserMessage(_coerce_blocks(getattr(raw, "content", None)), session_id)
    if kind == "assistant":
        return AssistantMessage(_coerce_blocks(getattr(raw, "content", None)), None, session_id)
    if kind == "result":
        return ResultMessage(
            result=_str_or_none(getattr(raw, "result", None)),
            subtype=getattr(raw, "subtype", "") or "",
            is_error=bool(getattr(raw, "is_error", False)),
            session_id=session_id,
        )
    return _stream_event(_as_dict(getattr(raw, "event", None)), session_id)


def _stream_event(event: dict[str, Any], session_id: str | None) -> StreamEvent:
    event_type = event.get("type", "")
    block_type = None
    text = None
    if event_type == "content_block_start":
        block = _as_dict(event.get("content_block"))
        block_type, text = block.get("type"), block.get("text")
    elif event_type == "content_block_delta":
        delta = _as_dict(event.get("delta"))
        block_type, text = delta.get("type"), delta.get("text")
    return StreamEvent(event_type, _str_or_none(block_type), _str_or_none(text), session_id)


def _from_dict(raw: dict[str, Any]) -> UpstreamMessage:
    kind = raw.get("type")
    session_id = _str_or_none(raw.get("session_id"))
    message = _as_dict(raw.get("message"))

    match kind:
        case "system":
            return SystemMessage(raw.get("subtype", "") or "", session_id, dict(raw))
        case "user":
            return UserMessage(_coerce_blocks(message.get("content")), session_id)
        case "assistant":
            return AssistantMessage(
                _coerce_blocks(message.get("content")),
                _str_or_none(raw.get("text")),
                session_id,
            )
        case "result":
            return ResultMessage(
                _str_or_none(raw.get("result")),
                raw.get("subtype", "") or "",
                bool(raw.get("is_error", False)),
                session_id,
            )
        case "text":
            return TextMessage(raw.get("text") or "", session_id)
        case "tool_use_start":
            return ToolUseStart(
                raw.get("id") or "",
                raw.get("tool_name") or "",
                _as_dict(raw.get("input")),
                session_id,
            )
        case "tool_use_output":
            return ToolUseOutput(raw.get("id") or "", result_text(raw.get("output")), session_id)
        case "tool_use_error":
            return ToolUseError(
                raw.get("id") or "", str(raw.get("error") or "Unknown error"), session_id
            )
        case "stream_event":
            return _stream_event(_as_dict(raw.get("event")), session_id)
        case _:
            return UnknownMessage(str(kind), raw, session_id)


_TYPED = (
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ResultMessage,
    TextMessage,
    ToolUseStart,
    ToolUseOutput,
    ToolUseError,
    StreamEvent,
    UnknownMessage,
)


def coerce_message(raw: Any) -> UpstreamMessage:
    """Convert an SDK object or raw dict into an ``UpstreamMessage``."""
    if isinstance(raw, _TYPED):
        return raw
    if isinstance(raw, dict):
        return _from_dict(raw)
    kind = _SDK_MESSAGE_KINDS.get(type(raw).__name__)
    if kind is None:
        return UnknownMessage(type(raw).__name__, raw, _str_or_none(getattr(raw, "session_id", None)))
    return _from_sdk(raw, kind)
