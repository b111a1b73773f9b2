"""Translate one upstream message stream into ACP session updates.

Text goes through the TextBufferer; tool lifecycle events become
``tool_call`` / ``tool_call_update`` notifications. Pending text is flushed
before every non-text update so the editor sees events in arrival order.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from acp import helpers

from zedclaude.i18n import Localizer, Message
from zedclaude.logging import get_logger
from zedclaude.session.cancellation import CancellationToken
from zedclaude.session.state import Session
from zedclaude.stream.buffering import TextBufferer
from zedclaude.stream.messages import (
    AssistantMessage,
    ContentBlock,
    ResultMessage,
    StreamEvent,
    SystemMessage,
    TextMessage,
    ToolUseError,
    ToolUseOutput,
    ToolUseStart,
    UnknownMessage,
    UpstreamMessage,
    UserMessage,
    coerce_message,
)
from zedclaude.stream.todos import is_task_list_call, render_todo_list
from zedclaude.stream.tool_kinds import map_tool_kind
from zedclaude.stream.truncate import truncate

log = get_logger("stream")

# async (session_id, update) -> None
UpdateSender = Callable[[str, Any], Awaitable[None]]


class StreamTranslator:
    """Maps upstream messages for a session onto ACP updates."""

    def __init__(
        self,
        send_update: UpdateSender,
        bufferer: TextBufferer,
        localizer: Localizer,
        max_output_bytes: int = 16384,
    ) -> None:
        self._send_update = send_update
        self._bufferer = bufferer
        self._localizer = localizer
        self.max_output_bytes = max_output_bytes

    async def drain(
        self,
        session: Session,
        stream: AsyncIterator[Any],
        token: CancellationToken,
    ) -> int:
        """Consume ``stream`` in order until it ends or ``token`` fires.

        Returns the number of messages processed.

        Raises:
            QueryCancelled: the token fired; nothing further was emitted.
        """
        processed = 0
        async for raw in stream:
            token.raise_if_cancelled()

            message = coerce_message(raw)
            processed += 1
            session.message_count += 1

            upstream_id = message.session_id
            if upstream_id and upstream_id != session.upstream_session_id:
                log.debug(
                    "Upstream session id for %s: %s -> %s",
                    session.session_id,
                    session.upstream_session_id,
                    upstream_id,
                )
                session.upstream_session_id = upstream_id

            await self.handle(session.session_id, message)

        log.debug("Stream for %s finished after %d messages", session.session_id, processed)
        return processed

    async def handle(self, session_id: str, message: UpstreamMessage) -> None:
        """Emit the updates for a single message."""
        match message:
            case SystemMessage():
                log.debug("System message (%s)", message.subtype or "-")
            case UserMessage():
                await self._handle_tool_results(session_id, message.blocks)
            case AssistantMessage():
                await self._handle_assistant(session_id, message)
            case ResultMessage():
                log.debug("Query result (%s): %.200s", message.subtype, message.result or "")
            case TextMessage():
                await self._send_text(session_id, message.text)
            case ToolUseStart():
                await self._start_tool(session_id, message.id, message.tool_name, message.input)
            case ToolUseOutput():
                await self._complete_tool(session_id, message.id, message.output)
            case ToolUseError():
                await self._fail_tool(session_id, message.id, message.error)
            case StreamEvent():
                await self._handle_stream_event(session_id, message)
            case UnknownMessage():
                log.warning("Unhandled message type %r", message.kind)

    # --- text ---

    async def _send_text(self, session_id: str, text: str | None) -> None:
        if text:
            await self._bufferer.append(session_id, text)

    async def _emit(self, session_id: str, update: Any) -> None:
        await self._bufferer.flush(session_id)
        await self._send_update(session_id, update)

    async def _handle_assistant(self, session_id: str, message: AssistantMessage) -> None:
        if not message.blocks:
            await self._send_text(session_id, message.text)
            return
        for block in message.blocks:
            if block.type == "text":
                await self._send_text(session_id, block.text)
            elif block.type == "tool_use" and block.id and block.name:
                await self._start_tool(session_id, block.id, block.name, block.input)
            elif block.type == "thinking":
                log.debug("Thinking block (%d chars)", len(block.text or ""))

    async def _handle_stream_event(self, session_id: str, event: StreamEvent) -> None:
        if event.event_type == "content_block_start" and event.block_type == "text":
            await self._send_text(session_id, event.text)
        elif event.event_type == "content_block_delta" and event.block_type == "text_delta":
            await self._send_text(session_id, event.text)
        elif event.event_type == "content_block_stop":
            log.debug("Content block finished")

    # --- tool calls ---

    async def _start_tool(
        self, session_id: str, tool_call_id: str, tool_name: str, tool_input: dict[str, Any]
    ) -> None:
        log.debug("Tool call %s started: %s", tool_call_id, tool_name)
        await self._emit(
            session_id,
            helpers.start_tool_call(
                tool_call_id,
                tool_name,
                kind=map_tool_kind(tool_name),
                status="pending",
                raw_input=tool_input,
            ),
        )
        if is_task_list_call(tool_name, tool_input):
            await self._send_text(
                session_id, render_todo_list(tool_input["todos"], self._localizer)
            )

    def _cap(self, text: str) -> str:
        marker = self._localizer(Message.TRUNCATED, removed="{removed}")
        return truncate(text, self.max_output_bytes, marker)

    async def _complete_tool(self, session_id: str, tool_call_id: str, output: str) -> None:
        log.debug("Tool call %s completed", tool_call_id)
        text = self._cap(output)
        await self._emit(
            session_id,
            helpers.update_tool_call(
                tool_call_id,
                status="completed",
                content=[helpers.tool_content(helpers.text_block(text))],
                raw_output={"output": text} if text else None,
            ),
        )

    async def _fail_tool(self, session_id: str, tool_call_id: str, error: str) -> None:
        log.debug("Tool call %s failed: %.200s", tool_call_id, error)
        text = self._cap(error)
        await self._emit(
            session_id,
            helpers.update_tool_call(
                tool_call_id,
                status="failed",
                content=[
                    helpers.tool_content(
                        helpers.text_block(self._localizer(Message.TOOL_ERROR, error=text))
                    )
                ],
                raw_output={"error": text},
            ),
        )

    async def _handle_tool_results(
        self, session_id: str, blocks: tuple[ContentBlock, ...]
    ) -> None:
        for block in blocks:
            if block.type != "tool_result" or not block.tool_use_id:
                continue
            if block.is_error:
                await self._fail_tool(session_id, block.tool_use_id, block.content or "")
            else:
                await self._complete_tool(session_id, block.tool_use_id, block.content or "")
