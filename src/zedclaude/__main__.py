"""Entry point for running the bridge as an ACP agent.

Usage:
    zed-claude-acp
    python -m zedclaude

This starts the ACP agent listening on stdin/stdout for JSON-RPC
messages from an ACP client (Zed, etc.). Nothing else may write to stdout.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

from zedclaude.config import Config
from zedclaude.logging import get_logger, setup_logging

log = get_logger()

if TYPE_CHECKING:
    from acp.connection import StreamEvent


def _log_message(event: StreamEvent) -> None:
    """Log ACP traffic at debug level."""
    from acp.connection import StreamDirection

    direction = "<<" if event.direction == StreamDirection.INCOMING else ">>"
    method = event.message.get("method", "response")
    msg_id = event.message.get("id", "-")

    if method == "response":
        result = event.message.get("result", {})
        stop_reason = result.get("stopReason", "-") if isinstance(result, dict) else "n/a"
        error = event.message.get("error")
        if error:
            log.debug("%s response (id=%s) ERROR: %s", direction, msg_id, error)
        else:
            log.debug("%s response (id=%s) stop_reason=%s", direction, msg_id, stop_reason)
    elif method == "session/update":
        update = event.message.get("params", {}).get("update", {})
        log.debug(
            "%s %s type=%s", direction, method, update.get("sessionUpdate", "unknown")
        )
    else:
        msg_str = json.dumps(event.message, default=str)
        preview = msg_str[:200] + "..." if len(msg_str) > 200 else msg_str
        log.debug("%s %s (id=%s) %s", direction, method, msg_id, preview)


async def _main(config: Config) -> None:
    """Async entry point with proper cleanup."""
    from acp.agent.connection import AgentSideConnection
    from acp.stdio import stdio_streams

    from zedclaude.console import install_stdout_guard
    from zedclaude.transport.acp.agent import create_agent

    agent = create_agent(config)

    output_stream, input_stream = await stdio_streams()
    conn = AgentSideConnection(
        agent,
        input_stream,
        output_stream,
        listening=False,
        use_unstable_protocol=True,
    )
    conn._conn.add_observer(_log_message)

    # The protocol owns stdout from here on.
    install_stdout_guard(echo=config.logging.allow_console_log)

    log.info("Ready to accept ACP requests")

    try:
        await conn.listen()
    except (BrokenPipeError, ConnectionResetError):
        log.info("Pipe closed, shutting down...")
    finally:
        log.info("Connection closed, cleaning up...")
        await agent.close()
        try:
            await asyncio.wait_for(conn.close(), timeout=2.0)
        except asyncio.TimeoutError:
            log.warning("Connection close timed out, forcing exit")
        except Exception as e:
            log.warning("Error during cleanup: %s", e)


def main() -> None:
    """Run the bridge ACP agent."""
    from zedclaude.config import load_config

    # Load config before logging so we can use config.logging settings
    config = load_config()
    setup_logging(config.logging)

    log.info(
        "Starting zed-claude-acp (mode=%s, timeout=%dms, locale=%s)",
        config.permissions.default_mode,
        config.query.timeout_ms,
        config.ui.locale,
    )

    try:
        asyncio.run(_main(config))
    except KeyboardInterrupt:
        log.info("Interrupted, exiting")


if __name__ == "__main__":
    main()
