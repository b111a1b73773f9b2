"""JSON-RPC client for driving the bridge process over stdio."""

from __future__ import annotations

import asyncio
import itertools
import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ACPTestClient:
    """Writes newline-delimited requests and reads until the matching response.

    Notifications that arrive while waiting are kept in ``notifications``.
    """

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    notifications: list[dict[str, Any]] = field(default_factory=list, init=False)
    _ids: itertools.count = field(default_factory=itertools.count, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def send_raw(self, data: str) -> None:
        """Send a raw line (for malformed-input tests)."""
        self.writer.write(f"{data}\n".encode())
        await self.writer.drain()

    async def _send(self, message: dict[str, Any]) -> None:
        await self.send_raw(json.dumps(message, separators=(",", ":")))

    async def send_notification(self, method: str, params: dict[str, Any] | None = None) -> None:
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        await self._send(message)

    async def send_request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        request_id: int | str | None = None,
        timeout: float = 10.0,
    ) -> dict[str, Any]:
        """Send a request and return the full response dict."""
        if request_id is None:
            request_id = next(self._ids)
        message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            message["params"] = params

        async with self._lock:
            await self._send(message)
            return await asyncio.wait_for(self._read_response(request_id), timeout)

    async def _read_response(self, request_id: int | str) -> dict[str, Any]:
        while True:
            line = await self.reader.readline()
            if not line:
                raise ConnectionError("Agent closed connection")
            try:
                message = json.loads(line.decode())
            except json.JSONDecodeError:
                # stdout must only ever carry protocol frames
                raise AssertionError(f"Non-JSON output on stdout: {line!r}") from None

            if message.get("id") == request_id and "method" not in message:
                return message
            if "method" in message and "id" not in message:
                self.notifications.append(message)


async def initialize_agent(client: ACPTestClient) -> dict[str, Any]:
    """Send initialize with standard client info."""
    return await client.send_request(
        "initialize",
        {
            "protocolVersion": 1,
            "clientCapabilities": {"fs": {"readTextFile": True, "writeTextFile": True}},
            "clientInfo": {"name": "pytest", "version": "1.0.0"},
        },
    )


async def new_session(client: ACPTestClient, cwd: str) -> str:
    """Create a session and return its id."""
    response = await client.send_request("session/new", {"cwd": cwd, "mcpServers": []})
    assert "result" in response, f"session/new failed: {response}"
    return response["result"]["sessionId"]
