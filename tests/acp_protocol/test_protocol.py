"""Protocol compliance tests against the running bridge process.

JSON-RPC 2.0 over newline-delimited stdio:
  - every request gets exactly one response with the same id
  - responses carry either 'result' or 'error', never both
  - stdout carries nothing but protocol frames

Error codes:
  -32601  Method not found
  -32602  Invalid params (including unknown session ids)
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from .helpers import ACPTestClient, initialize_agent, new_session

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


@pytest.mark.asyncio(loop_scope="module")
class TestInitialize:
    """Tests for the initialize handshake."""

    async def test_agent_info(self, client: ACPTestClient) -> None:
        """Initialize reports the agent name, version and protocol version."""
        response = await initialize_agent(client)
        assert response["jsonrpc"] == "2.0"
        result = response["result"]

        assert result["agentInfo"]["name"] == "zed-claude-acp"
        assert isinstance(result["agentInfo"]["version"], str)
        assert isinstance(result["protocolVersion"], int)

    async def test_capabilities(self, initialized_client: ACPTestClient) -> None:
        """The agent supports session/load and text-only prompts."""
        caps = (await initialize_agent(initialized_client))["result"]["agentCapabilities"]

        assert caps["loadSession"] is True
        assert caps["promptCapabilities"]["image"] is False
        assert caps["promptCapabilities"]["audio"] is False

    async def test_string_id_echoed(self, initialized_client: ACPTestClient) -> None:
        """String request ids are echoed exactly."""
        response = await initialized_client.send_request(
            "initialize",
            {"protocolVersion": 1, "clientCapabilities": {}},
            request_id="init-abc",
        )
        assert response["id"] == "init-abc"
        assert "result" in response and "error" not in response


@pytest.mark.asyncio(loop_scope="module")
class TestSessions:
    """Tests for session/new, session/load, session/set_mode and session/cancel."""

    async def test_new_session_modes(self, initialized_client: ACPTestClient, test_cwd: Path) -> None:
        """session/new returns an id and the permission modes."""
        response = await initialized_client.send_request(
            "session/new", {"cwd": str(test_cwd), "mcpServers": []}
        )
        result = response["result"]

        assert isinstance(result["sessionId"], str) and result["sessionId"]
        assert result["modes"]["currentModeId"] == "default"
        mode_ids = [m["id"] for m in result["modes"]["availableModes"]]
        assert mode_ids == ["default", "acceptEdits", "bypassPermissions", "plan"]

    async def test_new_sessions_are_distinct(self, initialized_client: ACPTestClient, test_cwd: Path) -> None:
        first = await new_session(initialized_client, str(test_cwd))
        second = await new_session(initialized_client, str(test_cwd))
        assert first != second

    async def test_load_session(self, initialized_client: ACPTestClient, test_cwd: Path) -> None:
        """session/load accepts an unknown id and keeps a known one."""
        params = {"cwd": str(test_cwd), "mcpServers": [], "sessionId": "restored-1"}
        first = await initialized_client.send_request("session/load", params)
        second = await initialized_client.send_request("session/load", params)

        assert "result" in first, first
        assert second["result"]["modes"]["currentModeId"] == "default"

    async def test_set_mode(self, initialized_client: ACPTestClient, test_cwd: Path) -> None:
        """session/set_mode switches to a valid mode."""
        sid = await new_session(initialized_client, str(test_cwd))
        response = await initialized_client.send_request(
            "session/set_mode", {"sessionId": sid, "modeId": "plan"}
        )
        assert "result" in response, response

    async def test_set_invalid_mode(self, initialized_client: ACPTestClient, test_cwd: Path) -> None:
        sid = await new_session(initialized_client, str(test_cwd))
        response = await initialized_client.send_request(
            "session/set_mode", {"sessionId": sid, "modeId": "yolo"}
        )
        assert response["error"]["code"] == INVALID_PARAMS

    async def test_cancel_idle_session(self, initialized_client: ACPTestClient, test_cwd: Path) -> None:
        """session/cancel with nothing running is ignored and the agent stays responsive."""
        sid = await new_session(initialized_client, str(test_cwd))
        await initialized_client.send_notification("session/cancel", {"sessionId": sid})
        await initialized_client.send_notification("session/cancel", {"sessionId": "missing"})

        response = await initialize_agent(initialized_client)
        assert "result" in response


@pytest.mark.asyncio(loop_scope="module")
class TestErrors:
    """Tests for error responses and recovery."""

    async def test_method_not_found(self, initialized_client: ACPTestClient) -> None:
        response = await initialized_client.send_request("nonexistent/method", {})

        error = response["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert isinstance(error["message"], str) and error["message"]
        assert "result" not in response

    async def test_prompt_unknown_session(self, initialized_client: ACPTestClient) -> None:
        """Prompting an unknown session is rejected without contacting upstream."""
        response = await initialized_client.send_request(
            "session/prompt",
            {"sessionId": "nonexistent-session", "prompt": [{"type": "text", "text": "hi"}]},
        )

        error = response["error"]
        assert error["code"] == INVALID_PARAMS
        assert "nonexistent-session" in error["message"]

    async def test_invalid_json_recovery(self, initialized_client: ACPTestClient) -> None:
        """The agent stays responsive after malformed input."""
        await initialized_client.send_raw("not valid json {{{")
        await initialized_client.send_raw("")
        await asyncio.sleep(0.1)

        response = await initialize_agent(initialized_client)
        assert "result" in response, f"Agent unresponsive after bad JSON: {response}"
