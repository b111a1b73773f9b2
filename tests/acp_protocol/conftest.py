"""Pytest fixtures for ACP protocol tests.

These spawn the real bridge process and talk JSON-RPC over its stdio. No
prompt reaches the Claude CLI: only the handshake, session bookkeeping and
error paths are exercised.
"""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from .helpers import ACPTestClient, initialize_agent


@pytest.fixture(scope="module")
def test_cwd(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Working directory handed to session/new."""
    return tmp_path_factory.mktemp("workspace")


@pytest_asyncio.fixture(scope="module", loop_scope="module")
async def agent_process(
    tmp_path_factory: pytest.TempPathFactory,
) -> AsyncIterator[asyncio.subprocess.Process]:
    """Start the agent subprocess for a test module.

    Spawns python -m zedclaude and yields the process. Terminates on cleanup.
    """
    home = tmp_path_factory.mktemp("config-home")
    env = {k: v for k, v in os.environ.items() if not k.startswith("ACP_")}
    src = Path(__file__).resolve().parents[2] / "src"
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(src), env.get("PYTHONPATH")]))
    env.update(
        XDG_CONFIG_HOME=str(home),
        ACP_LOCALE="en",
        ACP_LOG_FILE=str(home / "agent.log"),
    )

    proc = await asyncio.create_subprocess_exec(
        sys.executable,
        "-m",
        "zedclaude",
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
        env=env,
    )

    yield proc

    if proc.returncode is None:
        proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=5.0)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()


@pytest_asyncio.fixture(scope="module", loop_scope="module")
async def client(agent_process: asyncio.subprocess.Process) -> AsyncIterator[ACPTestClient]:
    """Test client connected to the agent, shared by the module."""
    if agent_process.stdin is None or agent_process.stdout is None:
        pytest.fail("Agent process missing stdin/stdout")

    test_client = ACPTestClient(
        reader=agent_process.stdout,
        writer=agent_process.stdin,
    )
    yield test_client


@pytest_asyncio.fixture(scope="module", loop_scope="module")
async def initialized_client(client: ACPTestClient) -> ACPTestClient:
    """Client that has completed initialize handshake."""
    response = await initialize_agent(client)
    assert "result" in response, f"Initialize failed: {response}"
    return client
