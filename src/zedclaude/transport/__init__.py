"""Transport layer: the ACP agent over stdio."""

from zedclaude.transport.acp import ZedClaudeAgent, create_agent

__all__ = [
    "ZedClaudeAgent",
    "create_agent",
]
