"""ACP (Agent Client Protocol) transport."""

from zedclaude.transport.acp.agent import ZedClaudeAgent, create_agent

__all__ = ["ZedClaudeAgent", "create_agent"]
