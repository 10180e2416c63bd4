"""Executors that delegate work to an agent."""

from .executor import AgentExecutor, AgentRequest, AgentResponse

__all__ = ["AgentExecutor", "AgentRequest", "AgentResponse"]
