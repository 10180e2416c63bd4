from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.messages import ModelMessage, ModelMessagesTypeAdapter

from ..context import WorkflowContext
from ..events import AgentRunEvent
from ..executor import Executor, handler

logger = logging.getLogger(__name__)


class AgentRequest(BaseModel):
    """Prompt for an agent executor."""

    prompt: str
    deps: Any = None


class AgentResponse(BaseModel):
    """Reply produced by an agent executor."""

    executor_id: str
    prompt: str
    output: Any = None


class AgentExecutor(Executor):
    """Executor that hands prompts to an agent and routes its reply onward.

    ``agent`` is usually a ``pydantic_ai.Agent`` but any object with an
    ``async run(prompt, deps=None)`` method works. The agent is shared by all
    runs of the workflow; conversation history, when kept, is per run.
    """

    def __init__(
        self,
        agent: Agent | Any,
        id: Optional[str] = None,
        deps: Any = None,
        keep_history: bool = False,
    ) -> None:
        super().__init__(id or getattr(agent, "name", None))
        self._agent = agent
        self._deps = deps
        self._keep_history = keep_history
        self._history: list[ModelMessage] = []

    @property
    def agent(self) -> Agent | Any:
        return self._agent

    def shared_resources(self) -> tuple[Any, ...]:
        return (self._agent, self._deps)

    @handler
    async def on_request(self, request: AgentRequest, ctx: WorkflowContext) -> None:
        deps = request.deps if request.deps is not None else self._deps
        await self._invoke(request.prompt, deps, ctx)

    @handler
    async def on_prompt(self, prompt: str, ctx: WorkflowContext) -> None:
        await self._invoke(prompt, self._deps, ctx)

    async def _invoke(self, prompt: str, deps: Any, ctx: WorkflowContext) -> None:
        logger.debug(f"Agent executor {self.id} running prompt: {prompt}")
        kwargs: dict[str, Any] = {"deps": deps}
        if self._keep_history and self._history:
            kwargs["message_history"] = self._history

        try:
            result = await self._agent.run(prompt, **kwargs)
        except Exception as e:
            logger.error(f"Agent executor {self.id} failed for run {ctx.run_id}: {e}")
            raise

        output = result.output if hasattr(result, "output") else result
        if self._keep_history and hasattr(result, "all_messages"):
            self._history = list(result.all_messages())

        await ctx.add_event(AgentRunEvent(executor_id=self.id, output=output))
        await ctx.send_message(AgentResponse(executor_id=self.id, prompt=prompt, output=output))

    def snapshot_state(self) -> dict[str, Any]:
        if not self._history:
            return {}
        return {"history": ModelMessagesTypeAdapter.dump_python(self._history, mode="json")}

    def restore_state(self, state: dict[str, Any]) -> None:
        self._history = list(
            ModelMessagesTypeAdapter.validate_python(state.get("history", []))
        )
