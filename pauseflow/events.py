"""Events surfaced to the caller while a workflow run makes progress."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from .exceptions import UnknownRequestId


class RunState(str, Enum):
    """Lifecycle states of a workflow run."""

    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    IN_PROGRESS_PENDING_REQUESTS = "in_progress_pending_requests"
    IDLE_WITH_PENDING_REQUESTS = "idle_with_pending_requests"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowEvent(BaseModel):
    """Base class for everything a run yields to its caller."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


class WorkflowOutputEvent(WorkflowEvent):
    """Terminal data yielded by an output executor."""

    data: Any = None
    source_executor_id: Optional[str] = None


class RequestInfoEvent(WorkflowEvent):
    """An executor needs external information before it can continue."""

    request_id: str
    source_executor_id: str
    data: Any = None


class WorkflowStatusEvent(WorkflowEvent):
    """The run reached a state the caller has to act on."""

    state: RunState


class ResponseErrorEvent(WorkflowEvent):
    """A response passed to ``resume`` could not be correlated."""

    request_id: str
    error: UnknownRequestId


class ExecutorInvokedEvent(WorkflowEvent):
    executor_id: str
    superstep: int


class ExecutorCompletedEvent(WorkflowEvent):
    executor_id: str
    superstep: int


class AgentRunEvent(WorkflowEvent):
    """An agent executor received a reply from its agent."""

    executor_id: str
    output: Any = None


__all__ = [
    "RunState",
    "WorkflowEvent",
    "WorkflowOutputEvent",
    "RequestInfoEvent",
    "WorkflowStatusEvent",
    "ResponseErrorEvent",
    "ExecutorInvokedEvent",
    "ExecutorCompletedEvent",
    "AgentRunEvent",
]
