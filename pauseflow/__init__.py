"""Pauseflow: pausable workflow graphs with human-in-the-loop requests."""

from .agent import AgentExecutor, AgentRequest, AgentResponse
from .context import WorkflowContext
from .contracts import InfoRequest, Message, PendingRequest, RequestInfoMessage, RequestResponse
from .correlator import RequestCorrelator
from .events import (
    AgentRunEvent,
    ExecutorCompletedEvent,
    ExecutorInvokedEvent,
    RequestInfoEvent,
    ResponseErrorEvent,
    RunState,
    WorkflowEvent,
    WorkflowOutputEvent,
    WorkflowStatusEvent,
)
from .exceptions import (
    DuplicateRequestId,
    InvalidGraph,
    NoMatchingEdge,
    PauseflowError,
    RunStateError,
    SerializationError,
    SuperstepLimitExceeded,
    UnhandledMessageType,
    UnknownRequestId,
)
from .executor import Executor, FunctionExecutor, RequestInfoExecutor, executor, handler
from .graph import Edge, Workflow, WorkflowBuilder
from .persistence import get_repository
from .runner import WorkflowRun, resume, start

__version__ = "0.1.0"
__all__ = [
    "AgentExecutor",
    "AgentRequest",
    "AgentResponse",
    "AgentRunEvent",
    "DuplicateRequestId",
    "Edge",
    "Executor",
    "ExecutorCompletedEvent",
    "ExecutorInvokedEvent",
    "FunctionExecutor",
    "InfoRequest",
    "InvalidGraph",
    "Message",
    "NoMatchingEdge",
    "PauseflowError",
    "PendingRequest",
    "RequestCorrelator",
    "RequestInfoEvent",
    "RequestInfoExecutor",
    "RequestInfoMessage",
    "RequestResponse",
    "ResponseErrorEvent",
    "RunState",
    "RunStateError",
    "SerializationError",
    "SuperstepLimitExceeded",
    "UnhandledMessageType",
    "UnknownRequestId",
    "Workflow",
    "WorkflowBuilder",
    "WorkflowContext",
    "WorkflowEvent",
    "WorkflowOutputEvent",
    "WorkflowRun",
    "WorkflowStatusEvent",
    "executor",
    "get_repository",
    "handler",
    "resume",
    "start",
]
