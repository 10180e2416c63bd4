"""Error taxonomy for pauseflow workflows."""

from __future__ import annotations

from typing import Any


class PauseflowError(Exception):
    """Base class for all pauseflow errors."""


class InvalidGraph(PauseflowError):
    """Raised by ``WorkflowBuilder.build`` for structural problems."""


class UnhandledMessageType(PauseflowError):
    """An executor received a message it has no handler for."""

    def __init__(self, executor_id: str, message: Any) -> None:
        self.executor_id = executor_id
        self.message_type = type(message)
        super().__init__(
            f"Executor '{executor_id}' cannot handle message of type "
            f"{self.message_type.__name__}"
        )


class NoMatchingEdge(PauseflowError):
    """A sent message has no outgoing edge to travel on."""

    def __init__(self, executor_id: str, message: Any, target_id: str | None = None) -> None:
        self.executor_id = executor_id
        self.message_type = type(message)
        self.target_id = target_id
        detail = f" towards '{target_id}'" if target_id else ""
        super().__init__(
            f"Executor '{executor_id}' has no outgoing edge{detail} accepting "
            f"{self.message_type.__name__}"
        )


class UnknownRequestId(PauseflowError):
    """A response referenced a request that is not pending."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"No pending request with id '{request_id}'")


class DuplicateRequestId(PauseflowError):
    """A request id was issued twice within one run."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"Request id '{request_id}' was already issued in this run")


class RunStateError(PauseflowError):
    """The run is not in a state that allows the requested call."""


class SuperstepLimitExceeded(PauseflowError):
    """The configured superstep budget ran out before quiescence."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Run exceeded the configured limit of {limit} supersteps")


class SerializationError(PauseflowError, ValueError):
    """A payload could not be serialized or reconstructed for a checkpoint."""
