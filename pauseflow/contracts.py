"""Core message contracts for pauseflow workflows."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field


class Message(BaseModel):
    """Envelope carried along an edge from one executor to another.

    ``source_id`` is ``None`` for input supplied by the caller, i.e. the
    initial input and the responses handed to ``resume``.
    """

    message_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    data: Any = None
    source_id: Optional[str] = None
    target_id: str

    @property
    def data_type(self) -> str:
        """Name of the payload's declared type."""
        return type(self.data).__name__


class RequestInfoMessage(BaseModel):
    """Base class for requests that pause a run until answered externally.

    Subclass it with the typed fields of the request. ``request_id`` and
    ``source_executor_id`` are stamped by the run when the request is emitted.
    """

    request_id: Optional[str] = None
    source_executor_id: Optional[str] = None


class InfoRequest(RequestInfoMessage):
    """Generic request wrapping an arbitrary payload for external review."""

    data: Any = None


TRequest = TypeVar("TRequest", bound=RequestInfoMessage)
TResponse = TypeVar("TResponse")


@dataclass
class RequestResponse(Generic[TRequest, TResponse]):
    """Pairs an external response with the request it answers."""

    original_request: TRequest
    data: TResponse
    request_id: str


class PendingRequest(BaseModel):
    """Outstanding request owned by the correlator."""

    request_id: str
    source_executor_id: str
    request: RequestInfoMessage
    issued_at_superstep: int = 0
