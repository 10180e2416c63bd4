"""Data models for persisted run checkpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..events import RunState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SerializedPayload(BaseModel):
    data: Any = Field(default=None, description="Serialized values")
    type: Optional[str] = Field(default=None, description="Qualified class name")
    module: Optional[str] = Field(default=None, description="Module path")


class PendingRequestRecord(BaseModel):
    """Outstanding request as stored in a checkpoint."""

    request_id: str
    source_executor_id: str
    issued_at_superstep: int = 0
    request: SerializedPayload


class RunCheckpoint(BaseModel):
    """Everything needed to rebuild a paused run in another process."""

    run_id: str
    workflow_name: str
    state: RunState = RunState.IDLE
    superstep: int = 0
    pending_requests: list[PendingRequestRecord] = Field(default_factory=list)
    issued_request_ids: list[str] = Field(default_factory=list)
    executor_states: dict[str, dict[str, Any]] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
