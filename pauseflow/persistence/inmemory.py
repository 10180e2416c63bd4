"""In-memory implementation of the checkpoint repository."""

from __future__ import annotations

from typing import Dict

from .models import RunCheckpoint
from .repository import CheckpointRepository


class InMemoryCheckpointRepository(CheckpointRepository):
    """Store checkpoints in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._checkpoints: Dict[str, RunCheckpoint] = {}

    async def save_checkpoint(self, checkpoint: RunCheckpoint) -> None:
        self._checkpoints[checkpoint.run_id] = checkpoint.model_copy(deep=True)

    async def get_checkpoint(self, run_id: str) -> RunCheckpoint | None:
        checkpoint = self._checkpoints.get(run_id)
        return checkpoint.model_copy(deep=True) if checkpoint else None

    async def list_checkpoints(self) -> list[RunCheckpoint]:
        return [c.model_copy(deep=True) for c in self._checkpoints.values()]

    async def delete_checkpoint(self, run_id: str) -> None:
        self._checkpoints.pop(run_id, None)
