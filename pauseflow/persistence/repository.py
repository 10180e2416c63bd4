"""Repository abstraction for run checkpoint persistence."""

from __future__ import annotations

from typing import Protocol

from .models import RunCheckpoint


class CheckpointRepository(Protocol):
    """Protocol for checkpoint persistence backends."""

    async def save_checkpoint(self, checkpoint: RunCheckpoint) -> None:
        """Insert or replace the checkpoint of ``checkpoint.run_id``."""

    async def get_checkpoint(self, run_id: str) -> RunCheckpoint | None:
        """Retrieve the latest checkpoint of a run."""

    async def list_checkpoints(self) -> list[RunCheckpoint]:
        """Return the latest checkpoint of every run."""

    async def delete_checkpoint(self, run_id: str) -> None:
        """Forget a run."""
