"""Checkpoint persistence for pauseflow runs."""

from __future__ import annotations

import os
from typing import Optional

from ..config import PauseflowConfig, load_config
from .inmemory import InMemoryCheckpointRepository
from .models import PendingRequestRecord, RunCheckpoint, SerializedPayload
from .repository import CheckpointRepository
from .sqlite import SQLiteCheckpointRepository

_repository_instance: CheckpointRepository | None = None


def get_repository(
    database_url: Optional[str] = None, config: Optional[PauseflowConfig] = None
) -> CheckpointRepository:
    """Factory function to obtain a checkpoint repository.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``PAUSEFLOW_DATABASE_URL``, or from
    loaded configuration. When no database is configured, a process-wide
    in-memory repository is returned.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("PAUSEFLOW_DATABASE_URL")
        or getattr(config, "database_url", None)
    )

    if not database_url:
        _repository_instance = InMemoryCheckpointRepository()
        return _repository_instance

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _repository_instance = SQLiteCheckpointRepository(path)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _repository_instance


__all__ = [
    "CheckpointRepository",
    "InMemoryCheckpointRepository",
    "PendingRequestRecord",
    "RunCheckpoint",
    "SQLiteCheckpointRepository",
    "SerializedPayload",
    "get_repository",
]
