"""SQLite implementation of the checkpoint repository."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any

from .models import RunCheckpoint
from .repository import CheckpointRepository


class SQLiteCheckpointRepository(CheckpointRepository):
    """Persist run checkpoints using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS run_checkpoints (
                run_id TEXT PRIMARY KEY,
                workflow_name TEXT NOT NULL,
                state TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                body TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Repository API
    async def save_checkpoint(self, checkpoint: RunCheckpoint) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO run_checkpoints (run_id, workflow_name, state, created_at, updated_at, body)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(run_id) DO UPDATE SET
                workflow_name = excluded.workflow_name,
                state = excluded.state,
                updated_at = excluded.updated_at,
                body = excluded.body
            """,
            checkpoint.run_id,
            checkpoint.workflow_name,
            checkpoint.state.value,
            checkpoint.created_at.isoformat(),
            checkpoint.updated_at.isoformat(),
            checkpoint.model_dump_json(),
        )

    async def get_checkpoint(self, run_id: str) -> RunCheckpoint | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT body FROM run_checkpoints WHERE run_id = ?",
            run_id,
        )
        if not row:
            return None
        return self._from_row(row)

    async def list_checkpoints(self) -> list[RunCheckpoint]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT body FROM run_checkpoints ORDER BY created_at",
        )
        return [self._from_row(row) for row in rows]

    async def delete_checkpoint(self, run_id: str) -> None:
        await asyncio.to_thread(
            self._execute,
            "DELETE FROM run_checkpoints WHERE run_id = ?",
            run_id,
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> RunCheckpoint:
        return RunCheckpoint.model_validate_json(row["body"])
