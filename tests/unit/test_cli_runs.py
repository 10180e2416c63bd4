import asyncio
import uuid

from typer.testing import CliRunner

import pauseflow.persistence as persistence
from pauseflow.cli import app
from pauseflow.events import RunState
from pauseflow.persistence import (
    InMemoryCheckpointRepository,
    PendingRequestRecord,
    RunCheckpoint,
    SerializedPayload,
)


def _setup_repo(monkeypatch) -> InMemoryCheckpointRepository:
    repo = InMemoryCheckpointRepository()
    monkeypatch.setattr(persistence, "_repository_instance", repo)
    return repo


def test_runs_list_shows_every_run(monkeypatch):
    repo = _setup_repo(monkeypatch)
    done, waiting = str(uuid.uuid4()), str(uuid.uuid4())
    asyncio.run(
        repo.save_checkpoint(
            RunCheckpoint(run_id=done, workflow_name="review", state=RunState.COMPLETED)
        )
    )
    asyncio.run(
        repo.save_checkpoint(
            RunCheckpoint(
                run_id=waiting,
                workflow_name="review",
                state=RunState.IDLE_WITH_PENDING_REQUESTS,
            )
        )
    )

    result = CliRunner().invoke(app, ["runs", "list"])
    assert result.exit_code == 0, result.stdout
    assert f"{done}\treview\tcompleted" in result.stdout
    assert f"{waiting}\treview\tidle_with_pending_requests" in result.stdout


def test_runs_list_empty(monkeypatch):
    _setup_repo(monkeypatch)
    result = CliRunner().invoke(app, ["runs", "list"])
    assert result.exit_code == 0
    assert "No runs found" in result.stdout


def test_runs_show_details_and_missing(monkeypatch):
    repo = _setup_repo(monkeypatch)
    run_id = str(uuid.uuid4())
    asyncio.run(
        repo.save_checkpoint(
            RunCheckpoint(
                run_id=run_id,
                workflow_name="review",
                state=RunState.IDLE_WITH_PENDING_REQUESTS,
                superstep=4,
                pending_requests=[
                    PendingRequestRecord(
                        request_id="req-7",
                        source_executor_id="reviewer",
                        issued_at_superstep=4,
                        request=SerializedPayload(
                            data={"data": "draft"},
                            type="InfoRequest",
                            module="pauseflow.contracts",
                        ),
                    )
                ],
            )
        )
    )

    runner = CliRunner()
    result = runner.invoke(app, ["runs", "show", run_id])
    assert result.exit_code == 0, result.stdout
    assert f"Run {run_id} (review): idle_with_pending_requests" in result.stdout
    assert "Superstep: 4" in result.stdout
    assert "req-7 from reviewer" in result.stdout

    missing = runner.invoke(app, ["runs", "show", "missing-id"])
    assert missing.exit_code == 1
    assert "Run not found" in missing.stdout


def test_run_rejects_bad_target(monkeypatch):
    _setup_repo(monkeypatch)
    result = CliRunner().invoke(app, ["run", "pauseflow.graph"])
    assert result.exit_code == 1
    assert "Expected MODULE:ATTRIBUTE" in result.stdout
