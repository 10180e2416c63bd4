"""Command line interface for running and resuming pauseflow workflows."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, List

import typer

from pauseflow.cli_utils.workflow import (
    coerce_input,
    describe_request,
    load_workflow,
    parse_responses,
    parse_value,
)
from pauseflow.config import load_config
from pauseflow.events import (
    RequestInfoEvent,
    ResponseErrorEvent,
    WorkflowEvent,
    WorkflowOutputEvent,
    WorkflowStatusEvent,
)
from pauseflow.persistence import get_repository
from pauseflow.runner import WorkflowRun

app = typer.Typer(help="CLI for pauseflow workflows")

runs_app = typer.Typer(help="Commands for inspecting persisted runs")
app.add_typer(runs_app, name="runs")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for pauseflow"),
) -> None:
    """Pauseflow CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _echo_event(event: WorkflowEvent) -> None:
    if isinstance(event, WorkflowOutputEvent):
        typer.echo(f"Output: {event.data}")
    elif isinstance(event, RequestInfoEvent):
        typer.echo(f"Request {event.request_id}: {describe_request(event.data)}")
    elif isinstance(event, ResponseErrorEvent):
        typer.secho(f"Rejected response: {event.error}", fg=typer.colors.RED)
    elif isinstance(event, WorkflowStatusEvent):
        typer.echo(f"Status: {event.state.value}")


async def _drive(
    run: WorkflowRun, events: AsyncIterator[WorkflowEvent], interactive: bool
) -> None:
    while True:
        async for event in events:
            _echo_event(event)

        pending = run.pending_requests
        if not pending or not interactive:
            return

        responses: dict[str, Any] = {}
        for request in pending:
            raw = typer.prompt(describe_request(request.request))
            responses[request.request_id] = parse_value(raw)
        events = run.resume(responses)


@app.command("run")
def run_workflow(
    target: str,
    input_: str = typer.Option("null", "--input", help="JSON input for the start executor"),
    interactive: bool = typer.Option(
        True, help="Prompt for responses instead of stopping at the first pause"
    ),
) -> None:
    """
    Start a workflow defined as MODULE:ATTRIBUTE.

    Events are printed as they are produced. In interactive mode every
    pending request is asked on the console until the run completes;
    otherwise the run stops at the first pause and can be continued with
    'pauseflow resume' when a persistent database is configured.

    Example:
        pauseflow run guides/guessing_game.py:build_workflow --input '{"low": 1, "high": 100}'
        pauseflow run my_flows:review_flow --no-interactive
    """
    try:
        workflow = load_workflow(target)
    except (ImportError, ValueError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    config = load_config()
    run = WorkflowRun(workflow, config=config.runner, repository=get_repository())
    typer.echo(f"Run ID: {run.run_id}")
    message = coerce_input(workflow, parse_value(input_))
    asyncio.run(_drive(run, run.start(message), interactive))
    typer.echo(f"Final state: {run.state.value}")


@app.command("resume")
def resume_workflow(
    target: str,
    run_id: str,
    response: List[str] = typer.Option(
        [], "--response", "-r", help="Answer as REQUEST_ID=VALUE, repeatable"
    ),
    interactive: bool = typer.Option(False, help="Prompt for the remaining requests"),
) -> None:
    """
    Continue a persisted run with answers to its pending requests.

    Example:
        pauseflow resume guides/guessing_game.py:build_workflow 3f2a... -r 9c1e...=higher
    """
    try:
        workflow = load_workflow(target)
        responses = parse_responses(response)
    except (ImportError, ValueError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    config = load_config()
    repo = get_repository()
    checkpoint = asyncio.run(repo.get_checkpoint(run_id))
    if checkpoint is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)

    run = WorkflowRun.from_checkpoint(
        workflow, checkpoint, config=config.runner, repository=repo
    )
    asyncio.run(_drive(run, run.resume(responses), interactive))
    typer.echo(f"Final state: {run.state.value}")


@runs_app.command("list")
def runs_list() -> None:
    """
    List persisted runs with their state.

    Example:
        pauseflow runs list
        # Output: 3f2a...    guessing_game    idle_with_pending_requests
    """
    repo = get_repository()
    checkpoints = asyncio.run(repo.list_checkpoints())
    if not checkpoints:
        typer.echo("No runs found")
        return
    for checkpoint in checkpoints:
        typer.echo(
            f"{checkpoint.run_id}\t{checkpoint.workflow_name}\t{checkpoint.state.value}"
        )


@runs_app.command("show")
def runs_show(run_id: str) -> None:
    """
    Show the state and pending requests of a persisted run.

    Example:
        pauseflow runs show 3f2a...
    """
    repo = get_repository()
    checkpoint = asyncio.run(repo.get_checkpoint(run_id))
    if checkpoint is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)

    typer.echo(
        f"Run {checkpoint.run_id} ({checkpoint.workflow_name}): {checkpoint.state.value}"
    )
    typer.echo(f"Superstep: {checkpoint.superstep}")
    if not checkpoint.pending_requests:
        typer.echo("No pending requests")
    for record in checkpoint.pending_requests:
        typer.echo(
            f"- {record.request_id} from {record.source_executor_id} "
            f"(superstep {record.issued_at_superstep}): {record.request.data}"
        )


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
