"""Draft, approve, publish: pausing a run and resuming it from a checkpoint."""

import asyncio
import tempfile
from pathlib import Path
from typing import Any

from pauseflow import (
    Executor,
    InfoRequest,
    RequestInfoEvent,
    RequestInfoExecutor,
    RequestResponse,
    WorkflowBuilder,
    WorkflowContext,
    WorkflowRun,
    executor,
    handler,
)
from pauseflow.persistence import SQLiteCheckpointRepository


@executor(id="drafter")
async def drafter(topic: str, ctx: WorkflowContext) -> None:
    await ctx.send_message({"title": topic.title(), "body": f"Notes about {topic}."})


class Publisher(Executor):
    @handler
    async def publish(
        self, response: RequestResponse[InfoRequest, Any], ctx: WorkflowContext
    ) -> None:
        draft = response.original_request.data
        if response.data is True:
            await ctx.yield_output(f"Published '{draft['title']}'")
        else:
            await ctx.yield_output(f"Rejected '{draft['title']}': {response.data}")


def build_workflow():
    approval = RequestInfoExecutor("approval")
    return (
        WorkflowBuilder(name="approval_pipeline")
        .add_chain([drafter, approval, Publisher("publisher")])
        .set_start_executor(drafter)
        .add_output_executor("publisher")
        .build()
    )


async def main():
    """Pause for approval, then resume in a fresh run object."""
    db_path = Path(tempfile.mkdtemp()) / "runs.db"
    workflow = build_workflow()

    repo = SQLiteCheckpointRepository(db_path)
    run = workflow.create_run(repository=repo)
    request_id = None
    async for event in run.start("quarterly report"):
        if isinstance(event, RequestInfoEvent):
            request_id = event.request_id
            print(f"📝 Approval needed for {event.data.data}")
    print(f"⏸️  Run {run.run_id} is {run.state.value}")
    repo.close()

    # Later, possibly in another process
    repo = SQLiteCheckpointRepository(db_path)
    checkpoint = await repo.get_checkpoint(run.run_id)
    restored = WorkflowRun.from_checkpoint(workflow, checkpoint, repository=repo)
    async for event in restored.resume({request_id: True}):
        print(f"✅ {event.data}")
    print(f"🎉 Run {restored.run_id} is {restored.state.value}")
    repo.close()


if __name__ == "__main__":
    asyncio.run(main())
