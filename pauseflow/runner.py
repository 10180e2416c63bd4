"""Superstep execution engine for pauseflow workflows."""

from __future__ import annotations

import logging
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, AsyncIterator, List, Mapping, Optional

from .config import RunnerConfig, load_config
from .context import WorkflowContext
from .contracts import Message, PendingRequest, RequestInfoMessage
from .correlator import RequestCorrelator
from .events import (
    ExecutorCompletedEvent,
    ExecutorInvokedEvent,
    ResponseErrorEvent,
    RunState,
    WorkflowEvent,
    WorkflowOutputEvent,
    WorkflowStatusEvent,
)
from .exceptions import RunStateError, SuperstepLimitExceeded, UnknownRequestId
from .executor import Executor
from .graph import Workflow
from .persistence import CheckpointRepository, PendingRequestRecord, RunCheckpoint, SerializedPayload
from .serialization import PayloadDeserializer, PayloadSerializer

logger = logging.getLogger(__name__)


class WorkflowRun:
    """One execution of a workflow.

    The run owns cloned executors and the table of pending requests. It only
    makes progress while the caller iterates the events returned by
    ``start`` or ``resume``; handlers are awaited one at a time, in message
    arrival order within a superstep.
    """

    def __init__(
        self,
        workflow: Workflow,
        run_id: Optional[str] = None,
        config: Optional[RunnerConfig] = None,
        repository: CheckpointRepository | None = None,
    ) -> None:
        self._workflow = workflow
        self._run_id = run_id or uuid.uuid4().hex
        self._config = config or load_config().runner
        self._repository = repository
        self._executors: dict[str, Executor] = {
            executor_id: prototype.clone()
            for executor_id, prototype in workflow.executors.items()
        }
        self._correlator = RequestCorrelator()
        self._queue: List[Message] = []
        self._superstep = 0
        self._state = RunState.IDLE
        self._started = False
        self._active = False
        self._outputs_since_input = 0
        self._stream: Optional[AsyncGenerator[WorkflowEvent, None]] = None
        self._created_at = datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Introspection
    @property
    def workflow(self) -> Workflow:
        return self._workflow

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def superstep(self) -> int:
        return self._superstep

    @property
    def pending_requests(self) -> list[PendingRequest]:
        return self._correlator.pending()

    def get_executor(self, executor_id: str) -> Executor:
        """Return this run's instance of ``executor_id``."""
        return self._executors[executor_id]

    # ------------------------------------------------------------------
    # Caller API
    async def start(self, message: Any) -> AsyncIterator[WorkflowEvent]:
        """Deliver ``message`` to the start executor and run to quiescence."""
        await self._claim()
        if self._started:
            raise RunStateError(f"Run {self._run_id} was already started")
        self._started = True
        logger.info(f"Starting run {self._run_id} of workflow {self._workflow.name}")

        self._queue.append(
            Message(data=message, target_id=self._workflow.start_executor_id)
        )
        self._stream = self._run()
        async for event in self._stream:
            yield event

    async def resume(self, responses: Mapping[str, Any]) -> AsyncIterator[WorkflowEvent]:
        """Deliver responses for pending requests and run to quiescence.

        Entries whose id is not pending are reported as ``ResponseErrorEvent``
        and do not prevent the remaining entries from being applied.
        """
        await self._claim()
        if not self._started:
            raise RunStateError(f"Run {self._run_id} has not been started")
        logger.info(f"Resuming run {self._run_id} with {len(responses)} response(s)")

        errors: list[ResponseErrorEvent] = []
        for request_id, data in responses.items():
            try:
                response = self._correlator.resolve(request_id, data)
            except UnknownRequestId as exc:
                logger.warning(f"Run {self._run_id}: {exc}")
                errors.append(ResponseErrorEvent(request_id=request_id, error=exc))
                continue
            self._queue.append(
                Message(
                    data=response,
                    target_id=response.original_request.source_executor_id,
                )
            )

        for error in errors:
            yield error

        if not self._queue:
            return

        self._outputs_since_input = 0
        self._stream = self._run()
        async for event in self._stream:
            yield event

    # ------------------------------------------------------------------
    # Engine
    async def _claim(self) -> None:
        """Check that a new call may run, closing a stream the caller abandoned."""
        if self._active:
            raise RunStateError(f"Run {self._run_id} is already executing")
        if self._stream is not None:
            stream, self._stream = self._stream, None
            logger.warning(
                f"Run {self._run_id}: closing an event stream that was not read to the end"
            )
            await stream.aclose()
        if self._state is RunState.FAILED:
            raise RunStateError(f"Run {self._run_id} failed and cannot continue")

    async def _run(self) -> AsyncGenerator[WorkflowEvent, None]:
        self._active = True
        self._state = RunState.IN_PROGRESS
        limit = self._config.max_supersteps
        steps = 0
        reported_partial = False
        remaining: deque[Message] = deque()
        try:
            while self._queue:
                if limit is not None and steps >= limit:
                    raise SuperstepLimitExceeded(limit)
                steps += 1
                self._superstep += 1
                remaining, self._queue = deque(self._queue), []
                logger.debug(
                    f"Run {self._run_id} superstep {self._superstep}: "
                    f"{len(remaining)} message(s)"
                )
                while remaining:
                    async for event in self._deliver(remaining.popleft()):
                        # the caller owns control while an event is out
                        self._active = False
                        yield event
                        self._active = True

                if self._queue and self._correlator.pending_count() and not reported_partial:
                    reported_partial = True
                    self._state = RunState.IN_PROGRESS_PENDING_REQUESTS
                    self._active = False
                    yield WorkflowStatusEvent(state=self._state)
                    self._active = True

            self._state = self._quiescent_state()
            await self._save_checkpoint()
        except GeneratorExit:
            # undelivered messages wait for the next call
            self._queue[:0] = remaining
            self._state = self._quiescent_state()
            logger.info(f"Run {self._run_id} stream closed in superstep {self._superstep}")
            raise
        except Exception as e:
            self._state = RunState.FAILED
            self._queue.clear()
            logger.error(f"Run {self._run_id} failed in superstep {self._superstep}: {e}")
            await self._save_checkpoint()
            raise
        finally:
            self._active = False
            self._stream = None

        if self._state is RunState.IDLE_WITH_PENDING_REQUESTS:
            logger.info(
                f"Run {self._run_id} waiting on "
                f"{self._correlator.pending_count()} request(s)"
            )
            yield WorkflowStatusEvent(state=self._state)
        elif self._state is RunState.COMPLETED:
            logger.info(f"Run {self._run_id} completed")

    async def _deliver(self, message: Message) -> AsyncIterator[WorkflowEvent]:
        executor = self._executors[message.target_id]
        ctx = WorkflowContext(self, executor.id, message.source_id)
        if self._config.emit_executor_events:
            yield ExecutorInvokedEvent(executor_id=executor.id, superstep=self._superstep)

        await executor.execute(message.data, ctx)

        self._queue.extend(ctx.messages)
        self._outputs_since_input += sum(
            isinstance(event, WorkflowOutputEvent) for event in ctx.events
        )
        for event in ctx.events:
            yield event

        if self._config.emit_executor_events:
            yield ExecutorCompletedEvent(executor_id=executor.id, superstep=self._superstep)

    def _quiescent_state(self) -> RunState:
        if self._correlator.pending_count():
            return RunState.IDLE_WITH_PENDING_REQUESTS
        if self._outputs_since_input:
            return RunState.COMPLETED
        return RunState.IDLE

    def _register_request(
        self, executor_id: str, request: RequestInfoMessage
    ) -> PendingRequest:
        request_id = self._correlator.issue_id()
        stamped = request.model_copy(
            update={"request_id": request_id, "source_executor_id": executor_id}
        )
        if self._repository is not None:
            # unserializable requests fail the handler that issued them
            PayloadSerializer.serialize(stamped)
        return self._correlator.register(request_id, executor_id, stamped, self._superstep)

    # ------------------------------------------------------------------
    # Checkpoints
    def to_checkpoint(self) -> RunCheckpoint:
        """Capture the resumable state of this run."""
        records = []
        for pending in self._correlator.pending():
            data, type_name, module = PayloadSerializer.serialize(pending.request)
            records.append(
                PendingRequestRecord(
                    request_id=pending.request_id,
                    source_executor_id=pending.source_executor_id,
                    issued_at_superstep=pending.issued_at_superstep,
                    request=SerializedPayload(data=data, type=type_name, module=module),
                )
            )
        return RunCheckpoint(
            run_id=self._run_id,
            workflow_name=self._workflow.name,
            state=self._state,
            superstep=self._superstep,
            pending_requests=records,
            issued_request_ids=sorted(self._correlator.issued_ids),
            executor_states={
                executor_id: executor.snapshot_state()
                for executor_id, executor in self._executors.items()
            },
            created_at=self._created_at,
        )

    async def _save_checkpoint(self) -> None:
        if self._repository is None:
            return
        await self._repository.save_checkpoint(self.to_checkpoint())
        logger.debug(f"Saved checkpoint for run {self._run_id} ({self._state.value})")

    @classmethod
    def from_checkpoint(
        cls,
        workflow: Workflow,
        checkpoint: RunCheckpoint,
        config: Optional[RunnerConfig] = None,
        repository: CheckpointRepository | None = None,
    ) -> "WorkflowRun":
        """Rebuild a run from ``checkpoint`` so it can be resumed."""
        if checkpoint.workflow_name != workflow.name:
            raise RunStateError(
                f"Checkpoint of run {checkpoint.run_id} belongs to workflow "
                f"'{checkpoint.workflow_name}', not '{workflow.name}'"
            )
        if checkpoint.state is RunState.FAILED:
            raise RunStateError(f"Run {checkpoint.run_id} failed and cannot be restored")

        run = cls(workflow, run_id=checkpoint.run_id, config=config, repository=repository)
        for executor_id, state in checkpoint.executor_states.items():
            if executor_id in run._executors:
                run._executors[executor_id].restore_state(state)

        pending = [
            PendingRequest(
                request_id=record.request_id,
                source_executor_id=record.source_executor_id,
                request=PayloadDeserializer.deserialize(
                    record.request.data, record.request.type, record.request.module
                ),
                issued_at_superstep=record.issued_at_superstep,
            )
            for record in checkpoint.pending_requests
        ]
        run._correlator.restore(pending, checkpoint.issued_request_ids)
        run._superstep = checkpoint.superstep
        run._state = checkpoint.state
        run._started = True
        run._created_at = checkpoint.created_at
        logger.info(
            f"Restored run {run._run_id} with {len(pending)} pending request(s)"
        )
        return run


def start(
    workflow: Workflow, message: Any, **kwargs: Any
) -> tuple[AsyncIterator[WorkflowEvent], WorkflowRun]:
    """Create a run of ``workflow`` and return its event stream and handle."""
    run = WorkflowRun(workflow, **kwargs)
    return run.start(message), run


def resume(run: WorkflowRun, responses: Mapping[str, Any]) -> AsyncIterator[WorkflowEvent]:
    """Feed ``responses`` into a paused run."""
    return run.resume(responses)
