"""Context handed to executor handlers during a superstep."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional

from .contracts import Message, RequestInfoMessage
from .events import RequestInfoEvent, WorkflowEvent, WorkflowOutputEvent
from .exceptions import NoMatchingEdge

if TYPE_CHECKING:
    from .runner import WorkflowRun

logger = logging.getLogger(__name__)


class WorkflowContext:
    """Collects the effects of one handler invocation.

    Messages are routed as soon as they are sent, so routing errors surface
    at the ``send_message`` call site. The run picks up the collected
    messages and events once the handler returns.
    """

    def __init__(
        self,
        run: "WorkflowRun",
        executor_id: str,
        source_executor_id: Optional[str] = None,
    ) -> None:
        self._run = run
        self._executor_id = executor_id
        self._source_executor_id = source_executor_id
        self.messages: List[Message] = []
        self.events: List[WorkflowEvent] = []

    @property
    def executor_id(self) -> str:
        return self._executor_id

    @property
    def source_executor_id(self) -> Optional[str]:
        """Executor that sent the message being handled, ``None`` for caller input."""
        return self._source_executor_id

    @property
    def run_id(self) -> str:
        return self._run.run_id

    @property
    def superstep(self) -> int:
        return self._run.superstep

    async def send_message(self, message: Any, target_id: Optional[str] = None) -> None:
        """Send ``message`` along every outgoing edge that accepts it.

        Requests are never routed; they are registered with the run as
        pending requests instead.
        """
        if isinstance(message, RequestInfoMessage):
            await self.request_info(message)
            return

        workflow = self._run.workflow
        edges = workflow.edges_from(self._executor_id, message, target_id=target_id)
        if not edges:
            if workflow.is_output_executor(self._executor_id) and target_id is None:
                await self.yield_output(message)
                return
            raise NoMatchingEdge(self._executor_id, message, target_id)

        for edge in edges:
            self.messages.append(
                Message(data=message, source_id=self._executor_id, target_id=edge.target_id)
            )

    async def yield_output(self, data: Any) -> None:
        """Publish ``data`` as a workflow output; it does not re-enter the graph."""
        if not self._run.workflow.is_output_executor(self._executor_id):
            logger.debug(
                f"Dropping output of {self._executor_id}: not an output executor"
            )
            return
        self.events.append(
            WorkflowOutputEvent(data=data, source_executor_id=self._executor_id)
        )

    async def request_info(self, request: RequestInfoMessage) -> str:
        """Pause this branch until the caller answers ``request``.

        Returns the request id the response has to be submitted under. The
        run always stamps a fresh id, so a request received in a response can
        be asked again as is.
        """
        pending = self._run._register_request(self._executor_id, request)
        self.events.append(
            RequestInfoEvent(
                request_id=pending.request_id,
                source_executor_id=self._executor_id,
                data=pending.request,
            )
        )
        return pending.request_id

    async def add_event(self, event: WorkflowEvent) -> None:
        """Surface a custom event to the caller."""
        self.events.append(event)
