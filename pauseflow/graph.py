"""Static workflow graph and the builder that assembles it."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .exceptions import InvalidGraph
from .executor import Executor

if TYPE_CHECKING:
    from .runner import WorkflowRun

logger = logging.getLogger(__name__)

ExecutorRef = Union[Executor, str]


@dataclass(frozen=True)
class Edge:
    """Directed connection; ``message_type`` of ``None`` accepts any message."""

    source_id: str
    target_id: str
    message_type: Optional[type] = None

    def accepts(self, message: Any) -> bool:
        return self.message_type is None or isinstance(message, self.message_type)


def _reachable(edges: Iterable[Edge], start_id: str) -> set[str]:
    adjacency: Dict[str, List[str]] = {}
    for edge in edges:
        adjacency.setdefault(edge.source_id, []).append(edge.target_id)
    seen = {start_id}
    queue = deque([start_id])
    while queue:
        for target_id in adjacency.get(queue.popleft(), ()):
            if target_id not in seen:
                seen.add(target_id)
                queue.append(target_id)
    return seen


class Workflow:
    """Immutable executor graph.

    The workflow only holds executor prototypes; each run clones them, so one
    workflow can back any number of concurrent runs.
    """

    def __init__(
        self,
        executors: Mapping[str, Executor],
        edges: Sequence[Edge],
        start_executor_id: str,
        output_executor_ids: Iterable[str] = (),
        name: Optional[str] = None,
        warnings: Sequence[str] = (),
    ) -> None:
        self._executors = MappingProxyType(dict(executors))
        self._edges = tuple(edges)
        self._start_executor_id = start_executor_id
        self._output_executor_ids = frozenset(output_executor_ids)
        self._name = name or start_executor_id
        self._warnings = tuple(warnings)

        adjacency: Dict[str, List[Edge]] = {executor_id: [] for executor_id in self._executors}
        for edge in self._edges:
            adjacency[edge.source_id].append(edge)
        self._adjacency = MappingProxyType(
            {executor_id: tuple(out) for executor_id, out in adjacency.items()}
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def executors(self) -> Mapping[str, Executor]:
        return self._executors

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    @property
    def start_executor_id(self) -> str:
        return self._start_executor_id

    @property
    def output_executor_ids(self) -> frozenset[str]:
        return self._output_executor_ids

    @property
    def warnings(self) -> tuple[str, ...]:
        """Non-fatal problems found while building."""
        return self._warnings

    def is_output_executor(self, executor_id: str) -> bool:
        """Empty output set means every executor may produce outputs."""
        return not self._output_executor_ids or executor_id in self._output_executor_ids

    def edges_from(
        self, source_id: str, message: Any, target_id: Optional[str] = None
    ) -> list[Edge]:
        """Outgoing edges of ``source_id`` that accept ``message``."""
        return [
            edge
            for edge in self._adjacency.get(source_id, ())
            if edge.accepts(message) and (target_id is None or edge.target_id == target_id)
        ]

    def reachable_from(self, executor_id: str) -> set[str]:
        return _reachable(self._edges, executor_id)

    def create_run(self, **kwargs: Any) -> "WorkflowRun":
        """Create a fresh run instance; see ``WorkflowRun`` for options."""
        from .runner import WorkflowRun

        return WorkflowRun(self, **kwargs)


class WorkflowBuilder:
    """Accumulates executors and edges, then validates them into a ``Workflow``."""

    def __init__(self, name: Optional[str] = None) -> None:
        self._name = name
        self._executors: Dict[str, Executor] = {}
        self._edges: List[Edge] = []
        self._start_executor_id: Optional[str] = None
        self._output_executor_ids: List[str] = []
        self._errors: List[str] = []

    def _ref(self, ref: ExecutorRef) -> str:
        if isinstance(ref, Executor):
            existing = self._executors.get(ref.id)
            if existing is not None and existing is not ref:
                self._errors.append(f"Duplicate executor id '{ref.id}'")
            else:
                self._executors[ref.id] = ref
            return ref.id
        return ref

    def add_executor(self, executor: Executor) -> "WorkflowBuilder":
        self._ref(executor)
        return self

    def add_edge(
        self,
        source: ExecutorRef,
        target: ExecutorRef,
        message_type: Optional[type] = None,
    ) -> "WorkflowBuilder":
        self._edges.append(Edge(self._ref(source), self._ref(target), message_type))
        return self

    def add_chain(self, executors: Sequence[ExecutorRef]) -> "WorkflowBuilder":
        """Connect ``executors`` in sequence with untyped edges."""
        for source, target in zip(executors, executors[1:]):
            self.add_edge(source, target)
        return self

    def add_fan_out_edges(
        self,
        source: ExecutorRef,
        targets: Sequence[ExecutorRef],
        message_type: Optional[type] = None,
    ) -> "WorkflowBuilder":
        for target in targets:
            self.add_edge(source, target, message_type)
        return self

    def set_start_executor(self, executor: ExecutorRef) -> "WorkflowBuilder":
        self._start_executor_id = self._ref(executor)
        return self

    def add_output_executor(self, executor: ExecutorRef) -> "WorkflowBuilder":
        executor_id = self._ref(executor)
        if executor_id not in self._output_executor_ids:
            self._output_executor_ids.append(executor_id)
        return self

    def build(self) -> Workflow:
        """Validate the accumulated graph.

        Raises:
            InvalidGraph: On duplicate executor ids, edges that reference
                unknown executors, or a missing start executor.
        """
        errors = list(self._errors)
        if self._start_executor_id is None:
            errors.append("No start executor set")
        elif self._start_executor_id not in self._executors:
            errors.append(f"Unknown start executor '{self._start_executor_id}'")

        for edge in self._edges:
            for endpoint in (edge.source_id, edge.target_id):
                if endpoint not in self._executors:
                    errors.append(
                        f"Edge {edge.source_id} -> {edge.target_id} references "
                        f"unknown executor '{endpoint}'"
                    )
        for output_id in self._output_executor_ids:
            if output_id not in self._executors:
                errors.append(f"Unknown output executor '{output_id}'")

        if errors:
            raise InvalidGraph("; ".join(errors))

        warnings = []
        if not self._output_executor_ids:
            warning = (
                "No output executors declared; every executor's output and "
                "unrouted messages become workflow outputs"
            )
            logger.warning(warning)
            warnings.append(warning)
        reachable = _reachable(self._edges, self._start_executor_id)
        for output_id in self._output_executor_ids:
            if output_id not in reachable:
                warning = f"Output executor '{output_id}' is not reachable from the start executor"
                logger.warning(warning)
                warnings.append(warning)

        workflow = Workflow(
            self._executors,
            self._edges,
            self._start_executor_id,
            self._output_executor_ids,
            name=self._name,
            warnings=warnings,
        )
        logger.debug(
            f"Built workflow {workflow.name} with {len(self._executors)} executors "
            f"and {len(self._edges)} edges"
        )
        return workflow
