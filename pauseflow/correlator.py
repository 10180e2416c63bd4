"""Tracks outstanding external requests for a single workflow run."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from .contracts import PendingRequest, RequestInfoMessage, RequestResponse
from .exceptions import DuplicateRequestId, UnknownRequestId

logger = logging.getLogger(__name__)


class RequestCorrelator:
    """Matches responses to the requests that are still waiting for them.

    Every id ever handed out or registered is remembered, so a resolved
    request id can never be registered again within the same run.
    """

    def __init__(self) -> None:
        self._pending: Dict[str, PendingRequest] = {}
        self._issued: set[str] = set()

    def issue_id(self) -> str:
        """Return a request id that has not been used in this run."""
        request_id = uuid.uuid4().hex
        while request_id in self._issued:
            request_id = uuid.uuid4().hex
        return request_id

    def register(
        self,
        request_id: str,
        source_executor_id: str,
        request: RequestInfoMessage,
        superstep: int = 0,
    ) -> PendingRequest:
        """Record a new outstanding request."""
        if request_id in self._issued:
            raise DuplicateRequestId(request_id)

        pending = PendingRequest(
            request_id=request_id,
            source_executor_id=source_executor_id,
            request=request,
            issued_at_superstep=superstep,
        )
        self._issued.add(request_id)
        self._pending[request_id] = pending
        logger.debug(
            f"Registered request {request_id} from executor {source_executor_id}"
        )
        return pending

    def resolve(self, request_id: str, data: Any) -> RequestResponse[Any, Any]:
        """Consume the pending request ``request_id`` and pair it with ``data``."""
        pending = self._pending.pop(request_id, None)
        if pending is None:
            raise UnknownRequestId(request_id)
        logger.debug(f"Resolved request {request_id} for {pending.source_executor_id}")
        return RequestResponse(
            original_request=pending.request,
            data=data,
            request_id=request_id,
        )

    def get(self, request_id: str) -> Optional[PendingRequest]:
        return self._pending.get(request_id)

    def pending(self) -> List[PendingRequest]:
        """Outstanding requests in registration order."""
        return list(self._pending.values())

    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def issued_ids(self) -> frozenset[str]:
        return frozenset(self._issued)

    # ------------------------------------------------------------------
    # Checkpoint support
    def restore(
        self, pending: Iterable[PendingRequest], issued_ids: Iterable[str]
    ) -> None:
        """Replace the table with state loaded from a checkpoint."""
        self._pending = {p.request_id: p for p in pending}
        self._issued = set(issued_ids) | set(self._pending)
