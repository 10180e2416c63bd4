"""Executors: the nodes of a pauseflow workflow graph."""

from __future__ import annotations

import copy
import inspect
import logging
import types
import typing
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .context import WorkflowContext
from .contracts import InfoRequest, RequestInfoMessage, RequestResponse
from .exceptions import UnhandledMessageType

logger = logging.getLogger(__name__)

HandlerFunc = Callable[..., Awaitable[Any]]


def _expand_union(annotation: Any) -> tuple[type, ...]:
    if typing.get_origin(annotation) in (Union, types.UnionType):
        return tuple(
            arg for arg in typing.get_args(annotation) if arg is not type(None)
        )
    return (annotation,)


def _resolve_message_type(func: Callable[..., Any], position: int) -> Any:
    """Read the annotated type of the message parameter of ``func``."""
    params = list(inspect.signature(func).parameters.values())
    if len(params) <= position:
        raise TypeError(f"Handler {func.__qualname__} takes no message parameter")
    name = params[position].name
    try:
        hints = typing.get_type_hints(func)
    except NameError as exc:
        raise TypeError(
            f"Cannot resolve annotations of handler {func.__qualname__}: {exc}"
        ) from exc
    if name not in hints:
        raise TypeError(
            f"Handler {func.__qualname__} needs a type annotation on '{name}' "
            "or an explicit message type"
        )
    return hints[name]


def handler(func: Optional[HandlerFunc] = None, /, *message_types: Any) -> Any:
    """Mark an ``async`` executor method as the handler for a message type.

    The type is read from the annotation of the message parameter, or given
    explicitly::

        @handler
        async def on_text(self, message: str, ctx: WorkflowContext) -> None: ...

        @handler(int, float)
        async def on_number(self, message, ctx: WorkflowContext) -> None: ...
    """
    if func is not None and not inspect.isfunction(func):
        message_types = (func, *message_types)
        func = None

    def decorator(fn: HandlerFunc) -> HandlerFunc:
        if not inspect.iscoroutinefunction(fn):
            raise TypeError(f"Handler {fn.__qualname__} must be declared with 'async def'")
        fn._handler_spec = {"message_types": message_types}  # type: ignore[attr-defined]
        return fn

    if func is not None:
        return decorator(func)
    return decorator


class Executor:
    """A unit of computation with typed message handlers.

    Handlers are collected into a type -> handler table when the executor is
    created. Responses to external requests (``RequestResponse``) are matched
    on the type of the original request first.
    """

    def __init__(self, id: Optional[str] = None) -> None:
        self._id = id or f"{type(self).__name__}-{uuid.uuid4().hex[:8]}"
        self._handlers: Dict[type, HandlerFunc] = {}
        self._response_handlers: Dict[type, HandlerFunc] = {}
        self._discover_handlers()

    @property
    def id(self) -> str:
        return self._id

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r})"

    # ------------------------------------------------------------------
    # Handler registration
    def _discover_handlers(self) -> None:
        seen: set[str] = set()
        for klass in type(self).__mro__:
            for name, attr in vars(klass).items():
                if name in seen:
                    continue
                seen.add(name)
                spec = getattr(attr, "_handler_spec", None)
                if spec is None:
                    continue
                types_ = spec["message_types"] or (_resolve_message_type(attr, 1),)
                bound = getattr(self, name)
                for message_type in types_:
                    self.register_handler(message_type, bound)

    def register_handler(self, message_type: Any, func: HandlerFunc) -> None:
        """Route messages of ``message_type`` to ``func(message, ctx)``."""
        for member in _expand_union(message_type):
            if typing.get_origin(member) is RequestResponse:
                args = typing.get_args(member)
                request_type = args[0] if args else RequestInfoMessage
                self._add(self._response_handlers, request_type, func)
            else:
                origin = typing.get_origin(member)
                self._add(self._handlers, origin or member, func)

    def _add(self, table: Dict[type, HandlerFunc], key: Any, func: HandlerFunc) -> None:
        if key is Any:
            key = object
        if not isinstance(key, type):
            raise TypeError(f"Cannot register handler for non-class type {key!r}")
        if key in table:
            raise ValueError(
                f"Duplicate handler for {key.__name__} in executor '{self._id}'"
            )
        table[key] = func

    @property
    def input_types(self) -> list[type]:
        return list(self._handlers)

    def _find_handler(self, message: Any) -> Optional[HandlerFunc]:
        if isinstance(message, RequestResponse) and self._response_handlers:
            for klass in type(message.original_request).__mro__:
                found = self._response_handlers.get(klass)
                if found is not None:
                    return found
        for klass in type(message).__mro__:
            found = self._handlers.get(klass)
            if found is not None:
                return found
        return None

    def can_handle(self, message: Any) -> bool:
        return self._find_handler(message) is not None

    async def execute(self, message: Any, ctx: WorkflowContext) -> None:
        """Dispatch ``message`` to the handler registered for its type."""
        func = self._find_handler(message)
        if func is None:
            raise UnhandledMessageType(self._id, message)
        logger.debug(f"Executor {self._id} handling {type(message).__name__}")
        await func(message, ctx)

    # ------------------------------------------------------------------
    # Per-run state
    def clone(self) -> "Executor":
        """Return an independent copy for a new run.

        Objects listed by ``shared_resources`` are referenced, not copied.
        """
        memo = {id(resource): resource for resource in self.shared_resources()}
        return copy.deepcopy(self, memo)

    def shared_resources(self) -> tuple[Any, ...]:
        """Collaborators that every run may use without copying them."""
        return ()

    def snapshot_state(self) -> dict[str, Any]:
        """JSON-compatible state to persist with a checkpoint."""
        return {}

    def restore_state(self, state: dict[str, Any]) -> None:
        """Reload state produced by ``snapshot_state``."""


class FunctionExecutor(Executor):
    """Executor built around a single ``async def fn(message, ctx)``."""

    def __init__(
        self,
        func: HandlerFunc,
        id: Optional[str] = None,
        message_type: Any = None,
    ) -> None:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"{func.__qualname__} must be declared with 'async def'")
        super().__init__(id or func.__name__)
        self._func = func
        self.register_handler(message_type or _resolve_message_type(func, 0), func)


def executor(
    func: Optional[HandlerFunc] = None, *, id: Optional[str] = None
) -> Any:
    """Turn an ``async`` function into a ``FunctionExecutor``."""

    def decorator(fn: HandlerFunc) -> FunctionExecutor:
        return FunctionExecutor(fn, id=id)

    if func is not None:
        return decorator(func)
    return decorator


class RequestInfoExecutor(Executor):
    """Gateway node that turns every inbound payload into an external request.

    Payloads that are not already requests are wrapped in ``InfoRequest``.
    Answers are forwarded along the outgoing edges as the full
    ``RequestResponse`` so downstream executors see both request and reply.
    """

    def __init__(self, id: Optional[str] = None) -> None:
        super().__init__(id or f"request_info-{uuid.uuid4().hex[:8]}")

    @handler
    async def on_payload(self, message: object, ctx: WorkflowContext) -> None:
        request = message if isinstance(message, RequestInfoMessage) else InfoRequest(data=message)
        await ctx.request_info(request)

    @handler
    async def on_response(
        self, message: RequestResponse[RequestInfoMessage, Any], ctx: WorkflowContext
    ) -> None:
        if message.original_request.source_executor_id != self.id:
            await self.on_payload(message, ctx)
            return
        await ctx.send_message(message)
