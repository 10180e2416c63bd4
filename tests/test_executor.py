"""Executor dispatch tests."""

from typing import Union

import pytest
from pydantic import BaseModel

from pauseflow import (
    Executor,
    FunctionExecutor,
    InfoRequest,
    RequestInfoEvent,
    RequestInfoExecutor,
    RequestInfoMessage,
    RequestResponse,
    UnhandledMessageType,
    WorkflowBuilder,
    WorkflowContext,
    WorkflowOutputEvent,
    executor,
    handler,
)


class Animal(BaseModel):
    name: str


class Dog(Animal):
    pass


class Approval(RequestInfoMessage):
    item: str


class Recorder(Executor):
    def __init__(self, id: str = "recorder") -> None:
        super().__init__(id)
        self.seen = []

    @handler
    async def on_animal(self, message: Animal, ctx: WorkflowContext) -> None:
        self.seen.append(("animal", message.name))

    @handler
    async def on_dog(self, message: Dog, ctx: WorkflowContext) -> None:
        self.seen.append(("dog", message.name))

    @handler(int, float)
    async def on_number(self, message, ctx: WorkflowContext) -> None:
        self.seen.append(("number", message))

    @handler
    async def on_text(self, message: Union[str, bytes], ctx: WorkflowContext) -> None:
        self.seen.append(("text", message))


async def collect(events):
    return [event async for event in events]


def run_of(executor: Executor):
    return WorkflowBuilder().set_start_executor(executor).build().create_run()


@pytest.mark.asyncio
async def test_dispatch_picks_most_specific_handler():
    for message, expected in [
        (Dog(name="rex"), ("dog", "rex")),
        (Animal(name="cat"), ("animal", "cat")),
        (3, ("number", 3)),
        (2.5, ("number", 2.5)),
        ("hi", ("text", "hi")),
        (b"raw", ("text", b"raw")),
    ]:
        run = run_of(Recorder())
        await collect(run.start(message))
        assert run.get_executor("recorder").seen == [expected]


def test_handler_table_built_at_construction():
    recorder = Recorder()
    assert set(recorder.input_types) == {Animal, Dog, int, float, str, bytes}
    assert recorder.can_handle(Dog(name="a"))
    assert not recorder.can_handle([1, 2])


@pytest.mark.asyncio
async def test_unregistered_type_raises():
    with pytest.raises(UnhandledMessageType) as exc_info:
        await collect(run_of(Recorder()).start([1, 2]))
    assert exc_info.value.executor_id == "recorder"
    assert exc_info.value.message_type is list


def test_duplicate_handlers_rejected():
    class Twice(Executor):
        @handler
        async def first(self, message: str, ctx: WorkflowContext) -> None:
            pass

        @handler(str)
        async def second(self, message, ctx: WorkflowContext) -> None:
            pass

    with pytest.raises(ValueError):
        Twice("twice")


def test_sync_handlers_rejected():
    with pytest.raises(TypeError):

        class Sync(Executor):
            @handler
            def on_text(self, message: str, ctx: WorkflowContext) -> None:
                pass


def test_missing_annotation_rejected():
    class Untyped(Executor):
        @handler
        async def on_any(self, message, ctx) -> None:
            pass

    with pytest.raises(TypeError):
        Untyped("untyped")


@pytest.mark.asyncio
async def test_function_executor_and_decorator():
    @executor(id="shout")
    async def shout(message: str, ctx: WorkflowContext) -> None:
        await ctx.yield_output(message.upper())

    assert isinstance(shout, FunctionExecutor)
    assert shout.id == "shout"

    events = await collect(run_of(shout).start("hey"))
    assert events == [WorkflowOutputEvent(data="HEY", source_executor_id="shout")]

    async def double(message, ctx: WorkflowContext) -> None:
        await ctx.yield_output(message * 2)

    explicit = FunctionExecutor(double, message_type=int)
    assert explicit.id == "double"
    assert explicit.can_handle(4)
    assert not explicit.can_handle("4")


class Approver(Executor):
    @handler
    async def ask(self, message: str, ctx: WorkflowContext) -> None:
        await ctx.request_info(Approval(item=message))

    @handler
    async def on_approval(
        self, response: RequestResponse[Approval, bool], ctx: WorkflowContext
    ) -> None:
        await ctx.yield_output(("approval", response.data))

    @handler
    async def on_other_response(
        self, response: RequestResponse[RequestInfoMessage, object], ctx: WorkflowContext
    ) -> None:
        await ctx.yield_output(("other", response.data))


def test_response_handlers_keyed_by_request_type():
    approver = Approver("approver")
    approval = RequestResponse(
        original_request=Approval(item="x"), data=True, request_id="1"
    )
    other = RequestResponse(original_request=InfoRequest(data=1), data=2, request_id="2")

    assert approver._find_handler(approval).__name__ == "on_approval"
    assert approver._find_handler(other).__name__ == "on_other_response"


@pytest.mark.asyncio
async def test_sending_request_message_registers_pending_request():
    class Sender(Executor):
        @handler
        async def on_text(self, message: str, ctx: WorkflowContext) -> None:
            await ctx.send_message(Approval(item=message))

    run = run_of(Sender("sender"))
    events = await collect(run.start("doc"))

    assert isinstance(events[0], RequestInfoEvent)
    assert events[0].data.item == "doc"
    assert run.pending_requests[0].source_executor_id == "sender"


class Publisher(Executor):
    @handler
    async def publish(
        self, response: RequestResponse[InfoRequest, str], ctx: WorkflowContext
    ) -> None:
        await ctx.yield_output(f"{response.original_request.data} -> {response.data}")


@pytest.mark.asyncio
async def test_request_info_executor_gateway():
    gateway = RequestInfoExecutor("review")
    workflow = (
        WorkflowBuilder()
        .set_start_executor(gateway)
        .add_edge(gateway, Publisher("publish"))
        .add_output_executor("publish")
        .build()
    )
    run = workflow.create_run()

    events = await collect(run.start({"title": "draft"}))
    request = events[0]
    assert isinstance(request, RequestInfoEvent)
    assert request.source_executor_id == "review"
    assert isinstance(request.data, InfoRequest)
    assert request.data.data == {"title": "draft"}

    final = await collect(run.resume({request.request_id: "ok"}))
    assert final == [
        WorkflowOutputEvent(
            data="{'title': 'draft'} -> ok", source_executor_id="publish"
        )
    ]


def test_clone_copies_state_and_shares_resources():
    class Holder(Executor):
        def __init__(self, client) -> None:
            super().__init__("holder")
            self.client = client
            self.items = []

        def shared_resources(self):
            return (self.client,)

        @handler
        async def add(self, message: str, ctx: WorkflowContext) -> None:
            self.items.append(message)

    client = object()
    original = Holder(client)
    clone = original.clone()

    assert clone is not original
    assert clone.client is client
    assert clone.items is not original.items
    assert clone._handlers[str].__self__ is clone
