"""Number guessing game: an agent guesses, a human judges.

Run it directly, or through the CLI:

    pauseflow run guides/guessing_game.py:build_workflow --input '{"low": 1, "high": 100}'

Set PAUSEFLOW_MODEL to a real model (e.g. "openai:gpt-4o") to let an LLM
guess; the default "test" model needs no credentials.
"""

import asyncio
import os

from pydantic import BaseModel
from pydantic_ai import Agent

from pauseflow import (
    AgentExecutor,
    AgentRequest,
    AgentResponse,
    Executor,
    RequestInfoEvent,
    RequestInfoMessage,
    RequestResponse,
    WorkflowBuilder,
    WorkflowContext,
    WorkflowOutputEvent,
    handler,
)


class GuessRange(BaseModel):
    low: int = 1
    high: int = 100


class Feedback(RequestInfoMessage):
    prompt: str
    guess: int


guesser_agent = Agent(
    os.getenv("PAUSEFLOW_MODEL", "test"),
    output_type=int,
    system_prompt="You guess a secret integer. Answer with a single number.",
    name="guesser",
)


class Judge(Executor):
    def __init__(self) -> None:
        super().__init__("judge")
        self.low = 1
        self.high = 100

    @handler
    async def start(self, message: GuessRange, ctx: WorkflowContext) -> None:
        self.low, self.high = message.low, message.high
        await self._ask_agent(ctx)

    @handler
    async def on_guess(self, message: AgentResponse, ctx: WorkflowContext) -> None:
        guess = min(max(int(message.output), self.low), self.high)
        await ctx.request_info(
            Feedback(prompt=f"Is it {guess}? (higher/lower/correct)", guess=guess)
        )

    @handler
    async def on_feedback(
        self, response: RequestResponse[Feedback, str], ctx: WorkflowContext
    ) -> None:
        guess = response.original_request.guess
        answer = str(response.data).strip().lower()
        if answer == "correct":
            await ctx.yield_output(f"Found {guess}")
            return
        if answer == "higher":
            self.low = guess + 1
        elif answer == "lower":
            self.high = guess - 1
        await self._ask_agent(ctx)

    async def _ask_agent(self, ctx: WorkflowContext) -> None:
        await ctx.send_message(
            AgentRequest(prompt=f"Guess a number between {self.low} and {self.high}.")
        )

    def snapshot_state(self) -> dict:
        return {"low": self.low, "high": self.high}

    def restore_state(self, state: dict) -> None:
        self.low = state["low"]
        self.high = state["high"]


def build_workflow():
    judge = Judge()
    guesser = AgentExecutor(guesser_agent, keep_history=True)
    return (
        WorkflowBuilder(name="guessing_game")
        .set_start_executor(judge)
        .add_edge(judge, guesser, AgentRequest)
        .add_edge(guesser, judge, AgentResponse)
        .add_output_executor(judge)
        .build()
    )


async def main():
    """Play one game on the console."""
    print("🎲 Think of a number between 1 and 100\n")
    run = build_workflow().create_run()
    events = run.start(GuessRange())

    while True:
        responses = {}
        async for event in events:
            if isinstance(event, RequestInfoEvent):
                responses[event.request_id] = input(f"{event.data.prompt} ")
            elif isinstance(event, WorkflowOutputEvent):
                print(f"✅ {event.data}")
        if not responses:
            break
        events = run.resume(responses)

    print(f"\n🎉 Run {run.run_id} finished: {run.state.value}")


if __name__ == "__main__":
    asyncio.run(main())
