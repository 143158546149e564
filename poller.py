import json
import time
from typing import Callable, List

from pydantic import BaseModel

from common import aggregate, classify
from configs import POLL_INTERVAL, ConfigSelector
from schemas import (
    NotFoundError,
    PipelineRunInfo,
    PollOutcome,
    PollState,
    RunState,
    TransientFetchError,
)
from utils import setup_logger

logger = setup_logger(__file__)

Fetch = Callable[[ConfigSelector], List[PipelineRunInfo]]


class PollerContext(BaseModel):
    """Everything that outlives a single poll iteration."""

    selector: ConfigSelector
    deadline: float
    """Absolute time, in the poller's clock, after which polling stops."""

    failed: bool = False
    """Latched: set once any iteration sees a `failed` PipelineRun, never cleared."""

    iterations: int = 0
    last_snapshot: List[PipelineRunInfo] = []


class Poller:
    """Polls PipelineRuns until all of them have finished or the deadline passes.

    `clock` and `sleep` default to the wall clock and may be replaced in tests.
    """

    def __init__(
        self,
        fetch: Fetch,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        interval: float = POLL_INTERVAL,
    ):
        self.fetch = fetch
        self.clock = clock
        self.sleep = sleep
        self.interval = interval

    def start(self, selector: ConfigSelector, timeout: float) -> PollerContext:
        return PollerContext(selector=selector, deadline=self.clock() + timeout)

    def step(self, ctx: PollerContext) -> PollState:
        """Run one iteration and return the resulting state."""
        ctx.iterations += 1
        try:
            snapshot = self.fetch(ctx.selector)
        except TransientFetchError as e:
            logger.warning(f"Fetch failed, will retry on next poll. error: `{e}`")
            snapshot = None

        if snapshot is not None:
            ctx.last_snapshot = snapshot
            states = [self.report(run) for run in snapshot]
            verdict = aggregate(states)
            if verdict.failed:
                ctx.failed = True

            if verdict.done:
                if verdict.total == 0:
                    logger.warning(
                        f"No PipelineRuns match, treating as done. selector: `{ctx.selector.describe()}`"
                    )
                return PollState.FAILED if ctx.failed else PollState.SUCCEEDED

            logger.info(
                f"{verdict.done_count}/{verdict.total} PipelineRuns done. iteration: `{ctx.iterations}`"
            )

        if self.clock() > ctx.deadline:
            return PollState.TIMEOUT
        return PollState.POLLING

    def run(self, selector: ConfigSelector, timeout: float) -> PollOutcome:
        ctx = self.start(selector, timeout)
        logger.info(f"Waiting for PipelineRuns. selector: `{selector.describe()}`, timeout: `{timeout}`")

        try:
            state = self.step(ctx)
            while state == PollState.POLLING:
                self.sleep(self.interval)
                state = self.step(ctx)
        except NotFoundError:
            logger.error(f"PipelineRun not found after {ctx.iterations} poll(s)")
            print_conditions(ctx.last_snapshot)
            raise

        outcome = PollOutcome(state=state, iterations=ctx.iterations, snapshot=ctx.last_snapshot)
        report_summary(outcome)
        return outcome

    @staticmethod
    def report(run: PipelineRunInfo) -> RunState:
        state = classify(run.reason)
        if state == RunState.UNKNOWN:
            print(f"{run.name}: {state.value} ({run.reason})")
        else:
            print(f"{run.name}: {state.value}")
        return state


def report_summary(outcome: PollOutcome) -> None:
    if outcome.state == PollState.SUCCEEDED:
        logger.info(f"All PipelineRuns succeeded after {outcome.iterations} poll(s)")
    elif outcome.state == PollState.FAILED:
        logger.error(f"At least one PipelineRun failed after {outcome.iterations} poll(s)")
    else:
        logger.error(f"Timed out waiting for PipelineRuns after {outcome.iterations} poll(s)")

    print_conditions(outcome.snapshot)


def print_conditions(snapshot: List[PipelineRunInfo]) -> None:
    print("Conditions:")
    for run in snapshot:
        print(f"{run.name}: {json.dumps(run.conditions)}")
