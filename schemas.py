from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

EXIT_SUCCESS = 0
EXIT_FETCH_ERROR = 1
EXIT_USAGE = 2
EXIT_FAILED = 21
EXIT_TIMEOUT = 124


class RunState(str, Enum):
    """Coarse state of a PipelineRun, derived from the reason of its first condition."""

    NO_CONDITION = "no-condition"
    INIT = "init"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @property
    def is_done(self) -> bool:
        return self in (RunState.SUCCEEDED, RunState.FAILED)


class PollState(str, Enum):
    POLLING = "polling"
    SUCCEEDED = "succeeded-exit"
    FAILED = "failed-exit"
    TIMEOUT = "timeout-exit"

    @property
    def exit_code(self) -> int:
        return {
            PollState.SUCCEEDED: EXIT_SUCCESS,
            PollState.FAILED: EXIT_FAILED,
            PollState.TIMEOUT: EXIT_TIMEOUT,
        }[self]


class PipelineRunInfo(BaseModel):
    """A PipelineRun as seen in one snapshot."""

    name: str
    conditions: List[dict] = Field(default_factory=list)
    """`status.conditions` in API order. Only the first one is consulted."""

    @property
    def reason(self) -> Optional[str]:
        if not self.conditions:
            return None
        return self.conditions[0].get("reason")


class RunVerdict(BaseModel):
    """Aggregate over a single snapshot."""

    total: int
    done_count: int
    failed: bool
    """True if any resource in this snapshot is `failed`. Not latched."""

    @property
    def done(self) -> bool:
        return self.done_count == self.total


class PollOutcome(BaseModel):
    state: PollState
    iterations: int
    snapshot: List[PipelineRunInfo] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return self.state.exit_code


class NotFoundError(LookupError):
    """Raised when no object matches the given criteria.

    For example a PipelineRun name that does not exist in the namespace."""


class UsageError(ValueError):
    """Raised for invalid, missing, or conflicting command line arguments."""


class ClusterConfigError(RuntimeError):
    """Raised when no usable cluster credentials could be loaded."""


class TransientFetchError(RuntimeError):
    """Raised when the cluster query failed in a way the next poll may not."""
