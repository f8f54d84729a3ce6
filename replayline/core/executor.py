"""
Executor contract for branch construction.

The branch builder asks an executor for the replacement of each replayed
step. How the replacement is produced (re-running the agent, generating a
content variation, returning a canned fixture) is up to the executor.

Contract:
- execute(step) returns a Step, or an awaitable resolving to one
- The returned step should be of the same variant as the input; a changed
  variant is not a construction error and surfaces in comparison as
  "Type changed ..." (unless BranchPolicy.enforce_same_variant is set)
- Raising (or rejecting) stops the branch at that step
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol, Union

from .errors import StepExecutionError
from .types import Step

StepResult = Union[Step, Awaitable[Step]]


class StepExecutor(Protocol):
    def execute(self, step: Step) -> StepResult: ...


@dataclass(frozen=True)
class CallableExecutor:
    """Adapt a plain function (sync or async) to the executor contract."""

    fn: Callable[[Step], StepResult]

    def execute(self, step: Step) -> StepResult:
        return self.fn(step)


class PassthroughExecutor:
    """Replays each step by returning its recorded content unchanged."""

    async def execute(self, step: Step) -> Step:
        return step


async def run_executor(executor: StepExecutor, step: Step) -> Step:
    """
    Call the executor for one step and normalize its outcome.

    Raises:
        StepExecutionError: If the call raises, the awaitable rejects, or the
                            result is not a Step
    """
    try:
        result = executor.execute(step)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        raise StepExecutionError(
            f"Executor failed: {e}", step_index=step.step_index, cause=e
        ) from e

    if not isinstance(result, Step):
        raise StepExecutionError(
            f"Executor returned {type(result).__name__}, expected Step",
            step_index=step.step_index,
        )
    return result


def check_same_variant(original: Step, replayed: Step) -> None:
    """Raise StepExecutionError if the executor changed the step's variant."""
    if original.type != replayed.type:
        raise StepExecutionError(
            f"Executor changed step type from {original.type} to {replayed.type}",
            step_index=original.step_index,
        )
