#!/usr/bin/env python3
"""
Replayline Example: Branch and Compare

Demonstrates:
1. Building a recorded session with two turns
2. Branching it after the prompt of the second turn
3. Re-executing the rest of that turn with a stubbed executor
4. Comparing the branch with the original and printing a line diff

No external dependencies. No real agent calls.
"""

import asyncio
import os
import sys
from dataclasses import replace

# Add parent directory to path for local development
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from replayline import (
    BranchBuilder,
    CallableExecutor,
    CommandData,
    FileEditData,
    PromptData,
    Session,
    Step,
    StepStatus,
    compare,
)
from replayline.core.compare import diff_step_content


# =============================================================================
# Recorded Session
# =============================================================================


def recorded_session() -> Session:
    steps = [
        Step(0, 0, "2024-05-01T09:00:00.000Z", PromptData("Create a greeting module")),
        Step(
            1,
            0,
            "2024-05-01T09:00:04.000Z",
            FileEditData("greet.py", "create", "def greet():\n    return 'hi'\n"),
        ),
        Step(2, 1, "2024-05-01T09:01:00.000Z", PromptData("Make it take a name")),
        Step(
            3,
            1,
            "2024-05-01T09:01:05.000Z",
            FileEditData(
                "greet.py", "update", "def greet(name):\n    return 'hi ' + name\n"
            ),
        ),
        Step(
            4,
            1,
            "2024-05-01T09:01:09.000Z",
            CommandData("pytest -q", "1 failed", "AssertionError", 1),
        ),
    ]
    return Session("demo", "Greeting module", "2024-05-01T09:00:00.000Z", steps)


# =============================================================================
# Stubbed Executor
# =============================================================================


async def stub_agent(step: Step) -> Step:
    """Pretend to re-run the agent; this time the edit is right."""
    await asyncio.sleep(0)
    if isinstance(step.data, FileEditData):
        content = "def greet(name):\n    return f'hi {name}'\n"
        return replace(step, data=replace(step.data, content=content))
    if isinstance(step.data, CommandData):
        return replace(step, data=CommandData("pytest -q", "1 passed", "", 0))
    return step


# =============================================================================
# Main
# =============================================================================


async def main() -> None:
    original = recorded_session()

    result = await BranchBuilder().build(original, 2, CallableExecutor(stub_agent))
    print(result.summary())

    comparison = compare(original, result.session)
    for c in comparison.step_comparisons:
        print(f"  step {c.step_index}: {c.status.value}")
        for difference in c.differences:
            print(f"    - {difference}")
        if c.status == StepStatus.MODIFIED:
            for segment in diff_step_content(c.original_step, c.replay_step):
                marker = {"added": "+", "removed": "-"}.get(segment.kind, " ")
                for line in segment.lines:
                    print(f"      {marker} {line.rstrip()}")

    print(comparison.describe())


if __name__ == "__main__":
    asyncio.run(main())
