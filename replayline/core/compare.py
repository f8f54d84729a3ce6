"""Session comparison engine.

Aligns two session timelines by step_index and classifies every aligned pair.

Algorithm:
1. Index both sessions by step_index (input order is irrelevant).
2. Walk the union of indices in ascending order; each index yields exactly
   one StepComparison.
3. Present in both: identical iff type and payload are equal; otherwise
   modified, with a field-by-field difference list per step type.
4. Present only in the original: removed. Only in the replay: added.
5. Summarize status counts; totals are the input step counts.

Comparison is pure and synchronous. "Everything differs" is a valid result,
not an error; only non-Session arguments are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .groups import ensure_session
from .line_diff import DiffSegment, diff_lines
from .types import (
    AssistantResponseData,
    CommandData,
    FileEditData,
    PromptData,
    Session,
    Step,
    step_to_dict,
)


class StepStatus(Enum):
    """
    Classification of one aligned step index.

    IDENTICAL: Same type and payload in both sessions
    MODIFIED: Present in both, type or payload differs
    ADDED: Present only in the replay session
    REMOVED: Present only in the original session
    """

    IDENTICAL = "identical"
    MODIFIED = "modified"
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class StepComparison:
    """Result of comparing one step index across two sessions."""

    step_index: int
    status: StepStatus
    original_step: Optional[Step] = None
    replay_step: Optional[Step] = None
    differences: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stepIndex": self.step_index,
            "status": self.status.value,
            "originalStep": (
                step_to_dict(self.original_step) if self.original_step else None
            ),
            "replayStep": step_to_dict(self.replay_step) if self.replay_step else None,
            "differences": list(self.differences),
        }


@dataclass(frozen=True)
class ComparisonSummary:
    """Aggregate status counts for a comparison."""

    total_steps_original: int
    total_steps_replay: int
    identical_steps: int
    modified_steps: int
    added_steps: int
    removed_steps: int

    @property
    def identical_ratio(self) -> float:
        """Share of original steps that are identical in the replay."""
        if self.total_steps_original == 0:
            return 1.0 if self.total_steps_replay == 0 else 0.0
        return self.identical_steps / self.total_steps_original

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalStepsOriginal": self.total_steps_original,
            "totalStepsReplay": self.total_steps_replay,
            "identicalSteps": self.identical_steps,
            "modifiedSteps": self.modified_steps,
            "addedSteps": self.added_steps,
            "removedSteps": self.removed_steps,
        }


@dataclass(frozen=True)
class SessionComparison:
    """
    Complete result of comparing two sessions.

    Derived on demand from two sessions; never persisted.
    """

    original_session: Session
    replay_session: Session
    step_comparisons: Tuple[StepComparison, ...]
    summary: ComparisonSummary

    def is_identical(self) -> bool:
        """Returns True if every aligned step is identical."""
        return self.summary.identical_steps == len(self.step_comparisons)

    def by_status(self, status: StepStatus) -> List[StepComparison]:
        return [c for c in self.step_comparisons if c.status == status]

    def get(self, step_index: int) -> Optional[StepComparison]:
        for comparison in self.step_comparisons:
            if comparison.step_index == step_index:
                return comparison
        return None

    def describe(self) -> str:
        """Human-readable one-line summary."""
        s = self.summary
        return (
            f"{s.identical_steps} identical, {s.modified_steps} modified, "
            f"{s.added_steps} added, {s.removed_steps} removed "
            f"({s.total_steps_original} original / {s.total_steps_replay} replay steps)"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalSessionId": self.original_session.session_id,
            "replaySessionId": self.replay_session.session_id,
            "stepComparisons": [c.to_dict() for c in self.step_comparisons],
            "summary": self.summary.to_dict(),
        }


# ---------------------------------------------------------------------------
# Field comparison
# ---------------------------------------------------------------------------


def _prompt_differences(old: PromptData, new: PromptData) -> List[str]:
    differences = []
    if old.prompt != new.prompt:
        differences.append("Prompt input changed")
    if old.response != new.response:
        differences.append("Response output changed")
    return differences


def _command_differences(old: CommandData, new: CommandData) -> List[str]:
    differences = []
    if old.command != new.command:
        differences.append("Command changed")
    if old.stdout != new.stdout:
        differences.append("Standard output changed")
    if old.stderr != new.stderr:
        differences.append("Standard error changed")
    if old.exit_code != new.exit_code:
        differences.append(
            f"Exit code changed from {old.exit_code} to {new.exit_code}"
        )
    return differences


def _file_edit_differences(old: FileEditData, new: FileEditData) -> List[str]:
    differences = []
    if old.path != new.path:
        differences.append("File path changed")
    if old.action != new.action:
        differences.append(f"Action changed from {old.action} to {new.action}")
    if old.content != new.content:
        differences.append("File content changed")
    return differences


def _assistant_response_differences(
    old: AssistantResponseData, new: AssistantResponseData
) -> List[str]:
    if old.response != new.response:
        return ["Response changed"]
    return []


def compare_step_fields(original: Step, replay: Step) -> List[str]:
    """
    Describe how ``replay`` differs from ``original``.

    A type change yields a single description and no field comparison.
    Returns an empty list if type and payload are equal.
    """
    if original.type != replay.type:
        return [f"Type changed from {original.type} to {replay.type}"]

    old, new = original.data, replay.data
    if isinstance(old, PromptData):
        return _prompt_differences(old, new)
    if isinstance(old, CommandData):
        return _command_differences(old, new)
    if isinstance(old, FileEditData):
        return _file_edit_differences(old, new)
    if isinstance(old, AssistantResponseData):
        return _assistant_response_differences(old, new)
    raise TypeError(f"Unhandled step payload: {type(old).__name__}")


def _classify(
    step_index: int, original: Optional[Step], replay: Optional[Step]
) -> StepComparison:
    if original is not None and replay is not None:
        if original.type == replay.type and original.data == replay.data:
            return StepComparison(
                step_index, StepStatus.IDENTICAL, original, replay, ()
            )
        differences = compare_step_fields(original, replay)
        return StepComparison(
            step_index, StepStatus.MODIFIED, original, replay, tuple(differences)
        )
    if original is not None:
        return StepComparison(
            step_index,
            StepStatus.REMOVED,
            original,
            None,
            ("Step was removed in replay",),
        )
    return StepComparison(
        step_index, StepStatus.ADDED, None, replay, ("Step was added in replay",)
    )


# ---------------------------------------------------------------------------
# Main engine
# ---------------------------------------------------------------------------


def compare(original: Session, replay: Session) -> SessionComparison:
    """Compare two sessions step by step.

    Args:
        original: The baseline session.
        replay: The session compared against it.

    Returns:
        SessionComparison with one StepComparison per index in either session.

    Raises:
        InvalidSessionError: If either argument is not a Session.
    """
    ensure_session(original, "original")
    ensure_session(replay, "replay")

    original_by_index = {s.step_index: s for s in original.steps}
    replay_by_index = {s.step_index: s for s in replay.steps}

    comparisons = tuple(
        _classify(idx, original_by_index.get(idx), replay_by_index.get(idx))
        for idx in sorted(set(original_by_index) | set(replay_by_index))
    )

    counts = {status: 0 for status in StepStatus}
    for comparison in comparisons:
        counts[comparison.status] += 1

    summary = ComparisonSummary(
        total_steps_original=len(original.steps),
        total_steps_replay=len(replay.steps),
        identical_steps=counts[StepStatus.IDENTICAL],
        modified_steps=counts[StepStatus.MODIFIED],
        added_steps=counts[StepStatus.ADDED],
        removed_steps=counts[StepStatus.REMOVED],
    )
    return SessionComparison(
        original_session=original,
        replay_session=replay,
        step_comparisons=comparisons,
        summary=summary,
    )


# ---------------------------------------------------------------------------
# Content diff for display
# ---------------------------------------------------------------------------


def primary_text(step: Step) -> str:
    """The text a viewer diffs for this step."""
    data = step.data
    if isinstance(data, PromptData):
        return data.response if data.response is not None else data.prompt
    if isinstance(data, CommandData):
        return data.stdout
    if isinstance(data, FileEditData):
        return data.content
    if isinstance(data, AssistantResponseData):
        return data.response
    raise TypeError(f"Unhandled step payload: {type(data).__name__}")


def diff_step_content(
    original: Optional[Step], replay: Optional[Step]
) -> List[DiffSegment]:
    """Line diff of the primary text of two steps; a missing step is empty."""
    old_text = primary_text(original) if original is not None else ""
    new_text = primary_text(replay) if replay is not None else ""
    return diff_lines(old_text, new_text)
