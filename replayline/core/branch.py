"""
Branch construction for recorded sessions.

A branch is a new session derived from an existing one at a cut point:

    groups before the cut's group      -> copied unchanged
    cut's group, up to the cut step    -> copied unchanged
    cut's group, after the cut step    -> re-executed through the executor
    groups after the cut's group       -> dropped

Later groups are dropped because they are turns that, relative to the branch
point, have not happened yet.

Core Invariants:
- The source session is never mutated; the branch shares no mutable state
  with it
- Replayed steps run strictly one at a time, in ascending step_index order
- The first executor failure truncates the branch; steps already replayed
  are kept and the partial session is still returned (no rollback)
- Every replayed step carries replay_of = the step_index it replaces
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import StepExecutionError, StepNotFoundError
from .executor import StepExecutor, check_same_variant, run_executor
from .groups import ensure_session, validate_session
from .types import Session, Step

# =============================================================================
# Branch Policy
# =============================================================================


@dataclass(frozen=True)
class BranchPolicy:
    """
    Configuration for branch construction.

    Attributes:
        validate_groups: If True, reject a source session whose step indices
                         are not strictly increasing or whose groups are not
                         contiguous runs (raises InvalidSessionError).
        enforce_same_variant: If True, a replayed step whose type differs
                              from the original counts as an executor failure.
    """

    validate_groups: bool = False
    enforce_same_variant: bool = False

    @classmethod
    def default(cls) -> "BranchPolicy":
        """Create default branch policy."""
        return cls()

    @classmethod
    def strict(cls) -> "BranchPolicy":
        """Create strict branch policy - validate input and executor output."""
        return cls(validate_groups=True, enforce_same_variant=True)


# =============================================================================
# Branch Result
# =============================================================================


@dataclass(frozen=True)
class BranchResult:
    """
    Complete result of a branch construction.

    Attributes:
        session: The branched session (partial if error is set)
        cut_step_index: Cut point used
        target_group: Group of the cut step
        kept: Indices copied unchanged from the source
        replayed: Indices successfully re-executed
        skipped: Indices of the replayed tail omitted after a failure
        dropped: Indices discarded because their group follows the cut's group
        error: The executor failure that truncated the branch, if any
    """

    session: Session
    cut_step_index: int
    target_group: int
    kept: Tuple[int, ...] = ()
    replayed: Tuple[int, ...] = ()
    skipped: Tuple[int, ...] = ()
    dropped: Tuple[int, ...] = ()
    error: Optional[StepExecutionError] = field(default=None, compare=False)

    def is_complete(self) -> bool:
        """Returns True if every step of the replayed tail was re-executed."""
        return self.error is None

    def summary(self) -> str:
        base = (
            f"{self.session.session_id}: {len(self.kept)} kept, "
            f"{len(self.replayed)} replayed, {len(self.dropped)} dropped"
        )
        if self.error is not None:
            reason = self.error.args[0]
            return f"{base}; TRUNCATED at step {self.error.step_index}: {reason}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session.session_id,
            "replay_of": self.session.replay_of,
            "cut_step_index": self.cut_step_index,
            "target_group": self.target_group,
            "kept": list(self.kept),
            "replayed": list(self.replayed),
            "skipped": list(self.skipped),
            "dropped": list(self.dropped),
            "error": str(self.error) if self.error is not None else None,
        }


# =============================================================================
# Identifiers and timestamps
# =============================================================================


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO8601 UTC with millisecond precision and a trailing Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_replay_session_id(source_session_id: str, moment: datetime) -> str:
    """Derive a branch id from the source id and the construction time."""
    stamp = format_timestamp(moment).replace(":", "").replace(".", "")
    return f"{source_session_id}-replay-{stamp}"


# =============================================================================
# Branch Builder
# =============================================================================


class BranchBuilder:
    """
    Builds branched sessions through an injected executor.

    Usage:
        builder = BranchBuilder()
        result = await builder.build(session, cut_step_index=3, executor=executor)
        if not result.is_complete():
            print(result.summary())
    """

    def __init__(
        self,
        policy: Optional[BranchPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            policy: Branch policy (default: BranchPolicy.default())
            clock: Returns the current time; injectable for tests
        """
        self.policy = policy or BranchPolicy.default()
        self.clock = clock or _utc_now

    def _now(self) -> str:
        return format_timestamp(self.clock())

    async def build(
        self,
        original: Session,
        cut_step_index: int,
        executor: StepExecutor,
    ) -> BranchResult:
        """
        Branch ``original`` at ``cut_step_index``.

        Raises:
            InvalidSessionError: If original is not a well-formed Session
            StepNotFoundError: If cut_step_index is not an integer or no step
                               has step_index == cut_step_index
        """
        ensure_session(original, "original")
        if self.policy.validate_groups:
            validate_session(original)

        if not isinstance(cut_step_index, int) or isinstance(cut_step_index, bool):
            raise StepNotFoundError(
                f"Cut point must be an integer step index, got {cut_step_index!r}",
                session_id=original.session_id,
                step_index=cut_step_index,
            )
        cut_step = original.get_step(cut_step_index)
        if cut_step is None:
            raise StepNotFoundError(
                f"Step {cut_step_index} not found in original session",
                session_id=original.session_id,
                step_index=cut_step_index,
            )
        target_group = cut_step.group

        kept: List[Step] = []
        tail: List[Step] = []
        dropped: List[int] = []
        for step in original.steps:
            if step.group < target_group:
                kept.append(copy.deepcopy(step))
            elif step.group == target_group:
                if step.step_index <= cut_step_index:
                    kept.append(copy.deepcopy(step))
                else:
                    tail.append(step)
            else:
                dropped.append(step.step_index)
        tail.sort(key=lambda s: s.step_index)

        replayed: List[Step] = []
        skipped: List[int] = []
        error: Optional[StepExecutionError] = None
        for position, source_step in enumerate(tail):
            try:
                result = await run_executor(executor, source_step)
                if self.policy.enforce_same_variant:
                    check_same_variant(source_step, result)
            except StepExecutionError as e:
                error = e
                skipped = [s.step_index for s in tail[position:]]
                break
            replayed.append(result.as_replay_of(source_step, self._now()))

        created = self.clock()
        session = Session(
            session_id=generate_replay_session_id(original.session_id, created),
            title=f"Replay of {original.title}",
            created_at=format_timestamp(created),
            steps=tuple(sorted(kept + replayed, key=lambda s: s.step_index)),
            replay_of=original.session_id,
            replay_from_step_index=cut_step_index,
            is_replay_session=True,
        )
        return BranchResult(
            session=session,
            cut_step_index=cut_step_index,
            target_group=target_group,
            kept=tuple(s.step_index for s in kept),
            replayed=tuple(s.step_index for s in replayed),
            skipped=tuple(skipped),
            dropped=tuple(dropped),
            error=error,
        )


async def branch(
    original: Session,
    cut_step_index: int,
    executor: StepExecutor,
    *,
    policy: Optional[BranchPolicy] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Session:
    """
    Derive a branched session from ``original`` at ``cut_step_index``.

    A failing executor truncates the branch; the partial session is returned.
    Use BranchBuilder.build() to also see the failure.
    """
    builder = BranchBuilder(policy=policy, clock=clock)
    result = await builder.build(original, cut_step_index, executor)
    return result.session
