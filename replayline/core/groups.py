"""Group helpers and session shape validation."""

from __future__ import annotations

from typing import Any, Dict, List

from .errors import InvalidSessionError
from .types import Session, Step, StepGroup


def ensure_session(value: Any, role: str = "session") -> Session:
    """Reject anything that is not a well-formed Session."""
    if not isinstance(value, Session):
        raise InvalidSessionError(
            f"{role} must be a Session, got {type(value).__name__}"
        )
    if not isinstance(value.steps, tuple):
        raise InvalidSessionError(
            f"{role} steps must be a sequence, got {type(value.steps).__name__}",
            session_id=value.session_id,
        )
    return value


def group_steps(session: Session) -> List[StepGroup]:
    """Split a session into its logical turns, ordered by group number."""
    by_group: Dict[int, List[Step]] = {}
    for step in sorted(session.steps, key=lambda s: s.step_index):
        by_group.setdefault(step.group, []).append(step)

    groups: List[StepGroup] = []
    for number in sorted(by_group):
        steps = by_group[number]
        times = sorted(s.timestamp for s in steps)
        groups.append(
            StepGroup(
                group_number=number,
                steps=tuple(steps),
                start_time=times[0],
                end_time=times[-1],
            )
        )
    return groups


def find_group_violations(session: Session) -> List[str]:
    """
    List ordering and group-contiguity violations.

    A well-formed session stores steps in strictly increasing step_index
    order, and the steps of each group form one contiguous run when scanned
    in that order. Returns an empty list for a well-formed session.
    """
    violations: List[str] = []

    previous = None
    for step in session.steps:
        if previous is not None and step.step_index <= previous:
            violations.append(
                f"stepIndex {step.step_index} stored after stepIndex {previous}"
            )
        previous = step.step_index

    closed = set()
    current = None
    for step in sorted(session.steps, key=lambda s: s.step_index):
        if step.group == current:
            continue
        if step.group in closed:
            violations.append(
                f"group {step.group} resumes at stepIndex {step.step_index} "
                f"after group {current}"
            )
        if current is not None:
            closed.add(current)
        current = step.group

    return violations


def validate_session(session: Session) -> Session:
    """Raise InvalidSessionError unless ordering and group runs are well-formed."""
    ensure_session(session)
    violations = find_group_violations(session)
    if violations:
        raise InvalidSessionError(
            "; ".join(violations), session_id=session.session_id
        )
    return session
