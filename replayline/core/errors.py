"""Exceptions raised by the replay and comparison engine."""

from __future__ import annotations

from typing import Optional


class ReplaylineError(Exception):
    """Base exception for replay and comparison errors."""

    pass


class InvalidSessionError(ReplaylineError):
    """
    Raised when a session does not have the expected shape.

    This is fatal and raised before any branching or comparison work begins.
    Malformed input is rejected, never coerced.
    """

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.session_id = session_id

    def __str__(self) -> str:
        if self.session_id:
            return f"InvalidSessionError(session={self.session_id}): {self.args[0]}"
        return f"InvalidSessionError: {self.args[0]}"


class StepNotFoundError(ReplaylineError):
    """Raised when a branch cut point does not exist in the source session."""

    def __init__(self, message: str, session_id: str, step_index: int):
        super().__init__(message)
        self.session_id = session_id
        self.step_index = step_index

    def __str__(self) -> str:
        return (
            f"StepNotFoundError(session={self.session_id}, "
            f"step={self.step_index}): {self.args[0]}"
        )


class StepExecutionError(ReplaylineError):
    """
    Raised when an executor fails to produce a replacement step.

    During branch construction this truncates the branch instead of failing
    it: the error is captured on the BranchResult alongside the partial
    session.
    """

    def __init__(
        self,
        message: str,
        step_index: int,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.step_index = step_index
        self.cause = cause

    def __str__(self) -> str:
        return f"StepExecutionError at step {self.step_index}: {self.args[0]}"
