"""Core types and logic for Replayline."""

from .branch import (
    BranchBuilder,
    BranchPolicy,
    BranchResult,
    branch,
    format_timestamp,
    generate_replay_session_id,
)
from .compare import (
    ComparisonSummary,
    SessionComparison,
    StepComparison,
    StepStatus,
    compare,
    compare_step_fields,
    diff_step_content,
    primary_text,
)
from .errors import (
    InvalidSessionError,
    ReplaylineError,
    StepExecutionError,
    StepNotFoundError,
)
from .executor import (
    CallableExecutor,
    PassthroughExecutor,
    StepExecutor,
    check_same_variant,
)
from .groups import (
    ensure_session,
    find_group_violations,
    group_steps,
    validate_session,
)
from .line_diff import (
    DiffKind,
    DiffRow,
    DiffSegment,
    DiffStats,
    diff_lines,
    diff_stats,
    side_by_side,
)
from .types import (
    AssistantResponseData,
    CommandData,
    FileEditData,
    PromptData,
    Session,
    SessionSummary,
    Step,
    StepGroup,
    StepType,
    session_from_dict,
    session_to_dict,
    step_from_dict,
    step_to_dict,
)

__all__ = [
    # Timeline model
    "Step",
    "StepType",
    "PromptData",
    "FileEditData",
    "CommandData",
    "AssistantResponseData",
    "Session",
    "SessionSummary",
    "StepGroup",
    "session_from_dict",
    "session_to_dict",
    "step_from_dict",
    "step_to_dict",
    # Groups and validation
    "ensure_session",
    "group_steps",
    "find_group_violations",
    "validate_session",
    # Exceptions
    "ReplaylineError",
    "InvalidSessionError",
    "StepNotFoundError",
    "StepExecutionError",
    # Line diff
    "diff_lines",
    "diff_stats",
    "side_by_side",
    "DiffKind",
    "DiffRow",
    "DiffSegment",
    "DiffStats",
    # Executor contract
    "StepExecutor",
    "CallableExecutor",
    "PassthroughExecutor",
    "check_same_variant",
    # Branching
    "branch",
    "BranchBuilder",
    "BranchPolicy",
    "BranchResult",
    "format_timestamp",
    "generate_replay_session_id",
    # Comparison
    "compare",
    "compare_step_fields",
    "diff_step_content",
    "primary_text",
    "StepStatus",
    "StepComparison",
    "ComparisonSummary",
    "SessionComparison",
]
