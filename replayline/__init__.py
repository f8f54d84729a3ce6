from .core import (
    AssistantResponseData,
    # Branching
    BranchBuilder,
    BranchPolicy,
    BranchResult,
    # Executor contract
    CallableExecutor,
    CommandData,
    # Comparison
    ComparisonSummary,
    # Line diff
    DiffKind,
    DiffSegment,
    DiffStats,
    FileEditData,
    # Exceptions
    InvalidSessionError,
    PassthroughExecutor,
    PromptData,
    ReplaylineError,
    # Timeline model
    Session,
    SessionComparison,
    SessionSummary,
    Step,
    StepComparison,
    StepExecutionError,
    StepExecutor,
    StepGroup,
    StepNotFoundError,
    StepStatus,
    StepType,
    branch,
    compare,
    diff_lines,
    diff_stats,
    group_steps,
    session_from_dict,
    session_to_dict,
    side_by_side,
    validate_session,
)
from .storage import SQLiteStore
from .version import (
    DEFAULT_REPLAYLINE_VERSION,
    DEFAULT_SCHEMA_VERSION,
    REPLAYLINE_VERSION,
    SCHEMA_VERSION,
)

__all__ = [
    # Version
    "REPLAYLINE_VERSION",
    "SCHEMA_VERSION",
    "DEFAULT_REPLAYLINE_VERSION",
    "DEFAULT_SCHEMA_VERSION",
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
    "group_steps",
    "validate_session",
    # Storage
    "SQLiteStore",
    # Exceptions
    "ReplaylineError",
    "InvalidSessionError",
    "StepNotFoundError",
    "StepExecutionError",
    # Entry points
    "branch",
    "compare",
    "diff_lines",
    # Branching
    "BranchBuilder",
    "BranchPolicy",
    "BranchResult",
    # Executor contract
    "StepExecutor",
    "CallableExecutor",
    "PassthroughExecutor",
    # Comparison
    "StepStatus",
    "StepComparison",
    "ComparisonSummary",
    "SessionComparison",
    # Line diff
    "diff_stats",
    "side_by_side",
    "DiffKind",
    "DiffSegment",
    "DiffStats",
]
