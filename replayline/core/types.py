"""
Session timeline model.

A session is an ordered, immutable log of steps. Every step carries a payload
that is exactly one of four variants; the payload class is the discriminant of
the step's type:

    prompt              -> PromptData
    file_edit           -> FileEditData
    command             -> CommandData
    assistant_response  -> AssistantResponseData

The JSON form mirrors the session files written by the recording hooks
(camelCase keys, payload under "data").
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from .errors import InvalidSessionError


class StepType:
    """Discriminant values for the step payload variants."""

    PROMPT = "prompt"
    FILE_EDIT = "file_edit"
    COMMAND = "command"
    ASSISTANT_RESPONSE = "assistant_response"


FILE_EDIT_ACTIONS = ("create", "update", "delete")


@dataclass(frozen=True)
class PromptData:
    TYPE: ClassVar[str] = StepType.PROMPT

    prompt: str
    response: Optional[str] = None


@dataclass(frozen=True)
class FileEditData:
    TYPE: ClassVar[str] = StepType.FILE_EDIT

    path: str
    action: str
    content: str = ""


@dataclass(frozen=True)
class CommandData:
    TYPE: ClassVar[str] = StepType.COMMAND

    command: str
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


@dataclass(frozen=True)
class AssistantResponseData:
    TYPE: ClassVar[str] = StepType.ASSISTANT_RESPONSE

    response: str


StepData = Union[PromptData, FileEditData, CommandData, AssistantResponseData]

STEP_DATA_TYPES: Dict[str, type] = {
    StepType.PROMPT: PromptData,
    StepType.FILE_EDIT: FileEditData,
    StepType.COMMAND: CommandData,
    StepType.ASSISTANT_RESPONSE: AssistantResponseData,
}


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True)
class Step:
    """
    One recorded event in a session.

    Attributes:
        step_index: Position of the step; unique within a session
        group: Logical turn the step belongs to
        timestamp: ISO8601 timestamp, used for display only
        data: Type-specific payload (one of the StepData variants)
        title: Optional display title
        tags: Free-form labels
        replay_of: step_index of the original step, set only on branched steps
    """

    step_index: int
    group: int
    timestamp: str
    data: StepData
    title: Optional[str] = None
    tags: Tuple[str, ...] = ()
    replay_of: Optional[int] = None

    def __post_init__(self) -> None:
        if not _is_index(self.step_index):
            raise InvalidSessionError(
                f"stepIndex must be a non-negative integer, got {self.step_index!r}"
            )
        if not _is_index(self.group):
            raise InvalidSessionError(
                f"group must be a non-negative integer, got {self.group!r} "
                f"(step {self.step_index})"
            )
        if not isinstance(self.data, tuple(STEP_DATA_TYPES.values())):
            raise InvalidSessionError(
                f"Unsupported step payload {type(self.data).__name__} "
                f"(step {self.step_index})"
            )
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def type(self) -> str:
        return self.data.TYPE

    def as_replay_of(self, original: "Step", timestamp: str) -> "Step":
        """Return a copy tagged as the replacement of ``original``."""
        return replace(
            self,
            step_index=original.step_index,
            group=original.group,
            timestamp=timestamp,
            replay_of=original.step_index,
        )


@dataclass(frozen=True)
class Session:
    """
    Represents a recorded or branched session.

    Attributes:
        session_id: Unique identifier for the session
        title: Human readable title
        created_at: ISO8601 timestamp of session creation
        steps: Steps in stored order
        replay_of: Source session id (branched sessions only)
        replay_from_step_index: Cut point used to branch this session
        is_replay_session: Quick flag to identify branched sessions
    """

    session_id: str
    title: str
    created_at: str
    steps: Tuple[Step, ...] = ()
    replay_of: Optional[str] = None
    replay_from_step_index: Optional[int] = None
    is_replay_session: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.steps, (list, tuple)):
            raise InvalidSessionError(
                f"steps must be a sequence, got {type(self.steps).__name__}",
                session_id=self.session_id,
            )
        seen = set()
        for step in self.steps:
            if not isinstance(step, Step):
                raise InvalidSessionError(
                    f"steps must contain Step values, got {type(step).__name__}",
                    session_id=self.session_id,
                )
            if step.step_index in seen:
                raise InvalidSessionError(
                    f"Duplicate stepIndex {step.step_index}",
                    session_id=self.session_id,
                )
            seen.add(step.step_index)
        if isinstance(self.steps, list):
            object.__setattr__(self, "steps", tuple(self.steps))

    def get_step(self, step_index: int) -> Optional[Step]:
        for step in self.steps:
            if step.step_index == step_index:
                return step
        return None

    def step_indices(self) -> List[int]:
        return [s.step_index for s in self.steps]


@dataclass(frozen=True)
class StepGroup:
    """Steps of one logical turn with their time range."""

    group_number: int
    steps: Tuple[Step, ...]
    start_time: str
    end_time: str


@dataclass(frozen=True)
class SessionSummary:
    """Compact description of a stored session for list views."""

    session_id: str
    title: str
    created_at: str
    step_count: int
    last_activity: str
    tags: Tuple[str, ...] = field(default_factory=tuple)
    replay_of: Optional[str] = None
    replay_from_step_index: Optional[int] = None
    is_replay_session: bool = False

    @classmethod
    def from_session(cls, session: Session) -> "SessionSummary":
        tags: List[str] = []
        for step in session.steps:
            for tag in step.tags:
                if tag not in tags:
                    tags.append(tag)
        timestamps = [s.timestamp for s in session.steps]
        return cls(
            session_id=session.session_id,
            title=session.title,
            created_at=session.created_at,
            step_count=len(session.steps),
            last_activity=max(timestamps) if timestamps else session.created_at,
            tags=tuple(tags),
            replay_of=session.replay_of,
            replay_from_step_index=session.replay_from_step_index,
            is_replay_session=session.is_replay_session,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "title": self.title,
            "createdAt": self.created_at,
            "stepCount": self.step_count,
            "lastActivity": self.last_activity,
            "tags": list(self.tags),
            "replayOf": self.replay_of,
            "replayFromStepIndex": self.replay_from_step_index,
            "isReplaySession": self.is_replay_session,
        }


# ---------------------------------------------------------------------------
# JSON conversion
# ---------------------------------------------------------------------------


def _require(obj: Dict[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in obj:
        raise InvalidSessionError(f"{where}: missing '{key}'")
    value = obj[key]
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise InvalidSessionError(
            f"{where}: '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _optional(
    obj: Dict[str, Any], key: str, kind: type, default: Any, where: str
) -> Any:
    value = obj.get(key, default)
    if not isinstance(value, kind):
        raise InvalidSessionError(
            f"{where}: '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _optional_str(obj: Dict[str, Any], key: str, where: str) -> Optional[str]:
    value = obj.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidSessionError(
            f"{where}: '{key}' must be str, got {type(value).__name__}"
        )
    return value


def _optional_index(obj: Dict[str, Any], key: str, where: str) -> Optional[int]:
    value = obj.get(key)
    if value is not None and not _is_index(value):
        raise InvalidSessionError(
            f"{where}: '{key}' must be a non-negative integer, got {value!r}"
        )
    return value


def _data_from_dict(step_type: str, data: Dict[str, Any], where: str) -> StepData:
    if step_type == StepType.PROMPT:
        response = data.get("response")
        if response is not None and not isinstance(response, str):
            raise InvalidSessionError(f"{where}: 'response' must be str")
        return PromptData(
            prompt=_require(data, "prompt", str, where), response=response
        )
    if step_type == StepType.FILE_EDIT:
        action = _require(data, "action", str, where)
        if action not in FILE_EDIT_ACTIONS:
            raise InvalidSessionError(f"{where}: unknown file edit action '{action}'")
        return FileEditData(
            path=_require(data, "path", str, where),
            action=action,
            content=_optional(data, "content", str, "", where),
        )
    if step_type == StepType.COMMAND:
        return CommandData(
            command=_require(data, "command", str, where),
            stdout=_optional(data, "stdout", str, "", where),
            stderr=_optional(data, "stderr", str, "", where),
            exit_code=_require(data, "exitCode", int, where),
        )
    if step_type == StepType.ASSISTANT_RESPONSE:
        return AssistantResponseData(response=_require(data, "response", str, where))
    raise InvalidSessionError(f"{where}: unknown step type '{step_type}'")


def _data_to_dict(data: StepData) -> Dict[str, Any]:
    if isinstance(data, PromptData):
        out: Dict[str, Any] = {"prompt": data.prompt}
        if data.response is not None:
            out["response"] = data.response
        return out
    if isinstance(data, FileEditData):
        return {"path": data.path, "action": data.action, "content": data.content}
    if isinstance(data, CommandData):
        return {
            "command": data.command,
            "stdout": data.stdout,
            "stderr": data.stderr,
            "exitCode": data.exit_code,
        }
    if isinstance(data, AssistantResponseData):
        return {"response": data.response}
    raise TypeError(f"Unhandled step payload: {type(data).__name__}")


def step_from_dict(obj: Any) -> Step:
    if not isinstance(obj, dict):
        raise InvalidSessionError(f"step must be an object, got {type(obj).__name__}")
    where = f"step {obj.get('stepIndex', '?')}"
    step_type = _require(obj, "type", str, where)
    data = _require(obj, "data", dict, where)
    tags = obj.get("tags") or []
    if not isinstance(tags, list):
        raise InvalidSessionError(f"{where}: 'tags' must be a list")
    return Step(
        step_index=_require(obj, "stepIndex", int, where),
        group=_require(obj, "group", int, where),
        timestamp=_require(obj, "timestamp", str, where),
        data=_data_from_dict(step_type, data, where),
        title=_optional_str(obj, "title", where),
        tags=tuple(tags),
        replay_of=_optional_index(obj, "replayOf", where),
    )


def step_to_dict(step: Step) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "stepIndex": step.step_index,
        "timestamp": step.timestamp,
        "group": step.group,
        "type": step.type,
        "data": _data_to_dict(step.data),
    }
    if step.title is not None:
        out["title"] = step.title
    if step.tags:
        out["tags"] = list(step.tags)
    if step.replay_of is not None:
        out["replayOf"] = step.replay_of
    return out


def session_from_dict(obj: Any) -> Session:
    """Build a Session from its JSON form, rejecting malformed shapes."""
    if not isinstance(obj, dict):
        raise InvalidSessionError(
            f"session must be an object, got {type(obj).__name__}"
        )
    session_id = obj.get("sessionId")
    if "steps" not in obj:
        raise InvalidSessionError("session is missing 'steps'", session_id=session_id)
    if not isinstance(obj["steps"], list):
        raise InvalidSessionError(
            f"'steps' must be a list, got {type(obj['steps']).__name__}",
            session_id=session_id,
        )
    session_id = _require(obj, "sessionId", str, "session")
    return Session(
        session_id=session_id,
        title=_optional_str(obj, "title", "session") or f"Session {session_id[:8]}",
        created_at=_require(obj, "createdAt", str, "session"),
        steps=tuple(step_from_dict(s) for s in obj["steps"]),
        replay_of=_optional_str(obj, "replayOf", "session"),
        replay_from_step_index=_optional_index(obj, "replayFromStepIndex", "session"),
        is_replay_session=_optional(obj, "isReplaySession", bool, False, "session"),
    )


def session_to_dict(session: Session) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "sessionId": session.session_id,
        "title": session.title,
        "createdAt": session.created_at,
        "steps": [step_to_dict(s) for s in session.steps],
    }
    if session.replay_of is not None:
        out["replayOf"] = session.replay_of
    if session.replay_from_step_index is not None:
        out["replayFromStepIndex"] = session.replay_from_step_index
    if session.is_replay_session:
        out["isReplaySession"] = True
    return out
