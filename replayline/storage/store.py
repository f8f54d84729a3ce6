from __future__ import annotations

import json
import os
import sqlite3
from dataclasses import dataclass
from typing import List, Optional

from ..core.errors import InvalidSessionError
from ..core.types import (
    Session,
    SessionSummary,
    session_from_dict,
    session_to_dict,
    step_from_dict,
    step_to_dict,
)
from ..version import (
    DEFAULT_REPLAYLINE_VERSION,
    DEFAULT_SCHEMA_VERSION,
    REPLAYLINE_VERSION,
    SCHEMA_VERSION,
)


@dataclass
class SQLiteStore:
    """
    Local-first session store.

    Sessions are written whole and read whole; the engine itself never
    touches storage.
    """

    path: str = "replayline.db"

    def __post_init__(self) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    replay_of TEXT,
                    replay_from_step_index INTEGER,
                    is_replay_session INTEGER NOT NULL DEFAULT 0,
                    replayline_version TEXT,
                    schema_version TEXT
                )
                """
            )

            # Migration: add version columns if they don't exist (for older DBs)
            self._migrate_add_version_columns(conn)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS steps (
                    session_id TEXT NOT NULL,
                    step_index INTEGER NOT NULL,
                    grp INTEGER NOT NULL,
                    type TEXT NOT NULL,
                    step_json TEXT NOT NULL,
                    PRIMARY KEY (session_id, step_index)
                )
                """
            )

    def _migrate_add_version_columns(self, conn: sqlite3.Connection) -> None:
        """
        Migration: add version columns to existing databases.

        This enables backward compatibility with older stores that
        don't have version fields.
        """
        try:
            conn.execute(
                "SELECT replayline_version, schema_version FROM sessions LIMIT 1"
            )
        except sqlite3.OperationalError:
            try:
                conn.execute("ALTER TABLE sessions ADD COLUMN replayline_version TEXT")
            except sqlite3.OperationalError:
                pass  # Column already exists
            try:
                conn.execute("ALTER TABLE sessions ADD COLUMN schema_version TEXT")
            except sqlite3.OperationalError:
                pass  # Column already exists

    def save_session(self, session: Session) -> None:
        """Insert or replace a session and all of its steps."""
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM steps WHERE session_id = ?", (session.session_id,)
            )
            conn.execute(
                """
                INSERT OR REPLACE INTO sessions
                (session_id, title, created_at, replay_of, replay_from_step_index,
                 is_replay_session, replayline_version, schema_version)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.session_id,
                    session.title,
                    session.created_at,
                    session.replay_of,
                    session.replay_from_step_index,
                    int(session.is_replay_session),
                    REPLAYLINE_VERSION,
                    SCHEMA_VERSION,
                ),
            )
            conn.executemany(
                """
                INSERT INTO steps (session_id, step_index, grp, type, step_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (
                        session.session_id,
                        step.step_index,
                        step.group,
                        step.type,
                        json.dumps(step_to_dict(step), sort_keys=True),
                    )
                    for step in session.steps
                ],
            )

    def has_session(self, session_id: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        return row is not None

    def load_session(self, session_id: str) -> Optional[Session]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT session_id, title, created_at, replay_of,
                       replay_from_step_index, is_replay_session
                FROM sessions WHERE session_id = ?
                """,
                (session_id,),
            ).fetchone()
            if row is None:
                return None
            step_rows = conn.execute(
                """
                SELECT step_json FROM steps
                WHERE session_id = ?
                ORDER BY step_index ASC
                """,
                (session_id,),
            ).fetchall()

        return Session(
            session_id=row["session_id"],
            title=row["title"],
            created_at=row["created_at"],
            steps=tuple(step_from_dict(json.loads(r["step_json"])) for r in step_rows),
            replay_of=row["replay_of"],
            replay_from_step_index=row["replay_from_step_index"],
            is_replay_session=bool(row["is_replay_session"]),
        )

    def get_versions(self, session_id: str) -> Optional[dict]:
        """Versions a session was stored with, defaulted for older rows."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT replayline_version, schema_version
                FROM sessions WHERE session_id = ?
                """,
                (session_id,),
            ).fetchone()
        if row is None:
            return None
        return {
            "replayline_version": row["replayline_version"]
            or DEFAULT_REPLAYLINE_VERSION,
            "schema_version": row["schema_version"] or DEFAULT_SCHEMA_VERSION,
        }

    def delete_session(self, session_id: str) -> bool:
        with self._connect() as conn:
            conn.execute("DELETE FROM steps WHERE session_id = ?", (session_id,))
            cursor = conn.execute(
                "DELETE FROM sessions WHERE session_id = ?", (session_id,)
            )
        return cursor.rowcount > 0

    def _session_ids(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT session_id FROM sessions").fetchall()
        return [r["session_id"] for r in rows]

    def list_sessions(self) -> List[SessionSummary]:
        """Summaries of all stored sessions, most recent activity first."""
        summaries = []
        for session_id in self._session_ids():
            session = self.load_session(session_id)
            if session is not None:
                summaries.append(SessionSummary.from_session(session))
        summaries.sort(key=lambda s: (s.last_activity, s.session_id), reverse=True)
        return summaries

    def latest_session(self) -> Optional[Session]:
        summaries = self.list_sessions()
        if not summaries:
            return None
        return self.load_session(summaries[0].session_id)

    def replays_of(self, session_id: str) -> List[SessionSummary]:
        """Summaries of sessions branched from ``session_id``."""
        return [s for s in self.list_sessions() if s.replay_of == session_id]

    def import_json(self, file_path: str) -> Session:
        """Load a JSON session file and store it."""
        with open(file_path, "r", encoding="utf-8") as f:
            try:
                raw = json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidSessionError(f"{file_path}: not valid JSON ({e})") from e
        session = session_from_dict(raw)
        self.save_session(session)
        return session

    def export_json(self, session_id: str, file_path: str) -> Optional[Session]:
        """Write a stored session as a JSON file. Returns None if not found."""
        session = self.load_session(session_id)
        if session is None:
            return None
        os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(session_to_dict(session), f, indent=2, ensure_ascii=False)
        return session
