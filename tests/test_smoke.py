import asyncio
import json
import os
import tempfile
import unittest
from dataclasses import replace

from replayline import (
    CallableExecutor,
    FileEditData,
    SQLiteStore,
    StepStatus,
    branch,
    compare,
    diff_lines,
)
from replayline.core.compare import diff_step_content

RECORDED = {
    "sessionId": "7f3c9a10-session",
    "title": "Add retry to the HTTP client",
    "createdAt": "2024-05-01T09:00:00.000Z",
    "steps": [
        {
            "stepIndex": 0,
            "timestamp": "2024-05-01T09:00:01.000Z",
            "group": 0,
            "type": "prompt",
            "data": {"prompt": "Add retries to client.get"},
        },
        {
            "stepIndex": 1,
            "timestamp": "2024-05-01T09:00:05.000Z",
            "group": 0,
            "type": "file_edit",
            "data": {
                "path": "client.py",
                "action": "update",
                "content": "def get(url):\n    return fetch(url)\n",
            },
        },
        {
            "stepIndex": 2,
            "timestamp": "2024-05-01T09:00:09.000Z",
            "group": 0,
            "type": "command",
            "data": {
                "command": "pytest",
                "stdout": "1 passed",
                "stderr": "",
                "exitCode": 0,
            },
        },
        {
            "stepIndex": 3,
            "timestamp": "2024-05-01T09:01:00.000Z",
            "group": 1,
            "type": "assistant_response",
            "data": {"response": "Retries added."},
        },
    ],
}

RETRY_BODY = (
    "def get(url):\n"
    "    for _ in range(3):\n"
    "        return fetch(url)\n"
)


def with_retries(step):
    """Executor: rewrite the file edit, pass everything else through."""
    if isinstance(step.data, FileEditData):
        return replace(step, data=replace(step.data, content=RETRY_BODY))
    return step


class SmokeTest(unittest.TestCase):
    def test_import_branch_and_compare(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "replayline.db")
            json_path = os.path.join(temp_dir, "session.json")
            with open(json_path, "w", encoding="utf-8") as f:
                json.dump(RECORDED, f)

            store = SQLiteStore(path=db_path)
            original = store.import_json(json_path)

            branched = asyncio.run(branch(original, 0, CallableExecutor(with_retries)))
            store.save_session(branched)

            loaded = store.load_session(branched.session_id)
            self.assertEqual(loaded, branched)
            self.assertEqual(loaded.step_indices(), [0, 1, 2])
            self.assertEqual([s.replay_of for s in loaded.steps], [None, 1, 2])

            comparison = compare(original, loaded)
            self.assertEqual(
                [c.status for c in comparison.step_comparisons],
                [
                    StepStatus.IDENTICAL,
                    StepStatus.MODIFIED,
                    StepStatus.IDENTICAL,
                    StepStatus.REMOVED,
                ],
            )
            self.assertEqual(
                comparison.get(1).differences, ("File content changed",)
            )

            segments = diff_step_content(loaded.get_step(1), original.get_step(1))
            self.assertEqual(
                "".join(s.text for s in segments if s.kind != "added"),
                RETRY_BODY,
            )

    def test_diff_lines_top_level(self) -> None:
        segments = diff_lines("a\n", "a\nb\n")
        self.assertEqual([s.kind for s in segments], ["unchanged", "added"])


if __name__ == "__main__":
    unittest.main()
