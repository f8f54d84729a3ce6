"""
Tests for session comparison.

These tests verify:
1. A session compared with itself is identical at every index
2. Steps are aligned by step_index, not by position
3. Per-type field differences are reported in a fixed order
4. Swapping the arguments swaps added and removed
"""

import unittest

from replayline import (
    AssistantResponseData,
    CommandData,
    FileEditData,
    InvalidSessionError,
    PromptData,
    Session,
    Step,
    StepStatus,
    compare,
)
from replayline.core.compare import compare_step_fields, diff_step_content, primary_text
from replayline.core.line_diff import DiffKind


def make_step(step_index, data, group=1):
    return Step(
        step_index=step_index,
        group=group,
        timestamp=f"2024-01-01T00:00:{step_index:02d}.000Z",
        data=data,
    )


def make_session(steps, session_id="s"):
    return Session(
        session_id=session_id,
        title=session_id,
        created_at="2024-01-01T00:00:00.000Z",
        steps=tuple(steps),
    )


def prompts(indices, session_id="s"):
    return make_session(
        [make_step(i, PromptData(f"prompt {i}")) for i in indices], session_id
    )


class TestCompareAlignment(unittest.TestCase):
    def test_self_comparison_is_identical(self):
        session = make_session(
            [
                make_step(0, PromptData("hi", "hello")),
                make_step(1, FileEditData("a.py", "create", "x\n")),
                make_step(2, CommandData("make", "ok", "", 0)),
                make_step(3, AssistantResponseData("done")),
            ]
        )
        result = compare(session, session)
        self.assertTrue(result.is_identical())
        self.assertEqual(
            [c.status for c in result.step_comparisons], [StepStatus.IDENTICAL] * 4
        )
        self.assertTrue(all(c.differences == () for c in result.step_comparisons))

    def test_added_and_removed_by_index(self):
        """[1,2,3] vs [1,2,4]: two identical, 3 removed, 4 added."""
        result = compare(prompts([1, 2, 3], "a"), prompts([1, 2, 4], "b"))
        self.assertEqual(
            [(c.step_index, c.status) for c in result.step_comparisons],
            [
                (1, StepStatus.IDENTICAL),
                (2, StepStatus.IDENTICAL),
                (3, StepStatus.REMOVED),
                (4, StepStatus.ADDED),
            ],
        )
        self.assertEqual(result.get(3).differences, ("Step was removed in replay",))
        self.assertEqual(result.get(4).differences, ("Step was added in replay",))
        self.assertIsNone(result.get(3).replay_step)
        self.assertIsNone(result.get(4).original_step)

        summary = result.summary
        self.assertEqual(summary.total_steps_original, 3)
        self.assertEqual(summary.total_steps_replay, 3)
        self.assertEqual(summary.identical_steps, 2)
        self.assertEqual(summary.added_steps, 1)
        self.assertEqual(summary.removed_steps, 1)
        self.assertEqual(summary.modified_steps, 0)
        self.assertFalse(result.is_identical())

    def test_swapping_arguments_swaps_added_and_removed(self):
        a, b = prompts([1, 2, 3], "a"), prompts([1, 2, 4], "b")
        forward = compare(a, b)
        backward = compare(b, a)
        self.assertEqual(backward.get(3).status, StepStatus.ADDED)
        self.assertEqual(backward.get(4).status, StepStatus.REMOVED)
        self.assertEqual(forward.summary.added_steps, backward.summary.removed_steps)

    def test_swapping_arguments_mirrors_every_status(self):
        a = make_session(
            [
                make_step(1, PromptData("same")),
                make_step(2, PromptData("before")),
                make_step(3, PromptData("only in a")),
            ],
            "a",
        )
        b = make_session(
            [
                make_step(1, PromptData("same")),
                make_step(2, PromptData("after")),
                make_step(4, PromptData("only in b")),
            ],
            "b",
        )
        mirror = {
            StepStatus.IDENTICAL: StepStatus.IDENTICAL,
            StepStatus.MODIFIED: StepStatus.MODIFIED,
            StepStatus.ADDED: StepStatus.REMOVED,
            StepStatus.REMOVED: StepStatus.ADDED,
        }
        forward = {c.step_index: c.status for c in compare(a, b).step_comparisons}
        backward = {c.step_index: c.status for c in compare(b, a).step_comparisons}

        self.assertEqual(
            forward,
            {
                1: StepStatus.IDENTICAL,
                2: StepStatus.MODIFIED,
                3: StepStatus.REMOVED,
                4: StepStatus.ADDED,
            },
        )
        self.assertEqual(backward, {i: mirror[s] for i, s in forward.items()})

    def test_input_order_does_not_matter(self):
        ordered = prompts([1, 2, 3])
        shuffled = make_session(reversed(ordered.steps))
        self.assertTrue(compare(ordered, shuffled).is_identical())
        self.assertEqual(
            [c.step_index for c in compare(shuffled, ordered).step_comparisons],
            [1, 2, 3],
        )

    def test_one_comparison_per_index_in_either_session(self):
        result = compare(prompts([0, 2, 4]), prompts([1, 2, 3]))
        self.assertEqual(
            [c.step_index for c in result.step_comparisons], [0, 1, 2, 3, 4]
        )

    def test_empty_sessions(self):
        result = compare(prompts([]), prompts([]))
        self.assertEqual(result.step_comparisons, ())
        self.assertTrue(result.is_identical())
        self.assertEqual(result.summary.identical_ratio, 1.0)

    def test_metadata_does_not_affect_identity(self):
        original = make_session([make_step(0, PromptData("x"))])
        replayed = make_session(
            [
                Step(
                    step_index=0,
                    group=5,
                    timestamp="2030-01-01T00:00:00.000Z",
                    data=PromptData("x"),
                    replay_of=0,
                )
            ]
        )
        self.assertTrue(compare(original, replayed).is_identical())

    def test_non_session_rejected(self):
        with self.assertRaises(InvalidSessionError):
            compare(prompts([1]), None)
        with self.assertRaises(InvalidSessionError):
            compare({"steps": []}, prompts([1]))


class TestFieldDifferences(unittest.TestCase):
    def test_command_exit_code_and_stderr(self):
        old = make_step(0, CommandData("pytest", "collected 3", "", 0))
        new = make_step(0, CommandData("pytest", "collected 3", "1 failed", 1))
        result = compare(make_session([old]), make_session([new]))
        comparison = result.get(0)
        self.assertEqual(comparison.status, StepStatus.MODIFIED)
        self.assertEqual(
            comparison.differences,
            ("Standard error changed", "Exit code changed from 0 to 1"),
        )

    def test_command_all_fields(self):
        old = make_step(0, CommandData("a", "1", "x", 0))
        new = make_step(0, CommandData("b", "2", "y", 2))
        self.assertEqual(
            compare_step_fields(old, new),
            [
                "Command changed",
                "Standard output changed",
                "Standard error changed",
                "Exit code changed from 0 to 2",
            ],
        )

    def test_prompt_fields(self):
        old = make_step(0, PromptData("fix it", "ok"))
        new = make_step(0, PromptData("fix it please", None))
        self.assertEqual(
            compare_step_fields(old, new),
            ["Prompt input changed", "Response output changed"],
        )

    def test_file_edit_fields(self):
        old = make_step(0, FileEditData("a.py", "create", "x"))
        new = make_step(0, FileEditData("b.py", "update", "y"))
        self.assertEqual(
            compare_step_fields(old, new),
            [
                "File path changed",
                "Action changed from create to update",
                "File content changed",
            ],
        )

    def test_assistant_response(self):
        old = make_step(0, AssistantResponseData("yes"))
        new = make_step(0, AssistantResponseData("no"))
        self.assertEqual(compare_step_fields(old, new), ["Response changed"])

    def test_type_change_reports_only_the_type(self):
        old = make_step(0, PromptData("ls"))
        new = make_step(0, CommandData("ls"))
        result = compare(make_session([old]), make_session([new]))
        self.assertEqual(
            result.get(0).differences, ("Type changed from prompt to command",)
        )


class TestSummaryAndViews(unittest.TestCase):
    def test_counts_sum_to_number_of_comparisons(self):
        original = make_session(
            [make_step(0, PromptData("a")), make_step(1, PromptData("b"))]
        )
        replay = make_session(
            [make_step(1, PromptData("B")), make_step(2, PromptData("c"))]
        )
        result = compare(original, replay)
        s = result.summary
        total = s.identical_steps + s.modified_steps + s.added_steps + s.removed_steps
        self.assertEqual(total, len(result.step_comparisons))
        self.assertEqual(len(result.by_status(StepStatus.MODIFIED)), 1)
        self.assertEqual(
            result.describe(),
            "0 identical, 1 modified, 1 added, 1 removed "
            "(2 original / 2 replay steps)",
        )

    def test_to_dict(self):
        result = compare(prompts([1], "a"), prompts([1, 2], "b"))
        as_dict = result.to_dict()
        self.assertEqual(as_dict["originalSessionId"], "a")
        self.assertEqual(as_dict["replaySessionId"], "b")
        self.assertEqual(as_dict["summary"]["addedSteps"], 1)
        self.assertEqual(as_dict["stepComparisons"][1]["status"], "added")
        self.assertIsNone(as_dict["stepComparisons"][1]["originalStep"])

    def test_identical_ratio(self):
        result = compare(prompts([1, 2, 3, 4]), prompts([1, 2]))
        self.assertEqual(result.summary.identical_ratio, 0.5)


class TestStepContentDiff(unittest.TestCase):
    def test_primary_text_per_type(self):
        self.assertEqual(primary_text(make_step(0, PromptData("q", "a"))), "a")
        self.assertEqual(primary_text(make_step(0, PromptData("q"))), "q")
        self.assertEqual(primary_text(make_step(0, CommandData("ls", "out"))), "out")
        self.assertEqual(
            primary_text(make_step(0, FileEditData("a", "create", "body"))), "body"
        )
        self.assertEqual(
            primary_text(make_step(0, AssistantResponseData("resp"))), "resp"
        )

    def test_diff_of_modified_file_edit(self):
        old = make_step(0, FileEditData("a.py", "update", "x = 1\ny = 2\n"))
        new = make_step(0, FileEditData("a.py", "update", "x = 1\ny = 3\n"))
        segments = diff_step_content(old, new)
        self.assertEqual(
            [s.kind for s in segments],
            [DiffKind.UNCHANGED, DiffKind.REMOVED, DiffKind.ADDED],
        )

    def test_missing_side_diffs_against_empty(self):
        segments = diff_step_content(None, make_step(0, AssistantResponseData("hi\n")))
        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].kind, DiffKind.ADDED)


if __name__ == "__main__":
    unittest.main()
