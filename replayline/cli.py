"""Replayline CLI.

Entry point for the ``replayline`` command-line tool.

Usage:
    replayline import FILE [FILE ...] [--db PATH]
    replayline list [--format json|text] [--db PATH]
    replayline compare <session_a> <session_b> [--diff] [--format json|text]
                       [--db PATH]
    replayline branch <session> <step_index> [--executor MODULE:ATTR]
                      [--format json|text] [--db PATH]
    replayline diff <old_file> <new_file>
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import sys
from typing import List

from .core.branch import BranchBuilder, BranchResult
from .core.compare import SessionComparison, StepStatus, compare, diff_step_content
from .core.errors import ReplaylineError
from .core.executor import CallableExecutor, PassthroughExecutor, StepExecutor
from .core.line_diff import DiffKind, DiffSegment, diff_lines, diff_stats
from .storage.store import SQLiteStore

# ---------------------------------------------------------------------------
# Text formatters
# ---------------------------------------------------------------------------

_PREFIX = {DiffKind.ADDED: "+ ", DiffKind.REMOVED: "- ", DiffKind.UNCHANGED: "  "}


def _format_segments(segments: List[DiffSegment], limit: int = 0) -> List[str]:
    lines: list[str] = []
    for segment in segments:
        for line in segment.lines:
            lines.append(_PREFIX[segment.kind] + line.rstrip("\n"))
    if limit and len(lines) > limit:
        hidden = len(lines) - limit
        lines = lines[:limit] + [f"... and {hidden} more lines"]
    return lines


def _format_comparison(comparison: SessionComparison, show_diff: bool) -> str:
    lines: list[str] = []
    original = comparison.original_session
    replay = comparison.replay_session
    lines.append(f"Original: {original.session_id} '{original.title}'")
    lines.append(f"Replay:   {replay.session_id} '{replay.title}'")
    if replay.replay_from_step_index is not None:
        lines.append(f"  replayed from step {replay.replay_from_step_index}")
    lines.append("")

    for c in comparison.step_comparisons:
        step = c.original_step or c.replay_step
        lines.append(f"  [{c.status.value}] step {c.step_index} ({step.type})")
        if c.status == StepStatus.IDENTICAL:
            continue
        for difference in c.differences:
            lines.append(f"    - {difference}")
        if show_diff and c.status == StepStatus.MODIFIED:
            for diff_line in _format_segments(
                diff_step_content(c.original_step, c.replay_step), limit=20
            ):
                lines.append(f"      {diff_line}")

    lines.append("")
    lines.append(f"Summary: {comparison.describe()}")
    ratio = comparison.summary.identical_ratio
    lines.append(f"  identical: {round(ratio * 100)}% of original steps")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Executor loading
# ---------------------------------------------------------------------------


def load_executor(spec: str) -> StepExecutor:
    """
    Resolve ``module:attr`` to an executor.

    The attribute may be an executor instance, a class (instantiated with no
    arguments), or a plain sync/async function taking a step.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Executor must be given as MODULE:ATTR, got '{spec}'")
    try:
        target = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ValueError(f"Cannot load executor '{spec}': {e}") from e
    if isinstance(target, type):
        target = target()
    if hasattr(target, "execute"):
        return target
    if callable(target):
        return CallableExecutor(target)
    raise ValueError(f"'{spec}' is not an executor")


def _format_branch(result: BranchResult) -> str:
    lines = [f"Branch: {result.summary()}"]
    lines.append(f"  cut: step {result.cut_step_index} (group {result.target_group})")
    if result.replayed:
        lines.append(f"  replayed steps: {', '.join(map(str, result.replayed))}")
    if result.skipped:
        lines.append(f"  skipped steps: {', '.join(map(str, result.skipped))}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _not_found(session_id: str, db: str) -> None:
    print(f"Error: session '{session_id}' not found in {db}", file=sys.stderr)


def _cmd_import(args: argparse.Namespace) -> None:
    store = SQLiteStore(path=args.db)
    for file_path in args.files:
        session = store.import_json(file_path)
        print(f"Imported {session.session_id} ({len(session.steps)} steps)")


def _cmd_list(args: argparse.Namespace) -> None:
    store = SQLiteStore(path=args.db)
    summaries = store.list_sessions()
    if args.format == "json":
        print(json.dumps([s.to_dict() for s in summaries], indent=2))
        return
    for s in summaries:
        marker = f" <- replay of {s.replay_of}" if s.is_replay_session else ""
        print(f"{s.session_id}  {s.step_count:>4} steps  {s.title}{marker}")


def _cmd_compare(args: argparse.Namespace) -> None:
    store = SQLiteStore(path=args.db)

    original = store.load_session(args.session_a)
    if original is None:
        _not_found(args.session_a, args.db)
        sys.exit(1)

    replay = store.load_session(args.session_b)
    if replay is None:
        _not_found(args.session_b, args.db)
        sys.exit(1)

    comparison = compare(original, replay)

    if args.format == "json":
        print(json.dumps(comparison.to_dict(), indent=2, default=str))
    else:
        print(_format_comparison(comparison, args.diff))

    if not comparison.is_identical():
        sys.exit(1)


def _cmd_branch(args: argparse.Namespace) -> None:
    store = SQLiteStore(path=args.db)

    original = store.load_session(args.session)
    if original is None:
        _not_found(args.session, args.db)
        sys.exit(1)

    executor = load_executor(args.executor) if args.executor else PassthroughExecutor()
    result = asyncio.run(BranchBuilder().build(original, args.step_index, executor))
    store.save_session(result.session)

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(_format_branch(result))

    if not result.is_complete():
        sys.exit(1)


def _cmd_diff(args: argparse.Namespace) -> None:
    with open(args.old_file, "r", encoding="utf-8") as f:
        old_text = f.read()
    with open(args.new_file, "r", encoding="utf-8") as f:
        new_text = f.read()

    segments = diff_lines(old_text, new_text)
    for line in _format_segments(segments):
        print(line)
    stats = diff_stats(segments)
    print(f"\n{stats.added} added, {stats.removed} removed, {stats.unchanged} unchanged")

    if stats.changed:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="replayline",
        description="Replayline: branch, replay and compare recorded workflow sessions",
    )
    subparsers = parser.add_subparsers(dest="command")

    def add_db(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--db",
            default="replayline.db",
            help="Path to SQLite database (default: replayline.db)",
        )

    def add_format(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--format",
            choices=["json", "text"],
            default="text",
            help="Output format (default: text)",
        )

    import_parser = subparsers.add_parser("import", help="Import JSON session files")
    import_parser.add_argument("files", nargs="+", help="Session JSON files")
    add_db(import_parser)
    import_parser.set_defaults(func=_cmd_import)

    list_parser = subparsers.add_parser("list", help="List stored sessions")
    add_format(list_parser)
    add_db(list_parser)
    list_parser.set_defaults(func=_cmd_list)

    compare_parser = subparsers.add_parser("compare", help="Compare two sessions")
    compare_parser.add_argument("session_a", help="Session ID for baseline")
    compare_parser.add_argument("session_b", help="Session ID for comparison")
    compare_parser.add_argument(
        "--diff",
        action="store_true",
        help="Show line diffs for modified steps",
    )
    add_format(compare_parser)
    add_db(compare_parser)
    compare_parser.set_defaults(func=_cmd_compare)

    branch_parser = subparsers.add_parser(
        "branch", help="Branch a session at a step and replay the rest of its group"
    )
    branch_parser.add_argument("session", help="Source session ID")
    branch_parser.add_argument("step_index", type=int, help="Cut point step index")
    branch_parser.add_argument(
        "--executor",
        default=None,
        help="Executor as MODULE:ATTR (default: replay recorded content)",
    )
    add_format(branch_parser)
    add_db(branch_parser)
    branch_parser.set_defaults(func=_cmd_branch)

    diff_parser = subparsers.add_parser("diff", help="Line diff of two text files")
    diff_parser.add_argument("old_file")
    diff_parser.add_argument("new_file")
    diff_parser.set_defaults(func=_cmd_diff)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)
    try:
        args.func(args)
    except (ReplaylineError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
