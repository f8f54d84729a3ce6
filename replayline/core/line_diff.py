"""Line-level diff for step content.

Produces a minimal edit script between two text blobs using
longest-common-subsequence alignment over newline-delimited lines. Lines
found on one side only are set aside first, then Myers' O(ND) search
aligns the rest, so a full rewrite costs linear time.

Guarantees:
- Lines keep their trailing "\\n", so joining unchanged + removed segments
  reproduces old_text exactly and unchanged + added reproduces new_text
- Total: any two strings (including "") yield a script
- Deterministic: within a change run removed lines precede added lines, and
  adjacent segments never share a kind

Output format:
    [DiffSegment(kind="unchanged", lines=("a\\n",)),
     DiffSegment(kind="removed", lines=("b\\n",)),
     DiffSegment(kind="added", lines=("c\\n",))]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


class DiffKind:
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


@dataclass(frozen=True)
class DiffSegment:
    kind: str
    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "".join(self.lines)

    @property
    def count(self) -> int:
        return len(self.lines)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "text": self.text, "count": self.count}


@dataclass(frozen=True)
class DiffStats:
    added: int
    removed: int
    unchanged: int

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


@dataclass(frozen=True)
class DiffRow:
    """One aligned row of a side-by-side view. Line numbers are 1-based."""

    kind: str
    left_number: Optional[int]
    left_text: str
    right_number: Optional[int]
    right_text: str


def split_lines(text: str) -> List[str]:
    """Split text into lines, keeping each line's trailing newline."""
    return _LINE_RE.findall(text)


def _myers_matches(a: List[str], b: List[str]) -> List[Tuple[int, int]]:
    """
    Matched index pairs of a longest common subsequence of ``a`` and ``b``.

    Myers' greedy O((N+M)D) shortest edit script search, where D is the
    edit distance; the per-round frontiers are kept for the backtrack.
    """
    n, m = len(a), len(b)
    frontier: Dict[int, int] = {1: 0}
    trace: List[Dict[int, int]] = []
    for d in range(n + m + 1):
        trace.append(dict(frontier))
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and frontier[k - 1] < frontier[k + 1]):
                x = frontier[k + 1]
            else:
                x = frontier[k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            frontier[k] = x
            if x >= n and y >= m:
                return _backtrack(trace, n, m)
    return []


def _backtrack(
    trace: List[Dict[int, int]], n: int, m: int
) -> List[Tuple[int, int]]:
    matches: List[Tuple[int, int]] = []
    x, y = n, m
    for d in range(len(trace) - 1, -1, -1):
        frontier = trace[d]
        k = x - y
        if k == -d or (k != d and frontier[k - 1] < frontier[k + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = frontier[prev_k]
        prev_y = prev_x - prev_k
        while x > prev_x and y > prev_y:
            x -= 1
            y -= 1
            matches.append((x, y))
        x, y = prev_x, prev_y
    matches.reverse()
    return matches


def _edit_ops(a: List[str], b: List[str]) -> List[Tuple[str, str]]:
    prefix = 0
    while prefix < len(a) and prefix < len(b) and a[prefix] == b[prefix]:
        prefix += 1
    suffix = 0
    while (
        suffix < len(a) - prefix
        and suffix < len(b) - prefix
        and a[len(a) - 1 - suffix] == b[len(b) - 1 - suffix]
    ):
        suffix += 1

    mid_a = a[prefix : len(a) - suffix]
    mid_b = b[prefix : len(b) - suffix]

    ops: List[Tuple[str, str]] = [(DiffKind.UNCHANGED, line) for line in a[:prefix]]

    # Lines present on one side only can never be matched.
    shared = set(mid_a) & set(mid_b)
    keep_a = [i for i, line in enumerate(mid_a) if line in shared]
    keep_b = [j for j, line in enumerate(mid_b) if line in shared]
    matches = _myers_matches(
        [mid_a[i] for i in keep_a], [mid_b[j] for j in keep_b]
    )

    i = j = 0
    for fi, fj in matches + [(None, None)]:
        end_a = keep_a[fi] if fi is not None else len(mid_a)
        end_b = keep_b[fj] if fj is not None else len(mid_b)
        ops.extend((DiffKind.REMOVED, line) for line in mid_a[i:end_a])
        ops.extend((DiffKind.ADDED, line) for line in mid_b[j:end_b])
        if fi is None:
            break
        ops.append((DiffKind.UNCHANGED, mid_a[end_a]))
        i, j = end_a + 1, end_b + 1

    ops.extend((DiffKind.UNCHANGED, line) for line in a[len(a) - suffix :])
    return ops


def diff_lines(old_text: str, new_text: str) -> List[DiffSegment]:
    """Diff two texts line by line and return the grouped edit script."""
    ops = _edit_ops(split_lines(old_text), split_lines(new_text))

    segments: List[DiffSegment] = []
    unchanged: List[str] = []
    removed: List[str] = []
    added: List[str] = []

    def flush_changes() -> None:
        if removed:
            segments.append(DiffSegment(DiffKind.REMOVED, tuple(removed)))
            removed.clear()
        if added:
            segments.append(DiffSegment(DiffKind.ADDED, tuple(added)))
            added.clear()

    for kind, line in ops:
        if kind == DiffKind.UNCHANGED:
            flush_changes()
            unchanged.append(line)
            continue
        if unchanged:
            segments.append(DiffSegment(DiffKind.UNCHANGED, tuple(unchanged)))
            unchanged.clear()
        if kind == DiffKind.REMOVED:
            removed.append(line)
        else:
            added.append(line)

    flush_changes()
    if unchanged:
        segments.append(DiffSegment(DiffKind.UNCHANGED, tuple(unchanged)))
    return segments


def diff_stats(segments: List[DiffSegment]) -> DiffStats:
    """Count lines per kind."""
    counts = {DiffKind.ADDED: 0, DiffKind.REMOVED: 0, DiffKind.UNCHANGED: 0}
    for segment in segments:
        counts[segment.kind] += segment.count
    return DiffStats(
        added=counts[DiffKind.ADDED],
        removed=counts[DiffKind.REMOVED],
        unchanged=counts[DiffKind.UNCHANGED],
    )


def side_by_side(segments: List[DiffSegment]) -> List[DiffRow]:
    """Align a diff into left/right rows; the missing side is blank."""
    rows: List[DiffRow] = []
    left = right = 1
    for segment in segments:
        for line in segment.lines:
            text = line[:-1] if line.endswith("\n") else line
            if segment.kind == DiffKind.ADDED:
                rows.append(DiffRow(segment.kind, None, "", right, text))
                right += 1
            elif segment.kind == DiffKind.REMOVED:
                rows.append(DiffRow(segment.kind, left, text, None, ""))
                left += 1
            else:
                rows.append(DiffRow(segment.kind, left, text, right, text))
                left += 1
                right += 1
    return rows
