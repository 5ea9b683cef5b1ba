"""
Line diffing between a baseline and the current document text.

A diff engine is any callable taking (baseline_text, current_text) and
returning the changed regions as Hunk objects, sorted by position and
non-overlapping. Two engines are provided:

  - git_diff runs `git diff --no-index` and parses the hunk headers of
    its unified output. It supports every DiffOptions knob, including
    the indent heuristic.
  - difflib_diff is a pure-Python fallback built on SequenceMatcher.
    It has no indent heuristic, so ambiguous insertions may be placed
    differently than git would place them.
"""

from __future__ import annotations

import difflib
import logging
import re
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .domain import Hunk
from .errors import DiffError, UnsupportedCapabilityError

LOG = logging.getLogger(__name__)

DiffCallback = Callable[[str, str], List[Hunk]]


_HUNK_HEADER_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))?"
    r" \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))?"
    r" @@"
)


@dataclass(frozen=True)
class DiffOptions:
    """
    Comparison settings for computing formatting hunks.

    The defaults report only the changed lines (no context, no merging
    of nearby hunks), prefer hunk boundaries that line up with
    indentation changes, and ignore carriage returns at end of line.
    """

    algorithm: str = "patience"
    context: int = 0
    inter_hunk_context: int = 0
    indent_heuristic: bool = True
    ignore_cr_at_eol: bool = True


DEFAULT_DIFF_OPTIONS = DiffOptions()


def parse_hunk_headers(raw_diff: str) -> List[Hunk]:
    """
    Extract the ranges of every hunk in a unified diff.

    Hunk bodies and file headers are ignored. A range without a count
    ("@@ -3 +3 @@") covers a single line.
    """

    hunks: List[Hunk] = []
    for line in raw_diff.splitlines():
        match = _HUNK_HEADER_RE.match(line)
        if not match:
            continue

        hunks.append(
            Hunk(
                old_start=int(match.group("old_start")),
                old_count=_count(match.group("old_count")),
                new_start=int(match.group("new_start")),
                new_count=_count(match.group("new_count")),
            )
        )

    return hunks


def _count(group: Optional[str]) -> int:
    return 1 if group is None else int(group)


def _git_diff_args(options: DiffOptions) -> List[str]:
    args = [
        "diff",
        "--no-index",
        "--no-color",
        "--no-ext-diff",
        "--no-textconv",
        f"--unified={options.context}",
        f"--inter-hunk-context={options.inter_hunk_context}",
        f"--diff-algorithm={options.algorithm}",
    ]
    args.append("--indent-heuristic" if options.indent_heuristic else "--no-indent-heuristic")
    if options.ignore_cr_at_eol:
        args.append("--ignore-cr-at-eol")
    return args


def _terminated(text: str) -> str:
    return text + "\n" if text else text


def git_diff(baseline: str, current: str, options: DiffOptions = DEFAULT_DIFF_OPTIONS) -> List[Hunk]:
    """
    Diff two texts with `git diff --no-index`.

    Exit status 1 only means the texts differ; anything above that is a
    failure of git itself.
    """

    with tempfile.TemporaryDirectory(prefix="format-modifications-") as tmp:
        old_path = Path(tmp) / "baseline"
        new_path = Path(tmp) / "current"
        # Both sides end with a newline so the last line never differs only
        # by its missing terminator.
        old_path.write_bytes(_terminated(baseline).encode("utf-8"))
        new_path.write_bytes(_terminated(current).encode("utf-8"))

        cmd = ["git", *_git_diff_args(options), "--", str(old_path), str(new_path)]
        LOG.debug("Running git command: %s", " ".join(cmd))
        try:
            completed = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                encoding="utf-8",
            )
        except OSError as exc:  # noqa: BLE001
            raise DiffError(f"failed to execute git: {exc}") from exc

    if completed.returncode == 0:
        return []
    if completed.returncode == 1:
        return parse_hunk_headers(completed.stdout)
    raise DiffError(f"git diff failed (rc={completed.returncode}): {completed.stderr.strip()}")


def difflib_diff(
    baseline: str,
    current: str,
    options: DiffOptions = DEFAULT_DIFF_OPTIONS,
) -> List[Hunk]:
    """
    Diff two texts with difflib.SequenceMatcher.

    Only the context, inter-hunk and carriage-return options apply; the
    algorithm and indent heuristic settings are ignored.
    """

    old_lines = _comparable_lines(baseline, options)
    new_lines = _comparable_lines(current, options)

    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)
    changes = [
        (i1, i2, j1, j2)
        for tag, i1, i2, j1, j2 in matcher.get_opcodes()
        if tag != "equal"
    ]
    merged = _merge_close_changes(changes, options, len(old_lines), len(new_lines))
    return [_opcode_to_hunk(*change) for change in merged]


def _comparable_lines(text: str, options: DiffOptions) -> List[str]:
    lines = text.split("\n") if text else []
    if options.ignore_cr_at_eol:
        lines = [line[:-1] if line.endswith("\r") else line for line in lines]
    return lines


def _merge_close_changes(
    changes: Iterable[Tuple[int, int, int, int]],
    options: DiffOptions,
    old_length: int,
    new_length: int,
) -> List[Tuple[int, int, int, int]]:
    """
    Join changes separated by no more than the allowed gap, then widen
    each by the context size.

    With the default zero context only directly adjacent changes join.
    """

    gap = 2 * options.context + options.inter_hunk_context
    merged: List[List[int]] = []
    for i1, i2, j1, j2 in changes:
        if merged and i1 - merged[-1][1] <= gap:
            merged[-1][1] = i2
            merged[-1][3] = j2
        else:
            merged.append([i1, i2, j1, j2])

    ctx = options.context
    return [
        (max(i1 - ctx, 0), min(i2 + ctx, old_length), max(j1 - ctx, 0), min(j2 + ctx, new_length))
        for i1, i2, j1, j2 in merged
    ]


def _opcode_to_hunk(i1: int, i2: int, j1: int, j2: int) -> Hunk:
    old_count = i2 - i1
    new_count = j2 - j1
    # An empty side is anchored on the line before the change.
    return Hunk(
        old_start=i1 + 1 if old_count else i1,
        old_count=old_count,
        new_start=j1 + 1 if new_count else j1,
        new_count=new_count,
    )


DIFF_ENGINES: Dict[str, DiffCallback] = {
    "git": git_diff,
    "difflib": difflib_diff,
}


def get_diff_engine(name: str) -> DiffCallback:
    """Return the diff callback registered under name."""

    try:
        return DIFF_ENGINES[name]
    except KeyError:
        raise UnsupportedCapabilityError(
            f"diff engine {name} isn't supported (choose from {', '.join(sorted(DIFF_ENGINES))})"
        ) from None
