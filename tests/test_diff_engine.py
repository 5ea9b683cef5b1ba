import shutil

import pytest

from format_modifications.diff_engine import (
    DiffOptions,
    difflib_diff,
    get_diff_engine,
    git_diff,
    parse_hunk_headers,
)
from format_modifications.domain import Hunk
from format_modifications.errors import UnsupportedCapabilityError


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def _text(*lines):
    return "\n".join(lines)


def test_parse_hunk_headers_defaults_missing_counts_to_one():
    raw = """\
diff --git a/baseline b/current
--- a/baseline
+++ b/current
@@ -2 +2 @@
-b
+B
@@ -3,0 +4,2 @@ def foo
+d
+e
@@ -6,2 +7,0 @@
-f
-g
"""
    assert parse_hunk_headers(raw) == [
        Hunk(2, 1, 2, 1),
        Hunk(3, 0, 4, 2),
        Hunk(6, 2, 7, 0),
    ]


def test_parse_hunk_headers_ignores_body_lines_that_look_like_headers():
    # Body lines always start with "+", "-" or " ".
    raw = "@@ -1 +1 @@\n-@@ -9 +9 @@\n+x\n"
    assert parse_hunk_headers(raw) == [Hunk(1, 1, 1, 1)]


def test_difflib_diff_reports_changed_line():
    assert difflib_diff(_text("a", "b", "c"), _text("a", "B", "c")) == [Hunk(2, 1, 2, 1)]


def test_difflib_diff_reports_appended_line():
    assert difflib_diff(_text("a", "b", "c"), _text("a", "b", "c", "d")) == [Hunk(3, 0, 4, 1)]


def test_difflib_diff_reports_deletion():
    assert difflib_diff(_text("a", "b", "c"), _text("a", "c")) == [Hunk(2, 1, 1, 0)]


def test_difflib_diff_ignores_carriage_returns_by_default():
    assert difflib_diff("a\r\nb\r\nc", _text("a", "b", "c")) == []
    assert difflib_diff("a\r\nb", _text("a", "b"), DiffOptions(ignore_cr_at_eol=False)) != []


def test_difflib_diff_returns_sorted_non_overlapping_hunks():
    hunks = difflib_diff(
        _text("a", "b", "c", "d", "e", "f"),
        _text("A", "b", "c", "D", "e", "F", "g"),
    )

    assert [h.new_start for h in hunks] == sorted(h.new_start for h in hunks)
    for earlier, later in zip(hunks, hunks[1:]):
        assert earlier.new_start + earlier.new_count <= later.new_start


def test_difflib_diff_with_context_merges_nearby_changes():
    options = DiffOptions(context=1)

    hunks = difflib_diff(_text("a", "b", "c", "d"), _text("A", "b", "C", "d"), options)

    assert hunks == [Hunk(1, 4, 1, 4)]


def test_empty_baseline_is_an_insertion():
    assert difflib_diff("", _text("x", "y")) == [Hunk(0, 0, 1, 2)]


def test_get_diff_engine_lookup():
    assert get_diff_engine("git") is git_diff
    assert get_diff_engine("difflib") is difflib_diff

    try:
        get_diff_engine("myers")
    except UnsupportedCapabilityError as exc:
        assert "diff engine myers isn't supported" in str(exc)
    else:
        raise AssertionError("expected UnsupportedCapabilityError to be raised")


@requires_git
def test_git_diff_scenarios():
    assert git_diff(_text("a", "b", "c"), _text("a", "B", "c")) == [Hunk(2, 1, 2, 1)]
    assert git_diff(_text("a", "b", "c"), _text("a", "b", "c", "d")) == [Hunk(3, 0, 4, 1)]
    assert git_diff(_text("a", "b", "c"), _text("a", "c")) == [Hunk(2, 1, 1, 0)]
    assert git_diff(_text("a", "b"), _text("a", "b")) == []


@requires_git
def test_git_diff_ignores_carriage_returns_at_end_of_line():
    assert git_diff("a\r\nb\r\nc", _text("a", "b", "c")) == []


@requires_git
def test_git_diff_reports_inserted_block_as_one_hunk():
    baseline = _text(
        "def a():",
        "    pass",
        "",
        "def c():",
        "    pass",
    )
    current = _text(
        "def a():",
        "    pass",
        "",
        "def b():",
        "    pass",
        "",
        "def c():",
        "    pass",
    )

    hunks = git_diff(baseline, current)

    assert len(hunks) == 1
    assert hunks[0].old_count == 0
    assert hunks[0].new_count == 3
