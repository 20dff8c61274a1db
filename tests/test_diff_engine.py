from __future__ import annotations

import pytest

from logsync.diff import compute_new_lines
from logsync.models import NewLinesBatch


def test_appended_line_is_new() -> None:
    batch = compute_new_lines("a\nb\nc", "a\nb\nc\nd")
    assert batch.lines == ("d",)
    assert batch.text == "d"


def test_no_old_snapshot_returns_empty_batch() -> None:
    assert not compute_new_lines(None, "x\ny")
    assert compute_new_lines(None, "").lines == ()


def test_unchanged_contents_return_empty_batch() -> None:
    contents = "2024-01-01 one\n2024-01-01 two"
    assert not compute_new_lines(contents, contents)


def test_removed_lines_are_not_reported() -> None:
    batch = compute_new_lines("a\nb\nc", "b\nc")
    assert batch.lines == ()


def test_membership_not_position() -> None:
    # Reordered lines are known lines; only the unseen one is new.
    batch = compute_new_lines("a\nb\nc", "c\nz\na\nb")
    assert batch.lines == ("z",)


def test_new_duplicates_are_each_emitted_in_order() -> None:
    batch = compute_new_lines("a", "x\na\ny\nx")
    assert batch.lines == ("x", "y", "x")


def test_line_identity_is_exact_text() -> None:
    batch = compute_new_lines("error: disk full", "error: disk full \nERROR: disk full")
    assert batch.lines == ("error: disk full ", "ERROR: disk full")


def test_outer_whitespace_of_result_is_trimmed() -> None:
    # The empty line is absent from the old file but only contributes outer whitespace.
    batch = compute_new_lines("a\nb", "a\n\nb\nc")
    assert batch.text == "c"
    assert len(batch) == 1


def test_empty_snapshot_is_not_absent() -> None:
    batch = compute_new_lines("", "first line")
    assert batch.lines == ("first line",)


@pytest.mark.parametrize(
    ("old", "new"),
    [
        ("a\nb", "a\nb\nc\nd"),
        ("1\n2\n3", "3\n4\n1\n5"),
        ("x", "y\ny\nx\nz"),
    ],
)
def test_result_is_exactly_new_lines_absent_from_old(old: str, new: str) -> None:
    old_lines = set(old.split("\n"))
    expected = [line for line in new.split("\n") if line not in old_lines]
    assert list(compute_new_lines(old, new)) == expected


def test_batch_from_text_splits_trimmed_text() -> None:
    assert NewLinesBatch.from_text("  \n").lines == ()
    assert NewLinesBatch.from_text("\na\nb\n").lines == ("a", "b")
