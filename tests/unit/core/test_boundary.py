"""Unit tests for core/boundary.py"""

import pytest

from mdstream.core.boundary import detect_incomplete_block, find_last_stable_boundary, scan_boundary


def test_boundary_after_blank_line():
    """The boundary sits just past the blank line before a fresh block."""
    assert find_last_stable_boundary("# Heading\n\nPara") == len("# Heading\n\n")


def test_no_boundary_without_blank_line():
    assert find_last_stable_boundary("# Heading\nPara") == 0
    assert find_last_stable_boundary("") == 0


def test_trailing_blank_lines_are_stable():
    """Text ending in a blank line is stable up to its end."""
    assert find_last_stable_boundary("para\n\n") == len("para\n\n")


def test_blank_line_inside_fence_is_not_a_boundary():
    scan = scan_boundary("```\na\n\nb")
    assert scan.boundary == 0
    assert scan.in_fence_at_end


def test_tilde_fence_closes_and_boundary_follows():
    text = "~~~\nx\n\n~~~\n\nnext"
    assert find_last_stable_boundary(text) == len("~~~\nx\n\n~~~\n\n")


def test_shorter_fence_does_not_close():
    """A closing run shorter than the opener leaves the fence open."""
    assert scan_boundary("````\ncode\n```\n\nmore").in_fence_at_end


def test_fence_inside_blockquote_is_tracked():
    assert scan_boundary("> ```\n> a\n>\n> b").in_fence_at_end


@pytest.mark.parametrize("text", [
    "- a\n\n- b",
    "1. a\n\n2. b",
    "- a\n\n  continued",
])
def test_list_continuation_is_not_a_boundary(text):
    """A blank line followed by a list item or indented line may still belong to a list."""
    assert find_last_stable_boundary(text) == 0


def test_list_then_paragraph_is_a_boundary():
    assert find_last_stable_boundary("- a\n\nPara") == len("- a\n\n")


def test_earlier_boundary_kept_when_later_one_is_rejected():
    text = "# T\n\nPara\n\n- a\n\n- b"
    assert find_last_stable_boundary(text) == len("# T\n\n")


def test_boundary_after_list_ends():
    text = "# T\n\n- a\n\n- b\n\nPara"
    assert find_last_stable_boundary(text) == len("# T\n\n- a\n\n- b\n\n")


@pytest.mark.parametrize("text", [
    "```js\ncode",
    "# Title\n\n#",
    "- a\n-",
    "1.",
    "text\n>",
    "$$x",
])
def test_incomplete_block_detected(text):
    assert detect_incomplete_block(text)


@pytest.mark.parametrize("text", [
    "",
    "   ",
    "Done.",
    "```\nx\n```",
    "$$x$$",
    "# Title",
    "```\n$$\n```",
])
def test_complete_block_not_flagged(text):
    assert not detect_incomplete_block(text)
