"""Unit tests for core/utils/fences.py"""

import pytest

from mdstream.core.utils.fences import fence_opening, find_code_block_ranges, is_fence_closing, scan_fences


@pytest.mark.parametrize("line, expected", [
    ("```", ("`", 3)),
    ("```python", ("`", 3)),
    ("~~~~ info `ok`", ("~", 4)),
    ("> ```js", ("`", 3)),
    ("``` a`b", None),
    ("``", None),
    ("text ```", None),
])
def test_fence_opening(line, expected):
    assert fence_opening(line) == expected


def test_fence_closing_needs_same_char_and_length():
    assert is_fence_closing("```", "`", 3)
    assert is_fence_closing("`````  ", "`", 3)
    assert not is_fence_closing("~~~", "`", 3)
    assert not is_fence_closing("```", "`", 4)
    assert not is_fence_closing("``` x", "`", 3)


def test_code_block_ranges():
    """Closed fences span opener to closer; an open fence runs to end of text."""
    text = "a\n```\nx\n```\nb\n```\ny"
    assert find_code_block_ranges(text) == [(2, 11), (14, len(text))]


def test_tilde_fence_ignores_backtick_lines():
    text = "~~~\n```\n~~~\nafter"
    scan = scan_fences(text)
    assert scan.ranges == [(0, 11)]
    assert scan.open_marker is None


def test_mid_line_backticks_are_not_fences():
    assert find_code_block_ranges("say ```hi``` now") == []
