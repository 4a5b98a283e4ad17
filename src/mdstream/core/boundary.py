"""Stable-boundary scanning and trailing-block completeness checks"""

import re
from dataclasses import dataclass

from mdstream.core.utils.fences import fence_opening, find_code_block_ranges, in_ranges, is_fence_closing


LIST_ITEM_RE = re.compile(r'^(?:[-*+]|\d{1,9}[.)])(?:[ \t]|$)')
BARE_MARKER_RES = (
    re.compile(r'^#{1,6}[ \t]*$'),       # heading marker, no text yet
    re.compile(r'^[-*+][ \t]*$'),        # bullet, no text yet
    re.compile(r'^\d+[.)][ \t]*$'),      # ordered marker, no text yet
    re.compile(r'^>[ \t]*$'),            # quote marker, no text yet
)


@dataclass(frozen=True)
class BoundaryScan:
    boundary:        int    # offset where the stable prefix ends; 0 when none
    in_fence_at_end: bool   # a fence is still open after the last line


def _opens_new_block(line: str) -> bool:
    """A non-indented line that cannot continue a list across the blank line above it."""
    return line[:1] not in (" ", "\t") and not LIST_ITEM_RE.match(line)


def scan_boundary(text: str) -> BoundaryScan:
    """Walk lines tracking fences; a blank line outside a fence is a candidate boundary.

    A candidate is accepted once the next non-blank line starts a fresh top-level
    block, or when only blank lines follow it.
    """
    in_fence = False
    fence_char, fence_len = "", 0
    boundary = 0
    pending: int | None = None
    start = 0
    for line in text.split("\n"):
        end = start + len(line)
        has_newline = end < len(text)
        blank = not line.strip()
        if in_fence:
            if is_fence_closing(line, fence_char, fence_len):
                in_fence = False
        else:
            if pending is not None and not blank:
                if _opens_new_block(line):
                    boundary = pending
                pending = None
            opening = fence_opening(line)
            if opening:
                in_fence = True
                fence_char, fence_len = opening
            elif blank and has_newline:
                pending = end + 1
        start = end + 1
    if pending is not None and not in_fence:
        boundary = pending
    return BoundaryScan(boundary=boundary, in_fence_at_end=in_fence)


def find_last_stable_boundary(text: str) -> int:
    return scan_boundary(text).boundary


def _unclosed_math(text: str) -> bool:
    fences = find_code_block_ranges(text)
    count = sum(1 for m in re.finditer(r'\$\$', text)
                if not in_ranges(m.start(), fences))
    return count % 2 == 1


def detect_incomplete_block(text: str, in_fence_at_end: bool = None) -> bool:
    """True when the trailing block is visibly unfinished."""
    if not text.strip():
        return False
    if in_fence_at_end is None:
        in_fence_at_end = scan_boundary(text).in_fence_at_end
    if in_fence_at_end or _unclosed_math(text):
        return True
    last = text.strip().splitlines()[-1].strip()
    return any(r.match(last) for r in BARE_MARKER_RES)
