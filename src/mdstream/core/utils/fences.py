"""Fenced code recognition shared by marker repair, footnote extraction, and boundary scanning"""

import re
from typing import NamedTuple, Optional


FENCE_OPEN_RE = re.compile(r'^(`{3,}|~{3,})(.*)$')
QUOTE_PREFIX_RE = re.compile(r'^[ \t]*(?:>[ \t]*)*')

Range = tuple[int, int]


class FenceScan(NamedTuple):
    ranges:      list[Range]      # opening line start to closing line end; open fences run to end of text
    open_marker: Optional[str]    # marker of the fence still open at end of text
    open_start:  Optional[int]    # line offset where that fence opened


def fence_body(line: str) -> str:
    """Line with leading whitespace and blockquote markers removed."""
    return line[QUOTE_PREFIX_RE.match(line).end():]


def fence_opening(line: str) -> tuple[str, int] | None:
    """(fence char, run length) when line opens a backtick or tilde fence."""
    m = FENCE_OPEN_RE.match(fence_body(line))
    if not m:
        return None
    marker, info = m.group(1), m.group(2)
    if marker[0] == "`" and "`" in info:
        return None
    return marker[0], len(marker)


def is_fence_closing(line: str, char: str, length: int) -> bool:
    """A run of the fence char at least as long as the opener, and nothing else."""
    body = fence_body(line).rstrip()
    return len(body) >= length and body == char * len(body)


def scan_fences(text: str) -> FenceScan:
    """Walk lines and collect fenced regions."""
    ranges: list[Range] = []
    start: int | None = None
    char, length = "", 0
    pos = 0
    for line in text.split("\n"):
        end = pos + len(line)
        if start is None:
            opening = fence_opening(line)
            if opening:
                start = pos
                char, length = opening
        elif is_fence_closing(line, char, length):
            ranges.append((start, end))
            start = None
        pos = end + 1
    if start is None:
        return FenceScan(ranges, None, None)
    ranges.append((start, len(text)))
    return FenceScan(ranges, char * length, start)


def find_code_block_ranges(text: str) -> list[Range]:
    return scan_fences(text).ranges


def in_ranges(pos: int, ranges: list[Range]) -> bool:
    return any(start <= pos < end for start, end in ranges)
