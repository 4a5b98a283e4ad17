"""Marker repair: close unterminated inline and block markers in partial markdown"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from mdstream.core.utils.fences import Range, in_ranges, scan_fences


ORPHAN_RUN = "***"
BACKTICK_RUN_RE = re.compile(r'`+')
EMPHASIS_RUN_RES = {"*": re.compile(r'\*+'), "_": re.compile(r'_+')}
SETEXT_UNDERLINE_RE = re.compile(r'^-{3,}\s*$')
ATX_HEADING_RE = re.compile(r'^#{1,6}(?:\s|$)')
THEMATIC_BREAK_RE = re.compile(r'^(?:(?:-\s*){3,}|(?:\*\s*){3,}|(?:_\s*){3,})$')
INCOMPLETE_IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(([^)\s]*)$', re.MULTILINE)
INCOMPLETE_LINK_RE = re.compile(r'(?<!!)\[([^\]]*)\]\(([^)\s]*)$', re.MULTILINE)


@dataclass(frozen=True)
class ProtectedRanges:
    """Half-open offsets where markers are literal text."""
    fences:           list[Range]      # fenced code, an unterminated fence runs to end of text
    code_spans:       list[Range]      # inline code spans outside fences
    open_fence:       Optional[str] = None   # marker of the fence left open, if any
    open_fence_start: Optional[int] = None
    open_span_start:  Optional[int] = None

    def in_fence(self, pos: int) -> bool:
        return in_ranges(pos, self.fences)

    def covers(self, pos: int) -> bool:
        return in_ranges(pos, self.fences) or in_ranges(pos, self.code_spans)


Handler = Callable[[str, ProtectedRanges], str]


def _char_at(text: str, i: int) -> str:
    """Character at i, or '' when out of bounds on either side."""
    return text[i] if 0 <= i < len(text) else ""


def _on_thematic_break(text: str, idx: int) -> bool:
    """True when idx sits on a finished thematic-break line such as *** or ___.

    The last line is never finished, so a trailing *** keeps the doubling repair.
    """
    end = text.find("\n", idx)
    if end == -1:
        return False
    start = text.rfind("\n", 0, idx) + 1
    return bool(THEMATIC_BREAK_RE.match(text[start:end].strip()))


def _code_spans(text: str, fences: list[Range]) -> tuple[list[Range], Optional[int]]:
    """Backtick spans outside fences, paired by run length; an unpaired opener runs to end of text."""
    ranges: list[Range] = []
    opener: Optional[re.Match] = None
    for m in BACKTICK_RUN_RE.finditer(text):
        if in_ranges(m.start(), fences):
            continue
        if opener is None:
            opener = m
        elif len(m.group()) == len(opener.group()):
            ranges.append((opener.start(), m.end()))
            opener = None
    if opener is None:
        return ranges, None
    ranges.append((opener.start(), len(text)))
    return ranges, opener.start()


def find_code_span_ranges(text: str, fences: list[Range]) -> list[Range]:
    return _code_spans(text, fences)[0]


def find_protected_ranges(text: str) -> ProtectedRanges:
    scan = scan_fences(text)
    spans, open_span = _code_spans(text, scan.ranges)
    return ProtectedRanges(
        fences=scan.ranges,
        code_spans=spans,
        open_fence=scan.open_marker,
        open_fence_start=scan.open_start,
        open_span_start=open_span,
    )


def _insert_closer(text: str, protected: ProtectedRanges, closer: str, fresh_line: bool = False) -> str:
    """Place closer after the last content that precedes any open fence or code span.

    Trailing whitespace stays after the closer.
    """
    starts = [s for s in (protected.open_fence_start, protected.open_span_start) if s is not None]
    limit = min(starts, default=len(text))
    head = text[:limit]
    body = head.rstrip()
    if fresh_line:
        closer = "\n" + closer
    return body + closer + head[len(body):] + text[limit:]


def guard_setext_heading(text: str, protected: ProtectedRanges) -> str:
    """Insert a blank line before a trailing --- so the previous line stays a paragraph."""
    lines = text.split("\n")
    if len(lines) < 2:
        return text
    last, prev = lines[-1], lines[-2]
    if not SETEXT_UNDERLINE_RE.match(last):
        return text
    if protected.in_fence(len(text) - len(last)):
        return text
    if not prev.strip() or ATX_HEADING_RE.match(prev) or THEMATIC_BREAK_RE.match(prev.strip()):
        return text
    return "\n".join(lines[:-1] + ["", last])


def close_incomplete_image(text: str, protected: ProtectedRanges) -> str:
    """Close ![alt](url at end of line; drop the image when no url has arrived yet."""
    def _fix(m: re.Match) -> str:
        if protected.covers(m.start()):
            return m.group(0)
        alt, url = m.group(1), m.group(2)
        return f"![{alt}]({url})" if url else ""
    return INCOMPLETE_IMAGE_RE.sub(_fix, text)


def close_incomplete_link(text: str, protected: ProtectedRanges) -> str:
    """Close [text](url at end of line."""
    def _fix(m: re.Match) -> str:
        if protected.covers(m.start()):
            return m.group(0)
        return f"[{m.group(1)}]({m.group(2)})"
    return INCOMPLETE_LINK_RE.sub(_fix, text)


def close_inline_code(text: str, protected: ProtectedRanges) -> str:
    """Close an open code span with a backtick run of the same length."""
    start = protected.open_span_start
    if start is None:
        return text
    run = BACKTICK_RUN_RE.match(text, start).group()
    span_only = ProtectedRanges(fences=protected.fences, code_spans=protected.code_spans,
                                open_fence_start=protected.open_fence_start)
    return _insert_closer(text, span_only, run)


def _unclosed_emphasis(text: str, protected: ProtectedRanges, char: str) -> int:
    """Count of emphasis chars still open after pairing runs left to right.

    Runs are units: a run opens when followed by non-space and closes when
    preceded by non-space. A closing run consumes openers innermost first.
    """
    stack: list[int] = []
    for m in EMPHASIS_RUN_RES[char].finditer(text):
        start, end = m.span()
        if protected.covers(start) or _on_thematic_break(text, start):
            continue
        before, after = _char_at(text, start - 1), _char_at(text, end)
        can_open = bool(after) and not after.isspace()
        can_close = bool(before) and not before.isspace()
        if char == "_":
            can_open = can_open and not before.isalnum()
            can_close = can_close and not after.isalnum()
        length = end - start
        while can_close and length and stack:
            used = min(length, stack[-1])
            length -= used
            stack[-1] -= used
            if not stack[-1]:
                stack.pop()
        if can_open and length:
            stack.append(length)
    return sum(stack)


def _close_emphasis(text: str, protected: ProtectedRanges, char: str) -> str:
    missing = _unclosed_emphasis(text, protected, char)
    if missing:
        return _insert_closer(text, protected, char * missing)
    return text


def close_emphasis_asterisk(text: str, protected: ProtectedRanges) -> str:
    """Close ***, ** and * runs; a fragment that is only *** is doubled."""
    if text.strip() == ORPHAN_RUN and not protected.covers(text.index(ORPHAN_RUN)):
        return _insert_closer(text, protected, ORPHAN_RUN)
    return _close_emphasis(text, protected, "*")


def close_emphasis_underscore(text: str, protected: ProtectedRanges) -> str:
    """Close __ and _ runs; intraword underscores are literal."""
    return _close_emphasis(text, protected, "_")


def _close_marker(text: str, protected: ProtectedRanges, marker: str, fresh_line: bool = False) -> str:
    """Pair openers with the next occurrence of marker; close a trailing opener."""
    pos = 0
    while pos < len(text):
        open_idx = text.find(marker, pos)
        if open_idx == -1:
            break
        if protected.covers(open_idx):
            pos = open_idx + len(marker)
            continue
        close_idx = text.find(marker, open_idx + len(marker))
        while close_idx != -1 and protected.covers(close_idx):
            close_idx = text.find(marker, close_idx + len(marker))
        if close_idx == -1:
            return _insert_closer(text, protected, marker, fresh_line=fresh_line)
        pos = close_idx + len(marker)
    return text


def close_strikethrough(text: str, protected: ProtectedRanges) -> str:
    return _close_marker(text, protected, "~~")


def close_block_math(text: str, protected: ProtectedRanges) -> str:
    """Close $$ on a fresh line."""
    return _close_marker(text, protected, "$$", fresh_line=True)


def close_code_fence(text: str, protected: ProtectedRanges) -> str:
    """Close the fence left open with its own marker, on a fresh line."""
    if protected.open_fence is None:
        return text
    sep = "" if text.endswith("\n") else "\n"
    return text + sep + protected.open_fence


# Order matters: images before links, code spans before emphasis so a closer
# never lands inside an open span, and the fence closer last so earlier
# handlers place their closers ahead of the open fence.
REPAIR_HANDLERS: tuple[tuple[str, Handler], ...] = (
    ("setext-heading",     guard_setext_heading),
    ("incomplete-image",   close_incomplete_image),
    ("incomplete-link",    close_incomplete_link),
    ("inline-code",        close_inline_code),
    ("emphasis-asterisk",  close_emphasis_asterisk),
    ("emphasis-underscore", close_emphasis_underscore),
    ("strikethrough",      close_strikethrough),
    ("block-math",         close_block_math),
    ("code-fence",         close_code_fence),
)


def repair(text: str, handlers: tuple[tuple[str, Handler], ...] = REPAIR_HANDLERS) -> str:
    """Run each handler in order, recomputing protected ranges after every edit."""
    if not text:
        return text
    protected = find_protected_ranges(text)
    result = text
    for _, handle in handlers:
        repaired = handle(result, protected)
        if repaired != result:
            result = repaired
            protected = find_protected_ranges(result)
    return result
