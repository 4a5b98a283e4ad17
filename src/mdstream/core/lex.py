"""markdown-it tokenization adapted to block-level lexer tokens"""

import re
from functools import lru_cache

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from mdstream.core.models import LexToken
from mdstream.core.utils.fences import find_code_block_ranges, in_ranges
from mdstream.core.utils.tokens import cell_align, heading_level, source_slice


FOOTNOTE_DEF_RE = re.compile(r'^\[\^([^\]]+)\]:[ \t]*(.+)$', re.MULTILINE)
TASK_RE = re.compile(r'^\[([ xX])\](?:[ \t]+|$)')


@lru_cache(maxsize=8)
def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def extract_footnotes(text: str) -> tuple[str, dict[str, str]]:
    """Return (text_without_definitions, {id: definition}); later ids win.

    Definition-shaped lines inside fenced code are left in place.
    """
    defs: dict[str, str] = {}
    fences = find_code_block_ranges(text)

    def _collect(m: re.Match) -> str:
        if in_ranges(m.start(), fences):
            return m.group(0)
        defs[m.group(1)] = m.group(2).strip()
        return ""

    return FOOTNOTE_DEF_RE.sub(_collect, text), defs


def task_state(text: str) -> tuple[bool, bool | None, str]:
    """Split a leading [ ] / [x] checkbox off item text: (task, checked, remainder)."""
    m = TASK_RE.match(text)
    if not m:
        return False, None, text
    return True, m.group(1) in "xX", text[m.end():]


def _inline_of(node: SyntaxTreeNode) -> SyntaxTreeNode | None:
    for child in node.children:
        if child.type == "inline":
            return child
    return None


def _cells(row: SyntaxTreeNode) -> list[str]:
    return [(_inline_of(cell).content if _inline_of(cell) else "") for cell in row.children]


def _lex_table(node: SyntaxTreeNode, raw: str) -> LexToken:
    header: list[str] = []
    align: list[str | None] = []
    rows: list[list[str]] = []
    for section in node.children:
        for row in section.children:
            if section.type == "thead":
                header = _cells(row)
                align = [cell_align(cell) for cell in row.children]
            else:
                rows.append(_cells(row))
    return LexToken(type="table", raw=raw, text=raw, header=header, rows=rows, align=align, node=node)


def _lex_item(node: SyntaxTreeNode, lines: list[str]) -> LexToken:
    children = [_lex_node(child, lines) for child in node.children]
    task, checked = False, None
    if children and children[0].type == "paragraph":
        task, checked, remainder = task_state(children[0].text)
        if task:
            children[0].text = remainder
    return LexToken(
        type="list_item",
        raw=source_slice(node, lines),
        text="\n".join(c.text for c in children if c.text),
        task=task,
        checked=checked,
        tokens=children,
        node=node,
    )


def _lex_node(node: SyntaxTreeNode, lines: list[str]) -> LexToken:
    """Convert one block-level syntax tree node into a LexToken."""
    raw = source_slice(node, lines)
    kind = node.type

    if kind == "heading":
        inline = _inline_of(node)
        return LexToken(type="heading", raw=raw, text=inline.content if inline else "",
                        depth=heading_level(node), inline=inline, node=node)
    if kind == "paragraph":
        inline = _inline_of(node)
        return LexToken(type="paragraph", raw=raw, text=inline.content if inline else "",
                        inline=inline, node=node)
    if kind in ("fence", "code_block"):
        body = node.content[:-1] if node.content.endswith("\n") else node.content
        lang = node.info.strip() if kind == "fence" else ""
        return LexToken(type="code", raw=raw, text=body, lang=lang or None, node=node)
    if kind in ("bullet_list", "ordered_list"):
        items = [_lex_item(child, lines) for child in node.children]
        return LexToken(type="list", raw=raw, text="\n".join(i.text for i in items),
                        ordered=kind == "ordered_list", items=items, node=node)
    if kind == "blockquote":
        children = [_lex_node(child, lines) for child in node.children]
        return LexToken(type="blockquote", raw=raw, text="\n\n".join(c.text for c in children if c.text),
                        tokens=children, node=node)
    if kind == "hr":
        return LexToken(type="hr", raw=raw, node=node)
    if kind == "html_block":
        return LexToken(type="html", raw=node.content.rstrip("\n"), text=node.content.rstrip("\n"), node=node)
    if kind == "table":
        return _lex_table(node, raw)
    return LexToken(type=kind, raw=raw, text=node.content, node=node)


def tokenize(text: str, preset: str = "gfm-like") -> list[LexToken]:
    """Tokenize markdown into top-level block tokens in document order."""
    root = SyntaxTreeNode(_make_parser(preset).parse(text))
    lines = text.splitlines(keepends=True)
    return [_lex_node(child, lines) for child in root.children]
