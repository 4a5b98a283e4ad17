"""Inline syntax tree nodes to Inline spans"""

import re
from typing import Callable, Optional

from markdown_it.tree import SyntaxTreeNode

from mdstream.core.models import Inline, InlineType


InlineHook = Callable[[SyntaxTreeNode], Optional[Inline]]

FOOTNOTE_REF_RE = re.compile(r'\[\^([^\]\s]+)\]')
HTML_OPEN_RE = re.compile(r'<(sup|sub)>', re.IGNORECASE)

CONTAINER_TYPES: dict[str, InlineType] = {
    "strong": InlineType.bold,
    "em":     InlineType.italic,
    "s":      InlineType.strikethrough,
}


def plain_text(node: SyntaxTreeNode) -> str:
    """Visible text of an inline node and its descendants."""
    if node.type in ("text", "code_inline", "html_inline"):
        return node.content
    if node.type in ("softbreak", "hardbreak"):
        return "\n"
    if node.type == "image" and not node.children:
        return node.content
    return "".join(plain_text(child) for child in node.children)


def split_footnote_refs(value: str) -> list[Inline]:
    """Split text on [^id] references into text and footnote-ref spans."""
    parts: list[Inline] = []
    last = 0
    for m in FOOTNOTE_REF_RE.finditer(value):
        if m.start() > last:
            parts.append(Inline(type=InlineType.text, content=value[last:m.start()]))
        parts.append(Inline(type=InlineType.footnote_ref, content=m.group(1)))
        last = m.end()
    if last < len(value):
        parts.append(Inline(type=InlineType.text, content=value[last:]))
    return parts


def _closing_index(nodes: list[SyntaxTreeNode], start: int, tag: str) -> int | None:
    closing = f"</{tag}>"
    for i in range(start, len(nodes)):
        if nodes[i].type == "html_inline" and nodes[i].content.strip().lower() == closing:
            return i
    return None


def _map_node(node: SyntaxTreeNode, hook: InlineHook | None) -> list[Inline]:
    kind = node.type
    if kind == "text":
        return split_footnote_refs(node.content)
    if kind == "softbreak":
        return [Inline(type=InlineType.text, content="\n")]
    if kind == "hardbreak":
        return [Inline(type=InlineType.hard_break)]
    if kind == "code_inline":
        return [Inline(type=InlineType.code, content=node.content)]
    if kind in CONTAINER_TYPES:
        return [Inline(type=CONTAINER_TYPES[kind], content=plain_text(node),
                       children=map_inlines(node.children, hook))]
    if kind == "link":
        return [Inline(type=InlineType.link, content=plain_text(node), href=node.attrs.get("href"),
                       children=map_inlines(node.children, hook))]
    if kind == "image":
        alt = plain_text(node) if node.children else node.content
        return [Inline(type=InlineType.image, content=alt, src=node.attrs.get("src"), alt=alt)]
    if node.children:
        return map_inlines(node.children, hook)
    return [Inline(type=InlineType.text, content=node.content)] if node.content else []


def map_inlines(nodes: list[SyntaxTreeNode], hook: InlineHook | None = None) -> list[Inline]:
    """Map sibling inline nodes; <sup>/<sub> pairs wrap the nodes between them."""
    out: list[Inline] = []
    i = 0
    while i < len(nodes):
        node = nodes[i]
        if hook is not None:
            extended = hook(node)
            if extended is not None:
                out.append(extended)
                i += 1
                continue
        if node.type == "html_inline" and (m := HTML_OPEN_RE.fullmatch(node.content.strip())):
            tag = m.group(1).lower()
            close = _closing_index(nodes, i + 1, tag)
            if close is not None:
                inner = nodes[i + 1:close]
                out.append(Inline(type=InlineType(tag), content="".join(plain_text(n) for n in inner),
                                  children=map_inlines(inner, hook)))
                i = close + 1
                continue
        out.extend(_map_node(node, hook))
        i += 1
    return out


def parse_inlines(inline: SyntaxTreeNode | None, hook: InlineHook | None = None) -> list[Inline]:
    """Inline spans for a heading, paragraph, or cell; [] when there is no inline node."""
    if inline is None:
        return []
    return map_inlines(inline.children, hook)
