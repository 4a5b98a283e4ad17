"""Unit tests for core/assemble/inlines.py"""

from mdstream.core.assemble.inlines import split_footnote_refs
from mdstream.core.lex import tokenize
from mdstream.core.models import Inline, InlineType


def _children(assembler, md: str) -> list[Inline]:
    return assembler.assemble(tokenize(md))[0].children


def test_emphasis_spans(assembler):
    """strong, em, and s map to bold, italic, and strikethrough containers."""
    children = _children(assembler, "a **b** *c* ~~d~~")
    kinds = [(c.type, c.content) for c in children]
    assert kinds == [
        (InlineType.text, "a "),
        (InlineType.bold, "b"),
        (InlineType.text, " "),
        (InlineType.italic, "c"),
        (InlineType.text, " "),
        (InlineType.strikethrough, "d"),
    ]
    assert children[1].children == [Inline(type=InlineType.text, content="b")]


def test_code_link_image(assembler):
    children = _children(assembler, "`x` [a](http://b) ![alt](s.png)")
    assert children[0] == Inline(type=InlineType.code, content="x")
    link = children[2]
    assert (link.type, link.href, link.content) == (InlineType.link, "http://b", "a")
    image = children[4]
    assert (image.type, image.src, image.alt) == (InlineType.image, "s.png", "alt")


def test_breaks(assembler):
    children = _children(assembler, "a  \nb\nc")
    assert [c.type for c in children] == [
        InlineType.text, InlineType.hard_break, InlineType.text, InlineType.text, InlineType.text,
    ]
    assert children[3].content == "\n"


def test_sup_and_sub(assembler):
    children = _children(assembler, "x<sup>2</sup> H<sub>2</sub>O")
    assert children[1] == Inline(type=InlineType.sup, content="2",
                                 children=[Inline(type=InlineType.text, content="2")])
    assert children[3].type == InlineType.sub


def test_unpaired_html_is_text(assembler):
    children = _children(assembler, "a <b>bold")
    assert all(c.type == InlineType.text for c in children)
    assert "".join(c.content for c in children) == "a <b>bold"


def test_literal_text_is_not_escaped(assembler):
    children = _children(assembler, "1 < 2 & 3 > 2")
    assert "".join(c.content for c in children) == "1 < 2 & 3 > 2"


def test_footnote_refs():
    assert split_footnote_refs("See[^1] and [^note].") == [
        Inline(type=InlineType.text, content="See"),
        Inline(type=InlineType.footnote_ref, content="1"),
        Inline(type=InlineType.text, content=" and "),
        Inline(type=InlineType.footnote_ref, content="note"),
        Inline(type=InlineType.text, content="."),
    ]
