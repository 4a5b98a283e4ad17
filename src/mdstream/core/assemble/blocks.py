"""Lexer-token-to-Block conversion with extension hooks and bounded nesting"""

import re
from typing import Any, Callable, Optional

from markdown_it.tree import SyntaxTreeNode

from mdstream.core.assemble.inlines import parse_inlines
from mdstream.core.depth import DepthGuard
from mdstream.core.extensions import ExtensionContext, ExtensionRegistry
from mdstream.core.lex import TASK_RE
from mdstream.core.models import (
    Block,
    BlockquoteBlock,
    CodeBlock,
    HeadingBlock,
    HtmlBlock,
    Inline,
    InlineType,
    LexToken,
    ListBlock,
    ListItem,
    ParagraphBlock,
    TableBlock,
    TableData,
    ThematicBreakBlock,
    UnknownBlock,
    stable_id,
)


LANG_SPLIT_RE = re.compile(r'[\s|,:;]+')
LANG_STRIP_RE = re.compile(r'[^a-z0-9+#._-]')


def normalize_language(info: str | None) -> str | None:
    """First word of a fence info string, lowercased and restricted to identifier chars."""
    if not info:
        return None
    first = LANG_SPLIT_RE.split(info.strip().lower())[0]
    return LANG_STRIP_RE.sub("", first) or None


def extract_text(token: LexToken) -> str:
    """Raw source when available, else the markup-free text."""
    return token.raw or token.text


def _strip_task_marker(children: list[Inline]) -> list[Inline]:
    if children and children[0].type == InlineType.text:
        head = TASK_RE.sub("", children[0].content, count=1)
        return ([children[0].model_copy(update={"content": head})] if head else []) + children[1:]
    return children


class BlockAssembler:
    """Maps lexer tokens to blocks; consults the extension registry before the built-ins."""

    def __init__(self, registry: ExtensionRegistry = None):
        self.registry = registry if registry is not None else ExtensionRegistry()
        self.context = ExtensionContext(
            parse_inlines=self.parse_inlines,
            extract_text=extract_text,
            token_to_block=self.token_to_block,
            stable_id=stable_id,
        )
        self._builders: dict[str, Callable[..., Optional[Block]]] = {
            "heading":    self._heading,
            "paragraph":  self._paragraph,
            "code":       self._code,
            "list":       self._list,
            "blockquote": self._blockquote,
            "hr":         self._hr,
            "html":       self._html,
            "table":      self._table,
        }

    def parse_inlines(self, inline: SyntaxTreeNode | None) -> list[Inline]:
        hook = (lambda node: self.registry.run_inline(node, self.context)) if len(self.registry) else None
        return parse_inlines(inline, hook)

    def assemble(self, tokens: list[LexToken], start_position: int = 0) -> list[Block]:
        """Map tokens in order, skipping ones without a block; positions stay dense."""
        blocks: list[Block] = []
        for token in tokens:
            block = self.token_to_block(token, start_position + len(blocks))
            if block is not None:
                blocks.append(block)
        return blocks

    def token_to_block(self, token: LexToken, position: int, depth: int = 0, id_prefix: str = "") -> Optional[Block]:
        """Extension result if one applies, else the built-in mapping for the token type."""
        base: dict[str, Any] = {
            "id": id_prefix + stable_id(token.type, position),
            "position": position,
            "is_complete": True,
        }
        block, claimed = self.registry.run_block(token, base, self.context)
        if block is not None:
            return block

        builder = self._builders.get(token.type)
        block = builder(token, base, depth) if builder else None
        if block is None and claimed:
            return UnknownBlock(content=token.raw, **base)
        return block

    def _heading(self, token: LexToken, base: dict, depth: int) -> HeadingBlock:
        return HeadingBlock(content=token.text, level=token.depth or 1,
                            children=self.parse_inlines(token.inline), **base)

    def _paragraph(self, token: LexToken, base: dict, depth: int) -> ParagraphBlock:
        return ParagraphBlock(content=token.text, children=self.parse_inlines(token.inline), **base)

    def _code(self, token: LexToken, base: dict, depth: int) -> CodeBlock:
        return CodeBlock(content=token.text, raw_content=token.text,
                         language=normalize_language(token.lang), **base)

    def _hr(self, token: LexToken, base: dict, depth: int) -> ThematicBreakBlock:
        return ThematicBreakBlock(content=token.raw, **base)

    def _html(self, token: LexToken, base: dict, depth: int) -> HtmlBlock:
        return HtmlBlock(content=token.raw, **base)

    def _table(self, token: LexToken, base: dict, depth: int) -> TableBlock:
        data = TableData(headers=token.header, rows=token.rows, align=token.align)
        return TableBlock(content=token.raw, table_data=data, **base)

    def _nested(self, child: LexToken, parent_id: str, index: int, depth: int) -> Optional[Block]:
        """Embed a child block, or flatten a container past the depth bound into a paragraph."""
        if child.type in ("list", "blockquote") and not DepthGuard.can_nest(child, depth):
            return ParagraphBlock(id=f"{parent_id}-paragraph-{index}", position=index, content=child.text)
        return self.token_to_block(child, index, depth, id_prefix=f"{parent_id}-")

    def _blockquote(self, token: LexToken, base: dict, depth: int) -> BlockquoteBlock:
        nested = []
        for child in token.tokens:
            block = self._nested(child, base["id"], len(nested), depth + 1)
            if block is not None:
                nested.append(block)
        return BlockquoteBlock(content=token.text, blocks=nested, **base)

    def _list(self, token: LexToken, base: dict, depth: int) -> ListBlock:
        items = [self._list_item(item, f"{base['id']}-item-{i}", depth) for i, item in enumerate(token.items)]
        return ListBlock(content=token.raw, subtype="ordered" if token.ordered else "unordered",
                         items=items, **base)

    def _list_item(self, item: LexToken, item_id: str, depth: int) -> ListItem:
        """Paragraph children form the item text; other children become nested blocks."""
        texts: list[str] = []
        children: list[Inline] = []
        blocks: list[Block] = []
        for child in item.tokens:
            if child.type == "paragraph":
                if children:
                    children.append(Inline(type=InlineType.text, content="\n"))
                children.extend(self.parse_inlines(child.inline))
                texts.append(child.text)
            elif child.type in ("list", "blockquote") and not DepthGuard.can_nest(child, depth + 1):
                texts.append(child.text)
            else:
                block = self.token_to_block(child, len(blocks), depth + 1, id_prefix=f"{item_id}-")
                if block is not None:
                    blocks.append(block)
        if item.task:
            children = _strip_task_marker(children)
        return ListItem(
            id=item_id,
            content="\n".join(t for t in texts if t),
            children=children or None,
            blocks=blocks or None,
            task=item.task,
            checked=item.checked,
        )
