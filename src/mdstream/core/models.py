"""Block, inline, and lexer-token models for the streaming block parser"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Optional, Union

from markdown_it.tree import SyntaxTreeNode
from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny


class BlockType(str, Enum):
    """Built-in block discriminants; extensions may emit any other string."""
    paragraph    = "paragraph"
    heading      = "heading"
    code         = "code"
    list         = "list"
    blockquote   = "blockquote"
    hr           = "hr"
    html         = "html"
    table        = "table"
    footnote_def = "footnote_def"
    unknown      = "unknown"
    raw          = "raw"


class InlineType(str, Enum):
    """Rich-text span kinds inside paragraph, heading, and list-item content."""
    text          = "text"
    bold          = "bold"
    italic        = "italic"
    strikethrough = "strikethrough"
    code          = "code"
    link          = "link"
    image         = "image"
    hard_break    = "hard-break"
    sup           = "sup"
    sub           = "sub"
    footnote_ref  = "footnote-ref"


def stable_id(block_type: str, position: int) -> str:
    """Deterministic block id; identical content at the same position keeps its id."""
    return f"{block_type}-{position}"


class Inline(BaseModel):
    """A leaf renders `content` literally; a container expands `children`."""
    model_config = ConfigDict(frozen=True)

    type:     InlineType
    content:  str = ""
    href:     Optional[str] = None
    src:      Optional[str] = None
    alt:      Optional[str] = None
    children: Optional[list["Inline"]] = None


class BlockBase(BaseModel):
    """Fields every block carries, whatever its kind."""
    model_config = ConfigDict(frozen=True)

    id:          str
    type:        str
    content:     str = ""                # raw markdown substring or flattened text
    is_complete: bool = True
    position:    int = Field(ge=0)       # dense, 0-indexed within one parse result


class ParagraphBlock(BlockBase):
    type:     Literal["paragraph"] = "paragraph"
    children: Optional[list[Inline]] = None


class HeadingBlock(BlockBase):
    type:     Literal["heading"] = "heading"
    level:    int = Field(default=1, ge=1, le=6)
    children: Optional[list[Inline]] = None


class CodeBlock(BlockBase):
    type:        Literal["code"] = "code"
    language:    Optional[str] = None    # None when the fence has no info string
    raw_content: str = ""                # fence body before any highlighting


class ListItem(BaseModel):
    """One list entry: paragraph-shaped text plus any nested blocks."""
    model_config = ConfigDict(frozen=True)

    id:       str
    content:  str = ""
    children: Optional[list[Inline]] = None
    blocks:   Optional[list[SerializeAsAny[BlockBase]]] = None
    task:     bool = False
    checked:  Optional[bool] = None


class ListBlock(BlockBase):
    type:    Literal["list"] = "list"
    subtype: Literal["ordered", "unordered"] = "unordered"
    items:   list[ListItem] = Field(default_factory=list)


class BlockquoteBlock(BlockBase):
    type:   Literal["blockquote"] = "blockquote"
    blocks: list[SerializeAsAny[BlockBase]] = Field(default_factory=list)


class TableData(BaseModel):
    model_config = ConfigDict(frozen=True)

    headers: list[str] = Field(default_factory=list)
    rows:    list[list[str]] = Field(default_factory=list)
    align:   list[Optional[str]] = Field(default_factory=list)


class TableBlock(BlockBase):
    type:       Literal["table"] = "table"
    table_data: TableData = Field(default_factory=TableData)


class ThematicBreakBlock(BlockBase):
    type: Literal["hr"] = "hr"


class HtmlBlock(BlockBase):
    type: Literal["html"] = "html"


class FootnoteDefBlock(BlockBase):
    type:          Literal["footnote_def"] = "footnote_def"
    footnote_defs: dict[str, str] = Field(default_factory=dict)


class UnknownBlock(BlockBase):
    type: Literal["unknown"] = "unknown"


class RawBlock(BlockBase):
    type: Literal["raw"] = "raw"


class ExtensionBlock(BlockBase):
    """Block produced by a registered extension under its own type string."""
    data: dict[str, Any] = Field(default_factory=dict)


# Built-in block shapes; extensions may return any other BlockBase subclass.
Block = Union[
    ParagraphBlock,
    HeadingBlock,
    CodeBlock,
    ListBlock,
    BlockquoteBlock,
    TableBlock,
    ThematicBreakBlock,
    HtmlBlock,
    FootnoteDefBlock,
    UnknownBlock,
    RawBlock,
    ExtensionBlock,
]

ListItem.model_rebuild()
BlockquoteBlock.model_rebuild()


class ParseResult(BaseModel):
    """Parser output handed to the rendering layer."""
    blocks:               list[SerializeAsAny[BlockBase]] = Field(default_factory=list)
    has_incomplete_block: bool = False   # trailing block is provisional


@dataclass(frozen=True)
class IncrementalCache:
    """Snapshot of the stable prefix; replaced wholesale, never updated in place."""
    stable_text:     str = ""
    stable_blocks:   tuple = ()          # block parse of stable_text[:stable_boundary]
    stable_boundary: int = 0


@dataclass
class LexToken:
    """Block-level token adapted from the markdown-it syntax tree; not serialized."""
    type:    str                         # heading, paragraph, code, list, list_item, blockquote, hr, html, table
    raw:     str = ""                    # source slice via token.map
    text:    str = ""                    # content without block markup
    depth:   Optional[int] = None        # heading level
    lang:    Optional[str] = None        # fence info string
    ordered: bool = False
    task:    bool = False
    checked: Optional[bool] = None
    items:   list["LexToken"] = field(default_factory=list)
    tokens:  list["LexToken"] = field(default_factory=list)   # nested block tokens
    header:  list[str] = field(default_factory=list)
    rows:    list[list[str]] = field(default_factory=list)
    align:   list[Optional[str]] = field(default_factory=list)
    inline:  Optional[SyntaxTreeNode] = None                  # inline children for heading/paragraph
    node:    Optional[SyntaxTreeNode] = None                  # originating markdown-it node
