"""Parser extension registry: ordered block and inline hooks with fallback and error accounting"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from markdown_it.tree import SyntaxTreeNode

from mdstream.core.models import BlockBase, Inline, LexToken
from mdstream.util.logging import get_logger


logger = get_logger(__name__)


@dataclass
class ExtensionContext:
    """Helpers handed to extension handlers so they can build on the built-in mapping."""
    parse_inlines:  Callable[[Optional[SyntaxTreeNode]], list[Inline]]
    extract_text:   Callable[[LexToken], str]
    token_to_block: Callable[[LexToken, int], Optional[BlockBase]]
    stable_id:      Callable[[str, int], str]


@dataclass
class BlockExtension:
    """Intercepts lexer tokens of `type` (any type when None) before the built-in mapping."""
    name:     str
    handler:  Callable[[LexToken, dict[str, Any], ExtensionContext], Optional[BlockBase]]
    type:     Optional[str] = None
    match:    Optional[Callable[[LexToken], bool]] = None
    validate: Optional[Callable[[BlockBase, LexToken], bool]] = None
    fallback: Optional[Callable[[LexToken, dict[str, Any], ExtensionContext], Optional[BlockBase]]] = None


@dataclass
class InlineExtension:
    """Intercepts inline syntax tree nodes of `type` (any type when None)."""
    name:     str
    handler:  Callable[[SyntaxTreeNode, ExtensionContext], Optional[Inline]]
    type:     Optional[str] = None
    match:    Optional[Callable[[SyntaxTreeNode], bool]] = None
    validate: Optional[Callable[[Inline, SyntaxTreeNode], bool]] = None
    fallback: Optional[Callable[[SyntaxTreeNode, ExtensionContext], Optional[Inline]]] = None


Extension = Union[BlockExtension, InlineExtension]


@dataclass
class ExtensionErrorRecord:
    extension:  str
    stage:      str   # handler, validate, or fallback
    token_type: str
    error:      str


@dataclass
class ExtensionStats:
    extension_calls:     int = 0
    extension_fallbacks: int = 0
    errors:              int = 0
    records:             list[ExtensionErrorRecord] = field(default_factory=list)

    def snapshot(self) -> dict[str, int]:
        return {
            "extension_calls": self.extension_calls,
            "extension_fallbacks": self.extension_fallbacks,
            "errors": self.errors,
        }


class ExtensionRegistry:
    """Ordered extensions; the first one producing a valid result wins."""

    def __init__(self, extensions: list[Extension] = None):
        self._block: list[BlockExtension] = []
        self._inline: list[InlineExtension] = []
        self.stats = ExtensionStats()
        for ext in extensions or []:
            self.register(ext)

    def __len__(self) -> int:
        return len(self._block) + len(self._inline)

    def register(self, extension: Extension) -> None:
        if isinstance(extension, BlockExtension):
            self._block.append(extension)
        elif isinstance(extension, InlineExtension):
            self._inline.append(extension)
        else:
            raise TypeError(f"Unsupported extension: {type(extension).__name__}")

    def unregister(self, extension: Union[Extension, str]) -> bool:
        """Remove an extension, or every extension with that name; True if any was removed."""
        before = len(self)
        if isinstance(extension, str):
            keep = lambda e: e.name != extension
        else:
            keep = lambda e: e is not extension
        self._block = [e for e in self._block if keep(e)]
        self._inline = [e for e in self._inline if keep(e)]
        return len(self) != before

    def reset_stats(self) -> None:
        self.stats = ExtensionStats()

    def _record(self, ext: Extension, stage: str, token_type: str, error: Exception) -> None:
        self.stats.errors += 1
        self.stats.records.append(ExtensionErrorRecord(ext.name, stage, token_type, repr(error)))
        logger.error("Extension %r failed in %s for %r: %s", ext.name, stage, token_type, error)

    def _is_valid(self, ext: Extension, result, subject, expected: type) -> bool:
        if not isinstance(result, expected):
            return False
        if ext.validate is None:
            return True
        try:
            return bool(ext.validate(result, subject))
        except Exception as e:
            self._record(ext, "validate", subject.type, e)
            return False

    def _fallback(self, ext: Extension, args: tuple, token_type: str, expected: type):
        if ext.fallback is None:
            return None
        self.stats.extension_fallbacks += 1
        try:
            result = ext.fallback(*args)
        except Exception as e:
            self._record(ext, "fallback", token_type, e)
            return None
        return result if isinstance(result, expected) else None

    def _run(self, extensions: list, subject, args: tuple, expected: type) -> tuple[Any, bool]:
        """Return (result, matched); result None means use the built-in mapping."""
        matched = False
        for ext in extensions:
            if ext.type is not None and ext.type != subject.type:
                continue
            try:
                if ext.match is not None and not ext.match(subject):
                    continue
            except Exception as e:
                self._record(ext, "match", subject.type, e)
                continue
            matched = True
            self.stats.extension_calls += 1
            try:
                result = ext.handler(*args)
            except Exception as e:
                self._record(ext, "handler", subject.type, e)
                result = self._fallback(ext, args, subject.type, expected)
                if result is not None:
                    return result, True
                continue
            if result is None:
                continue
            if self._is_valid(ext, result, subject, expected):
                return result, True
            logger.warning("Extension %r returned an invalid %s result", ext.name, subject.type)
            result = self._fallback(ext, args, subject.type, expected)
            if result is not None:
                return result, True
        return None, matched

    def run_block(self, token: LexToken, base: dict[str, Any], context: ExtensionContext) -> tuple[Optional[BlockBase], bool]:
        if not self._block:
            return None, False
        return self._run(self._block, token, (token, base, context), BlockBase)

    def run_inline(self, node: SyntaxTreeNode, context: ExtensionContext) -> Optional[Inline]:
        if not self._inline:
            return None
        result, _ = self._run(self._inline, node, (node, context), Inline)
        return result
