"""Block parser: full parses and prefix-cached incremental parses of streaming markdown"""

from dataclasses import dataclass
from typing import Optional

from mdstream.config import Settings
from mdstream.core.assemble.blocks import BlockAssembler
from mdstream.core.boundary import detect_incomplete_block, scan_boundary
from mdstream.core.extensions import ExtensionRegistry
from mdstream.core.lex import extract_footnotes, tokenize
from mdstream.core.models import (
    Block,
    FootnoteDefBlock,
    IncrementalCache,
    ParseResult,
    stable_id,
)
from mdstream.core.repair import repair
from mdstream.util.logging import get_logger


logger = get_logger(__name__)


@dataclass
class ParserStats:
    full_parses:  int = 0
    cache_hits:   int = 0
    cache_misses: int = 0
    parse_errors: int = 0


def _split_footnotes(blocks) -> tuple[list[Block], dict[str, str]]:
    """Separate a trailing footnote-definition block from the rest."""
    blocks = list(blocks)
    if blocks and isinstance(blocks[-1], FootnoteDefBlock):
        return blocks[:-1], dict(blocks[-1].footnote_defs)
    return blocks, {}


def _with_footnotes(blocks: list[Block], defs: dict[str, str]) -> list[Block]:
    if not defs:
        return blocks
    position = len(blocks)
    return blocks + [FootnoteDefBlock(
        id=stable_id("footnote_def", position),
        position=position,
        footnote_defs=defs,
    )]


class BlockParser:
    """Owns the incremental cache; one instance per stream."""

    def __init__(self, settings: Settings = None, registry: ExtensionRegistry = None):
        self.settings = settings or Settings()
        self.assembler = BlockAssembler(registry)
        self.stats = ParserStats()
        self._cache = IncrementalCache()

    @property
    def registry(self) -> ExtensionRegistry:
        return self.assembler.registry

    @property
    def cache(self) -> IncrementalCache:
        return self._cache

    def reset(self) -> None:
        """Discard the incremental cache."""
        self._cache = IncrementalCache()

    def _segment(self, text: str, start_position: int = 0, repair_from: int = 0) -> tuple[list[Block], dict[str, str]]:
        """Repair the text past repair_from, then tokenize and assemble the segment."""
        if self.settings.repair_markers and repair_from < len(text):
            text = text[:repair_from] + repair(text[repair_from:])
        defs: dict[str, str] = {}
        if self.settings.extract_footnotes:
            text, defs = extract_footnotes(text)
        tokens = tokenize(text, self.settings.parser_preset)
        return self.assembler.assemble(tokens, start_position), defs

    def _safe_segment(self, text: str, start_position: int = 0, repair_from: int = 0) -> Optional[tuple[list[Block], dict[str, str]]]:
        try:
            return self._segment(text, start_position, repair_from)
        except Exception as e:
            self.stats.parse_errors += 1
            logger.error("Failed to parse %d chars at position %d: %s", len(text), start_position, e)
            return None

    def parse(self, text: str) -> ParseResult:
        """Full parse of text; never raises and ignores the incremental cache.

        Only the text past the last stable boundary is repaired, so a marker
        left open in a finished block stays literal exactly as it does when
        the same text arrives incrementally.
        """
        if not text or not text.strip():
            return ParseResult()
        self.stats.full_parses += 1
        scan = scan_boundary(text)
        segment = self._safe_segment(text, repair_from=scan.boundary)
        if segment is None:
            return ParseResult()
        blocks, defs = segment
        return ParseResult(
            blocks=_with_footnotes(blocks, defs),
            has_incomplete_block=detect_incomplete_block(text, scan.in_fence_at_end),
        )

    def _full(self, text: str) -> ParseResult:
        """Full parse that reseeds the cache when the whole text is already stable."""
        result = self.parse(text)
        scan = scan_boundary(text)
        if scan.boundary > 0 and scan.boundary >= len(text):
            self._cache = IncrementalCache(text, tuple(result.blocks), scan.boundary)
        else:
            self._cache = IncrementalCache(stable_text=text)
        return result

    def parse_incremental(self, previous_text: str, new_text: str) -> ParseResult:
        """Parse new_text, reusing cached blocks for the stable prefix when the stream only grew."""
        if not previous_text or not new_text.startswith(previous_text):
            logger.debug("Stream restarted or diverged; running a full parse")
            self.reset()
            return self._full(new_text)

        scan = scan_boundary(new_text)
        if scan.boundary <= 0:
            return self._full(new_text)

        boundary = scan.boundary
        cache = self._cache
        if cache.stable_boundary == boundary and cache.stable_text[:boundary] == new_text[:boundary]:
            self.stats.cache_hits += 1
            logger.debug("Stable prefix cache hit at boundary %d", boundary)
            stable_blocks = cache.stable_blocks
        else:
            self.stats.cache_misses += 1
            logger.debug("Stable prefix cache miss: boundary %d, cached %d", boundary, cache.stable_boundary)
            segment = self._safe_segment(new_text[:boundary], repair_from=boundary)
            if segment is None:
                # cache untouched so the next update parses this prefix again
                stable_blocks = ()
            else:
                stable_blocks = tuple(_with_footnotes(*segment))
                self._cache = IncrementalCache(new_text, stable_blocks, boundary)

        stable, defs = _split_footnotes(stable_blocks)
        tail_text = new_text[boundary:]
        tail: list[Block] = []
        if tail_text.strip():
            segment = self._safe_segment(tail_text, len(stable))
            if segment is not None:
                tail, tail_defs = segment
                defs = {**defs, **tail_defs}

        return ParseResult(
            blocks=_with_footnotes(stable + tail, defs),
            has_incomplete_block=detect_incomplete_block(new_text, scan.in_fence_at_end),
        )
