"""Nesting bound for container blocks"""

from mdstream.core.models import BlockType


MAX_NEST_DEPTH = 2
NESTABLE_TYPES = frozenset({BlockType.list.value, BlockType.blockquote.value})


class DepthGuard:
    """Stateless checks; anything with a `type` attribute (block or lexer token) is accepted."""

    @staticmethod
    def can_nest(block, current_depth: int) -> bool:
        """True when block is a container and current_depth is within the bound."""
        if current_depth > MAX_NEST_DEPTH:
            return False
        return block.type in NESTABLE_TYPES

    @staticmethod
    def is_at_max_depth(depth: int) -> bool:
        return depth >= MAX_NEST_DEPTH
