"""Shared markdown-it syntax tree utilities"""


def heading_level(node) -> int | None:
    """Return the heading level (1-6) from an h1..h6 tag, else None."""
    if node.tag and node.tag[0] == 'h' and node.tag[1:].isdigit():
        return int(node.tag[1:])
    return None


def source_slice(node, source_lines: list[str]) -> str:
    """Extract raw source for a block via its line map; fallback to node.content."""
    if node.map:
        start, end = node.map
        return ''.join(source_lines[start:end]).rstrip()
    return node.content.rstrip()


def cell_align(cell) -> str | None:
    """Return left/center/right from a th/td text-align style, else None."""
    style = cell.attrs.get('style', '') if cell.attrs else ''
    if isinstance(style, str) and style.startswith('text-align:'):
        return style.split(':', 1)[1].strip() or None
    return None
