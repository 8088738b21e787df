"""Conversions between plain-text offsets and document positions.

Phrase and section locators work on :meth:`Node.plain_text`; these helpers
translate their character offsets into positions of the live tree and back.
"""

from __future__ import annotations

from .model import Node
from .ranges import DocRange

# One virtual character per block boundary, matching ``Node.plain_text``.
BLOCK_SEPARATOR_WIDTH = 1


def text_index_to_doc_position(doc: Node, index: int) -> int:
    """Return the document position of plain-text character ``index``.

    Never raises: indexes past the end of the text map to the document's
    content size.
    """

    char_count = 0
    for node, pos in doc.descendants():
        if node.is_text:
            length = len(node.text or "")
            if char_count + length >= index:
                return pos + max(0, index - char_count)
            char_count += length
        elif node.is_block and char_count > 0:
            char_count += BLOCK_SEPARATOR_WIDTH
    return doc.content_size


def doc_position_to_text_index(doc: Node, position: int) -> int:
    """Inverse of :func:`text_index_to_doc_position` for positions inside text."""

    char_count = 0
    for node, pos in doc.descendants():
        if node.is_text:
            length = len(node.text or "")
            if pos + length >= position:
                return char_count + max(0, position - pos)
            char_count += length
        elif node.is_block:
            if pos >= position:
                return char_count
            if char_count > 0:
                char_count += BLOCK_SEPARATOR_WIDTH
    return char_count


def text_range_to_doc_range(doc: Node, start_index: int, end_index: int) -> DocRange:
    return DocRange(
        text_index_to_doc_position(doc, start_index),
        text_index_to_doc_position(doc, end_index),
    )


def snap_to_block_boundary(doc: Node, position: int) -> int:
    """Move ``position`` out of the top-level block that contains it.

    Positions at or before the block's first character go to the block's
    start, anything later goes to its end.
    """

    offset = 0
    for child in doc.content:
        start, end = offset, offset + child.node_size
        offset = end
        if not start < position < end:
            continue
        first_text = next(
            (start + 1 + pos for node, pos in child.descendants() if node.is_text),
            start + 1,
        )
        return start if position <= first_text else end
    return position


def snap_section_range(doc: Node, start: int, end: int) -> DocRange:
    """Align section content bounds to whole top-level blocks."""

    snapped_start = snap_to_block_boundary(doc, start)
    snapped_end = snap_to_block_boundary(doc, end)
    return DocRange(snapped_start, max(snapped_start, snapped_end))


__all__ = [
    "BLOCK_SEPARATOR_WIDTH",
    "doc_position_to_text_index",
    "snap_section_range",
    "snap_to_block_boundary",
    "text_index_to_doc_position",
    "text_range_to_doc_range",
]
