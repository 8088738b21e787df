"""Stable block identifiers and block lookup helpers.

Every block of a tracked type carries a ``blockId`` attribute of the form
``{type[:3]}_{6 base36 chars}``. Ids survive edits to the block's text, so the
AI layer can target blocks without relying on text matching.
"""

from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass
from typing import Iterable

from ..documents.model import Node, NodeType

LOGGER = logging.getLogger(__name__)

BLOCK_ID_ATTR = "blockId"
BLOCK_ID_TYPES: frozenset[NodeType] = frozenset(
    {
        NodeType.PARAGRAPH,
        NodeType.HEADING,
        NodeType.BLOCKQUOTE,
        NodeType.CODE_BLOCK,
        NodeType.BULLET_LIST,
        NodeType.ORDERED_LIST,
        NodeType.LIST_ITEM,
        NodeType.TABLE,
        NodeType.TABLE_ROW,
        NodeType.TABLE_CELL,
        NodeType.TABLE_HEADER,
        NodeType.TASK_LIST,
        NodeType.TASK_ITEM,
    }
)
PREVIEW_CHARS = 80
_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(slots=True, frozen=True)
class BlockMatch:
    """A block located in the document with its start position."""

    pos: int
    node: Node

    @property
    def end(self) -> int:
        return self.pos + self.node.node_size


@dataclass(slots=True, frozen=True)
class BlockInfo:
    """Flat description of an identified block."""

    id: str
    type: str
    text: str
    pos: int
    size: int


def generate_block_id(node_type: NodeType | str, rng: random.Random | None = None) -> str:
    prefix = NodeType(node_type).value[:3].lower()
    chooser = rng or random
    suffix = "".join(chooser.choice(_ALPHABET) for _ in range(6))
    return f"{prefix}_{suffix}"


def assign_block_ids(doc: Node, *, rng: random.Random | None = None) -> int:
    """Give every tracked block without a unique id a fresh one, in place.

    Returns the number of ids assigned.
    """

    seen: set[str] = set()
    assigned = 0
    for node, _ in doc.descendants():
        if node.type not in BLOCK_ID_TYPES:
            continue
        current = node.attrs.get(BLOCK_ID_ATTR)
        if current and current not in seen:
            seen.add(current)
            continue
        new_id = generate_block_id(node.type, rng)
        while new_id in seen:
            new_id = generate_block_id(node.type, rng)
        node.attrs[BLOCK_ID_ATTR] = new_id
        seen.add(new_id)
        assigned += 1
    if assigned:
        LOGGER.debug("Assigned %d block ids", assigned)
    return assigned


def find_block_by_id(doc: Node, block_id: str | None) -> BlockMatch | None:
    if not block_id:
        return None
    for node, pos in doc.descendants():
        if node.attrs.get(BLOCK_ID_ATTR) == block_id:
            return BlockMatch(pos=pos, node=node)
    return None


def extract_blocks(doc: Node) -> list[BlockInfo]:
    return [
        BlockInfo(
            id=node.attrs[BLOCK_ID_ATTR],
            type=node.type.value,
            text=node.text_content,
            pos=pos,
            size=node.node_size,
        )
        for node, pos in doc.descendants()
        if node.type in BLOCK_ID_TYPES and node.attrs.get(BLOCK_ID_ATTR)
    ]


def document_structure(doc: Node, *, preview_chars: int = PREVIEW_CHARS) -> str:
    """Render one ``[id] type: "preview"`` line per identified block."""

    lines = []
    for block in extract_blocks(doc):
        preview = block.text[:preview_chars].replace("\n", " ")
        suffix = "..." if len(block.text) > preview_chars else ""
        lines.append(f'[{block.id}] {block.type}: "{preview}{suffix}"')
    return "\n".join(lines)


def find_block_by_type_and_text(
    doc: Node,
    node_type: NodeType | str,
    search_text: str,
    min_similarity: float = 0.6,
) -> tuple[BlockMatch, float] | None:
    """Return the block of ``node_type`` whose text best resembles ``search_text``."""

    wanted = NodeType(node_type)
    best: tuple[BlockMatch, float] | None = None
    search = search_text.lower()
    for node, pos in doc.descendants():
        if node.type is not wanted:
            continue
        similarity = _similarity(node.text_content.lower(), search)
        if similarity >= min_similarity and (best is None or similarity > best[1]):
            best = (BlockMatch(pos=pos, node=node), similarity)
    return best


def _similarity(a: str, b: str) -> float:
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    if b in a:
        return len(b) / len(a)
    if a in b:
        return len(a) / len(b)
    words_a = _long_words(a.split())
    words_b = _long_words(b.split())
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def _long_words(words: Iterable[str]) -> set[str]:
    return {word for word in words if len(word) > 2}


__all__ = [
    "BLOCK_ID_ATTR",
    "BLOCK_ID_TYPES",
    "BlockInfo",
    "BlockMatch",
    "assign_block_ids",
    "document_structure",
    "extract_blocks",
    "find_block_by_id",
    "find_block_by_type_and_text",
    "generate_block_id",
]
