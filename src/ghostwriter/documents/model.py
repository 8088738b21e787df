"""Structured document tree shared by the editor and the AI edit tools.

Nodes follow the TipTap/ProseMirror JSON shape (``type``/``attrs``/``content``
with ``text`` and ``marks`` on text leaves) and use the same linear
addressing: a text node occupies ``len(text)`` positions, an atomic node one
position and every other node its content size plus two for its open and
close boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Sequence


class NodeType(str, Enum):
    """Closed set of node kinds the editor schema understands."""

    DOC = "doc"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCKQUOTE = "blockquote"
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    LIST_ITEM = "listItem"
    TASK_LIST = "taskList"
    TASK_ITEM = "taskItem"
    CODE_BLOCK = "codeBlock"
    HORIZONTAL_RULE = "horizontalRule"
    TABLE = "table"
    TABLE_ROW = "tableRow"
    TABLE_HEADER = "tableHeader"
    TABLE_CELL = "tableCell"
    TEXT = "text"
    CITATION = "citation"
    MATHEMATICS = "mathematics"
    IMAGE = "image"
    HARD_BREAK = "hardBreak"


class MarkType(str, Enum):
    """Closed set of inline formatting marks."""

    BOLD = "bold"
    ITALIC = "italic"
    CODE = "code"
    STRIKE = "strike"
    LINK = "link"
    HIGHLIGHT = "highlight"


INLINE_TYPES: frozenset[NodeType] = frozenset(
    {NodeType.TEXT, NodeType.CITATION, NodeType.MATHEMATICS, NodeType.IMAGE, NodeType.HARD_BREAK}
)
LEAF_TYPES: frozenset[NodeType] = INLINE_TYPES | {NodeType.HORIZONTAL_RULE}
TEXTBLOCK_TYPES: frozenset[NodeType] = frozenset(
    {NodeType.PARAGRAPH, NodeType.HEADING, NodeType.CODE_BLOCK}
)
LIST_TYPES: frozenset[NodeType] = frozenset(
    {NodeType.BULLET_LIST, NodeType.ORDERED_LIST, NodeType.TASK_LIST}
)
LIST_ITEM_TYPES: frozenset[NodeType] = frozenset({NodeType.LIST_ITEM, NodeType.TASK_ITEM})


@dataclass(slots=True, frozen=True)
class Mark:
    """Formatting attribute applied to a run of inline content."""

    type: MarkType
    attrs: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": MarkType(self.type).value}
        if self.attrs:
            payload["attrs"] = dict(self.attrs)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Mark":
        return cls(type=MarkType(payload["type"]), attrs=dict(payload.get("attrs") or {}))


@dataclass(slots=True)
class Node:
    """A single node of the document tree."""

    type: NodeType
    attrs: dict[str, Any] = field(default_factory=dict)
    content: list["Node"] = field(default_factory=list)
    text: str | None = None
    marks: tuple[Mark, ...] = ()

    def __post_init__(self) -> None:
        self.type = NodeType(self.type)
        self.marks = tuple(self.marks)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------
    @property
    def is_text(self) -> bool:
        return self.type is NodeType.TEXT

    @property
    def is_leaf(self) -> bool:
        return self.type in LEAF_TYPES

    @property
    def is_inline(self) -> bool:
        return self.type in INLINE_TYPES

    @property
    def is_block(self) -> bool:
        return not self.is_inline and self.type is not NodeType.DOC

    @property
    def is_textblock(self) -> bool:
        return self.type in TEXTBLOCK_TYPES

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------
    @property
    def content_size(self) -> int:
        return sum(child.node_size for child in self.content)

    @property
    def node_size(self) -> int:
        if self.is_text:
            return len(self.text or "")
        if self.is_leaf:
            return 1
        return self.content_size + 2

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def descendants(self) -> Iterator[tuple["Node", int]]:
        """Yield ``(node, pos)`` pairs in document order.

        ``pos`` is the position directly before the node, counted from the
        start of this node's content.
        """

        yield from _walk(self.content, 0)

    @property
    def text_content(self) -> str:
        if self.is_text:
            return self.text or ""
        return "".join(node.text or "" for node, _ in self.descendants() if node.is_text)

    def plain_text(self, block_separator: str = "\n") -> str:
        """Return the plain-text projection used for phrase and section search.

        A separator precedes every block once any text has been emitted;
        atomic inline nodes contribute nothing.
        """

        parts: list[str] = []
        emitted = 0
        for node, _ in self.descendants():
            if node.is_text:
                parts.append(node.text or "")
                emitted += len(node.text or "")
            elif node.is_block and emitted > 0:
                parts.append(block_separator)
                emitted += len(block_separator)
        return "".join(parts)

    def copy(self, **changes: Any) -> "Node":
        values = {
            "type": self.type,
            "attrs": dict(self.attrs),
            "content": list(self.content),
            "text": self.text,
            "marks": self.marks,
        }
        values.update(changes)
        return Node(**values)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value}
        if self.attrs:
            payload["attrs"] = dict(self.attrs)
        if self.is_text:
            payload["text"] = self.text or ""
        elif self.content:
            payload["content"] = [child.to_dict() for child in self.content]
        if self.marks:
            payload["marks"] = [mark.to_dict() for mark in self.marks]
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Node":
        return cls(
            type=NodeType(payload["type"]),
            attrs=dict(payload.get("attrs") or {}),
            content=[cls.from_dict(child) for child in payload.get("content") or ()],
            text=payload.get("text"),
            marks=tuple(Mark.from_dict(mark) for mark in payload.get("marks") or ()),
        )


def _walk(nodes: Sequence[Node], pos: int) -> Iterator[tuple[Node, int]]:
    for child in nodes:
        yield child, pos
        if child.content:
            yield from _walk(child.content, pos + 1)
        pos += child.node_size


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
def text(value: str, marks: Iterable[Mark] = ()) -> Node:
    return Node(NodeType.TEXT, text=value, marks=tuple(marks))


def paragraph(*children: Node | str, **attrs: Any) -> Node:
    return Node(NodeType.PARAGRAPH, attrs=attrs, content=_coerce_inline(children))


def heading(level: int, *children: Node | str, **attrs: Any) -> Node:
    return Node(NodeType.HEADING, attrs={"level": level, **attrs}, content=_coerce_inline(children))


def block(node_type: NodeType | str, *children: Node, **attrs: Any) -> Node:
    return Node(NodeType(node_type), attrs=attrs, content=list(children))


def citation(paper_id: str, **attrs: Any) -> Node:
    return Node(NodeType.CITATION, attrs={"id": paper_id, **attrs})


def doc(*children: Node) -> Node:
    return Node(NodeType.DOC, content=list(children) or [Node(NodeType.PARAGRAPH)])


def _coerce_inline(children: Sequence[Node | str]) -> list[Node]:
    return [text(child) if isinstance(child, str) else child for child in children if child != ""]


__all__ = [
    "INLINE_TYPES",
    "LEAF_TYPES",
    "LIST_ITEM_TYPES",
    "LIST_TYPES",
    "TEXTBLOCK_TYPES",
    "Mark",
    "MarkType",
    "Node",
    "NodeType",
    "block",
    "citation",
    "doc",
    "heading",
    "paragraph",
    "text",
]
