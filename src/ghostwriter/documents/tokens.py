"""Linear token view of a document used to implement structural edits.

A document flattens into open tags, close tags, characters and atoms. Each
token occupies exactly one position, so a document position is simply a gap
index into the stream. Edits splice the stream and :func:`rebuild` parses it
back into a normalized tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence, Union

from .model import (
    LIST_ITEM_TYPES,
    LIST_TYPES,
    Mark,
    Node,
    NodeType,
    TEXTBLOCK_TYPES,
)


@dataclass(slots=True, frozen=True)
class OpenToken:
    node: Node


@dataclass(slots=True, frozen=True)
class CloseToken:
    pass


@dataclass(slots=True, frozen=True)
class CharToken:
    char: str
    marks: tuple[Mark, ...] = ()


@dataclass(slots=True, frozen=True)
class AtomToken:
    node: Node


Token = Union[OpenToken, CloseToken, CharToken, AtomToken]

CLOSE = CloseToken()

_CELL_TYPES = frozenset({NodeType.TABLE_CELL, NodeType.TABLE_HEADER})
_DROP_WHEN_EMPTY = frozenset(
    {NodeType.BLOCKQUOTE, NodeType.TABLE, NodeType.TABLE_ROW} | LIST_TYPES | LIST_ITEM_TYPES
)


def shell(node: Node) -> Node:
    """Return ``node`` without its content, as stored in an open token."""

    return Node(node.type, attrs=dict(node.attrs))


def flatten(nodes: Iterable[Node]) -> list[Token]:
    tokens: list[Token] = []
    for node in nodes:
        _flatten_into(node, tokens)
    return tokens


def _flatten_into(node: Node, tokens: list[Token]) -> None:
    if node.is_text:
        tokens.extend(CharToken(char, node.marks) for char in node.text or "")
    elif node.is_leaf:
        tokens.append(AtomToken(node.copy()))
    else:
        tokens.append(OpenToken(shell(node)))
        for child in node.content:
            _flatten_into(child, tokens)
        tokens.append(CLOSE)


# ---------------------------------------------------------------------------
# Position context
# ---------------------------------------------------------------------------
def open_stack(tokens: Sequence[Token], pos: int) -> list[tuple[int, Node]]:
    """Return ``(open_index, shell)`` for every node enclosing ``pos``."""

    stack: list[tuple[int, Node]] = []
    for index in range(min(pos, len(tokens))):
        token = tokens[index]
        if isinstance(token, OpenToken):
            stack.append((index, token.node))
        elif isinstance(token, CloseToken) and stack:
            stack.pop()
    return stack


def matching_close(tokens: Sequence[Token], open_index: int) -> int:
    depth = 0
    for index in range(open_index, len(tokens)):
        token = tokens[index]
        if isinstance(token, OpenToken):
            depth += 1
        elif isinstance(token, CloseToken):
            depth -= 1
            if depth == 0:
                return index
    return len(tokens)


# ---------------------------------------------------------------------------
# Structural edits
# ---------------------------------------------------------------------------
def delete(tokens: Sequence[Token], start: int, end: int) -> list[Token]:
    """Remove the tokens between ``start`` and ``end`` keeping the tree balanced.

    Nodes left open at ``start`` are closed at the cut and nodes whose open
    tag falls inside the range are reopened after it. The two sides are
    joined instead when they end in textblocks of the same shape, so deleting
    across a paragraph break merges the paragraphs.
    """

    if end <= start:
        return list(tokens)
    left = open_stack(tokens, start)
    right = open_stack(tokens, end)
    shared = 0
    while shared < min(len(left), len(right)) and left[shared][0] == right[shared][0]:
        shared += 1
    closed = [node for _, node in left[shared:]]
    reopened = [node for _, node in right[shared:]]
    if _joinable(closed, reopened):
        return list(tokens[:start]) + list(tokens[end:])
    bridge: list[Token] = [CLOSE for _ in closed]
    bridge.extend(OpenToken(node) for node in reopened)
    return list(tokens[:start]) + bridge + list(tokens[end:])


def _joinable(closed: Sequence[Node], reopened: Sequence[Node]) -> bool:
    if not closed or len(closed) != len(reopened):
        return False
    if closed[-1].type not in TEXTBLOCK_TYPES or reopened[-1].type not in TEXTBLOCK_TYPES:
        return False
    return all(a.type == b.type for a, b in zip(closed[:-1], reopened[:-1]))


def insert(tokens: Sequence[Token], pos: int, nodes: Sequence[Node]) -> tuple[list[Token], int]:
    """Insert ``nodes`` at ``pos`` and return ``(tokens, insert_pos)``.

    Block content placed inside a textblock splits it, inline content placed
    between blocks is wrapped in a paragraph, and blocks dropped between list
    items become list items. ``insert_pos`` is where the new tokens start.
    """

    if not nodes:
        return list(tokens), pos
    stack = open_stack(tokens, pos)
    parent = stack[-1][1] if stack else None
    inline_only = all(node.is_inline for node in nodes)

    if parent is not None and parent.type in TEXTBLOCK_TYPES:
        if inline_only:
            return _splice(tokens, pos, flatten(nodes)), pos
        open_index = stack[-1][0]
        close_index = matching_close(tokens, open_index)
        container = stack[-2][1].type if len(stack) > 1 else NodeType.DOC
        payload = flatten(as_blocks(nodes, container))
        if pos <= open_index + 1:
            return _splice(tokens, open_index, payload), open_index
        if pos >= close_index:
            return _splice(tokens, close_index + 1, payload), close_index + 1
        reopened = shell(parent)
        reopened.attrs.pop("blockId", None)
        split = [CLOSE, *payload, OpenToken(reopened)]
        return _splice(tokens, pos, split), pos

    while parent is not None and parent.type in (NodeType.TABLE, NodeType.TABLE_ROW):
        pos = matching_close(tokens, stack[-1][0]) + 1
        stack = stack[:-1]
        parent = stack[-1][1] if stack else None

    container = parent.type if parent is not None else NodeType.DOC
    return _splice(tokens, pos, flatten(as_blocks(nodes, container))), pos


def add_mark(tokens: Sequence[Token], start: int, end: int, mark: Mark) -> list[Token]:
    updated = list(tokens)
    for index in range(max(0, start), min(end, len(updated))):
        token = updated[index]
        if isinstance(token, CharToken):
            updated[index] = CharToken(token.char, _with_mark(token.marks, mark))
        elif isinstance(token, AtomToken):
            updated[index] = AtomToken(token.node.copy(marks=_with_mark(token.node.marks, mark)))
    return updated


def _with_mark(marks: tuple[Mark, ...], mark: Mark) -> tuple[Mark, ...]:
    return tuple(existing for existing in marks if existing.type != mark.type) + (mark,)


def _splice(tokens: Sequence[Token], pos: int, payload: Sequence[Token]) -> list[Token]:
    return list(tokens[:pos]) + list(payload) + list(tokens[pos:])


def as_blocks(nodes: Sequence[Node], container: NodeType) -> list[Node]:
    """Coerce ``nodes`` into block content acceptable inside ``container``."""

    blocks: list[Node] = []
    inline_run: list[Node] = []
    for node in nodes:
        if node.is_inline:
            inline_run.append(node)
            continue
        if inline_run:
            blocks.append(Node(NodeType.PARAGRAPH, content=inline_run))
            inline_run = []
        blocks.append(node)
    if inline_run:
        blocks.append(Node(NodeType.PARAGRAPH, content=inline_run))
    if container in LIST_TYPES:
        return [_as_list_item(node, container) for node in blocks]
    return blocks


def _as_list_item(node: Node, container: NodeType) -> Node:
    if node.type in LIST_ITEM_TYPES:
        return node
    if container is NodeType.TASK_LIST:
        return Node(NodeType.TASK_ITEM, attrs={"checked": False}, content=[node])
    return Node(NodeType.LIST_ITEM, content=[node])


# ---------------------------------------------------------------------------
# Rebuild
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class _Frame:
    node: Node
    children: list[Node] = field(default_factory=list)

    def add_char(self, char: str, marks: tuple[Mark, ...]) -> None:
        last = self.children[-1] if self.children else None
        if last is not None and last.is_text and last.marks == marks:
            last.text = (last.text or "") + char
        else:
            self.children.append(Node(NodeType.TEXT, text=char, marks=marks))

    def finish(self) -> Node:
        return Node(self.node.type, attrs=dict(self.node.attrs), content=self.children)


def rebuild(tokens: Sequence[Token], attrs: dict | None = None) -> Node:
    """Parse ``tokens`` into a normalized ``doc`` node."""

    root = _Frame(Node(NodeType.DOC, attrs=dict(attrs or {})))
    stack = [root]
    for token in tokens:
        if isinstance(token, OpenToken):
            stack.append(_Frame(token.node))
        elif isinstance(token, CloseToken):
            # close tags without a matching open are dropped
            if len(stack) > 1:
                finished = stack.pop().finish()
                stack[-1].children.append(finished)
        elif isinstance(token, CharToken):
            stack[-1].add_char(token.char, token.marks)
        else:
            stack[-1].children.append(token.node.copy())
    while len(stack) > 1:
        finished = stack.pop().finish()
        stack[-1].children.append(finished)

    document = root.finish()
    document.content = normalize_children(NodeType.DOC, document.content)
    if not document.content:
        document.content = [Node(NodeType.PARAGRAPH)]
    return document


def normalize_children(parent: NodeType, children: Sequence[Node]) -> list[Node]:
    normalized: list[Node] = []
    for child in children:
        if not child.is_leaf:
            child.content = normalize_children(child.type, child.content)
        normalized.append(child)

    if parent in TEXTBLOCK_TYPES:
        return _normalize_inline(normalized)

    blocks: list[Node] = []
    for child in as_blocks(normalized, parent):
        if child.type in _DROP_WHEN_EMPTY and not child.content:
            continue
        if child.type in _CELL_TYPES and not child.content:
            child.content = [Node(NodeType.PARAGRAPH)]
        blocks.append(child)
    if parent not in LIST_TYPES:
        blocks = _wrap_loose_items(blocks)
    return blocks


def _normalize_inline(children: Sequence[Node]) -> list[Node]:
    inline: list[Node] = []
    for child in children:
        if child.is_inline:
            candidates: Iterable[Node] = (child,)
        else:
            candidates = [node.copy() for node, _ in child.descendants() if node.is_inline]
        for node in candidates:
            if node.is_text and not node.text:
                continue
            last = inline[-1] if inline else None
            if last is not None and node.is_text and last.is_text and last.marks == node.marks:
                inline[-1] = last.copy(text=(last.text or "") + (node.text or ""))
            else:
                inline.append(node)
    return inline


def _wrap_loose_items(blocks: list[Node]) -> list[Node]:
    wrapped: list[Node] = []
    for node in blocks:
        if node.type in LIST_ITEM_TYPES:
            list_type = NodeType.TASK_LIST if node.type is NodeType.TASK_ITEM else NodeType.BULLET_LIST
            previous = wrapped[-1] if wrapped else None
            if previous is not None and previous.type is list_type and previous.attrs.get("_loose"):
                previous.content.append(node)
            else:
                wrapped.append(Node(list_type, attrs={"_loose": True}, content=[node]))
            continue
        wrapped.append(node)
    for node in wrapped:
        node.attrs.pop("_loose", None)
    return wrapped


__all__ = [
    "AtomToken",
    "CLOSE",
    "CharToken",
    "CloseToken",
    "OpenToken",
    "Token",
    "add_mark",
    "as_blocks",
    "delete",
    "flatten",
    "insert",
    "matching_close",
    "normalize_children",
    "open_stack",
    "rebuild",
    "shell",
]
