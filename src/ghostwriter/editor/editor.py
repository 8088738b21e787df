"""Headless editor holding the live document and dispatching transactions."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

from ..documents.model import Mark, MarkType, Node, NodeType
from .blocks import assign_block_ids
from .transaction import EditorState, Selection, Transaction

LOGGER = logging.getLogger(__name__)

Dispatch = Callable[[Transaction], None]

DEFAULT_MARKS: frozenset[MarkType] = frozenset(MarkType)


class TransactionListener(Protocol):
    """Observer notified after every dispatched transaction."""

    def __call__(self, transaction: Transaction, state: EditorState) -> None:
        ...


class Editor:
    """Owns an :class:`EditorState` and applies transactions to it.

    Example:
        editor = Editor(doc(paragraph("Hello")))
        editor.chain().set_text_selection(1, 6).set_highlight("#fef08a").run()
    """

    def __init__(
        self,
        content: Node | Mapping[str, Any] | None = None,
        *,
        marks: Iterable[MarkType | str] | None = None,
        assign_ids: bool = True,
    ) -> None:
        document = _coerce_document(content)
        self._assign_ids = assign_ids
        if assign_ids:
            assign_block_ids(document)
        start = 1 if document.content and not document.content[0].is_leaf else 0
        self.state = EditorState(document, Selection.caret(min(start, document.content_size)))
        self.marks = frozenset(MarkType(mark) for mark in marks) if marks is not None else DEFAULT_MARKS
        self._listeners: list[TransactionListener] = []

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def doc(self) -> Node:
        return self.state.doc

    @property
    def selection(self) -> Selection:
        return self.state.selection

    @property
    def doc_size(self) -> int:
        return self.state.doc.content_size

    def get_text(self) -> str:
        return self.state.doc.plain_text()

    def get_json(self) -> dict[str, Any]:
        return self.state.doc.to_dict()

    def can_set_highlight(self) -> bool:
        return MarkType.HIGHLIGHT in self.marks

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @property
    def tr(self) -> Transaction:
        """Start a new transaction against the current state."""

        return Transaction(self.state)

    def dispatch(self, transaction: Transaction) -> None:
        if transaction.doc_changed and self._assign_ids:
            assign_block_ids(transaction.doc)
        self.state = EditorState(transaction.doc, transaction.selection)
        LOGGER.debug(
            "Dispatched transaction (doc_changed=%s, meta=%s)",
            transaction.doc_changed,
            sorted(transaction.meta),
        )
        for listener in list(self._listeners):
            listener(transaction, self.state)

    def add_listener(self, listener: TransactionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TransactionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def chain(self, dispatch: Dispatch | None = None) -> "CommandChain":
        """Return a command chain that dispatches one transaction through ``dispatch``."""

        return CommandChain(self, dispatch or self.dispatch)


class CommandChain:
    """Fluent builder collecting commands into a single transaction."""

    def __init__(self, editor: Editor, dispatch: Dispatch) -> None:
        self._editor = editor
        self._dispatch = dispatch
        self._tr = editor.tr

    @property
    def transaction(self) -> Transaction:
        return self._tr

    def set_text_selection(self, start: int, end: int | None = None) -> "CommandChain":
        self._tr.set_selection(start, end)
        return self

    def insert_content(self, nodes: Sequence[Node]) -> "CommandChain":
        """Replace the current selection with ``nodes``."""

        selection = self._tr.selection
        self._tr.replace_with(selection.start, selection.end, nodes)
        return self

    def insert_content_at(self, pos: int, nodes: Sequence[Node]) -> "CommandChain":
        self._tr.insert(pos, nodes)
        return self

    def replace_range(self, start: int, end: int, nodes: Sequence[Node]) -> "CommandChain":
        self._tr.replace_with(start, end, nodes)
        return self

    def delete_range(self, start: int, end: int) -> "CommandChain":
        self._tr.delete(start, end)
        return self

    def set_highlight(self, color: str) -> "CommandChain":
        if not self._editor.can_set_highlight():
            raise ValueError("Highlight marks are not enabled for this editor")
        selection = self._tr.selection
        self._tr.add_mark(selection.start, selection.end, Mark(MarkType.HIGHLIGHT, {"color": color}))
        return self

    def set_meta(self, key: str, value: Any) -> "CommandChain":
        self._tr.set_meta(key, value)
        return self

    def run(self) -> bool:
        self._dispatch(self._tr)
        return True


def _coerce_document(content: Node | Mapping[str, Any] | None) -> Node:
    if content is None:
        return Node(NodeType.DOC, content=[Node(NodeType.PARAGRAPH)])
    payload = content.to_dict() if isinstance(content, Node) else content
    document = Node.from_dict(payload)
    if document.type is not NodeType.DOC:
        raise ValueError(f"Editor content must be a doc node, got {document.type.value}")
    if not document.content:
        document.content = [Node(NodeType.PARAGRAPH)]
    return document


__all__ = ["CommandChain", "Dispatch", "Editor", "TransactionListener"]
