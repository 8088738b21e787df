"""Editor transactions: staged document steps plus metadata.

A :class:`Transaction` starts from an :class:`EditorState`, accumulates steps
(insert, delete, add mark) and a selection, and is applied by the editor on
dispatch. Metadata attached with :meth:`Transaction.set_meta` travels with the
transaction to every observer, which is how preview layers recognise edits
they care about.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Sequence

from ..documents import tokens as doc_tokens
from ..documents.model import Mark, Node
from ..documents.ranges import validate_positions

LOGGER = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Selection / State
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Selection:
    """Text selection expressed as an anchor and head position."""

    anchor: int
    head: int

    @property
    def start(self) -> int:
        return min(self.anchor, self.head)

    @property
    def end(self) -> int:
        return max(self.anchor, self.head)

    @property
    def empty(self) -> bool:
        return self.anchor == self.head

    @classmethod
    def caret(cls, pos: int) -> "Selection":
        return cls(pos, pos)


@dataclass(slots=True, frozen=True)
class EditorState:
    """Immutable pairing of a document and its selection."""

    doc: Node
    selection: Selection = field(default_factory=lambda: Selection.caret(1))


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------


class StepKind(Enum):
    """Kinds of document steps recorded on a transaction."""

    REPLACE = auto()
    ADD_MARK = auto()


@dataclass(slots=True, frozen=True)
class Step:
    """A single recorded change with enough data to map positions across it."""

    kind: StepKind
    start: int
    old_size: int
    new_size: int

    def map(self, pos: int, assoc: int = 1) -> int:
        if self.kind is StepKind.ADD_MARK or pos < self.start:
            return pos
        old_end = self.start + self.old_size
        if pos > old_end or (pos == old_end and self.old_size > 0):
            return pos - self.old_size + self.new_size
        if pos == self.start and self.old_size == 0:
            return pos if assoc < 0 else pos + self.new_size
        return self.start if assoc < 0 else self.start + self.new_size


# -----------------------------------------------------------------------------
# Transaction
# -----------------------------------------------------------------------------


class Transaction:
    """Mutable builder for one atomic editor update."""

    def __init__(self, state: EditorState) -> None:
        self.before = state.doc
        self.doc = state.doc
        self.selection = state.selection
        self.steps: list[Step] = []
        self._meta: dict[str, Any] = {}
        self._selection_set = False

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def set_meta(self, key: str, value: Any) -> "Transaction":
        self._meta[key] = value
        return self

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self._meta.get(key, default)

    @property
    def meta(self) -> dict[str, Any]:
        return dict(self._meta)

    @property
    def doc_changed(self) -> bool:
        return bool(self.steps)

    @property
    def selection_set(self) -> bool:
        return self._selection_set

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def insert(self, pos: int, nodes: Sequence[Node]) -> "Transaction":
        """Insert ``nodes`` at ``pos``; the selection moves after the new content."""

        nodes = list(nodes)
        if not nodes:
            return self
        self._check(pos, pos)
        tokens = doc_tokens.flatten(self.doc.content)
        spliced, at = doc_tokens.insert(tokens, pos, nodes)
        old_size = self.doc.content_size
        self.doc = doc_tokens.rebuild(spliced, self.doc.attrs)
        inserted = max(0, self.doc.content_size - old_size)
        self._record(Step(StepKind.REPLACE, at, 0, inserted))
        end = min(at + inserted, self.doc.content_size)
        self._move_selection(Selection.caret(end), explicit=False)
        return self

    def delete(self, start: int, end: int) -> "Transaction":
        self._check(start, end)
        if start == end:
            return self
        tokens = doc_tokens.flatten(self.doc.content)
        old_size = self.doc.content_size
        self.doc = doc_tokens.rebuild(doc_tokens.delete(tokens, start, end), self.doc.attrs)
        removed = max(0, old_size - self.doc.content_size)
        self._record(Step(StepKind.REPLACE, start, removed, 0))
        self._move_selection(Selection.caret(min(start, self.doc.content_size)), explicit=False)
        return self

    def replace_with(self, start: int, end: int, nodes: Sequence[Node]) -> "Transaction":
        self.delete(start, end)
        return self.insert(min(start, self.doc.content_size), nodes)

    def add_mark(self, start: int, end: int, mark: Mark) -> "Transaction":
        self._check(start, end)
        if start == end:
            return self
        tokens = doc_tokens.flatten(self.doc.content)
        self.doc = doc_tokens.rebuild(doc_tokens.add_mark(tokens, start, end, mark), self.doc.attrs)
        self._record(Step(StepKind.ADD_MARK, start, end - start, end - start))
        return self

    def set_selection(self, start: int, end: int | None = None) -> "Transaction":
        size = self.doc.content_size
        anchor = min(max(0, start), size)
        head = min(max(0, start if end is None else end), size)
        self._move_selection(Selection(anchor, head), explicit=True)
        return self

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------
    def map(self, pos: int, assoc: int = 1) -> int:
        """Map a position in the pre-transaction document through every step."""

        for step in self.steps:
            pos = step.map(pos, assoc)
        return pos

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _check(self, start: int, end: int) -> None:
        check = validate_positions(start, end, self.doc.content_size)
        if not check.valid:
            raise ValueError(check.error)

    def _record(self, step: Step) -> None:
        self.steps.append(step)
        LOGGER.debug("Recorded %s step at %s (-%s/+%s)", step.kind.name, step.start, step.old_size, step.new_size)

    def _move_selection(self, selection: Selection, *, explicit: bool) -> None:
        self.selection = selection
        self._selection_set = self._selection_set or explicit


__all__ = ["EditorState", "Selection", "Step", "StepKind", "Transaction"]
