"""Apply resolved mutations to the editor as single transactions.

When a pending preview is being accepted, :func:`ghost_tagged_dispatch` wraps
the editor's dispatcher so that content-changing transactions carry the
preview's id under the ``ghostEditAccepted`` meta. The wrapper is handed to
the operation as a parameter; the editor's own ``dispatch`` is never
replaced, so nothing leaks past the operation even when it raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from ...documents.model import Node
from ...documents.ranges import DocRange
from ...editor.editor import Dispatch, Editor
from ...editor.ghost_edits import GHOST_EDIT_ACCEPTED
from ...editor.transaction import Transaction
from .guard import guard_position, guard_range

LOGGER = logging.getLogger(__name__)

AI_EDIT_META = "aiEdit"


def ghost_tagged_dispatch(dispatch: Dispatch, ghost_edit_id: str) -> Dispatch:
    """Return a dispatcher tagging content-changing transactions with ``ghost_edit_id``."""

    def tagged(transaction: Transaction) -> None:
        if transaction.doc_changed:
            transaction.set_meta(GHOST_EDIT_ACCEPTED, ghost_edit_id)
        dispatch(transaction)

    return tagged


def operation_dispatch(editor: Editor, ghost_edit_id: str | None = None) -> Dispatch:
    """Dispatcher for one operation: the editor's own, or a ghost-tagging wrapper."""

    if ghost_edit_id is None:
        return editor.dispatch
    return ghost_tagged_dispatch(editor.dispatch, ghost_edit_id)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
@dataclass(slots=True, frozen=True)
class InsertMutation:
    """Insert ``nodes`` at ``pos``, or replace the current selection when ``pos`` is None."""

    nodes: tuple[Node, ...]
    pos: int | None = None


@dataclass(slots=True, frozen=True)
class ReplaceMutation:
    target: DocRange
    nodes: tuple[Node, ...]


@dataclass(slots=True, frozen=True)
class DeleteMutation:
    target: DocRange


@dataclass(slots=True, frozen=True)
class HighlightMutation:
    """Highlight ``target``; falls back to selecting it when highlights are unavailable."""

    target: DocRange
    color: str


@dataclass(slots=True, frozen=True)
class SelectMutation:
    target: DocRange


Mutation = Union[InsertMutation, ReplaceMutation, DeleteMutation, HighlightMutation, SelectMutation]


def apply_mutation(editor: Editor, mutation: Mutation, dispatch: Dispatch) -> DocRange:
    """Guard the mutation's range against the current document and apply it.

    Returns the guarded range the mutation was applied to.
    """

    size = editor.doc_size
    chain = editor.chain(dispatch)
    if isinstance(mutation, InsertMutation):
        if mutation.pos is None:
            selection = editor.selection
            target = guard_range(DocRange(selection.start, selection.end), size)
            chain.set_text_selection(target.start, target.end).insert_content(list(mutation.nodes))
        else:
            pos = guard_position(mutation.pos, size)
            target = DocRange(pos, pos)
            chain.set_text_selection(pos).insert_content(list(mutation.nodes))
    elif isinstance(mutation, ReplaceMutation):
        target = guard_range(mutation.target, size)
        chain.set_text_selection(target.start, target.end).insert_content(list(mutation.nodes))
    elif isinstance(mutation, DeleteMutation):
        target = guard_range(mutation.target, size)
        chain.delete_range(target.start, target.end)
    elif isinstance(mutation, HighlightMutation):
        target = guard_range(mutation.target, size)
        chain.set_text_selection(target.start, target.end)
        if editor.can_set_highlight():
            chain.set_highlight(mutation.color)
        else:
            LOGGER.debug("Highlight unavailable; selecting range %s instead", target.to_tuple())
    elif isinstance(mutation, SelectMutation):
        target = guard_range(mutation.target, size)
        chain.set_text_selection(target.start, target.end)
    else:  # pragma: no cover - closed union
        raise TypeError(f"Unsupported mutation {mutation!r}")
    chain.set_meta(AI_EDIT_META, True)
    chain.run()
    return target


__all__ = [
    "AI_EDIT_META",
    "DeleteMutation",
    "HighlightMutation",
    "InsertMutation",
    "Mutation",
    "ReplaceMutation",
    "SelectMutation",
    "apply_mutation",
    "ghost_tagged_dispatch",
    "operation_dispatch",
]
