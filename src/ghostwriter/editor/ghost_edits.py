"""Preview layer for pending AI-suggested edits ("ghost edits").

The layer observes every transaction of an :class:`Editor`. Content changes
normally invalidate all previews because their positions are stale, except
when the transaction carries the :data:`GHOST_EDIT_ACCEPTED` meta: then only
the named preview is dropped and the siblings are remapped so they stay
visible.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Literal, Protocol, Sequence, TypeVar

from .editor import Editor
from .transaction import EditorState, Transaction

LOGGER = logging.getLogger(__name__)

SET_GHOST_EDITS = "setGhostEdits"
CLEAR_GHOST_EDITS = "clearGhostEdits"
CLEAR_GHOST_EDIT = "clearGhostEdit"
NAVIGATE_GHOST_EDIT = "navigateGhostEdit"
GHOST_EDIT_ACCEPTED = "ghostEditAccepted"

PREVIEW_CHARS = 100


class PendingEdit(Protocol):
    """Shape of a previewed edit; dataclasses with these fields qualify."""

    id: str
    type: str
    start: int
    end: int
    new_content: str


EditT = TypeVar("EditT", bound=PendingEdit)


@dataclass(slots=True, frozen=True)
class Decoration:
    """Headless description of what the preview layer would draw."""

    kind: Literal["inline", "widget"]
    start: int
    end: int
    edit_id: str
    css_class: str
    text: str = ""


class GhostEditLayer:
    """Tracks pending previews for one editor."""

    def __init__(self, editor: Editor) -> None:
        self._editor = editor
        self.edits: list[Any] = []
        self.active_edit_id: str | None = None
        editor.add_listener(self._on_transaction)

    def detach(self) -> None:
        self._editor.remove_listener(self._on_transaction)

    def get(self, edit_id: str) -> Any | None:
        return next((edit for edit in self.edits if edit.id == edit_id), None)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def set_edits(self, edits: Sequence[PendingEdit]) -> None:
        self._send(SET_GHOST_EDITS, list(edits))

    def clear(self) -> None:
        self._send(CLEAR_GHOST_EDITS, True)

    def clear_edit(self, edit_id: str) -> None:
        self._send(CLEAR_GHOST_EDIT, edit_id)

    def navigate(self, direction: Literal["next", "prev"]) -> None:
        self._send(NAVIGATE_GHOST_EDIT, direction)

    def _send(self, key: str, value: Any) -> None:
        tr = self._editor.tr
        tr.set_meta(key, value)
        self._editor.dispatch(tr)

    # ------------------------------------------------------------------
    # Transaction observer
    # ------------------------------------------------------------------
    def _on_transaction(self, tr: Transaction, state: EditorState) -> None:
        new_edits = tr.get_meta(SET_GHOST_EDITS)
        if new_edits is not None:
            self.edits = list(new_edits)
            self.active_edit_id = self.edits[0].id if self.edits else None
            return
        if tr.get_meta(CLEAR_GHOST_EDITS):
            self.edits = []
            self.active_edit_id = None
            return
        clear_id = tr.get_meta(CLEAR_GHOST_EDIT)
        if clear_id:
            self._remove(clear_id)
            return
        direction = tr.get_meta(NAVIGATE_GHOST_EDIT)
        if direction and self.edits:
            self._navigate(direction)
            return
        if tr.doc_changed and self.edits:
            accepted = tr.get_meta(GHOST_EDIT_ACCEPTED)
            if accepted is None:
                LOGGER.debug("Untagged document change cleared %d ghost edits", len(self.edits))
                self.edits = []
                self.active_edit_id = None
                return
            self._remove(accepted)
            self.edits = [_remap(edit, tr, state.doc.content_size) for edit in self.edits]

    def _remove(self, edit_id: str) -> None:
        remaining = [edit for edit in self.edits if edit.id != edit_id]
        if not remaining:
            self.active_edit_id = None
        elif self.active_edit_id == edit_id or self.active_edit_id is None:
            self.active_edit_id = remaining[0].id
        self.edits = remaining

    def _navigate(self, direction: str) -> None:
        ids = [edit.id for edit in self.edits]
        current = ids.index(self.active_edit_id) if self.active_edit_id in ids else -1
        if direction == "next":
            index = (current + 1) % len(ids)
        else:
            index = len(ids) - 1 if current <= 0 else current - 1
        self.active_edit_id = ids[index]

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def decorations(self) -> list[Decoration]:
        decorations: list[Decoration] = []
        for edit in self.edits:
            active = " ghost-edit-active" if edit.id == self.active_edit_id else ""
            preview = truncate_for_preview(edit.new_content or "")
            if edit.type in ("delete", "replace") and edit.start != edit.end:
                decorations.append(
                    Decoration("inline", edit.start, edit.end, edit.id, f"ghost-edit-delete{active}")
                )
            if edit.type == "delete":
                decorations.append(Decoration("widget", edit.end, edit.end, edit.id, "ghost-edit-control-container"))
            elif edit.type == "insert":
                decorations.append(
                    Decoration("widget", edit.start, edit.start, edit.id, f"ghost-edit-insert-container{active}", preview)
                )
            else:
                decorations.append(
                    Decoration("widget", edit.end, edit.end, edit.id, f"ghost-edit-replace-container{active}", preview)
                )
        return decorations


def _remap(edit: EditT, tr: Transaction, doc_size: int) -> EditT:
    start = min(tr.map(edit.start, -1), doc_size)
    end = min(max(start, tr.map(edit.end, 1)), doc_size)
    return replace(edit, start=start, end=end)


_NEWLINES_RE = re.compile(r"\n+")
_SPACES_RE = re.compile(r"\s+")


def truncate_for_preview(text: str, max_length: int = PREVIEW_CHARS) -> str:
    cleaned = _SPACES_RE.sub(" ", _NEWLINES_RE.sub(" ", text)).strip()
    if len(cleaned) <= max_length:
        return cleaned
    return cleaned[:max_length] + "..."


__all__ = [
    "CLEAR_GHOST_EDIT",
    "CLEAR_GHOST_EDITS",
    "Decoration",
    "GHOST_EDIT_ACCEPTED",
    "GhostEditLayer",
    "NAVIGATE_GHOST_EDIT",
    "PendingEdit",
    "SET_GHOST_EDITS",
    "truncate_for_preview",
]
