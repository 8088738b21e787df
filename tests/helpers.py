"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

from typing import Any

from ghostwriter.ai.locate.fuzzy import PhraseMatch, SectionMatch
from ghostwriter.documents.model import Node, NodeType, block, doc, heading, paragraph
from ghostwriter.editor.editor import Editor
from ghostwriter.editor.transaction import EditorState, Transaction


def sample_doc() -> Node:
    """Two sections with one paragraph each.

    Positions: heading 0..14, paragraph 14..58 (text from 15), heading
    58..67, paragraph 67..88.
    """

    return doc(
        heading(1, "Introduction"),
        paragraph("Deep learning has transformed many fields."),
        heading(1, "Methods"),
        paragraph("We trained a model."),
    )


def list_section_doc() -> Node:
    """A "Results" section holding only a bullet list, then "Discussion".

    Positions: heading 0..9, bullet list 9..51, heading 51..63, paragraph
    63..74. The list items read like title-case label lines in plain text.
    """

    return doc(
        heading(2, "Results"),
        block(
            NodeType.BULLET_LIST,
            block(NodeType.LIST_ITEM, paragraph("Accuracy improved")),
            block(NodeType.LIST_ITEM, paragraph("Latency dropped")),
        ),
        heading(2, "Discussion"),
        paragraph("It works."),
    )


def block_id_at(editor: Editor, index: int) -> str:
    """Return the blockId of the top-level block at ``index``."""
    return editor.doc.content[index].attrs["blockId"]


class RecordingNotifier:
    """Notifier stub collecting ``(level, message)`` pairs."""

    def __init__(self) -> None:
        self.notices: list[tuple[str, str]] = []

    def notify(self, level: str, message: str) -> None:
        self.notices.append((level, message))


class RecordingTelemetry:
    """Telemetry stub collecting emitted events."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        self.events.append((event_name, dict(payload)))


class ExplodingLocator:
    """Locator stub that fails on every lookup."""

    def fuzzy_find_phrase(self, text: str, phrase: str) -> PhraseMatch:
        raise RuntimeError("boom")

    def find_section(self, text: str, name: str) -> SectionMatch:
        raise RuntimeError("boom")

    def find_in_section(self, text: str, name: str, phrase: str) -> PhraseMatch:
        raise RuntimeError("boom")


class TransactionLog:
    """Editor listener keeping every dispatched transaction."""

    def __init__(self) -> None:
        self.transactions: list[Transaction] = []

    def __call__(self, transaction: Transaction, state: EditorState) -> None:
        self.transactions.append(transaction)

    @property
    def changes(self) -> list[Transaction]:
        return [tr for tr in self.transactions if tr.doc_changed]
