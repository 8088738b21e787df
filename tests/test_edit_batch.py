"""Tests for batched edit validation and execution."""

from __future__ import annotations

from ghostwriter.ai.tools.applier import AI_EDIT_META
from ghostwriter.ai.tools.batch import execute_edit_batch, set_cursor_after_batch, validate_edit_batch
from ghostwriter.ai.tools.edit_calculator import CalculatedEdit, calculate_edit
from ghostwriter.documents.ranges import DocRange
from ghostwriter.editor.editor import Editor
from helpers import TransactionLog


def make_edit(edit_id: str, type_: str, start: int, end: int, new_content: str = "", **extra) -> CalculatedEdit:
    return CalculatedEdit(
        id=edit_id,
        type=type_,  # type: ignore[arg-type]
        tool_name="deleteContent" if type_ == "delete" else "insertContent",
        start=start,
        end=end,
        new_content=new_content,
        description=f"{type_} {edit_id}",
        **extra,
    )


def calculated(editor: Editor, tool: str, **args) -> CalculatedEdit:
    result = calculate_edit(editor, tool, args)
    assert result.edit is not None, result.error
    return result.edit


# =============================================================================
# Validation
# =============================================================================


def test_overlapping_edits_are_rejected() -> None:
    validation = validate_edit_batch([make_edit("b", "delete", 20, 30), make_edit("a", "delete", 10, 25)])

    assert not validation.valid
    assert validation.reason == 'Edits overlap: "delete a" and "delete b"'


def test_adjacent_edits_are_valid() -> None:
    validation = validate_edit_batch([make_edit("a", "delete", 10, 20), make_edit("b", "insert", 20, 20)])
    assert validation.valid
    assert validation.reason is None


def test_empty_batch_is_valid() -> None:
    assert validate_edit_batch([]).valid


# =============================================================================
# Execution
# =============================================================================


class TestExecuteEditBatch:
    def test_applies_all_edits_in_one_transaction(self, editor: Editor, transactions: TransactionLog) -> None:
        edits = [
            calculated(editor, "deleteContent", searchPhrase="many fields"),
            calculated(editor, "insertContent", content="Closing remarks.", location="end"),
        ]

        result = execute_edit_batch(editor, edits)

        assert result.success
        assert result.applied_count == 2
        assert result.affected_range == DocRange(45, 88)
        assert editor.get_text().endswith("\nClosing remarks.")
        assert editor.doc.content[1].text_content == "Deep learning has transformed ."
        (change,) = transactions.changes
        assert change.get_meta(AI_EDIT_META) is True

    def test_replace_edit(self, editor: Editor) -> None:
        edit = calculated(editor, "rewriteSection", section="Methods", newContent="We fit a model.")

        assert execute_edit_batch(editor, [edit]).success
        assert editor.doc.content[-1].text_content == "We fit a model."

    def test_empty_batch(self, editor: Editor, transactions: TransactionLog) -> None:
        result = execute_edit_batch(editor, [])

        assert result.success
        assert result.applied_count == 0
        assert transactions.transactions == []

    def test_only_failed_edits(self, editor: Editor) -> None:
        result = execute_edit_batch(editor, [make_edit("a", "delete", 1, 3, error="Could not find text")])

        assert not result.success
        assert result.error == "No valid edits to apply"

    def test_failed_edits_are_skipped(self, editor: Editor) -> None:
        edits = [
            make_edit("a", "delete", 1, 3, error="Could not find text"),
            make_edit("b", "insert", 88, 88, "Closing remarks."),
        ]

        result = execute_edit_batch(editor, edits)

        assert result.success
        assert result.applied_count == 1

    def test_overlap_is_reported(self, editor: Editor, transactions: TransactionLog) -> None:
        edits = [make_edit("a", "delete", 15, 30), make_edit("b", "delete", 20, 40)]

        result = execute_edit_batch(editor, edits)

        assert not result.success
        assert result.error is not None and result.error.startswith("Edits overlap")
        assert transactions.transactions == []

    def test_out_of_range_edit_applies_nothing(self, editor: Editor, transactions: TransactionLog) -> None:
        before = editor.get_json()
        edits = [make_edit("a", "delete", 45, 56), make_edit("b", "delete", 200, 210)]

        result = execute_edit_batch(editor, edits)

        assert not result.success
        assert result.error == "End position 210 exceeds document size 88"
        assert editor.get_json() == before
        assert transactions.transactions == []

    def test_custom_dispatch(self, editor: Editor) -> None:
        seen = []
        result = execute_edit_batch(editor, [make_edit("a", "delete", 45, 56)], dispatch=seen.append)

        assert result.success
        assert len(seen) == 1
        assert editor.doc_size == 88


def test_set_cursor_after_batch(editor: Editor) -> None:
    set_cursor_after_batch(editor, DocRange(45, 56))
    assert editor.selection.start == editor.selection.end == 56

    set_cursor_after_batch(editor, DocRange(45, 500))
    assert editor.selection.start == editor.doc_size
