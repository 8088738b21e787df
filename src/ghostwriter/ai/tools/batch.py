"""Apply several calculated edits at once, and accept or reject previews.

Batched edits are applied from the highest start position down inside a
single transaction, so earlier (lower) positions stay valid while later ones
change. If any edit fails while the transaction is being built, nothing is
dispatched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from ...documents.ranges import DocRange
from ...editor.editor import Dispatch, Editor
from ...editor.ghost_edits import GhostEditLayer
from ...services.settings import EngineSettings
from .applier import AI_EDIT_META
from .base import Notifier, TelemetryEmitter, ToolExecutionResult
from .citations import Paper, PaperContext, resolve_paper_context
from .content import prepare_content
from .dispatcher import execute_document_tool
from .edit_calculator import CalculatedEdit, calculate_edit
from .guard import guard_range

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BatchValidation:
    valid: bool
    reason: str | None = None


@dataclass(slots=True, frozen=True)
class BatchExecutionResult:
    """Outcome of :func:`execute_edit_batch`.

    Attributes:
        success: Whether the batch was applied.
        applied_count: Number of edits in the dispatched transaction.
        error: Failure description.
        affected_range: Span from the lowest start to the highest end, in
            pre-batch positions.
    """

    success: bool
    applied_count: int = 0
    error: str | None = None
    affected_range: DocRange | None = None


def validate_edit_batch(edits: Sequence[CalculatedEdit]) -> BatchValidation:
    """Report the first pair of edits whose ranges overlap."""

    ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
    for current, following in zip(ordered, ordered[1:]):
        if current.end > following.start:
            return BatchValidation(
                False,
                f'Edits overlap: "{current.description}" and "{following.description}"',
            )
    return BatchValidation(True)


def execute_edit_batch(
    editor: Editor,
    edits: Sequence[CalculatedEdit],
    *,
    papers: PaperContext | Iterable[Paper | Mapping[str, Any]] | None = None,
    dispatch: Dispatch | None = None,
) -> BatchExecutionResult:
    """Apply ``edits`` in one transaction tagged ``aiEdit``."""

    if not edits:
        return BatchExecutionResult(True)
    valid = [edit for edit in edits if not edit.error]
    if not valid:
        return BatchExecutionResult(False, error="No valid edits to apply")
    validation = validate_edit_batch(valid)
    if not validation.valid:
        return BatchExecutionResult(False, error=validation.reason)

    context = resolve_paper_context(papers)
    ordered = sorted(valid, key=lambda edit: edit.start, reverse=True)
    tr = editor.tr
    try:
        for edit in ordered:
            target = guard_range(edit.range, tr.doc.content_size)
            if edit.type == "delete":
                tr.delete(target.start, target.end)
                continue
            nodes = prepare_content(edit.new_content, context).nodes if edit.new_content else ()
            if edit.type == "insert":
                tr.insert(target.start, nodes)
            else:
                tr.replace_with(target.start, target.end, nodes)
    except Exception as exc:
        LOGGER.exception("Batch of %d edits failed; nothing applied", len(ordered))
        return BatchExecutionResult(False, error=getattr(exc, "message", None) or str(exc))

    tr.set_meta(AI_EDIT_META, True)
    (dispatch or editor.dispatch)(tr)
    affected = DocRange(min(edit.start for edit in ordered), max(edit.end for edit in ordered))
    LOGGER.debug("Applied %d batched edits over %s", len(ordered), affected.to_tuple())
    return BatchExecutionResult(True, applied_count=len(ordered), affected_range=affected)


def set_cursor_after_batch(editor: Editor, affected_range: DocRange) -> None:
    end = min(affected_range.end, editor.doc_size)
    editor.chain().set_text_selection(end).run()


# ---------------------------------------------------------------------------
# Ghost edit acceptance
# ---------------------------------------------------------------------------
def preview_tool_calls(
    editor: Editor,
    layer: GhostEditLayer,
    calls: Iterable[tuple[str, Mapping[str, Any]]],
    *,
    settings: EngineSettings | None = None,
) -> list[str]:
    """Calculate previews for ``calls`` and show them; returns the errors."""

    edits: list[CalculatedEdit] = []
    errors: list[str] = []
    for tool_name, args in calls:
        result = calculate_edit(editor, tool_name, args, settings=settings)
        if result.success and result.edit is not None:
            edits.append(result.edit)
        else:
            errors.append(result.error or f"Could not preview {tool_name}")
    layer.set_edits(edits)
    return errors


def accept_ghost_edit(
    editor: Editor,
    layer: GhostEditLayer,
    edit_id: str,
    *,
    papers: PaperContext | Iterable[Paper | Mapping[str, Any]] | None = None,
    settings: EngineSettings | None = None,
    notifier: Notifier | None = None,
    telemetry: TelemetryEmitter | None = None,
) -> ToolExecutionResult:
    """Apply one previewed edit, keeping its sibling previews on screen."""

    edit = layer.get(edit_id)
    if edit is None:
        return ToolExecutionResult.failure(f"Ghost edit {edit_id} not found")
    result = execute_document_tool(
        editor,
        edit.tool_name,
        edit.tool_args,
        papers=papers,
        ghost_edit_id=edit_id,
        settings=settings,
        notifier=notifier,
        telemetry=telemetry,
    )
    if layer.get(edit_id) is not None:
        # the tool changed nothing (or failed); drop the stale preview
        layer.clear_edit(edit_id)
    return result


def reject_ghost_edit(layer: GhostEditLayer, edit_id: str) -> bool:
    """Dismiss one preview; returns False when it was not pending."""

    if layer.get(edit_id) is None:
        return False
    layer.clear_edit(edit_id)
    return True


__all__ = [
    "BatchExecutionResult",
    "BatchValidation",
    "accept_ghost_edit",
    "execute_edit_batch",
    "preview_tool_calls",
    "reject_ghost_edit",
    "set_cursor_after_batch",
    "validate_edit_batch",
]
