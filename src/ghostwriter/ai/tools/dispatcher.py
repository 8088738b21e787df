"""Entry point mapping operation names to edit tools.

Callers hand over a name and a loosely typed argument bag and always get a
single :class:`ToolExecutionResult` back; nothing raised inside a tool
escapes this boundary.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Mapping

from ...editor.editor import Editor
from ...services.settings import EngineSettings
from ...services.telemetry import BusTelemetry
from ..locate.fuzzy import FuzzyTextLocator, TextLocator
from .add_citation import AddCitationTool
from .annotate import AddCommentTool, HighlightTextTool
from .applier import operation_dispatch
from .base import EditTool, LoggingNotifier, Notifier, TelemetryEmitter, ToolContext, ToolExecutionResult
from .citations import Paper, PaperContext, resolve_paper_context
from .document_edit import DeleteContentTool, ReplaceBlockTool, ReplaceInSectionTool, RewriteSectionTool
from .errors import UnknownToolError
from .insert_content import InsertContentTool

LOGGER = logging.getLogger(__name__)

TOOLS: Mapping[str, EditTool[Any]] = {
    tool.name: tool
    for tool in (
        InsertContentTool(),
        ReplaceBlockTool(),
        ReplaceInSectionTool(),
        RewriteSectionTool(),
        DeleteContentTool(),
        AddCitationTool(),
        HighlightTextTool(),
        AddCommentTool(),
    )
}


def available_tools() -> list[str]:
    return sorted(TOOLS)


def get_tool(tool_name: str) -> EditTool[Any]:
    """Return the tool registered under ``tool_name``.

    Raises:
        UnknownToolError: If no tool has that name.
    """

    tool = TOOLS.get(tool_name)
    if tool is None:
        raise UnknownToolError(tool_name=tool_name)
    return tool


def locator_for(settings: EngineSettings) -> FuzzyTextLocator:
    return FuzzyTextLocator(
        min_similarity=settings.phrase_min_similarity,
        section_similarity=settings.section_min_similarity,
    )


def execute_document_tool(
    editor: Editor,
    tool_name: str,
    args: Mapping[str, Any] | None,
    *,
    papers: PaperContext | Iterable[Paper | Mapping[str, Any]] | None = None,
    ghost_edit_id: str | None = None,
    locator: TextLocator | None = None,
    settings: EngineSettings | None = None,
    notifier: Notifier | None = None,
    telemetry: TelemetryEmitter | None = None,
) -> ToolExecutionResult:
    """Run one named edit operation against ``editor``.

    Args:
        editor: The live editor.
        tool_name: One of :func:`available_tools`.
        args: The assistant's argument bag.
        papers: Papers for citation lookup; the module default is used when ``None``.
        ghost_edit_id: When accepting a previewed edit, the id to tag the
            content-changing transaction with.
        locator: Phrase and section search service.
        settings: Engine tunables.
        notifier: Sink for user-facing notices.
        telemetry: Telemetry emitter; defaults to the in-process bus.
    """

    try:
        tool = get_tool(tool_name)
    except UnknownToolError as exc:
        LOGGER.warning("Rejected unknown tool %r", tool_name)
        return ToolExecutionResult.failure(exc.message)

    try:
        settings = settings or EngineSettings()
        context = ToolContext(
            editor=editor,
            dispatch=operation_dispatch(editor, ghost_edit_id),
            papers=resolve_paper_context(papers),
            locator=locator or locator_for(settings),
            settings=settings,
            notifier=notifier or LoggingNotifier(),
            telemetry=telemetry if telemetry is not None else BusTelemetry(),
            request_id=uuid.uuid4().hex[:12],
        )
        LOGGER.debug("Executing %s (request %s, ghost edit %s)", tool_name, context.request_id, ghost_edit_id)
        return tool.run(context, args)
    except Exception as exc:
        LOGGER.exception("Tool %s failed before execution", tool_name)
        return ToolExecutionResult.failure(str(exc) or exc.__class__.__name__)


__all__ = ["TOOLS", "available_tools", "execute_document_tool", "get_tool", "locator_for"]
