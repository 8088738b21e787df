"""Non-destructive tools: highlight a range or surface a comment."""

from __future__ import annotations

import logging
from typing import ClassVar

from ...documents.ranges import DocRange
from .applier import HighlightMutation, SelectMutation
from .args import AddCommentArgs, HighlightTextArgs
from .base import EditTool, ToolContext, ToolExecutionResult
from .errors import ErrorCode, TargetNotFoundError, ToolError

LOGGER = logging.getLogger(__name__)


class HighlightTextTool(EditTool[HighlightTextArgs]):
    """Highlight a phrase, or a whole block / section when no phrase is given.

    Colours come from :attr:`EngineSettings.highlight_colors` keyed by
    ``highlightType``. Editors without the highlight mark only get the
    selection moved to the range.
    """

    name: ClassVar[str] = "highlightText"
    args_type = HighlightTextArgs

    def execute(self, context: ToolContext, args: HighlightTextArgs) -> ToolExecutionResult:
        if args.search_phrase:
            resolver = context.resolver()
            match = resolver.find_phrase(args.search_phrase, section=args.section)
            if not match.found:
                raise TargetNotFoundError(
                    error_code=ErrorCode.TEXT_NOT_FOUND,
                    message=f'Could not find text to highlight: "{context.not_found_preview(args.search_phrase)}..."',
                    section=args.section,
                )
            target: DocRange = resolver.phrase_range(match)
        else:
            target = context.require_target(block_id=args.block_id, section=args.section).range

        color = context.settings.highlight_color(args.highlight_type)
        highlighted = context.apply(HighlightMutation(target, color))
        if args.comment:
            context.notifier.notify("info", args.comment)
        return ToolExecutionResult(True, args.comment or "Text highlighted", affected_range=highlighted)


class AddCommentTool(EditTool[AddCommentArgs]):
    """Surface a comment, selecting the related content when it can be found."""

    name: ClassVar[str] = "addComment"
    args_type = AddCommentArgs

    def execute(self, context: ToolContext, args: AddCommentArgs) -> ToolExecutionResult:
        target = context.resolver().resolve(
            block_id=args.block_id,
            search_phrase=args.near_phrase,
            section=args.section,
        )
        if target.found:
            try:
                context.apply(SelectMutation(target.range))
            except ToolError as exc:
                LOGGER.info("Comment selection skipped: %s", exc)
        context.notifier.notify("info", f"AI Comment: {args.comment}")
        return ToolExecutionResult(True, "Comment added")


__all__ = ["AddCommentTool", "HighlightTextTool"]
