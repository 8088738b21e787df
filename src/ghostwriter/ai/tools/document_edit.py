"""Tools that replace or delete located content.

``replaceBlock`` and ``deleteContent`` share one resolution path: a
``searchPhrase`` always wins and edits just the matched text; otherwise the
target is resolved from ``blockId`` / ``section``. When both a phrase and a
block id are given and the phrase does not appear to live in that block the
edit still proceeds, with a warning attached to the result.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from ...documents.ranges import DocRange
from ...editor.blocks import find_block_by_id
from .applier import DeleteMutation, ReplaceMutation
from .args import DeleteContentArgs, ReplaceBlockArgs, ReplaceInSectionArgs, RewriteSectionArgs
from .base import EditTool, ToolContext, ToolExecutionResult
from .errors import ErrorCode, TargetNotFoundError
from .resolver import Target

LOGGER = logging.getLogger(__name__)

_SCOPE_PROBE_CHARS = 20


def _method_note(target: Target) -> str:
    return " (entire block)" if target.method == "blockId" else f" (found via {target.method})"


def _locate_phrase(context: ToolContext, phrase: str, *, block_id: str | None, section: str | None) -> DocRange:
    resolver = context.resolver()
    match = resolver.find_phrase(phrase, section=section)
    if not match.found:
        raise TargetNotFoundError(
            error_code=ErrorCode.TEXT_NOT_FOUND,
            message=f'Could not find text: "{context.not_found_preview(phrase)}..."',
            section=section,
        )
    if block_id:
        block = find_block_by_id(context.editor.doc, block_id)
        probe = phrase.lower()[:_SCOPE_PROBE_CHARS]
        if block is not None and probe not in block.node.text_content.lower():
            context.warn(f"Text found but not in specified block {block_id}")
    return resolver.phrase_range(match)


class ReplaceBlockTool(EditTool[ReplaceBlockArgs]):
    """Replace a phrase, or a whole block / section when no phrase is given."""

    name: ClassVar[str] = "replaceBlock"
    args_type = ReplaceBlockArgs

    def execute(self, context: ToolContext, args: ReplaceBlockArgs) -> ToolExecutionResult:
        if args.search_phrase:
            found = _locate_phrase(context, args.search_phrase, block_id=args.block_id, section=args.section)
            prepared = context.prepare(args.new_content)
            replaced = context.apply(ReplaceMutation(found, prepared.nodes))
            return ToolExecutionResult(
                True,
                f'Replaced "{args.search_phrase[:30]}..."',
                affected_range=replaced,
            )

        target = context.require_target(block_id=args.block_id, section=args.section)
        prepared = context.prepare(args.new_content)
        replaced = context.apply(ReplaceMutation(target.range, prepared.nodes))
        return ToolExecutionResult(
            True,
            f"Replaced content{_method_note(target)}",
            affected_range=replaced,
            block_id=target.block_id,
        )


class ReplaceInSectionTool(EditTool[ReplaceInSectionArgs]):
    name: ClassVar[str] = "replaceInSection"
    args_type = ReplaceInSectionArgs

    def execute(self, context: ToolContext, args: ReplaceInSectionArgs) -> ToolExecutionResult:
        target = context.require_target(search_phrase=args.search_phrase, section=args.section)
        prepared = context.prepare(args.new_content)
        replaced = context.apply(ReplaceMutation(target.range, prepared.nodes))
        return ToolExecutionResult(True, "Content replaced", affected_range=replaced)


class RewriteSectionTool(EditTool[RewriteSectionArgs]):
    """Replace everything under a section heading, keeping the heading."""

    name: ClassVar[str] = "rewriteSection"
    args_type = RewriteSectionArgs

    def execute(self, context: ToolContext, args: RewriteSectionArgs) -> ToolExecutionResult:
        resolver = context.resolver()
        section = resolver.find_section(args.section)
        if not section.found:
            raise TargetNotFoundError(
                error_code=ErrorCode.SECTION_NOT_FOUND,
                message=f'Section "{args.section}" not found',
                section=args.section,
            )
        bounds = resolver.section_range(section)
        if bounds.is_empty and resolver.text[section.content_start:section.content_end].strip():
            context.warn(f'Section "{args.section}" has no whole blocks to replace; content was inserted only')
        prepared = context.prepare(args.new_content)
        replaced = context.apply(ReplaceMutation(bounds, prepared.nodes))
        return ToolExecutionResult(True, f'Rewrote section "{args.section}"', affected_range=replaced)


class DeleteContentTool(EditTool[DeleteContentArgs]):
    """Delete a phrase, or a whole block / section when no phrase is given."""

    name: ClassVar[str] = "deleteContent"
    args_type = DeleteContentArgs

    def execute(self, context: ToolContext, args: DeleteContentArgs) -> ToolExecutionResult:
        if args.search_phrase:
            found = _locate_phrase(context, args.search_phrase, block_id=args.block_id, section=args.section)
            deleted = context.apply(DeleteMutation(found))
            return ToolExecutionResult(
                True,
                f'Deleted "{args.search_phrase[:30]}..."',
                affected_range=deleted,
            )

        target = context.require_target(block_id=args.block_id, section=args.section)
        deleted = context.apply(DeleteMutation(target.range))
        return ToolExecutionResult(
            True,
            f"Deleted content{_method_note(target)}",
            affected_range=deleted,
            block_id=target.block_id,
        )


__all__ = ["DeleteContentTool", "ReplaceBlockTool", "ReplaceInSectionTool", "RewriteSectionTool"]
