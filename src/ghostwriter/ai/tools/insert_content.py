"""Tool that inserts new content without overwriting anything."""

from __future__ import annotations

import logging
from typing import ClassVar

from ...documents.model import Node, NodeType
from ...editor.blocks import find_block_by_id
from .applier import InsertMutation
from .args import InsertContentArgs
from .base import EditTool, ToolContext, ToolExecutionResult
from .errors import ErrorCode, TargetNotFoundError

LOGGER = logging.getLogger(__name__)


class InsertContentTool(EditTool[InsertContentArgs]):
    """Insert content after a phrase, after a block, or at a location token.

    Priority order:
        1. ``afterPhrase`` located by fuzzy search (content follows a space),
        2. ``afterBlockId`` (new content starts after the block),
        3. ``location``: ``cursor`` (default), ``end``, ``after:<Section>``
           or ``start:<Section>``; anything else falls back to the cursor.
    """

    name: ClassVar[str] = "insertContent"
    args_type = InsertContentArgs

    def execute(self, context: ToolContext, args: InsertContentArgs) -> ToolExecutionResult:
        prepared = context.prepare(args.content)
        nodes = prepared.nodes
        resolver = context.resolver()

        if args.after_phrase:
            match = resolver.find_phrase(args.after_phrase)
            if match.found:
                pos = resolver.phrase_range(match).end
                inline = _with_leading_space(nodes) if prepared.is_inline else nodes
                target = context.apply(InsertMutation(inline, pos))
                return ToolExecutionResult(True, "Inserted after phrase", affected_range=target)
            LOGGER.warning('Phrase not found: "%s..."', args.after_phrase[:30])

        if args.after_block_id:
            block = find_block_by_id(context.editor.doc, args.after_block_id)
            if block is not None:
                target = context.apply(InsertMutation(nodes, block.end))
                return ToolExecutionResult(
                    True,
                    f"Inserted after block {args.after_block_id}",
                    affected_range=target,
                    block_id=args.after_block_id,
                )
            LOGGER.warning("Block %s not found, using location fallback", args.after_block_id)

        location = args.location
        if location.kind == "cursor":
            context.apply(InsertMutation(nodes))
            return ToolExecutionResult(True, "Inserted at cursor")

        if location.kind == "end":
            target = context.apply(InsertMutation(nodes, context.editor.doc_size))
            return ToolExecutionResult(True, "Appended to document", affected_range=target)

        if location.kind in ("after", "start"):
            section_name = location.section or ""
            section = resolver.find_section(section_name)
            if not section.found:
                raise TargetNotFoundError(
                    error_code=ErrorCode.SECTION_NOT_FOUND,
                    message=f'Section "{section_name}" not found',
                    section=section_name,
                )
            bounds = resolver.section_range(section)
            if location.kind == "after":
                target = context.apply(InsertMutation(nodes, bounds.end))
                return ToolExecutionResult(True, f"Inserted at end of {section_name}", affected_range=target)
            target = context.apply(InsertMutation(nodes, bounds.start))
            return ToolExecutionResult(True, f"Inserted at start of {section_name}", affected_range=target)

        LOGGER.info("Unrecognised insert location %r; inserting at cursor", location.raw)
        context.apply(InsertMutation(nodes))
        return ToolExecutionResult(True, "Inserted at cursor (unknown location)")


def _with_leading_space(nodes: tuple[Node, ...]) -> tuple[Node, ...]:
    if nodes and nodes[0].is_text and not nodes[0].marks:
        first = nodes[0].copy(text=" " + (nodes[0].text or ""))
        return (first,) + nodes[1:]
    return (Node(NodeType.TEXT, text=" "),) + nodes


__all__ = ["InsertContentTool"]
