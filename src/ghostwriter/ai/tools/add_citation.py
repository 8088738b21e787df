"""Tool that appends a citation to the document.

This path degrades instead of failing: when neither the block nor the phrase
can be found the citation goes to the cursor and the result carries a
warning.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from ...editor.blocks import BlockMatch, find_block_by_id
from .applier import InsertMutation
from .args import AddCitationArgs
from .base import EditTool, ToolContext, ToolExecutionResult
from .citations import citation_marker

LOGGER = logging.getLogger(__name__)


def block_text_end(block: BlockMatch) -> int:
    """Position just inside the end of the block's last textblock."""

    if block.node.is_leaf:
        return block.end
    if block.node.is_textblock:
        return block.end - 1
    last_end: int | None = None
    for child, offset in block.node.descendants():
        if child.is_textblock:
            last_end = block.pos + 1 + offset + child.node_size - 1
    return last_end if last_end is not None else block.end - 1


class AddCitationTool(EditTool[AddCitationArgs]):
    name: ClassVar[str] = "addCitation"
    args_type = AddCitationArgs

    def execute(self, context: ToolContext, args: AddCitationArgs) -> ToolExecutionResult:
        nodes = context.prepare(" " + citation_marker(args.paper_id)).nodes

        if args.block_id:
            block = find_block_by_id(context.editor.doc, args.block_id)
            if block is not None:
                target = context.apply(InsertMutation(nodes, block_text_end(block)))
                return ToolExecutionResult(
                    True, "Citation added to block", affected_range=target, block_id=args.block_id
                )
            LOGGER.warning("Block %s not found for citation %s", args.block_id, args.paper_id)

        if args.after_phrase:
            resolver = context.resolver()
            match = resolver.find_phrase(args.after_phrase, section=args.section)
            if match.found:
                pos = resolver.phrase_range(match).end
                target = context.apply(InsertMutation(nodes, pos))
                return ToolExecutionResult(True, "Citation added", affected_range=target)

        context.apply(InsertMutation(nodes))
        context.warn(f"Could not find location for citation {args.paper_id}; added at cursor")
        context.notifier.notify("warning", "Could not find location, added at cursor")
        return ToolExecutionResult(True, "Citation added at cursor (location not found)")


__all__ = ["AddCitationTool", "block_text_end"]
