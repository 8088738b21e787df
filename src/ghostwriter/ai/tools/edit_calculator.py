"""Compute where an edit would land without applying it.

Previews ("ghost edits") need positions and before/after text up front. The
calculator reuses the same argument variants and resolver as the tools, so a
preview and its later acceptance target the same range.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Mapping

from ...documents.model import Node
from ...documents.positions import doc_position_to_text_index
from ...documents.ranges import DocRange
from ...editor.blocks import find_block_by_id
from ...editor.editor import Editor
from ...services.settings import EngineSettings
from ..locate.fuzzy import FuzzyTextLocator, TextLocator
from .args import (
    DeleteContentArgs,
    InsertContentArgs,
    ReplaceBlockArgs,
    ReplaceInSectionArgs,
    RewriteSectionArgs,
)
from .errors import ErrorCode, TargetNotFoundError, ToolError
from .resolver import TargetResolver

LOGGER = logging.getLogger(__name__)

EditType = Literal["insert", "replace", "delete"]


@dataclass(slots=True)
class CalculatedEdit:
    """A previewable edit with resolved positions.

    Attributes:
        id: Preview identifier, later used as the ghost edit id.
        type: ``insert``, ``replace`` or ``delete``.
        tool_name: Operation that produced the edit.
        tool_args: The original argument bag, replayed on acceptance.
        start: Start position in the current document.
        end: End position (equal to ``start`` for inserts).
        old_content: Text being replaced or deleted.
        new_content: Text being inserted.
        description: Short human-readable summary.
        error: Set when the edit could not be calculated.
    """

    id: str
    type: EditType
    tool_name: str
    tool_args: dict[str, Any] = field(default_factory=dict)
    start: int = 0
    end: int = 0
    old_content: str = ""
    new_content: str = ""
    description: str = ""
    error: str | None = None

    @property
    def range(self) -> DocRange:
        return DocRange(self.start, self.end)


@dataclass(slots=True, frozen=True)
class CalculationResult:
    success: bool
    edit: CalculatedEdit | None = None
    error: str | None = None


def new_edit_id() -> str:
    return f"edit-{uuid.uuid4().hex[:10]}"


def text_between(doc: Node, target: DocRange) -> str:
    """Plain text covered by ``target``."""

    text = doc.plain_text()
    start = doc_position_to_text_index(doc, target.start)
    end = doc_position_to_text_index(doc, target.end)
    return text[start:end].strip()


class _Calculator:
    def __init__(
        self,
        editor: Editor,
        tool_name: str,
        args: Mapping[str, Any],
        edit_id: str,
        locator: TextLocator,
        settings: EngineSettings,
    ) -> None:
        self.editor = editor
        self.doc = editor.doc
        self.tool_name = tool_name
        self.args = dict(args)
        self.edit_id = edit_id
        self.resolver = TargetResolver(self.doc, locator, section_similarity=settings.section_min_similarity)
        self.settings = settings

    def edit(self, type_: EditType, target: DocRange, *, old: str = "", new: str = "", description: str) -> CalculatedEdit:
        return CalculatedEdit(
            id=self.edit_id,
            type=type_,
            tool_name=self.tool_name,
            tool_args=self.args,
            start=target.start,
            end=target.end,
            old_content=old,
            new_content=new,
            description=description,
        )

    def section_not_found(self, name: str) -> TargetNotFoundError:
        return TargetNotFoundError(
            error_code=ErrorCode.SECTION_NOT_FOUND,
            message=f'Section "{name}" not found',
            section=name,
        )

    def phrase(self, phrase: str, section: str | None) -> tuple[DocRange, str]:
        match = self.resolver.find_phrase(phrase, section=section)
        if not match.found:
            preview = phrase[: self.settings.not_found_preview_chars]
            raise TargetNotFoundError(
                error_code=ErrorCode.TEXT_NOT_FOUND,
                message=f'Could not find text: "{preview}..."',
            )
        return self.resolver.phrase_range(match), match.matched_text

    # -- operations --------------------------------------------------------
    def insert(self) -> CalculatedEdit:
        args = InsertContentArgs.from_mapping(self.args)
        if args.after_phrase:
            match = self.resolver.find_phrase(args.after_phrase)
            if match.found:
                pos = self.resolver.phrase_range(match).end
                return self.edit(
                    "insert",
                    DocRange(pos, pos),
                    new=args.content,
                    description=f'Insert after "{args.after_phrase[:30]}..."',
                )
        if args.after_block_id:
            block = find_block_by_id(self.doc, args.after_block_id)
            if block is not None:
                return self.edit(
                    "insert", DocRange(block.end, block.end), new=args.content, description="Insert after block"
                )
        location = args.location
        if location.kind == "end":
            size = self.doc.content_size
            return self.edit("insert", DocRange(size, size), new=args.content, description="Insert at end of document")
        if location.kind in ("after", "start"):
            name = location.section or ""
            section = self.resolver.find_section(name)
            if not section.found:
                raise self.section_not_found(name)
            bounds = self.resolver.section_range(section)
            if location.kind == "after":
                return self.edit(
                    "insert", DocRange(bounds.end, bounds.end), new=args.content, description=f"Insert at end of {name}"
                )
            return self.edit(
                "insert", DocRange(bounds.start, bounds.start), new=args.content, description=f"Insert at start of {name}"
            )
        cursor = self.editor.selection.start
        return self.edit("insert", DocRange(cursor, cursor), new=args.content, description="Insert at cursor")

    def replace(self) -> CalculatedEdit:
        if self.tool_name == "replaceInSection":
            scoped = ReplaceInSectionArgs.from_mapping(self.args)
            resolved = self.resolver.require(
                search_phrase=scoped.search_phrase,
                section=scoped.section,
                preview_chars=self.settings.not_found_preview_chars,
            )
            old = text_between(self.doc, resolved.range)
            return self.edit(
                "replace", resolved.range, old=old, new=scoped.new_content, description=f'Replace "{old[:30]}..."'
            )
        args = ReplaceBlockArgs.from_mapping(self.args)
        if args.search_phrase:
            target, matched = self.phrase(args.search_phrase, args.section)
            return self.edit(
                "replace", target, old=matched, new=args.new_content, description=f'Replace "{matched[:30]}..."'
            )
        resolved = self.resolver.require(
            block_id=args.block_id,
            section=args.section,
            preview_chars=self.settings.not_found_preview_chars,
        )
        description = "Replace entire block" if resolved.method == "blockId" else f"Replace content in {args.section}"
        return self.edit(
            "replace",
            resolved.range,
            old=text_between(self.doc, resolved.range),
            new=args.new_content,
            description=description,
        )

    def delete(self) -> CalculatedEdit:
        args = DeleteContentArgs.from_mapping(self.args)
        reason = self.args.get("reason") if isinstance(self.args.get("reason"), str) else None
        if args.search_phrase:
            target, matched = self.phrase(args.search_phrase, args.section)
            return self.edit("delete", target, old=matched, description=reason or f'Delete "{matched[:30]}..."')
        resolved = self.resolver.require(
            block_id=args.block_id,
            section=args.section,
            preview_chars=self.settings.not_found_preview_chars,
        )
        fallback = "Delete entire block" if resolved.method == "blockId" else f"Delete content in {args.section}"
        return self.edit(
            "delete",
            resolved.range,
            old=text_between(self.doc, resolved.range),
            description=reason or fallback,
        )

    def rewrite_section(self) -> CalculatedEdit:
        args = RewriteSectionArgs.from_mapping(self.args)
        reason = self.args.get("reason") if isinstance(self.args.get("reason"), str) else None
        section = self.resolver.find_section(args.section)
        if not section.found:
            raise self.section_not_found(args.section)
        bounds = self.resolver.section_range(section)
        return self.edit(
            "replace",
            bounds,
            old=text_between(self.doc, bounds),
            new=args.new_content,
            description=reason or f"Rewrite {args.section} section",
        )


_OPERATIONS: Mapping[str, Callable[[_Calculator], CalculatedEdit]] = {
    "insertContent": _Calculator.insert,
    "replaceBlock": _Calculator.replace,
    "replaceInSection": _Calculator.replace,
    "deleteContent": _Calculator.delete,
    "rewriteSection": _Calculator.rewrite_section,
}


def supports_preview(tool_name: str) -> bool:
    return tool_name in _OPERATIONS


def calculate_edit(
    editor: Editor,
    tool_name: str,
    args: Mapping[str, Any] | None,
    edit_id: str | None = None,
    *,
    locator: TextLocator | None = None,
    settings: EngineSettings | None = None,
) -> CalculationResult:
    """Resolve where ``tool_name`` would edit without touching the document."""

    operation = _OPERATIONS.get(tool_name)
    if operation is None:
        return CalculationResult(False, error=f'Tool "{tool_name}" does not support ghost preview')
    settings = settings or EngineSettings()
    locator = locator or FuzzyTextLocator(
        min_similarity=settings.phrase_min_similarity,
        section_similarity=settings.section_min_similarity,
    )
    calculator = _Calculator(editor, tool_name, args or {}, edit_id or new_edit_id(), locator, settings)
    try:
        return CalculationResult(True, edit=operation(calculator))
    except ToolError as exc:
        LOGGER.info("Could not calculate %s edit: %s", tool_name, exc)
        return CalculationResult(False, error=exc.message)
    except Exception as exc:
        LOGGER.exception("Unexpected failure calculating %s edit", tool_name)
        return CalculationResult(False, error=str(exc) or "Unknown error calculating edit")


__all__ = [
    "CalculatedEdit",
    "CalculationResult",
    "EditType",
    "calculate_edit",
    "new_edit_id",
    "supports_preview",
    "text_between",
]
