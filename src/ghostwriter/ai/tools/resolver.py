"""Resolve approximate edit targets into exact document ranges.

Strategies run in strict precedence and the first success wins:

1. ``blockId`` via the stable block index,
2. ``searchPhrase`` via fuzzy phrase search (scoped to ``section`` if given),
3. ``section`` via the section's content bounds.

A missing block id is logged and falls through; it is never fatal by itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Literal

from ...documents.model import Node, NodeType
from ...documents.positions import doc_position_to_text_index, snap_section_range, text_range_to_doc_range
from ...documents.ranges import DocRange
from ...editor.blocks import find_block_by_id
from ..locate.fuzzy import (
    DEFAULT_SECTION_SIMILARITY,
    SECTION_NOT_FOUND,
    PhraseMatch,
    SectionMatch,
    TextLocator,
    find_section_among,
)
from .errors import ErrorCode, TargetNotFoundError

LOGGER = logging.getLogger(__name__)

ResolveMethod = Literal["blockId", "text", "section"]


@dataclass(slots=True, frozen=True)
class Target:
    """A resolved range plus the strategy that produced it."""

    found: bool
    pos: int = -1
    end_pos: int = -1
    method: ResolveMethod = "text"
    block_id: str | None = None

    @property
    def range(self) -> DocRange:
        return DocRange(self.pos, self.end_pos)


NOT_FOUND = Target(found=False)


def not_found_message(
    *,
    block_id: str | None = None,
    search_phrase: str | None = None,
    section: str | None = None,
    preview_chars: int = 50,
) -> str:
    """Deterministic message describing which target could not be resolved."""

    if block_id:
        return f"Block not found (ID: {block_id}). The document may have changed."
    if search_phrase:
        scope = f" in {section}" if section else ""
        return f'Could not find text: "{search_phrase[:preview_chars]}..."{scope}'
    if section:
        return f'Section "{section}" not found in document.'
    return "No target specified. Provide a blockId, searchPhrase, or section."


class TargetResolver:
    """Locates targets in one document snapshot."""

    def __init__(
        self,
        doc: Node,
        locator: TextLocator,
        *,
        section_similarity: float = DEFAULT_SECTION_SIMILARITY,
    ) -> None:
        self._doc = doc
        self._locator = locator
        self._section_similarity = section_similarity
        self._text: str | None = None
        self._headings: list[tuple[int, int]] | None = None

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = self._doc.plain_text()
        return self._text

    @property
    def headings(self) -> list[tuple[int, int]]:
        """Plain-text spans of the top-level heading nodes."""

        if self._headings is None:
            spans: list[tuple[int, int]] = []
            offset = 0
            for child in self._doc.content:
                if child.type is NodeType.HEADING and child.text_content.strip():
                    start = doc_position_to_text_index(self._doc, offset + 1)
                    end = doc_position_to_text_index(self._doc, offset + child.node_size - 1)
                    spans.append((start, end))
                offset += child.node_size
            self._headings = spans
        return self._headings

    def resolve(
        self,
        *,
        block_id: str | None = None,
        search_phrase: str | None = None,
        section: str | None = None,
    ) -> Target:
        if block_id:
            block = find_block_by_id(self._doc, block_id)
            if block is not None:
                return Target(True, block.pos, block.end, "blockId", block_id)
            LOGGER.warning("Block id %s not found, trying fallback strategies", block_id)

        if search_phrase:
            match = self.find_phrase(search_phrase, section=section)
            if match.found:
                found = self.phrase_range(match)
                return Target(True, found.start, found.end, "text")

        if section:
            section_match = self.find_section(section)
            if section_match.found:
                bounds = self.section_range(section_match)
                return Target(True, bounds.start, bounds.end, "section")

        return NOT_FOUND

    def require(
        self,
        *,
        block_id: str | None = None,
        search_phrase: str | None = None,
        section: str | None = None,
        preview_chars: int = 50,
    ) -> Target:
        """Like :meth:`resolve` but raises :class:`TargetNotFoundError` on a miss."""

        target = self.resolve(block_id=block_id, search_phrase=search_phrase, section=section)
        if target.found:
            return target
        if block_id:
            code = ErrorCode.BLOCK_NOT_FOUND
        elif search_phrase:
            code = ErrorCode.TEXT_NOT_FOUND
        elif section:
            code = ErrorCode.SECTION_NOT_FOUND
        else:
            code = ErrorCode.NO_TARGET
        raise TargetNotFoundError(
            error_code=code,
            message=not_found_message(
                block_id=block_id,
                search_phrase=search_phrase,
                section=section,
                preview_chars=preview_chars,
            ),
            block_id=block_id,
            section=section,
        )

    # ------------------------------------------------------------------
    # Lower-level lookups shared with the tools
    # ------------------------------------------------------------------
    def find_phrase(self, phrase: str, *, section: str | None = None) -> PhraseMatch:
        if not section:
            return self._locator.fuzzy_find_phrase(self.text, phrase)
        bounds = self._heading_section(section)
        if not bounds.found:
            return self._locator.find_in_section(self.text, section, phrase)
        content = self.text[bounds.content_start:bounds.content_end]
        match = self._locator.fuzzy_find_phrase(content, phrase)
        if not match.found:
            return match
        return replace(
            match,
            start_index=match.start_index + bounds.content_start,
            end_index=match.end_index + bounds.content_start,
        )

    def find_section(self, name: str) -> SectionMatch:
        """Prefer real heading nodes; fall back to heading-like lines of the text."""

        match = self._heading_section(name)
        if match.found:
            return match
        return self._locator.find_section(self.text, name)

    def _heading_section(self, name: str) -> SectionMatch:
        if not self.headings:
            return SECTION_NOT_FOUND
        return find_section_among(self.text, self.headings, name, self._section_similarity)

    def phrase_range(self, match: PhraseMatch) -> DocRange:
        return text_range_to_doc_range(self._doc, match.start_index, match.end_index)

    def section_range(self, match: SectionMatch) -> DocRange:
        raw = text_range_to_doc_range(self._doc, match.content_start, match.content_end)
        return snap_section_range(self._doc, raw.start, raw.end)


__all__ = ["NOT_FOUND", "ResolveMethod", "Target", "TargetResolver", "not_found_message"]
