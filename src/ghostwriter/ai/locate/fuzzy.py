"""Approximate phrase and section search over plain text.

The assistant quotes text it saw some turns ago, so phrases may differ from
the live document in case, spacing or a few words. Matching tries, in order:
an exact case-insensitive hit, a whitespace-tolerant hit, windows around the
longest word of the phrase, and finally a sliding window over the whole text.
Similarity is :class:`difflib.SequenceMatcher` ratio on normalized text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from difflib import SequenceMatcher
from typing import Protocol, Sequence

LOGGER = logging.getLogger(__name__)

DEFAULT_PHRASE_SIMILARITY = 0.6
DEFAULT_SECTION_SIMILARITY = 0.5

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_END_RE = re.compile(r"[.!?]\s")
_SECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^#{1,3}[ \t]*(.+)$", re.MULTILINE),
    re.compile(r"^([A-Z][A-Za-z \t]+):?[ \t]*$", re.MULTILINE),
    re.compile(r"^(\d+\.?[ \t]*[A-Z][A-Za-z \t]+):?[ \t]*$", re.MULTILINE),
)


@dataclass(slots=True, frozen=True)
class PhraseMatch:
    """Result of a phrase search; indexes are offsets into the searched text."""

    found: bool
    matched_text: str = ""
    start_index: int = -1
    end_index: int = -1
    similarity: float = 0.0


@dataclass(slots=True, frozen=True)
class SectionMatch:
    """Result of a section search; ``content_*`` bound the text under the heading."""

    found: bool
    section_name: str = ""
    start_index: int = -1
    end_index: int = -1
    content_start: int = -1
    content_end: int = -1


NOT_FOUND = PhraseMatch(found=False)
SECTION_NOT_FOUND = SectionMatch(found=False)


class TextLocator(Protocol):
    """Phrase and section search used by the target resolver."""

    def fuzzy_find_phrase(self, text: str, phrase: str) -> PhraseMatch:
        ...

    def find_section(self, text: str, name: str) -> SectionMatch:
        ...

    def find_in_section(self, text: str, name: str, phrase: str) -> PhraseMatch:
        ...


class FuzzyTextLocator:
    """Default :class:`TextLocator` implementation."""

    def __init__(
        self,
        *,
        min_similarity: float = DEFAULT_PHRASE_SIMILARITY,
        section_similarity: float = DEFAULT_SECTION_SIMILARITY,
    ) -> None:
        self.min_similarity = min_similarity
        self.section_similarity = section_similarity

    def fuzzy_find_phrase(self, text: str, phrase: str) -> PhraseMatch:
        return fuzzy_find_phrase(text, phrase, self.min_similarity)

    def find_section(self, text: str, name: str) -> SectionMatch:
        return find_section(text, name, self.section_similarity)

    def find_in_section(self, text: str, name: str, phrase: str) -> PhraseMatch:
        return find_in_section(text, name, phrase, self.min_similarity, self.section_similarity)


# ---------------------------------------------------------------------------
# Phrase search
# ---------------------------------------------------------------------------
def similarity(a: str, b: str) -> float:
    if not a and not b:
        return 1.0
    return SequenceMatcher(None, a.lower(), b.lower(), autojunk=False).ratio()


def normalize_text(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value.lower()).strip()


def fuzzy_find_phrase(
    document: str,
    phrase: str,
    min_similarity: float = DEFAULT_PHRASE_SIMILARITY,
) -> PhraseMatch:
    normalized = normalize_text(phrase)
    words = [word for word in normalized.split(" ") if len(word) > 2]
    if not words:
        return NOT_FOUND

    exact = document.lower().find(normalized)
    if exact != -1:
        end = exact + len(normalized)
        return PhraseMatch(True, document[exact:end], exact, end, 1.0)

    tolerant = re.search(r"\s+".join(re.escape(part) for part in normalized.split(" ")), document, re.IGNORECASE)
    if tolerant is not None:
        return PhraseMatch(True, tolerant.group(0), tolerant.start(), tolerant.end(), 1.0)

    anchor = max(words, key=len)
    anchors = list(re.finditer(rf"\b{re.escape(anchor)}\b", document, re.IGNORECASE))
    if not anchors:
        return _sliding_window_match(document, normalized, min_similarity)

    best = NOT_FOUND
    padding = len(phrase) // 2
    for match in anchors:
        window_start = max(0, match.start() - padding)
        window_end = min(len(document), match.start() + len(phrase) + padding)
        score = similarity(normalize_text(document[window_start:window_end]), normalized)
        if score > best.similarity and score >= min_similarity:
            start, end = _refine_boundaries(document, window_start, window_end, len(phrase))
            best = PhraseMatch(True, document[start:end], start, end, score)
    return best


def _sliding_window_match(document: str, normalized: str, min_similarity: float) -> PhraseMatch:
    normalized_doc = normalize_text(document)
    search_len = len(normalized)
    window = int(search_len * 1.3)
    step = max(1, search_len // 10)
    best = NOT_FOUND
    for index in range(0, max(0, len(normalized_doc) - search_len) + 1, step):
        score = similarity(normalized_doc[index:index + window], normalized)
        if score > best.similarity and score >= min_similarity:
            start = _original_position(document, index)
            end = _original_position(document, index + window)
            best = PhraseMatch(True, document[start:end], start, end, score)
    return best


def _original_position(original: str, normalized_pos: int) -> int:
    """Map an offset in ``normalize_text(original)`` back to ``original``."""

    orig_index = 0
    norm_index = 0
    in_whitespace = False
    leading = True
    while norm_index < normalized_pos and orig_index < len(original):
        char = original[orig_index]
        if char.isspace():
            if not in_whitespace and not leading:
                norm_index += 1
            in_whitespace = True
        else:
            norm_index += 1
            in_whitespace = False
            leading = False
        orig_index += 1
    return orig_index


def _refine_boundaries(document: str, start: int, end: int, target_length: int) -> tuple[int, int]:
    while start > 0 and not document[start - 1].isspace():
        start -= 1
    while end < len(document) and not document[end].isspace():
        end += 1
    if end - start > target_length * 1.5:
        sentence_end = _SENTENCE_END_RE.search(document, start, end)
        if sentence_end is not None and sentence_end.start() - start > target_length * 0.5:
            end = sentence_end.start() + 1
    return start, end


# ---------------------------------------------------------------------------
# Section search
# ---------------------------------------------------------------------------
def find_section(
    document: str,
    name: str,
    min_similarity: float = DEFAULT_SECTION_SIMILARITY,
) -> SectionMatch:
    headings: dict[int, tuple[str, int]] = {}
    for pattern in _SECTION_PATTERNS:
        for match in pattern.finditer(document):
            title = re.sub(r"^#+\s*", "", match.group(1).strip()).rstrip(":").strip()
            if title and match.start() not in headings:
                headings[match.start()] = (title, match.end())
    return _best_section(document, sorted(headings.items()), name, min_similarity)


def find_section_among(
    document: str,
    headings: Sequence[tuple[int, int]],
    name: str,
    min_similarity: float = DEFAULT_SECTION_SIMILARITY,
) -> SectionMatch:
    """Like :func:`find_section`, but only the given ``(start, end)`` spans count as headings."""

    candidates: list[tuple[int, tuple[str, int]]] = []
    for start, end in sorted(headings):
        title = document[start:end].strip()
        if title:
            candidates.append((start, (title, end)))
    return _best_section(document, candidates, name, min_similarity)


def _best_section(
    document: str,
    ordered: Sequence[tuple[int, tuple[str, int]]],
    name: str,
    min_similarity: float,
) -> SectionMatch:
    wanted = name.lower().strip()
    best_index = -1
    best_score = -1.0
    for index, (_, (title, _)) in enumerate(ordered):
        score = similarity(title.lower(), wanted)
        if score > best_score:
            best_index, best_score = index, score
    if best_index < 0 or best_score < min_similarity:
        return SECTION_NOT_FOUND

    start, (title, end) = ordered[best_index]
    content_end = ordered[best_index + 1][0] if best_index + 1 < len(ordered) else len(document)
    return SectionMatch(True, title, start, end, end, content_end)


def find_in_section(
    document: str,
    name: str,
    phrase: str,
    min_similarity: float = DEFAULT_PHRASE_SIMILARITY,
    section_similarity: float = DEFAULT_SECTION_SIMILARITY,
) -> PhraseMatch:
    """Search ``phrase`` inside section ``name``; the whole text is searched if the section is missing."""

    section = find_section(document, name, section_similarity)
    if not section.found:
        LOGGER.debug("Section %r not found; searching the whole document", name)
        return fuzzy_find_phrase(document, phrase, min_similarity)
    content = document[section.content_start:section.content_end]
    result = fuzzy_find_phrase(content, phrase, min_similarity)
    if not result.found:
        return result
    return replace(
        result,
        start_index=result.start_index + section.content_start,
        end_index=result.end_index + section.content_start,
    )


__all__ = [
    "FuzzyTextLocator",
    "NOT_FOUND",
    "PhraseMatch",
    "SECTION_NOT_FOUND",
    "SectionMatch",
    "TextLocator",
    "find_in_section",
    "find_section",
    "find_section_among",
    "fuzzy_find_phrase",
    "normalize_text",
    "similarity",
]
