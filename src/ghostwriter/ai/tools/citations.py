"""Citation markers and the paper registry they resolve against.

Supported markers (case-insensitive): ``[@<id>]`` and the legacy
``[CITE: <id>]`` / ``[CONTEXT FROM: <id>]`` forms. A marker whose id is not
in the registry still becomes a citation node carrying only ``{"id": ...}``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Iterable, Mapping, Sequence

from ...documents.model import Mark, Node, NodeType

LOGGER = logging.getLogger(__name__)

CITATION_PATTERN = re.compile(
    r"\[@([a-f0-9-]+)\]|\[(?:CITE|CONTEXT FROM):\s*([a-f0-9-]+)\]",
    re.IGNORECASE,
)


@dataclass(slots=True, frozen=True)
class Paper:
    """Bibliographic record referenced by citation nodes."""

    id: str
    authors: tuple[str, ...] = ()
    title: str | None = None
    year: int | None = None
    journal: str | None = None
    doi: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Paper":
        paper_id = payload.get("id")
        if not paper_id:
            raise ValueError("Paper records require an id")
        authors = payload.get("authors") or ()
        if isinstance(authors, str):
            authors = (authors,)
        return cls(
            id=str(paper_id),
            authors=tuple(str(author) for author in authors),
            title=payload.get("title"),
            year=payload.get("year"),
            journal=payload.get("journal"),
            doi=payload.get("doi"),
        )

    def citation_attrs(self) -> dict[str, Any]:
        """Attributes for a citation node; absent fields are omitted."""

        attrs: dict[str, Any] = {"id": self.id}
        if self.authors:
            attrs["authors"] = list(self.authors)
        for key in ("title", "year", "journal", "doi"):
            value = getattr(self, key)
            if value is not None:
                attrs[key] = value
        return attrs


PaperLookup = Mapping[str, Paper]


@dataclass(slots=True)
class PaperContext:
    """Caller-supplied set of papers for one tool invocation."""

    papers: tuple[Paper, ...] = ()
    _lookup: dict[str, Paper] | None = field(default=None, repr=False)

    @classmethod
    def of(cls, papers: Iterable[Paper | Mapping[str, Any]] | None) -> "PaperContext":
        records = tuple(
            paper if isinstance(paper, Paper) else Paper.from_mapping(paper)
            for paper in papers or ()
        )
        return cls(papers=records)

    def lookup(self) -> PaperLookup:
        """Return the id -> paper map, built once per context."""

        if self._lookup is None:
            self._lookup = {paper.id: paper for paper in self.papers}
        return self._lookup

    def __len__(self) -> int:
        return len(self.papers)


# ---------------------------------------------------------------------------
# Module default
# ---------------------------------------------------------------------------
_DEFAULT_CONTEXT = PaperContext()
_DEFAULT_LOCK = Lock()


def set_default_papers(papers: Iterable[Paper | Mapping[str, Any]] | None) -> None:
    """Replace the fallback papers used when a caller passes none."""

    global _DEFAULT_CONTEXT
    with _DEFAULT_LOCK:
        _DEFAULT_CONTEXT = PaperContext.of(papers)
    LOGGER.debug("Default paper context holds %d papers", len(_DEFAULT_CONTEXT))


def default_paper_context() -> PaperContext:
    with _DEFAULT_LOCK:
        return _DEFAULT_CONTEXT


def resolve_paper_context(papers: PaperContext | Iterable[Paper | Mapping[str, Any]] | None) -> PaperContext:
    """Caller-supplied papers win, even when empty; ``None`` means the module default."""

    if papers is None:
        return default_paper_context()
    if isinstance(papers, PaperContext):
        return papers
    return PaperContext.of(papers)


# ---------------------------------------------------------------------------
# Marker handling
# ---------------------------------------------------------------------------
def citation_node(paper_id: str, lookup: PaperLookup, marks: Sequence[Mark] = ()) -> Node:
    paper = lookup.get(paper_id)
    attrs = paper.citation_attrs() if paper is not None else {"id": paper_id}
    if paper is None:
        LOGGER.debug("Citation %s not in paper registry; emitting id-only node", paper_id)
    return Node(NodeType.CITATION, attrs=attrs, marks=tuple(marks))


def split_citations(text: str, marks: Sequence[Mark], lookup: PaperLookup) -> list[Node]:
    """Split ``text`` into text and citation nodes, left to right.

    Text outside the markers is preserved exactly and keeps ``marks``.
    """

    marks = tuple(marks)
    nodes: list[Node] = []
    cursor = 0
    for match in CITATION_PATTERN.finditer(text):
        if match.start() > cursor:
            nodes.append(Node(NodeType.TEXT, text=text[cursor:match.start()], marks=marks))
        paper_id = match.group(1) or match.group(2)
        nodes.append(citation_node(paper_id, lookup, marks))
        cursor = match.end()
    if not nodes:
        return [Node(NodeType.TEXT, text=text, marks=marks)] if text else []
    if cursor < len(text):
        nodes.append(Node(NodeType.TEXT, text=text[cursor:], marks=marks))
    return nodes


def extract_citation_ids(text: str) -> list[str]:
    """Return unique marker ids in order of first appearance."""

    seen: dict[str, None] = {}
    for match in CITATION_PATTERN.finditer(text):
        seen.setdefault(match.group(1) or match.group(2), None)
    return list(seen)


def has_citation_markers(text: str) -> bool:
    return CITATION_PATTERN.search(text) is not None


def citation_marker(paper_id: str) -> str:
    return f"[@{paper_id}]"


__all__ = [
    "CITATION_PATTERN",
    "Paper",
    "PaperContext",
    "PaperLookup",
    "citation_marker",
    "citation_node",
    "default_paper_context",
    "extract_citation_ids",
    "has_citation_markers",
    "resolve_paper_context",
    "set_default_papers",
    "split_citations",
]
