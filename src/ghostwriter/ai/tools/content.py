"""Prepare assistant-supplied text for insertion into the document.

Text is classified as Markdown or plain with a best-effort heuristic. Markdown
is parsed with ``markdown-it-py`` (CommonMark plus tables, strikethrough,
task lists and dollar math) and lowered to document nodes; plain text becomes
a single text run. Citation markers are split into citation nodes in both
cases. Classification is approximate: Markdown the heuristic misses is
inserted as plain text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from ...documents.model import Mark, MarkType, Node, NodeType
from .citations import PaperContext, PaperLookup, split_citations

LOGGER = logging.getLogger(__name__)

_MARKDOWN_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^#{1,6}\s+", re.MULTILINE),  # headings
    re.compile(r"\*\*[^*]+\*\*"),  # bold
    re.compile(r"__[^_]+__"),
    re.compile(r"\*[^*\n]+\*"),  # italic
    re.compile(r"_[^_\n]+_"),
    re.compile(r"`[^`]+`"),  # inline code
    re.compile(r"```[\s\S]*?```"),  # fenced code
    re.compile(r"^\s*[-*+]\s+", re.MULTILINE),  # bullet list
    re.compile(r"^\s*\d+\.\s+", re.MULTILINE),  # ordered list
    re.compile(r"^\s*>", re.MULTILINE),  # blockquote
    re.compile(r"\[([^\]]+)\]\([^)]+\)"),  # link
    re.compile(r"!\[([^\]]*)\]\([^)]+\)"),  # image
    re.compile(r"^---+$", re.MULTILINE),  # rules
    re.compile(r"^\*\*\*+$", re.MULTILINE),
    re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)+\|?\s*$", re.MULTILINE),  # table delimiter row
    re.compile(r"\$\$[\s\S]+?\$\$"),  # display math
)
_TASK_CHECKBOX_CLASS = "task-list-item-checkbox"


def has_markdown_formatting(text: str) -> bool:
    """Heuristic Markdown detector; false negatives are expected."""

    return any(pattern.search(text) for pattern in _MARKDOWN_PATTERNS)


def build_parser() -> MarkdownIt:
    return (
        MarkdownIt("commonmark", {"html": True})
        .enable("table")
        .enable("strikethrough")
        .use(tasklists_plugin)
        .use(dollarmath_plugin)
    )


_PARSER = build_parser()


@dataclass(slots=True, frozen=True)
class PreparedContent:
    """Nodes ready for insertion plus how they were produced."""

    nodes: tuple[Node, ...]
    is_markdown: bool

    @property
    def is_inline(self) -> bool:
        return all(node.is_inline for node in self.nodes)


def prepare_content(raw: str, papers: PaperContext | None = None) -> PreparedContent:
    """Classify ``raw`` and convert it to document nodes."""

    lookup = (papers or PaperContext()).lookup()
    if not has_markdown_formatting(raw):
        return PreparedContent(tuple(split_citations(raw, (), lookup)), is_markdown=False)
    blocks = markdown_to_nodes(raw, lookup)
    if len(blocks) == 1 and blocks[0].type is NodeType.PARAGRAPH:
        # a lone paragraph is inserted as inline content
        return PreparedContent(tuple(blocks[0].content), is_markdown=True)
    return PreparedContent(tuple(blocks), is_markdown=True)


def markdown_to_nodes(markdown: str, lookup: PaperLookup) -> list[Node]:
    """Parse Markdown and lower it to block nodes; never raises on bad input."""

    try:
        root = SyntaxTreeNode(_PARSER.parse(markdown))
    except Exception:
        LOGGER.warning("Markdown parsing failed; inserting raw text", exc_info=True)
        return [Node(NodeType.PARAGRAPH, content=split_citations(markdown, (), lookup))]
    blocks = _Lowering(lookup).blocks(root.children)
    return blocks or [Node(NodeType.PARAGRAPH)]


# ---------------------------------------------------------------------------
# Lowering
# ---------------------------------------------------------------------------
class _Lowering:
    """Converts a markdown-it syntax tree into document nodes."""

    def __init__(self, lookup: PaperLookup) -> None:
        self._lookup = lookup
        self._block_handlers: Mapping[str, Callable[[SyntaxTreeNode], list[Node]]] = {
            "paragraph": self._paragraph,
            "heading": self._heading,
            "blockquote": self._blockquote,
            "bullet_list": self._list,
            "ordered_list": self._list,
            "list_item": self._list_item,
            "fence": self._code,
            "code_block": self._code,
            "hr": self._rule,
            "table": self._table,
            "math_block": self._math_block,
            "math_block_label": self._math_block,
            "html_block": self._html_block,
        }
        self._inline_handlers: Mapping[
            str, Callable[[SyntaxTreeNode, tuple[Mark, ...]], list[Node]]
        ] = {
            "strong": self._wrap(Mark(MarkType.BOLD)),
            "em": self._wrap(Mark(MarkType.ITALIC)),
            "s": self._wrap(Mark(MarkType.STRIKE)),
            "link": self._link,
            "code_inline": self._code_inline,
            "hardbreak": self._hard_break,
            "softbreak": self._soft_break,
            "image": self._image,
            "math_inline": self._math_inline,
            "math_inline_double": self._math_inline,
            "html_inline": self._html_inline,
        }

    # -- blocks -----------------------------------------------------------
    def blocks(self, nodes: Sequence[SyntaxTreeNode]) -> list[Node]:
        result: list[Node] = []
        for node in nodes:
            handler = self._block_handlers.get(node.type)
            if handler is None:
                result.extend(self._unknown_block(node))
            else:
                result.extend(handler(node))
        return result

    def _unknown_block(self, node: SyntaxTreeNode) -> list[Node]:
        if node.type == "inline":
            return [Node(NodeType.PARAGRAPH, content=self.inline(node.children, ()))]
        if node.children:
            return self.blocks(node.children)
        if node.content:
            return [Node(NodeType.PARAGRAPH, content=split_citations(node.content, (), self._lookup))]
        LOGGER.debug("Dropping unsupported markdown node %s", node.type)
        return []

    def _paragraph(self, node: SyntaxTreeNode) -> list[Node]:
        return [Node(NodeType.PARAGRAPH, content=self._inline_content(node))]

    def _heading(self, node: SyntaxTreeNode) -> list[Node]:
        level = int(node.tag[1:]) if node.tag[1:].isdigit() else 1
        return [Node(NodeType.HEADING, attrs={"level": level}, content=self._inline_content(node))]

    def _blockquote(self, node: SyntaxTreeNode) -> list[Node]:
        return [Node(NodeType.BLOCKQUOTE, content=self.blocks(node.children))]

    def _list(self, node: SyntaxTreeNode) -> list[Node]:
        items = self.blocks(node.children)
        if any(item.type is NodeType.TASK_ITEM for item in items):
            return [Node(NodeType.TASK_LIST, content=items)]
        if node.type == "ordered_list":
            attrs: dict[str, Any] = {}
            start = node.attrs.get("start")
            if start is not None and int(start) != 1:
                attrs["start"] = int(start)
            return [Node(NodeType.ORDERED_LIST, attrs=attrs, content=items)]
        return [Node(NodeType.BULLET_LIST, content=items)]

    def _list_item(self, node: SyntaxTreeNode) -> list[Node]:
        content = self.blocks(node.children) or [Node(NodeType.PARAGRAPH)]
        if "task-list-item" in str(node.attrs.get("class", "")):
            return [Node(NodeType.TASK_ITEM, attrs={"checked": _is_checked(node)}, content=content)]
        return [Node(NodeType.LIST_ITEM, content=content)]

    def _code(self, node: SyntaxTreeNode) -> list[Node]:
        language = (node.info or "").strip().split(" ")[0] or None
        code = node.content[:-1] if node.content.endswith("\n") else node.content
        content = [Node(NodeType.TEXT, text=code)] if code else []
        return [Node(NodeType.CODE_BLOCK, attrs={"language": language}, content=content)]

    def _rule(self, node: SyntaxTreeNode) -> list[Node]:
        return [Node(NodeType.HORIZONTAL_RULE)]

    def _table(self, node: SyntaxTreeNode) -> list[Node]:
        rows: list[Node] = []
        for section in node.children:
            header = section.type == "thead"
            for row in section.children:
                cells = [
                    Node(
                        NodeType.TABLE_HEADER if header else NodeType.TABLE_CELL,
                        content=[Node(NodeType.PARAGRAPH, content=self._inline_content(cell))],
                    )
                    for cell in row.children
                ]
                rows.append(Node(NodeType.TABLE_ROW, content=cells))
        return [Node(NodeType.TABLE, content=rows)]

    def _math_block(self, node: SyntaxTreeNode) -> list[Node]:
        latex = node.content.strip()
        math = Node(NodeType.MATHEMATICS, attrs={"latex": latex, "displayMode": True})
        return [Node(NodeType.PARAGRAPH, content=[math])]

    def _html_block(self, node: SyntaxTreeNode) -> list[Node]:
        raw = node.content.strip()
        if not raw:
            return []
        return [Node(NodeType.PARAGRAPH, content=[Node(NodeType.TEXT, text=raw)])]

    # -- inline -----------------------------------------------------------
    def _inline_content(self, node: SyntaxTreeNode) -> list[Node]:
        children: list[SyntaxTreeNode] = []
        for child in node.children:
            if child.type == "inline":
                children.extend(child.children)
            else:
                children.append(child)
        return [item for item in self.inline(children, ()) if not (item.is_text and not item.text)]

    def inline(self, nodes: Sequence[SyntaxTreeNode], marks: tuple[Mark, ...]) -> list[Node]:
        result: list[Node] = []
        pending: list[str] = []

        def flush() -> None:
            if pending:
                result.extend(split_citations("".join(pending), marks, self._lookup))
                pending.clear()

        for node in nodes:
            # adjacent text tokens are joined so markers split across them still match
            if node.type == "text":
                pending.append(node.content)
                continue
            flush()
            handler = self._inline_handlers.get(node.type)
            if handler is None:
                result.extend(self._unknown_inline(node, marks))
            else:
                result.extend(handler(node, marks))
        flush()
        return result

    def _unknown_inline(self, node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
        if node.content:
            return split_citations(node.content, marks, self._lookup)
        if node.children:
            return self.inline(node.children, marks)
        LOGGER.debug("Dropping unsupported inline markdown node %s", node.type)
        return []

    def _wrap(self, mark: Mark) -> Callable[[SyntaxTreeNode, tuple[Mark, ...]], list[Node]]:
        def handler(node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
            return self.inline(node.children, marks + (mark,))

        return handler

    def _link(self, node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
        attrs: dict[str, Any] = {"href": node.attrs.get("href", ""), "target": "_blank"}
        if node.attrs.get("title"):
            attrs["title"] = node.attrs["title"]
        return self.inline(node.children, marks + (Mark(MarkType.LINK, attrs),))

    def _code_inline(self, node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
        return [Node(NodeType.TEXT, text=node.content, marks=marks + (Mark(MarkType.CODE),))]

    def _hard_break(self, node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
        return [Node(NodeType.HARD_BREAK)]

    def _soft_break(self, node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
        return [Node(NodeType.TEXT, text=" ", marks=marks)]

    def _image(self, node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
        attrs: dict[str, Any] = {"src": node.attrs.get("src", ""), "alt": node.content or None}
        if node.attrs.get("title"):
            attrs["title"] = node.attrs["title"]
        return [Node(NodeType.IMAGE, attrs=attrs)]

    def _math_inline(self, node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
        return [Node(NodeType.MATHEMATICS, attrs={"latex": node.content, "displayMode": False})]

    def _html_inline(self, node: SyntaxTreeNode, marks: tuple[Mark, ...]) -> list[Node]:
        if _TASK_CHECKBOX_CLASS in node.content:
            return []
        return split_citations(node.content, marks, self._lookup)


def _is_checked(item: SyntaxTreeNode) -> bool:
    for child in item.walk():
        if child.type == "html_inline" and _TASK_CHECKBOX_CLASS in child.content:
            return 'checked="checked"' in child.content
    return False


__all__ = [
    "PreparedContent",
    "build_parser",
    "has_markdown_formatting",
    "markdown_to_nodes",
    "prepare_content",
]
