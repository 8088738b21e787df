"""Behaviour of the eight edit operations through the dispatcher."""

from __future__ import annotations

from typing import Any

from ghostwriter.ai.tools.base import ToolExecutionResult
from ghostwriter.ai.tools.citations import PaperContext, set_default_papers
from ghostwriter.ai.tools.dispatcher import execute_document_tool
from ghostwriter.documents.model import Mark, MarkType, NodeType, doc, paragraph
from ghostwriter.documents.ranges import DocRange
from ghostwriter.editor.editor import Editor
from ghostwriter.editor.transaction import Selection
from helpers import RecordingNotifier, TransactionLog, block_id_at, list_section_doc, sample_doc


def run(editor: Editor, tool: str, **args: Any) -> ToolExecutionResult:
    return execute_document_tool(editor, tool, args)


def block_texts(editor: Editor) -> list[str]:
    return [node.text_content for node in editor.doc.content]


# =============================================================================
# insertContent
# =============================================================================


class TestInsertContent:
    def test_after_phrase_adds_leading_space(self, editor: Editor) -> None:
        result = run(editor, "insertContent", content="and beyond", afterPhrase="transformed many fields")

        assert result.success
        assert result.message == "Inserted after phrase"
        assert result.affected_range == DocRange(56, 56)
        assert block_texts(editor)[1] == "Deep learning has transformed many fields and beyond."

    def test_after_block(self, editor: Editor) -> None:
        block_id = block_id_at(editor, 1)
        result = run(editor, "insertContent", content="A new paragraph.", afterBlockId=block_id)

        assert result.message == f"Inserted after block {block_id}"
        assert result.block_id == block_id
        assert block_texts(editor)[2] == "A new paragraph."
        assert editor.doc.content[2].type is NodeType.PARAGRAPH

    def test_block_id_alias(self, editor: Editor) -> None:
        block_id = block_id_at(editor, 3)
        result = run(editor, "insertContent", content="Closing.", blockId=block_id)

        assert result.message == f"Inserted after block {block_id}"
        assert block_texts(editor)[-1] == "Closing."

    def test_phrase_miss_falls_back_to_block(self, editor: Editor) -> None:
        block_id = block_id_at(editor, 1)
        result = run(
            editor,
            "insertContent",
            content="A new paragraph.",
            afterPhrase="zebra quartz xylophone",
            afterBlockId=block_id,
        )
        assert result.message == f"Inserted after block {block_id}"

    def test_cursor_is_default(self, editor: Editor) -> None:
        result = run(editor, "insertContent", content="Hello ")

        assert result.message == "Inserted at cursor"
        assert block_texts(editor)[0] == "Hello Introduction"

    def test_cursor_replaces_selection(self, editor: Editor) -> None:
        editor.chain().set_text_selection(15, 28).run()
        run(editor, "insertContent", content="Machine learning", location="cursor")

        assert block_texts(editor)[1] == "Machine learning has transformed many fields."

    def test_cursor_selection_up_to_next_heading_keeps_later_blocks(self, editor: Editor) -> None:
        editor.chain().set_text_selection(20, 58).run()
        result = run(editor, "insertContent", content="X")

        assert result.success
        assert block_texts(editor) == ["Introduction", "Deep X", "Methods", "We trained a model."]
        assert editor.doc.content[2].type is NodeType.HEADING

    def test_end_appends(self, editor: Editor) -> None:
        result = run(editor, "insertContent", content="Closing remarks.", location="end")

        assert result.message == "Appended to document"
        assert result.affected_range == DocRange(88, 88)
        assert block_texts(editor)[-1] == "Closing remarks."

    def test_after_section(self, editor: Editor) -> None:
        result = run(editor, "insertContent", content="More context.", location="after:Introduction")

        assert result.message == "Inserted at end of Introduction"
        assert block_texts(editor) == [
            "Introduction",
            "Deep learning has transformed many fields.",
            "More context.",
            "Methods",
            "We trained a model.",
        ]

    def test_start_of_section(self, editor: Editor) -> None:
        result = run(editor, "insertContent", content="First step.", location="start:Methods")

        assert result.message == "Inserted at start of Methods"
        assert block_texts(editor)[3:] == ["First step.", "We trained a model."]

    def test_unknown_section_fails(self, editor: Editor) -> None:
        before = editor.get_json()
        result = run(editor, "insertContent", content="x y z", location="after:Zebra Quartz")

        assert not result.success
        assert result.message == 'Section "Zebra Quartz" not found'
        assert editor.get_json() == before

    def test_unknown_location_uses_cursor(self, editor: Editor) -> None:
        result = run(editor, "insertContent", content="Note ", location="sidebar")

        assert result.success
        assert result.message == "Inserted at cursor (unknown location)"

    def test_markdown_blocks(self, editor: Editor) -> None:
        run(editor, "insertContent", content="## Results\n\nIt **worked**.", location="end")

        assert [node.type for node in editor.doc.content[-2:]] == [NodeType.HEADING, NodeType.PARAGRAPH]
        assert editor.doc.content[-2].attrs["level"] == 2
        bold = editor.doc.content[-1].content[1]
        assert bold.text == "worked"
        assert [mark.type for mark in bold.marks] == [MarkType.BOLD]

    def test_missing_content(self, editor: Editor) -> None:
        result = run(editor, "insertContent", location="end")

        assert not result.success
        assert result.message == "No content provided"


# =============================================================================
# replaceBlock / replaceInSection / rewriteSection
# =============================================================================


class TestReplaceBlock:
    def test_whole_block(self, editor: Editor) -> None:
        block_id = block_id_at(editor, 1)
        result = run(editor, "replaceBlock", blockId=block_id, newContent="Neural networks changed research.")

        assert result.success
        assert result.message == "Replaced content (entire block)"
        assert result.block_id == block_id
        assert result.affected_range == DocRange(14, 58)
        assert block_texts(editor) == [
            "Introduction",
            "Neural networks changed research.",
            "Methods",
            "We trained a model.",
        ]

    def test_phrase_replaces_only_match(self, editor: Editor) -> None:
        result = run(editor, "replaceBlock", searchPhrase="transformed many fields", newContent="reshaped science")

        assert result.message == 'Replaced "transformed many fields..."'
        assert result.affected_range == DocRange(33, 56)
        assert block_texts(editor)[1] == "Deep learning has reshaped science."

    def test_phrase_outside_given_block_warns(self, editor: Editor) -> None:
        block_id = block_id_at(editor, 3)
        result = run(
            editor,
            "replaceBlock",
            blockId=block_id,
            searchPhrase="transformed many fields",
            newContent="reshaped science",
        )

        assert result.success
        assert result.warnings == (f"Text found but not in specified block {block_id}",)
        assert block_texts(editor)[1] == "Deep learning has reshaped science."
        assert "warnings" in result.to_dict()

    def test_section_only(self, editor: Editor) -> None:
        result = run(editor, "replaceBlock", section="Methods", newContent="We trained two models.")

        assert result.message == "Replaced content (found via section)"
        assert result.block_id is None
        assert block_texts(editor)[-1] == "We trained two models."

    def test_markdown_replacement_keeps_marks(self, editor: Editor) -> None:
        run(editor, "replaceBlock", blockId=block_id_at(editor, 1), newContent="**Bold claim** here")

        first = editor.doc.content[1].content[0]
        assert first.text == "Bold claim"
        assert [mark.type for mark in first.marks] == [MarkType.BOLD]

    def test_stale_block_id(self, editor: Editor) -> None:
        result = run(editor, "replaceBlock", blockId="par_gone00", newContent="x y z")

        assert not result.success
        assert result.message == "Block not found (ID: par_gone00). The document may have changed."

    def test_phrase_not_found(self, editor: Editor) -> None:
        result = run(editor, "replaceBlock", searchPhrase="zebra quartz xylophone", newContent="x y z")

        assert not result.success
        assert result.message == 'Could not find text: "zebra quartz xylophone..."'

    def test_missing_new_content(self, editor: Editor) -> None:
        result = run(editor, "replaceBlock", blockId=block_id_at(editor, 1))
        assert result.message == "No new content provided"


class TestReplaceInSection:
    def test_replaces_phrase_within_section(self, editor: Editor) -> None:
        result = run(editor, "replaceInSection", section="Methods", searchPhrase="a model", newContent="three models")

        assert result.success
        assert result.message == "Content replaced"
        assert block_texts(editor)[-1] == "We trained three models."

    def test_missing_phrase(self, editor: Editor) -> None:
        result = run(editor, "replaceInSection", section="Methods", newContent="three models")

        assert not result.success
        assert result.message == "Missing search phrase or new content"


class TestRewriteSection:
    def test_rewrites_content_and_keeps_heading(self, editor: Editor) -> None:
        result = run(editor, "rewriteSection", section="Introduction", newContent="New intro text.")

        assert result.message == 'Rewrote section "Introduction"'
        assert result.affected_range == DocRange(14, 58)
        assert editor.get_text() == "Introduction\nNew intro text.\nMethods\nWe trained a model."

    def test_markdown_rewrite(self, editor: Editor) -> None:
        run(editor, "rewriteSection", section="Introduction", newContent="- First point\n- Second point")

        assert [node.type for node in editor.doc.content] == [
            NodeType.HEADING,
            NodeType.BULLET_LIST,
            NodeType.HEADING,
            NodeType.PARAGRAPH,
        ]

    def test_section_holding_a_list_is_replaced(self) -> None:
        editor = Editor(list_section_doc())
        result = run(editor, "rewriteSection", section="Results", newContent="Everything improved.")

        assert result.success
        assert result.affected_range == DocRange(9, 51)
        assert result.warnings == ()
        assert block_texts(editor) == ["Results", "Everything improved.", "Discussion", "It works."]
        assert [node.type for node in editor.doc.content][1] is NodeType.PARAGRAPH

    def test_section_without_whole_blocks_warns(self) -> None:
        editor = Editor(doc(paragraph("Summary\nAll good")))
        result = run(editor, "rewriteSection", section="Summary", newContent="Fine.")

        assert result.success
        assert result.warnings == ('Section "Summary" has no whole blocks to replace; content was inserted only',)

    def test_unknown_section(self, editor: Editor) -> None:
        result = run(editor, "rewriteSection", section="Zebra Quartz", newContent="x y z")

        assert not result.success
        assert result.message == 'Section "Zebra Quartz" not found'

    def test_missing_section_name(self, editor: Editor) -> None:
        result = run(editor, "rewriteSection", newContent="x y z")
        assert result.message == "Missing section name or new content"


# =============================================================================
# deleteContent
# =============================================================================


class TestDeleteContent:
    def test_phrase(self, editor: Editor) -> None:
        result = run(editor, "deleteContent", searchPhrase="many fields")

        assert result.message == 'Deleted "many fields..."'
        assert result.affected_range == DocRange(45, 56)
        assert block_texts(editor)[1] == "Deep learning has transformed ."

    def test_block(self, editor: Editor) -> None:
        block_id = block_id_at(editor, 3)
        result = run(editor, "deleteContent", blockId=block_id)

        assert result.message == "Deleted content (entire block)"
        assert result.block_id == block_id
        assert block_texts(editor) == ["Introduction", "Deep learning has transformed many fields.", "Methods"]

    def test_no_target(self, editor: Editor) -> None:
        result = run(editor, "deleteContent")

        assert not result.success
        assert result.message == "No target specified. Provide a blockId, searchPhrase, or section."


# =============================================================================
# addCitation
# =============================================================================


class TestAddCitation:
    def test_to_block_end(self, editor: Editor, papers: PaperContext) -> None:
        block_id = block_id_at(editor, 1)
        result = execute_document_tool(editor, "addCitation", {"paperId": "abc-123", "blockId": block_id}, papers=papers)

        assert result.message == "Citation added to block"
        assert result.block_id == block_id
        content = editor.doc.content[1].content
        assert [node.type for node in content] == [NodeType.TEXT, NodeType.CITATION]
        assert content[0].text == "Deep learning has transformed many fields. "
        assert content[1].attrs["authors"] == ["A. Smith"]

    def test_after_phrase(self, editor: Editor, papers: PaperContext) -> None:
        result = execute_document_tool(
            editor, "addCitation", {"paperId": "abc-123", "afterPhrase": "Deep learning"}, papers=papers
        )

        assert result.message == "Citation added"
        content = editor.doc.content[1].content
        assert [node.type for node in content] == [NodeType.TEXT, NodeType.CITATION, NodeType.TEXT]
        assert content[0].text == "Deep learning "

    def test_unresolved_location_degrades_to_cursor(self, editor: Editor, notifier: RecordingNotifier) -> None:
        result = execute_document_tool(
            editor,
            "addCitation",
            {"paperId": "abc-123", "afterPhrase": "zebra quartz xylophone"},
            notifier=notifier,
        )

        assert result.success
        assert result.message == "Citation added at cursor (location not found)"
        assert len(result.warnings) == 1
        assert ("warning", "Could not find location, added at cursor") in notifier.notices
        assert any(node.type is NodeType.CITATION for node in editor.doc.content[0].content)

    def test_unknown_paper_gets_id_only_node(self, editor: Editor) -> None:
        run(editor, "addCitation", paperId="fff-000", blockId=block_id_at(editor, 3))

        citation = editor.doc.content[3].content[-1]
        assert citation.type is NodeType.CITATION
        assert citation.attrs == {"id": "fff-000"}

    def test_default_papers_are_used(self, editor: Editor) -> None:
        set_default_papers([{"id": "def-456", "authors": ["B. Jones"]}])
        run(editor, "addCitation", paperId="def-456", blockId=block_id_at(editor, 3))

        assert editor.doc.content[3].content[-1].attrs["authors"] == ["B. Jones"]

    def test_empty_caller_papers_override_default(self, editor: Editor) -> None:
        set_default_papers([{"id": "abc-123", "authors": ["Default Author"], "year": 1999}])
        execute_document_tool(
            editor, "addCitation", {"paperId": "abc-123", "blockId": block_id_at(editor, 3)}, papers=[]
        )

        assert editor.doc.content[3].content[-1].attrs == {"id": "abc-123"}

    def test_missing_paper_id(self, editor: Editor) -> None:
        assert run(editor, "addCitation", blockId=block_id_at(editor, 1)).message == "Missing paper ID"


# =============================================================================
# highlightText / addComment
# =============================================================================


class TestHighlightText:
    def test_phrase(self, editor: Editor) -> None:
        result = run(editor, "highlightText", searchPhrase="Deep learning")

        assert result.message == "Text highlighted"
        assert result.affected_range == DocRange(15, 28)
        first = editor.doc.content[1].content[0]
        assert first.text == "Deep learning"
        assert first.marks == (Mark(MarkType.HIGHLIGHT, {"color": "#fef08a"}),)

    def test_highlight_type_selects_colour(self, editor: Editor) -> None:
        run(editor, "highlightText", searchPhrase="Deep learning", highlightType="warning")
        assert editor.doc.content[1].content[0].marks[0].attrs == {"color": "#fecaca"}

    def test_comment_is_surfaced(self, editor: Editor, notifier: RecordingNotifier) -> None:
        result = execute_document_tool(
            editor,
            "highlightText",
            {"searchPhrase": "Deep learning", "comment": "Check this claim"},
            notifier=notifier,
        )

        assert result.message == "Check this claim"
        assert notifier.notices == [("info", "Check this claim")]

    def test_whole_block(self, editor: Editor) -> None:
        run(editor, "highlightText", blockId=block_id_at(editor, 3))

        (only,) = editor.doc.content[3].content
        assert only.marks[0].type is MarkType.HIGHLIGHT

    def test_editor_without_highlight_selects_range(self) -> None:
        editor = Editor(sample_doc(), marks=["bold", "italic"])
        result = run(editor, "highlightText", searchPhrase="Deep learning")

        assert result.success
        assert editor.selection == Selection(15, 28)
        assert editor.doc.content[1].content[0].marks == ()

    def test_phrase_not_found(self, editor: Editor) -> None:
        result = run(editor, "highlightText", searchPhrase="zebra quartz xylophone")

        assert not result.success
        assert result.message == 'Could not find text to highlight: "zebra quartz xylophone..."'


class TestAddComment:
    def test_selects_related_text(self, editor: Editor, notifier: RecordingNotifier) -> None:
        result = execute_document_tool(
            editor,
            "addComment",
            {"comment": "Needs a citation", "nearPhrase": "trained a model"},
            notifier=notifier,
        )

        assert result.message == "Comment added"
        assert editor.selection == Selection(71, 86)
        assert notifier.notices == [("info", "AI Comment: Needs a citation")]

    def test_target_is_optional(self, editor: Editor, transactions: TransactionLog) -> None:
        result = run(editor, "addComment", comment="General remark", nearPhrase="zebra quartz xylophone")

        assert result.success
        assert result.message == "Comment added"
        assert transactions.transactions == []
        assert editor.selection == Selection.caret(1)

    def test_does_not_change_document(self, editor: Editor) -> None:
        before = editor.get_json()
        run(editor, "addComment", comment="Remark", blockId=block_id_at(editor, 1))
        assert editor.get_json() == before

    def test_missing_comment(self, editor: Editor) -> None:
        assert run(editor, "addComment", nearPhrase="model").message == "Missing comment text"
