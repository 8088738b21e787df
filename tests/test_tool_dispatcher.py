"""Tests for the dispatcher boundary: unknown tools, telemetry, failures."""

from __future__ import annotations

import logging

import pytest

from ghostwriter.ai.tools.base import ToolExecutionResult
from ghostwriter.ai.tools.dispatcher import TOOLS, available_tools, execute_document_tool, get_tool, locator_for
from ghostwriter.ai.tools.errors import ErrorCode, UnknownToolError
from ghostwriter.documents.ranges import DocRange
from ghostwriter.editor.editor import Editor
from ghostwriter.services import telemetry as telemetry_bus
from ghostwriter.services.settings import EngineSettings
from helpers import ExplodingLocator, RecordingTelemetry, TransactionLog


# =============================================================================
# Registry
# =============================================================================


def test_available_tools() -> None:
    assert available_tools() == [
        "addCitation",
        "addComment",
        "deleteContent",
        "highlightText",
        "insertContent",
        "replaceBlock",
        "replaceInSection",
        "rewriteSection",
    ]
    assert all(TOOLS[name].name == name for name in available_tools())


def test_get_tool_raises_for_unknown_name() -> None:
    with pytest.raises(UnknownToolError) as exc_info:
        get_tool("frobnicate")
    assert exc_info.value.message == "Unknown tool: frobnicate"


def test_locator_for_uses_settings() -> None:
    locator = locator_for(EngineSettings(phrase_min_similarity=0.8, section_min_similarity=0.7))
    assert (locator.min_similarity, locator.section_similarity) == (0.8, 0.7)


# =============================================================================
# Boundary behaviour
# =============================================================================


class TestExecuteDocumentTool:
    def test_unknown_tool_has_no_side_effects(
        self, editor: Editor, transactions: TransactionLog, telemetry: RecordingTelemetry
    ) -> None:
        before = editor.get_json()
        result = execute_document_tool(editor, "frobnicate", {"content": "x"}, telemetry=telemetry)

        assert result == ToolExecutionResult(success=False, message="Unknown tool: frobnicate")
        assert editor.get_json() == before
        assert transactions.transactions == []
        assert telemetry.events == []

    def test_none_args_are_treated_as_empty(self, editor: Editor) -> None:
        result = execute_document_tool(editor, "insertContent", None)
        assert result.message == "No content provided"

    def test_non_mapping_args(self, editor: Editor) -> None:
        result = execute_document_tool(editor, "insertContent", ["content"])  # type: ignore[arg-type]

        assert not result.success
        assert result.message == "Tool arguments must be an object"

    def test_wrong_argument_type(self, editor: Editor) -> None:
        result = execute_document_tool(editor, "insertContent", {"content": 42})

        assert not result.success
        assert result.message.startswith("content: 42 is not of type")

    def test_unexpected_exception_becomes_failure(self, editor: Editor, telemetry: RecordingTelemetry) -> None:
        before = editor.get_json()
        result = execute_document_tool(
            editor,
            "replaceBlock",
            {"searchPhrase": "many fields", "newContent": "x y z"},
            locator=ExplodingLocator(),
            telemetry=telemetry,
        )

        assert result == ToolExecutionResult(success=False, message="boom")
        assert editor.get_json() == before
        assert telemetry.events[0][1]["error_code"] == ErrorCode.INTERNAL_ERROR
        assert telemetry.events[0][1]["severity"] == "error"

    def test_success_telemetry(self, editor: Editor, telemetry: RecordingTelemetry) -> None:
        execute_document_tool(editor, "insertContent", {"content": "Tail.", "location": "end"}, telemetry=telemetry)

        ((name, payload),) = telemetry.events
        assert name == "tool.insertContent"
        assert payload["success"] is True
        assert payload["tool"] == "insertContent"
        assert "request_id" in payload
        assert payload["duration_ms"] >= 0
        assert "error_code" not in payload
        assert "severity" not in payload

    def test_failure_telemetry_carries_error_code(self, editor: Editor, telemetry: RecordingTelemetry) -> None:
        execute_document_tool(editor, "deleteContent", {}, telemetry=telemetry)

        ((_, payload),) = telemetry.events
        assert payload["success"] is False
        assert payload["error_code"] == ErrorCode.NO_TARGET
        assert payload["severity"] == "info"

    def test_failure_log_level_follows_severity(self, editor: Editor, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="ghostwriter.ai.tools.base"):
            execute_document_tool(editor, "deleteContent", {})
            execute_document_tool(editor, "insertContent", {})

        levels = [record.levelno for record in caplog.records if record.name == "ghostwriter.ai.tools.base"]
        assert levels == [logging.INFO, logging.WARNING]

    def test_default_telemetry_uses_bus(self, editor: Editor) -> None:
        seen: list[dict] = []
        telemetry_bus.register_event_listener("tool.addComment", seen.append)
        try:
            execute_document_tool(editor, "addComment", {"comment": "Remark"})
        finally:
            telemetry_bus.unregister_event_listener("tool.addComment", seen.append)

        assert seen and seen[0]["event"] == "tool.addComment"

    def test_settings_control_scope_warnings(self, editor: Editor) -> None:
        settings = EngineSettings(scope_warnings_in_result=False)
        result = execute_document_tool(
            editor,
            "addCitation",
            {"paperId": "abc-123", "afterPhrase": "zebra quartz xylophone"},
            settings=settings,
        )

        assert result.success
        assert result.warnings == ()

    def test_not_found_preview_length_follows_settings(self, editor: Editor) -> None:
        settings = EngineSettings(not_found_preview_chars=5)
        result = execute_document_tool(
            editor, "deleteContent", {"searchPhrase": "zebra quartz xylophone"}, settings=settings
        )
        assert result.message == 'Could not find text: "zebra..."'

    def test_result_serialization(self, editor: Editor) -> None:
        result = execute_document_tool(editor, "deleteContent", {"searchPhrase": "many fields"})

        assert result.to_dict() == {
            "success": True,
            "message": 'Deleted "many fields..."',
            "affectedRange": {"from": 45, "to": 56},
        }
        assert result.affected_range == DocRange(45, 56)
