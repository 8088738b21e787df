"""Tests for the apply_tools command-line helper."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from ghostwriter.documents.model import Node
from ghostwriter.scripts.apply_tools import main
from helpers import sample_doc


@pytest.fixture
def document_file(tmp_path: Path) -> Path:
    path = tmp_path / "doc.json"
    path.write_text(json.dumps(sample_doc().to_dict()), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _cli_environment(restore_logging, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("GHOSTWRITER_LOG_LEVEL", "GHOSTWRITER_ASSIGN_BLOCK_IDS", "GHOSTWRITER_PREVIEW_CHARS"):
        monkeypatch.delenv(name, raising=False)


def write_calls(tmp_path: Path, calls: Any) -> Path:
    path = tmp_path / "calls.json"
    path.write_text(json.dumps(calls), encoding="utf-8")
    return path


def test_applies_calls_and_writes_output(
    tmp_path: Path, document_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    calls = write_calls(
        tmp_path,
        [
            {"tool": "insertContent", "args": {"content": "Closing remarks.", "location": "end"}},
            {"tool": "deleteContent", "args": {"searchPhrase": "many fields"}},
        ],
    )
    output = tmp_path / "out.json"

    exit_code = main([str(document_file), str(calls), "--output", str(output)])

    assert exit_code == 0
    results = json.loads(capsys.readouterr().out)["results"]
    assert [item["tool"] for item in results] == ["insertContent", "deleteContent"]
    assert results[0]["message"] == "Appended to document"
    assert results[1]["affectedRange"] == {"from": 45, "to": 56}

    edited = Node.from_dict(json.loads(output.read_text(encoding="utf-8")))
    assert edited.content[-1].text_content == "Closing remarks."
    assert edited.content[1].text_content == "Deep learning has transformed ."


def test_failed_call_sets_exit_code(tmp_path: Path, document_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    calls = write_calls(tmp_path, [{"tool": "deleteContent", "args": {"searchPhrase": "zebra quartz xylophone"}}])

    assert main([str(document_file), str(calls)]) == 1
    (result,) = json.loads(capsys.readouterr().out)["results"]
    assert result["success"] is False
    assert result["message"].startswith("Could not find text")


def test_single_call_with_aliases(tmp_path: Path, document_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    calls = write_calls(
        tmp_path,
        {"name": "highlightText", "arguments": json.dumps({"searchPhrase": "Deep learning"})},
    )

    assert main([str(document_file), str(calls)]) == 0
    (result,) = json.loads(capsys.readouterr().out)["results"]
    assert result["tool"] == "highlightText"
    assert result["success"] is True


def test_papers_file(tmp_path: Path, document_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    papers = tmp_path / "papers.json"
    papers.write_text(json.dumps([{"id": "abc-123", "authors": ["A. Smith"], "year": 2020}]), encoding="utf-8")
    calls = write_calls(tmp_path, [{"tool": "addCitation", "args": {"paperId": "abc-123", "afterPhrase": "many fields"}}])

    assert main([str(document_file), str(calls), "--papers", str(papers)]) == 0
    (result,) = json.loads(capsys.readouterr().out)["results"]
    assert result["message"] == "Citation added"


def test_structure_goes_to_stderr(tmp_path: Path, document_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    calls = write_calls(tmp_path, [])

    assert main([str(document_file), str(calls), "--structure"]) == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out) == {"results": []}
    assert "Introduction" in captured.err


@pytest.mark.parametrize(
    "calls",
    [
        [{"args": {"content": "x"}}],
        [["insertContent", {}]],
        "not a list",
    ],
)
def test_invalid_calls_file(
    tmp_path: Path, document_file: Path, capsys: pytest.CaptureFixture[str], calls: Any
) -> None:
    path = write_calls(tmp_path, calls)

    assert main([str(document_file), str(path)]) == 2
    assert capsys.readouterr().err.startswith("error:")


def test_invalid_json(tmp_path: Path, document_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "calls.json"
    path.write_text("{broken", encoding="utf-8")

    assert main([str(document_file), str(path)]) == 2
    assert "is not valid JSON" in capsys.readouterr().err


def test_missing_document(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    calls = write_calls(tmp_path, [])

    assert main([str(tmp_path / "absent.json"), str(calls)]) == 2
    assert capsys.readouterr().err.startswith("error:")
