"""Shared pytest fixtures."""

from __future__ import annotations

import logging

import pytest

from ghostwriter.ai.tools.citations import Paper, PaperContext, set_default_papers
from ghostwriter.editor.editor import Editor
from helpers import RecordingNotifier, RecordingTelemetry, TransactionLog, sample_doc


@pytest.fixture
def editor() -> Editor:
    return Editor(sample_doc())


@pytest.fixture
def transactions(editor: Editor) -> TransactionLog:
    log = TransactionLog()
    editor.add_listener(log)
    return log


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def telemetry() -> RecordingTelemetry:
    return RecordingTelemetry()


@pytest.fixture
def papers() -> PaperContext:
    return PaperContext.of(
        [
            Paper(id="abc-123", authors=("A. Smith",), title="Learning things", year=2020),
            {"id": "def-456", "authors": "B. Jones", "year": 2019, "journal": "Nature"},
        ]
    )


@pytest.fixture(autouse=True)
def _reset_default_papers():
    yield
    set_default_papers(None)


@pytest.fixture
def restore_logging(monkeypatch: pytest.MonkeyPatch):
    """Undo root logger changes made by ``setup_logging``."""

    from ghostwriter.utils import logging as log_utils

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(log_utils, "_configured", False)
    monkeypatch.setattr(log_utils, "_log_path", None)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.captureWarnings(False)
