"""CLI helper that applies a list of edit tool calls to a JSON document.

Example::

    python -m ghostwriter.scripts.apply_tools doc.json calls.json --papers papers.json

``calls.json`` holds a list of ``{"tool": <name>, "args": {...}}`` objects
(``name`` / ``arguments`` are accepted as aliases). Results are printed to
stdout as JSON; the edited document is written with ``--output``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..ai.tools.citations import PaperContext
from ..ai.tools.dispatcher import available_tools, execute_document_tool
from ..editor.blocks import document_structure
from ..editor.editor import Editor
from ..services.settings import load_settings
from ..utils.logging import configure_from_settings

LOGGER = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Apply document edit tool calls to a TipTap JSON document.")
    parser.add_argument("document", type=Path, help="JSON file containing the document (a 'doc' node).")
    parser.add_argument("calls", type=Path, help="JSON file containing a list of tool calls.")
    parser.add_argument("--papers", type=Path, help="Optional JSON file with a list of paper records.")
    parser.add_argument("--settings", type=Path, help="Optional JSON settings file.")
    parser.add_argument("--output", type=Path, help="Write the edited document to this file.")
    parser.add_argument("--log-level", help="Override the configured log level (e.g. DEBUG).")
    parser.add_argument(
        "--structure",
        action="store_true",
        help="Print the block structure of the edited document to stderr.",
    )
    args = parser.parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = load_settings(args.settings, overrides=overrides)
    configure_from_settings(settings, log_to_file=False)

    try:
        document = _load_json(args.document)
        calls = _load_calls(args.calls)
        papers = PaperContext.of(_load_json(args.papers)) if args.papers else None
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    editor = Editor(document, assign_ids=settings.assign_block_ids)
    results: list[dict[str, Any]] = []
    for index, (tool_name, tool_args) in enumerate(calls):
        result = execute_document_tool(editor, tool_name, tool_args, papers=papers, settings=settings)
        LOGGER.info("Call %d %s -> %s", index, tool_name, result.message)
        results.append({"tool": tool_name, **result.to_dict()})

    print(json.dumps({"results": results}, indent=2))
    if args.output:
        args.output.write_text(json.dumps(editor.get_json(), indent=2), encoding="utf-8")
    if args.structure:
        print(document_structure(editor.doc), file=sys.stderr)
    return 0 if all(item["success"] for item in results) else 1


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc


def _load_calls(path: Path) -> list[tuple[str, Mapping[str, Any]]]:
    payload = _load_json(path)
    if isinstance(payload, Mapping):
        payload = [payload]
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a list of tool calls")
    calls: list[tuple[str, Mapping[str, Any]]] = []
    for entry in payload:
        if not isinstance(entry, Mapping):
            raise ValueError(f"Tool call entries must be objects, got {type(entry).__name__}")
        name = entry.get("tool") or entry.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"Tool call is missing a name; known tools: {', '.join(available_tools())}")
        tool_args = entry.get("args", entry.get("arguments", {}))
        if isinstance(tool_args, str):
            tool_args = json.loads(tool_args)
        calls.append((name, tool_args or {}))
    return calls


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
