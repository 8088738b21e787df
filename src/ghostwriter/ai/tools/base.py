"""Base classes for document edit tools.

Every tool receives a loosely typed argument bag from the assistant, turns it
into its typed argument variant, and returns exactly one
:class:`ToolExecutionResult`. Expected failures are raised as
:class:`~ghostwriter.ai.tools.errors.ToolError`; :meth:`EditTool.run` turns
them, and any unexpected exception, into failed results.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, Mapping, Protocol, TypeVar

from ...documents.ranges import DocRange
from ...editor.editor import Dispatch, Editor
from ...services.settings import EngineSettings
from ..locate.fuzzy import FuzzyTextLocator, TextLocator
from .applier import Mutation, apply_mutation
from .args import ToolArgs
from .citations import PaperContext
from .content import PreparedContent, prepare_content
from .errors import ErrorCode, ToolError
from .resolver import Target, TargetResolver

LOGGER = logging.getLogger(__name__)

ArgsT = TypeVar("ArgsT", bound=ToolArgs)

_SEVERITY_LEVELS = {"info": logging.INFO, "warning": logging.WARNING, "error": logging.WARNING}


class TelemetryEmitter(Protocol):
    """Protocol for emitting telemetry events."""

    def emit(self, event_name: str, payload: Mapping[str, Any]) -> None:
        ...


class Notifier(Protocol):
    """Surface short user-facing notices (comments, warnings)."""

    def notify(self, level: str, message: str) -> None:
        ...


class LoggingNotifier:
    """Default notifier writing notices to the module logger."""

    _LEVELS: ClassVar[dict[str, int]] = {
        "info": logging.INFO,
        "success": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def notify(self, level: str, message: str) -> None:
        LOGGER.log(self._LEVELS.get(level, logging.INFO), "[%s] %s", level, message)


@dataclass(slots=True)
class ToolExecutionResult:
    """The single value an edit tool returns to its caller.

    Attributes:
        success: Whether the edit was applied.
        message: Human-readable outcome.
        affected_range: Document range that was changed or targeted.
        block_id: Block the edit was anchored to, when known.
        warnings: Non-fatal observations (e.g. a match outside the requested scope).
    """

    success: bool
    message: str
    affected_range: DocRange | None = None
    block_id: str | None = None
    warnings: tuple[str, ...] = ()

    @classmethod
    def failure(cls, message: str) -> "ToolExecutionResult":
        return cls(success=False, message=message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys the assistant layer expects."""
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.affected_range is not None:
            result["affectedRange"] = self.affected_range.to_dict()
        if self.block_id is not None:
            result["blockId"] = self.block_id
        if self.warnings:
            result["warnings"] = list(self.warnings)
        return result


@dataclass(slots=True)
class ToolContext:
    """Runtime context for one tool invocation.

    Attributes:
        editor: The live editor whose document is edited.
        dispatch: Dispatcher used for every transaction of this invocation.
        papers: Paper registry for citation lookup.
        locator: Phrase and section search service.
        settings: Engine tunables.
        notifier: Sink for user-facing notices.
        telemetry: Optional telemetry emitter.
        request_id: Identifier for tracing.
    """

    editor: Editor
    dispatch: Dispatch
    papers: PaperContext = field(default_factory=PaperContext)
    locator: TextLocator = field(default_factory=FuzzyTextLocator)
    settings: EngineSettings = field(default_factory=EngineSettings)
    notifier: Notifier = field(default_factory=LoggingNotifier)
    telemetry: TelemetryEmitter | None = None
    request_id: str | None = None
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        LOGGER.warning(message)
        if self.settings.scope_warnings_in_result:
            self.warnings.append(message)

    def resolver(self) -> TargetResolver:
        """Resolver bound to the editor's current document."""

        return TargetResolver(self.editor.doc, self.locator, section_similarity=self.settings.section_min_similarity)

    def require_target(
        self,
        *,
        block_id: str | None = None,
        search_phrase: str | None = None,
        section: str | None = None,
    ) -> Target:
        return self.resolver().require(
            block_id=block_id,
            search_phrase=search_phrase,
            section=section,
            preview_chars=self.settings.not_found_preview_chars,
        )

    def prepare(self, raw: str) -> PreparedContent:
        return prepare_content(raw, self.papers)

    def apply(self, mutation: Mutation) -> DocRange:
        return apply_mutation(self.editor, mutation, self.dispatch)

    def not_found_preview(self, phrase: str) -> str:
        return phrase[: self.settings.not_found_preview_chars]


class EditTool(ABC, Generic[ArgsT]):
    """Abstract base class for the named edit operations.

    Subclasses set ``name`` and ``args_type`` and implement ``execute()``.
    """

    name: ClassVar[str] = ""
    args_type: ClassVar[type[ToolArgs]]

    def run(self, context: ToolContext, params: Mapping[str, Any] | None = None) -> ToolExecutionResult:
        """Validate arguments, execute, and convert failures into results."""
        start_time = time.perf_counter()
        try:
            args = self.args_type.from_mapping(params or {})
            result = self.execute(context, args)  # type: ignore[arg-type]
        except ToolError as exc:
            LOGGER.log(_SEVERITY_LEVELS.get(exc.severity, logging.WARNING), "Tool %s failed: %s", self.name, exc)
            result = ToolExecutionResult.failure(exc.message)
            self._emit_telemetry(context, result, start_time, exc.error_code, exc.severity)
            return result
        except Exception as exc:
            LOGGER.exception("Tool %s failed unexpectedly", self.name)
            result = ToolExecutionResult.failure(str(exc) or exc.__class__.__name__)
            self._emit_telemetry(context, result, start_time, ErrorCode.INTERNAL_ERROR, "error")
            return result

        if context.warnings and not result.warnings:
            result.warnings = tuple(context.warnings)
        self._emit_telemetry(context, result, start_time, None)
        return result

    @abstractmethod
    def execute(self, context: ToolContext, args: ArgsT) -> ToolExecutionResult:
        """Perform the edit.

        Raises:
            ToolError: For expected failures; the message is returned verbatim.
        """
        ...

    def _emit_telemetry(
        self,
        context: ToolContext,
        result: ToolExecutionResult,
        start_time: float,
        error_code: str | None,
        severity: str | None = None,
    ) -> None:
        if context.telemetry is None:
            return
        payload: dict[str, Any] = {
            "tool": self.name,
            "success": result.success,
            "duration_ms": round((time.perf_counter() - start_time) * 1000.0, 3),
        }
        if context.request_id:
            payload["request_id"] = context.request_id
        if error_code:
            payload["error_code"] = error_code
            payload["severity"] = severity or "error"
        try:
            context.telemetry.emit(f"tool.{self.name}", payload)
        except Exception:
            LOGGER.debug("Failed to emit telemetry for tool %s", self.name, exc_info=True)


__all__ = [
    "EditTool",
    "LoggingNotifier",
    "Notifier",
    "TelemetryEmitter",
    "ToolContext",
    "ToolExecutionResult",
]
