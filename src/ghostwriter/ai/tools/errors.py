"""Standardized error types for document edit tools.

Expected failures (missing arguments, unresolvable targets, collapsed ranges)
are raised as :class:`ToolError` subclasses and converted into failed
``ToolExecutionResult`` values at the dispatcher boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes used in tool responses."""

    # Target errors
    BLOCK_NOT_FOUND = "block_not_found"
    TEXT_NOT_FOUND = "text_not_found"
    SECTION_NOT_FOUND = "section_not_found"
    NO_TARGET = "no_target"

    # Range errors
    RANGE_COLLAPSED = "range_collapsed"
    INVALID_RANGE = "invalid_range"

    # Content errors
    CONTENT_REQUIRED = "content_required"
    INVALID_CONTENT = "invalid_content"

    # Dispatch errors
    UNKNOWN_TOOL = "unknown_tool"
    PREVIEW_UNSUPPORTED = "preview_unsupported"

    # General errors
    INTERNAL_ERROR = "internal_error"
    INVALID_PARAMETER = "invalid_parameter"
    MISSING_PARAMETER = "missing_parameter"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class ToolError(Exception):
    """Base exception class for all tool errors.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description, surfaced to the caller verbatim.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for JSON tool responses."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# -----------------------------------------------------------------------------
# Target Errors
# -----------------------------------------------------------------------------

@dataclass
class TargetNotFoundError(ToolError):
    """Raised when a block id, phrase or section cannot be located."""

    error_code: str = field(default=ErrorCode.TEXT_NOT_FOUND)
    message: str = field(default="Target not found")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Re-read the document structure and retry with a current blockId")

    severity: ClassVar[str] = "info"

    block_id: str | None = field(default=None)
    section: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.block_id is not None:
            result["blockId"] = self.block_id
        if self.section is not None:
            result["section"] = self.section
        return result


# -----------------------------------------------------------------------------
# Range Errors
# -----------------------------------------------------------------------------

@dataclass
class RangeCollapsedError(ToolError):
    """Raised when clamping would turn a non-empty range into an empty one."""

    error_code: str = field(default=ErrorCode.RANGE_COLLAPSED)
    message: str = field(default="Edit range falls outside the document")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="The document may have changed; locate the target again")

    requested: tuple[int, int] | None = field(default=None)
    doc_size: int | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.requested is not None:
            result["requested"] = {"from": self.requested[0], "to": self.requested[1]}
        if self.doc_size is not None:
            result["doc_size"] = self.doc_size
        return result


# -----------------------------------------------------------------------------
# Parameter Errors
# -----------------------------------------------------------------------------

@dataclass
class MissingParameterError(ToolError):
    """Error when a required parameter is missing."""

    error_code: str = field(default=ErrorCode.MISSING_PARAMETER)
    message: str = field(default="Required parameter is missing")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    parameter: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.parameter is not None:
            result["parameter"] = self.parameter
        return result


@dataclass
class InvalidParameterError(ToolError):
    """Error when a parameter value is invalid."""

    error_code: str = field(default=ErrorCode.INVALID_PARAMETER)
    message: str = field(default="Invalid parameter value")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    parameter: str | None = field(default=None)
    value: Any = field(default=None)
    expected: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.parameter is not None:
            result["parameter"] = self.parameter
        if self.expected is not None:
            result["expected"] = self.expected
        return result


@dataclass
class UnknownToolError(ToolError):
    """Error when an operation name is not part of the tool vocabulary."""

    error_code: str = field(default=ErrorCode.UNKNOWN_TOOL)
    message: str = field(default="Unknown tool")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    tool_name: str | None = field(default=None)

    def __post_init__(self) -> None:
        if self.tool_name is not None and self.message == "Unknown tool":
            self.message = f"Unknown tool: {self.tool_name}"
        super().__post_init__()


__all__ = [
    "ErrorCode",
    "ToolError",
    "TargetNotFoundError",
    "RangeCollapsedError",
    "MissingParameterError",
    "InvalidParameterError",
    "UnknownToolError",
]
