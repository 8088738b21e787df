"""Named edit operations applied to the live document."""

from .base import ToolExecutionResult
from .citations import Paper, PaperContext, default_paper_context, set_default_papers
from .dispatcher import available_tools, execute_document_tool
from .edit_calculator import CalculatedEdit, calculate_edit

__all__ = [
    "CalculatedEdit",
    "Paper",
    "PaperContext",
    "ToolExecutionResult",
    "available_tools",
    "calculate_edit",
    "default_paper_context",
    "execute_document_tool",
    "set_default_papers",
]
