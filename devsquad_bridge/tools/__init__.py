"""Tool catalogue and dispatcher exposed on top of the bridge client."""

from .definitions import (
    TOOL_CATALOGUE,
    AnalyzeFileArgs,
    AnalyzeProjectArgs,
    ChatArgs,
    ChatContext,
    CreateTaskArgs,
    QueryTasksArgs,
    ToolDefinition,
)
from .dispatcher import ToolDispatcher
from .results import ToolError, ToolResult

__all__ = [
    "TOOL_CATALOGUE",
    "AnalyzeFileArgs",
    "AnalyzeProjectArgs",
    "ChatArgs",
    "ChatContext",
    "CreateTaskArgs",
    "QueryTasksArgs",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolError",
    "ToolResult",
]
