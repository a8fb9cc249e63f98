"""Tool definitions for the planning-agent bridge.

This module declares the fixed tool catalogue: one strict argument model per
tool, plus a `ToolDefinition` record that carries the tool's description,
streaming capability, the ambient context keys it needs, and how its raw
bridge result is normalised.

The method name sent over the bridge is the tool name.
"""

from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

from ..bridge.schemas.base import BaseSchema

AnalysisType = Literal["comprehensive", "security", "performance", "quality", "documentation"]
AnalysisDepth = Literal["quick", "standard", "deep"]
TaskPriority = Literal["low", "medium", "high"]
TaskStatus = Literal["pending", "in-progress", "completed", "cancelled"]

AMBIENT_WORKSPACE_ROOT = "workspaceRoot"
AMBIENT_MAX_TOKENS = "maxTokens"
AMBIENT_AGENT_ID = "agentId"

Normalizer = Callable[[Any, Dict[str, Any]], Dict[str, Any]]

QUERY_FILTER_KEYS = ("status", "assignee", "projectId", "tags", "limit")


# =====================================================================
# Argument models
# =====================================================================


class CurrentFile(BaseSchema):
    """File open in the editor when the tool was invoked."""

    path: StrictStr = Field(..., description="Path of the file")
    content: Optional[StrictStr] = Field(None, description="File content")
    language: Optional[StrictStr] = Field(None, description="Language identifier")


class ProjectContext(BaseSchema):
    name: Optional[StrictStr] = Field(None, description="Project name")
    description: Optional[StrictStr] = Field(None, description="Project description")
    technologies: Optional[List[StrictStr]] = Field(None, description="Technologies used by the project")


class ChatContext(BaseSchema):
    """Editor context attached to a chat message."""

    current_file: Optional[CurrentFile] = Field(None, description="File currently open in the editor")
    selected_text: Optional[StrictStr] = Field(None, description="Text selected in the editor")
    workspace_root: Optional[StrictStr] = Field(None, description="Root directory of the workspace")
    project_context: Optional[ProjectContext] = Field(None, description="Project metadata")


class ChatArgs(BaseSchema):
    message: StrictStr = Field(..., description="Message for the planning agent")
    context: Optional[ChatContext] = Field(None, description="Editor context for the message")
    streaming: Optional[StrictBool] = Field(
        None,
        description="Stream the reply token by token; defaults to the configured streaming flag",
    )


class AnalyzeFileArgs(BaseSchema):
    file_path: StrictStr = Field(..., description="Path of the file to analyse")
    content: Optional[StrictStr] = Field(None, description="File content, when not readable by the agent")
    analysis_type: AnalysisType = Field(default="comprehensive", description="Focus of the analysis")
    context: Optional[Dict[str, Any]] = Field(None, description="Free-form context for the analysis")


class AnalyzeProjectArgs(BaseSchema):
    project_path: StrictStr = Field(..., description="Path to the project root directory")
    analysis_depth: AnalysisDepth = Field(default="standard", description="How deep the analysis goes")
    focus_areas: Optional[List[StrictStr]] = Field(None, description="Areas to concentrate on")
    exclude_patterns: Optional[List[StrictStr]] = Field(None, description="Path patterns to skip")


class CreateTaskArgs(BaseSchema):
    title: StrictStr = Field(..., description="Task title")
    description: StrictStr = Field(..., description="Task description (the agent enhances it)")
    priority: TaskPriority = Field(default="medium", description="Priority level of the task")
    assignee: Optional[StrictStr] = Field(None, description="Username of the assignee")
    due_date: Optional[StrictStr] = Field(None, description="Due date in ISO format", examples=["2026-11-01"])
    tags: Optional[List[StrictStr]] = Field(None, description="Tags to categorise the task")


class QueryTasksArgs(BaseSchema):
    status: Optional[TaskStatus] = Field(None, description="Filter tasks by status")
    assignee: Optional[StrictStr] = Field(None, description="Filter tasks by assignee")
    project_id: Optional[StrictStr] = Field(None, description="Project to query tasks from")
    tags: Optional[List[StrictStr]] = Field(None, description="Filter tasks by tags")
    limit: StrictInt = Field(default=50, ge=1, description="Maximum number of tasks to return")


# =====================================================================
# Result normalisers
# =====================================================================


def wrap_result(result: Any, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Pass dict results through; wrap anything else as ``{"result": value}``."""
    if isinstance(result, dict):
        return result
    return {"result": result}


def normalize_chat(result: Any, params: Dict[str, Any]) -> Dict[str, Any]:
    content = ""
    if isinstance(result, dict):
        content = result.get("content") or result.get("message") or ""
    elif result is not None:
        content = str(result)
    return {"content": content, "tokens": [], "streamed": False, "response": result}


def normalize_created_task(result: Any, params: Dict[str, Any]) -> Dict[str, Any]:
    response = result if isinstance(result, dict) else {}
    return {
        "task": response.get("task") or result,
        "suggestions": response.get("suggestions") or [],
        "relatedTasks": response.get("relatedTasks") or [],
        "estimatedComplexity": response.get("complexity") or "medium",
        "breakdownSuggestion": response.get("breakdown"),
    }


def normalize_task_query(result: Any, params: Dict[str, Any]) -> Dict[str, Any]:
    if isinstance(result, list):
        tasks, total = result, len(result)
    elif isinstance(result, dict):
        tasks = result.get("tasks") or []
        total = result.get("totalCount", result.get("total", len(tasks)))
    else:
        tasks, total = [], 0
    filters = {k: v for k, v in params.items() if k in QUERY_FILTER_KEYS}
    return {"tasks": tasks, "totalCount": total, "filters": filters}


# =====================================================================
# Tool definition
# =====================================================================


class ToolDefinition(BaseModel):
    """Pydantic model for one entry of the tool catalogue.

    The argument model is the single source of truth: the JSON schema shown to
    hosts and the validation applied before dispatch both come from it.
    """

    name: str = Field(..., description="Tool name, also the bridge method name")
    description: str = Field(..., description="Human-readable description of what the tool does")
    input_schema: Type[BaseModel] = Field(..., description="Pydantic model class for argument validation")
    streaming: bool = Field(default=False, description="Whether the tool can stream its result")
    ambient: Tuple[str, ...] = Field(default=(), description="Ambient context keys added before dispatch")
    normalizer: Optional[Normalizer] = Field(default=None, description="Shapes the raw bridge result")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        """Tool descriptor as published to hosts (name, description, inputSchema)."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema.model_json_schema(by_alias=True),
        }

    def required_arguments(self) -> List[str]:
        return list(self.input_schema.model_json_schema(by_alias=True).get("required", []))

    def normalize(self, result: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        if self.normalizer is None:
            return wrap_result(result, params)
        return self.normalizer(result, params)


CHAT_TOOL = ToolDefinition(
    name="chat",
    description="Chat with the planning agent; replies can stream token by token.",
    input_schema=ChatArgs,
    streaming=True,
    ambient=(AMBIENT_WORKSPACE_ROOT, AMBIENT_MAX_TOKENS, AMBIENT_AGENT_ID),
    normalizer=normalize_chat,
)

ANALYZE_FILE_TOOL = ToolDefinition(
    name="analyzeFile",
    description="Analyse a single file and return insights, suggestions and potential improvements.",
    input_schema=AnalyzeFileArgs,
    ambient=(AMBIENT_WORKSPACE_ROOT, AMBIENT_AGENT_ID),
)

ANALYZE_PROJECT_TOOL = ToolDefinition(
    name="analyzeProject",
    description="Analyse a project's structure, architecture and dependencies.",
    input_schema=AnalyzeProjectArgs,
    ambient=(AMBIENT_WORKSPACE_ROOT, AMBIENT_AGENT_ID),
)

CREATE_TASK_TOOL = ToolDefinition(
    name="createTask",
    description="Create a task with an agent-enhanced description and suggestions.",
    input_schema=CreateTaskArgs,
    ambient=(AMBIENT_WORKSPACE_ROOT, AMBIENT_AGENT_ID),
    normalizer=normalize_created_task,
)

QUERY_TASKS_TOOL = ToolDefinition(
    name="queryTasks",
    description="Query and filter tasks by status, assignee, project or tags.",
    input_schema=QueryTasksArgs,
    ambient=(AMBIENT_AGENT_ID,),
    normalizer=normalize_task_query,
)

TOOL_CATALOGUE: Tuple[ToolDefinition, ...] = (
    CHAT_TOOL,
    ANALYZE_FILE_TOOL,
    ANALYZE_PROJECT_TOOL,
    CREATE_TASK_TOOL,
    QUERY_TASKS_TOOL,
)
