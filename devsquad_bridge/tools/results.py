"""Tool invocation envelopes.

Every tool invocation ends in a `ToolResult`: ``{"success": true, "data": ...}``
on success or ``{"success": false, "error": {"code", "message", "details"}}``
on any failure.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from ..bridge.schemas.base import BaseSchema

VALIDATION_ERROR = "VALIDATION_ERROR"
UNKNOWN_TOOL = "UNKNOWN_TOOL"
NOT_CONNECTED = "NOT_CONNECTED"
TIMEOUT = "TIMEOUT"
REMOTE_ERROR = "REMOTE_ERROR"
BRIDGE_ERROR = "BRIDGE_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


class ToolError(BaseSchema):
    code: str = Field(..., description="Stable error code", examples=[VALIDATION_ERROR, REMOTE_ERROR])
    message: str = Field(..., description="Human-readable error description")
    details: Dict[str, Any] = Field(default_factory=dict, description="Structured context for the error")


class ToolResult(BaseSchema):
    success: bool = Field(..., description="Whether the invocation succeeded")
    data: Any = Field(None, description="Normalised result, present on success")
    error: Optional[ToolError] = Field(None, description="Error, present on failure")

    @classmethod
    def ok(cls, data: Any) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(success=False, error=ToolError(code=code, message=message, details=details or {}))

    def to_dict(self) -> Dict[str, Any]:
        """Envelope as plain JSON-ready data."""
        if self.success:
            return {"success": True, "data": self.data}
        assert self.error is not None
        return {"success": False, "error": self.error.model_dump(by_alias=True)}
