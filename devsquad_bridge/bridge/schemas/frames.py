"""Bridge wire frames.

One JSON object per WebSocket text message, discriminated on ``type``::

    {"type": "request",  "id": "...", "method": "...", "params": {...}}
    {"type": "response", "id": "...", "result": {...}}
    {"type": "stream",   "id": "...", "result": {"token": "...", ...}}
    {"type": "error",    "id": "...", "error": {"code": "...", "message": "..."}}

`decode_frame` and `encode_frame` are the only places raw payloads are
touched; everything above the transport works with the typed models.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator

from ..errors import FrameDecodeError
from .base import WireSchema

logger = logging.getLogger(__name__)


class StreamToken(WireSchema):
    """One incremental unit of a streamed result. Extra keys are preserved."""

    model_config = ConfigDict(extra="allow")

    token: str = Field(default="", description="Text chunk emitted by the planning agent.")


class ErrorPayload(WireSchema):
    """Error object carried by `error` frames.

    Accepts whatever shape the service sends: a bare string (or any other
    non-object) becomes the message, and null or non-string fields are
    coerced so a remote failure is always delivered to its caller.
    """

    model_config = ConfigDict(extra="allow")

    code: str = Field(default="REMOTE_ERROR", description="Remote error code.")
    message: str = Field(default="", description="Remote error message.")

    @model_validator(mode="before")
    @classmethod
    def _wrap_non_object(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return data
        return {"message": data}

    @field_validator("code", mode="before")
    @classmethod
    def _code_as_str(cls, v: Any) -> Any:
        if v is None or v == "":
            return "REMOTE_ERROR"
        return v if isinstance(v, str) else str(v)

    @field_validator("message", mode="before")
    @classmethod
    def _message_as_str(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @classmethod
    def coerce(cls, data: Any) -> "ErrorPayload":
        """Validate `data`, falling back to a bare payload if it still does not fit."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.debug("Unreadable remote error payload (%s error(s)); using defaults", e.error_count())
            return cls()

    def extra_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class RequestFrame(WireSchema):
    type: Literal["request"] = "request"
    id: str = Field(..., min_length=1, description="Correlation identifier.")
    method: str = Field(..., min_length=1, description="Remote method name.")
    params: Dict[str, Any] = Field(default_factory=dict, description="Method parameters.")


class ResponseFrame(WireSchema):
    type: Literal["response"] = "response"
    id: Optional[str] = None
    result: Any = None

    def fault(self) -> Optional[ErrorPayload]:
        """Return the error embedded in the result, if the service signalled one that way."""
        if isinstance(self.result, dict) and isinstance(self.result.get("error"), dict):
            return ErrorPayload.coerce(self.result["error"])
        return None


class StreamFrame(WireSchema):
    type: Literal["stream"] = "stream"
    id: Optional[str] = None
    result: StreamToken = Field(default_factory=StreamToken)


class ErrorFrame(WireSchema):
    type: Literal["error"] = "error"
    id: Optional[str] = None
    error: ErrorPayload = Field(default_factory=ErrorPayload)


Frame = Annotated[
    Union[RequestFrame, ResponseFrame, StreamFrame, ErrorFrame],
    Field(discriminator="type"),
]

_FRAME_ADAPTER: TypeAdapter[Any] = TypeAdapter(Frame)


def decode_frame(raw: Union[str, bytes]) -> Union[RequestFrame, ResponseFrame, StreamFrame, ErrorFrame]:
    """Parse one raw WebSocket message into a typed frame.

    Raises:
        FrameDecodeError: If the payload is not JSON or does not match any frame kind.
    """
    try:
        return _FRAME_ADAPTER.validate_json(raw)
    except ValidationError as e:
        preview = raw[:200].decode("utf-8", "replace") if isinstance(raw, bytes) else str(raw)[:200]
        raise FrameDecodeError(
            f"Malformed bridge frame: {e.error_count()} validation error(s)",
            details={"preview": preview},
        ) from e


def encode_frame(frame: Union[RequestFrame, ResponseFrame, StreamFrame, ErrorFrame]) -> str:
    """Serialise a frame to its wire representation."""
    return frame.model_dump_json(by_alias=True, exclude_none=True)
