from .base import BaseSchema, WireSchema
from .frames import (
    ErrorFrame,
    ErrorPayload,
    Frame,
    RequestFrame,
    ResponseFrame,
    StreamFrame,
    StreamToken,
    decode_frame,
    encode_frame,
)

__all__ = [
    "BaseSchema",
    "WireSchema",
    "ErrorFrame",
    "ErrorPayload",
    "Frame",
    "RequestFrame",
    "ResponseFrame",
    "StreamFrame",
    "StreamToken",
    "decode_frame",
    "encode_frame",
]
