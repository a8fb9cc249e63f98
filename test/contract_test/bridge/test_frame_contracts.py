"""Wire contract of the bridge frames.

Pins the JSON shapes exchanged with the planning-agent service so a model
change cannot silently alter what goes over the socket.
"""

import json

import pytest

from devsquad_bridge.bridge.schemas import (
    ErrorFrame,
    RequestFrame,
    ResponseFrame,
    StreamFrame,
    decode_frame,
    encode_frame,
)

SERVICE_FRAMES = [
    ('{"type": "response", "id": "r1", "result": {"message": "hello"}}', ResponseFrame),
    ('{"type": "stream", "id": "r1", "result": {"token": "he"}}', StreamFrame),
    ('{"type": "error", "id": "r1", "error": {"code": "E", "message": "m"}}', ErrorFrame),
    ('{"type": "request", "id": "srv-1", "method": "ping", "params": {}}', RequestFrame),
]


@pytest.mark.parametrize("raw,frame_type", SERVICE_FRAMES)
def test_service_frames_decode_to_their_kind(raw: str, frame_type: type) -> None:
    frame = decode_frame(raw)

    assert type(frame) is frame_type
    assert frame.type == json.loads(raw)["type"]


@pytest.mark.parametrize("raw,frame_type", SERVICE_FRAMES)
def test_frames_keep_their_wire_shape(raw: str, frame_type: type) -> None:
    assert json.loads(encode_frame(decode_frame(raw))) == json.loads(raw)


def test_request_frame_has_exactly_the_documented_keys() -> None:
    payload = json.loads(encode_frame(RequestFrame(id="1700000000000-abc", method="queryTasks", params={"limit": 5})))

    assert set(payload) == {"type", "id", "method", "params"}
    assert payload["type"] == "request"
    assert payload["params"] == {"limit": 5}


def test_request_params_default_to_empty_object() -> None:
    payload = json.loads(encode_frame(RequestFrame(id="r1", method="queryTasks")))

    assert payload["params"] == {}
