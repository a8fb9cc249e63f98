import asyncio
import json
import logging
from typing import Any, List

import pytest

from devsquad_bridge.bridge.errors import NotConnectedError, TransportError
from devsquad_bridge.bridge.events import BridgeEvent
from devsquad_bridge.bridge.schemas import RequestFrame, ResponseFrame
from devsquad_bridge.bridge.transport import SessionState, TransportSession, WebSocketSession


def _record(session: WebSocketSession) -> List[Any]:
    events: List[Any] = []
    session.on(BridgeEvent.CONNECTED, lambda: events.append("connected"))
    session.on(BridgeEvent.DISCONNECTED, lambda: events.append("disconnected"))
    session.on(BridgeEvent.ERROR, lambda e: events.append(("error", e)))
    session.on(BridgeEvent.MESSAGE, lambda f: events.append(("message", f)))
    return events


def test_session_conforms_to_protocol() -> None:
    assert isinstance(WebSocketSession("ws://localhost:1"), TransportSession)


@pytest.mark.asyncio
async def test_connect_sends_handshake_headers(settings, connector) -> None:
    session = WebSocketSession.from_settings(settings, connector=connector)
    events = _record(session)

    await session.connect()

    url, kwargs = connector.calls[0]
    assert url == "ws://mock-bridge:8765"
    assert kwargs["additional_headers"] == {
        "Authorization": "Bearer test-key",
        "X-Client-Type": "cursor-mcp",
        "X-Client-Version": "2.1.0",
    }
    assert session.state is SessionState.CONNECTED
    assert session.is_connected
    assert events == ["connected"]
    await session.close()


@pytest.mark.asyncio
async def test_connect_is_idempotent_and_shared(connector) -> None:
    session = WebSocketSession("ws://mock", connector=connector)
    events = _record(session)

    await asyncio.gather(session.connect(), session.connect())
    await session.connect()

    assert len(connector.calls) == 1
    assert events == ["connected"]
    await session.close()


@pytest.mark.asyncio
async def test_handshake_failure_raises_transport_error_and_emits_error(connector) -> None:
    connector.fail_times = 1
    session = WebSocketSession("ws://mock", connector=connector)
    events = _record(session)

    with pytest.raises(TransportError) as exc_info:
        await session.connect()

    assert isinstance(exc_info.value.__cause__, OSError)
    assert session.state is SessionState.DISCONNECTED
    assert events == [("error", exc_info.value)]


@pytest.mark.asyncio
async def test_send_without_connection_raises(connector) -> None:
    session = WebSocketSession("ws://mock", connector=connector)

    with pytest.raises(NotConnectedError):
        await session.send(RequestFrame(id="r1", method="chat"))


@pytest.mark.asyncio
async def test_send_writes_one_json_message(connector) -> None:
    session = WebSocketSession("ws://mock", connector=connector)
    await session.connect()

    await session.send(RequestFrame(id="r1", method="chat", params={"message": "hi"}))

    assert json.loads(connector.last.sent[0]) == {
        "type": "request",
        "id": "r1",
        "method": "chat",
        "params": {"message": "hi"},
    }
    await session.close()


@pytest.mark.asyncio
async def test_inbound_frames_are_emitted_as_messages(connector, eventually) -> None:
    session = WebSocketSession("ws://mock", connector=connector)
    events = _record(session)
    await session.connect()

    connector.last.push({"type": "response", "id": "r1", "result": {"ok": True}})
    await eventually(lambda: len(events) == 2)

    kind, frame = events[1]
    assert kind == "message"
    assert isinstance(frame, ResponseFrame)
    assert frame.result == {"ok": True}
    await session.close()


@pytest.mark.asyncio
async def test_malformed_frame_is_logged_and_dropped(connector, eventually, caplog) -> None:
    session = WebSocketSession("ws://mock", connector=connector)
    events = _record(session)
    await session.connect()

    with caplog.at_level(logging.WARNING, logger="devsquad_bridge.bridge.transport.websocket"):
        connector.last.push("{not json")
        connector.last.push({"type": "response", "id": "r2", "result": None})
        await eventually(lambda: len(events) == 2)

    assert [e[0] for e in events[1:]] == ["message"]
    assert "Dropping malformed bridge frame" in caplog.text
    await session.close()


@pytest.mark.asyncio
async def test_abnormal_close_emits_disconnected_once(connector, eventually) -> None:
    session = WebSocketSession("ws://mock", connector=connector)
    events = _record(session)
    await session.connect()

    connector.last.drop()
    await eventually(lambda: "disconnected" in events)

    assert events == ["connected", "disconnected"]
    assert session.state is SessionState.DISCONNECTED
    with pytest.raises(NotConnectedError):
        await session.send(RequestFrame(id="r1", method="chat"))


@pytest.mark.asyncio
async def test_close_stops_read_loop_and_emits_disconnected(connector) -> None:
    session = WebSocketSession("ws://mock", connector=connector)
    events = _record(session)
    await session.connect()
    conn = connector.last

    await session.close()
    await session.close()

    assert conn.closed
    assert events == ["connected", "disconnected"]
    assert not session.is_connected


@pytest.mark.asyncio
async def test_listener_failure_does_not_break_read_loop(connector, eventually) -> None:
    session = WebSocketSession("ws://mock", connector=connector)
    received: List[Any] = []

    def flaky(frame: Any) -> None:
        received.append(frame.id)
        if frame.id == "r1":
            raise RuntimeError("listener bug")

    session.on(BridgeEvent.MESSAGE, flaky)
    await session.connect()

    connector.last.push({"type": "response", "id": "r1", "result": 1})
    connector.last.push({"type": "response", "id": "r2", "result": 2})
    await eventually(lambda: len(received) == 2)

    assert received == ["r1", "r2"]
    assert session.is_connected
    await session.close()


@pytest.mark.asyncio
async def test_close_during_handshake_discards_the_new_socket(gated_connector, eventually) -> None:
    session = WebSocketSession("ws://mock", connector=gated_connector)
    events = _record(session)
    connecting = asyncio.create_task(session.connect())
    await eventually(lambda: gated_connector.waiting == 1)

    await session.close()
    gated_connector.gate.set()
    await connecting

    assert gated_connector.last.closed
    assert not session.is_connected
    assert session.state is SessionState.DISCONNECTED
    assert events == []

    await session.connect()
    assert session.is_connected
    assert len(gated_connector.connections) == 2
    await session.close()


@pytest.mark.asyncio
async def test_queued_connect_is_abandoned_after_close(gated_connector, eventually) -> None:
    session = WebSocketSession("ws://mock", connector=gated_connector)
    first = asyncio.create_task(session.connect())
    second = asyncio.create_task(session.connect())
    await eventually(lambda: gated_connector.waiting == 1)

    await session.close()
    gated_connector.gate.set()
    await asyncio.gather(first, second)

    assert gated_connector.waiting == 1
    assert not session.is_connected
