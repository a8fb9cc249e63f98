"""Transport interfaces for bridge communication.

Defines the `TransportSession` Protocol the client facade depends on, and the
connection state enum shared by implementations. The concrete WebSocket
session lives alongside (`websocket.py`); tests substitute in-memory
connections through its `connector` hook instead of reimplementing the
protocol.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Protocol, Union, runtime_checkable

from ..events import BridgeEvent, Unsubscribe
from ..schemas.frames import ErrorFrame, RequestFrame, ResponseFrame, StreamFrame


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@runtime_checkable
class TransportSession(Protocol):
    """Protocol for one physical connection to the planning-agent bridge.

    Emits `connected`, `disconnected`, `error(exc)` and `message(frame)`
    events to subscribers registered through `on`.

    Examples:
        >>> unsubscribe = session.on("message", table.dispatch)
        >>> await session.connect()
        >>> await session.send(RequestFrame(id="r1", method="chat", params={"message": "hi"}))
        >>> await session.close()
        >>> unsubscribe()
    """

    @property
    def state(self) -> SessionState: ...

    @property
    def is_connected(self) -> bool: ...

    async def connect(self) -> None:
        """Open the connection; a no-op when already connected.

        Raises:
            TransportError: If the socket cannot be opened or the handshake is refused.
        """
        ...

    async def send(self, frame: Union[RequestFrame, ResponseFrame, StreamFrame, ErrorFrame]) -> None:
        """Serialise and write one frame.

        Raises:
            NotConnectedError: If there is no open connection.
        """
        ...

    async def close(self) -> None:
        """Close the connection; `disconnected` fires once the read loop has stopped."""
        ...

    def on(self, event: Union[BridgeEvent, str], callback: Callable[..., Any]) -> Unsubscribe: ...


from .websocket import WebSocketSession  # noqa: E402

__all__ = ["SessionState", "TransportSession", "WebSocketSession"]
