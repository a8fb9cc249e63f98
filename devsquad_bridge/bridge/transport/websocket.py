"""WebSocket transport session.

Owns exactly one `websockets` client connection at a time and turns it into
lifecycle events plus a `send(frame)` primitive. A background read loop
decodes inbound text messages into frames; malformed payloads are logged and
dropped so they never reach callers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed

from ..config import BridgeSettings
from ..errors import FrameDecodeError, NotConnectedError, TransportError
from ..events import BridgeEvent, EventHub, Unsubscribe
from ..schemas.frames import ErrorFrame, RequestFrame, ResponseFrame, StreamFrame, decode_frame, encode_frame
from . import SessionState

logger = logging.getLogger(__name__)

Connector = Callable[..., Awaitable[Any]]


class WebSocketSession:
    """`TransportSession` over a persistent WebSocket.

    - connect(): open the socket with bearer + client identification headers
    - send(frame): write one JSON text message
    - close(): close the socket and wait for the read loop to finish

    Args:
        url: ws:// or wss:// endpoint of the bridge.
        headers: Headers sent with the opening handshake.
        open_timeout: Seconds allowed for the opening handshake.
        close_timeout: Seconds to wait for the read loop after closing before cancelling it.
        connector: Coroutine function with the signature of `websockets.asyncio.client.connect`.
    """

    def __init__(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        open_timeout: float = 10.0,
        close_timeout: float = 5.0,
        connector: Optional[Connector] = None,
    ) -> None:
        self._url = url
        self._headers = dict(headers or {})
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout
        self._connector: Connector = connector or ws_connect
        self._ws: Any = None
        self._state = SessionState.DISCONNECTED
        self._reader_task: Optional[asyncio.Task[None]] = None
        self._lock = asyncio.Lock()
        self._close_generation = 0
        self._events = EventHub()

    @classmethod
    def from_settings(cls, settings: BridgeSettings, *, connector: Optional[Connector] = None) -> "WebSocketSession":
        return cls(
            settings.bridge_url,
            headers=settings.handshake_headers(),
            open_timeout=settings.open_timeout_seconds,
            connector=connector,
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED and self._ws is not None

    def on(self, event: Union[BridgeEvent, str], callback: Callable[..., Any]) -> Unsubscribe:
        return self._events.subscribe(event, callback)

    async def connect(self) -> None:
        """Open the connection, or return at once if it is already open.

        Concurrent callers share a single handshake. A `close()` issued while the
        handshake is in flight wins: the socket it produces is closed instead of
        published, and this call returns without connecting.

        Raises:
            TransportError: If the socket cannot be opened or the handshake fails.
        """
        if self.is_connected:
            return
        generation = self._close_generation
        async with self._lock:
            if self.is_connected or generation != self._close_generation:
                return
            self._state = SessionState.CONNECTING
            logger.debug("Opening bridge connection to %s", self._url)
            try:
                ws = await self._connector(
                    self._url,
                    additional_headers=self._headers,
                    open_timeout=self._open_timeout,
                )
            except asyncio.CancelledError:
                self._state = SessionState.DISCONNECTED
                raise
            except Exception as e:
                self._state = SessionState.DISCONNECTED
                logger.error("Bridge handshake with %s failed: %s", self._url, e)
                err = TransportError(f"Failed to connect to {self._url}: {e}", details={"url": self._url})
                self._events.emit(BridgeEvent.ERROR, err)
                raise err from e

            if generation != self._close_generation:
                self._state = SessionState.DISCONNECTED
                logger.info("Bridge connection to %s closed during handshake; discarding socket", self._url)
                await self._close_socket(ws)
                return

            self._ws = ws
            self._state = SessionState.CONNECTED
            self._reader_task = asyncio.create_task(self._read_loop(ws), name=f"bridge-reader:{self._url}")
            logger.info("Connected to DevSquad bridge at %s", self._url)
            self._events.emit(BridgeEvent.CONNECTED)

    async def send(self, frame: Union[RequestFrame, ResponseFrame, StreamFrame, ErrorFrame]) -> None:
        ws = self._ws
        if ws is None or not self.is_connected:
            raise NotConnectedError()
        try:
            await ws.send(encode_frame(frame))
        except ConnectionClosed as e:
            raise NotConnectedError(f"Connection closed while sending: {e}") from e

    async def close(self) -> None:
        self._close_generation += 1
        ws, task = self._ws, self._reader_task
        if ws is None:
            return
        self._ws = None
        self._reader_task = None
        self._state = SessionState.DISCONNECTED
        await self._close_socket(ws)
        if task is not None and not task.done():
            try:
                await asyncio.wait_for(task, timeout=self._close_timeout)
            except asyncio.TimeoutError:
                logger.warning("Bridge read loop did not stop within %ss; cancelled", self._close_timeout)

    async def _close_socket(self, ws: Any) -> None:
        try:
            await ws.close()
        except Exception as e:
            logger.debug("Error while closing bridge socket: %s", e)

    async def _read_loop(self, ws: Any) -> None:
        try:
            async for raw in ws:
                self._handle_raw(raw)
        except ConnectionClosed as e:
            logger.warning("Bridge connection to %s closed abnormally: %s", self._url, e)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Bridge read loop failed: %s", e, exc_info=True)
            self._events.emit(BridgeEvent.ERROR, TransportError(f"Read loop failed: {e}", details={"url": self._url}))
        finally:
            if self._ws is ws:
                self._ws = None
                self._reader_task = None
                self._state = SessionState.DISCONNECTED
            logger.info("Disconnected from DevSquad bridge at %s", self._url)
            self._events.emit(BridgeEvent.DISCONNECTED)

    def _handle_raw(self, raw: Union[str, bytes]) -> None:
        try:
            frame = decode_frame(raw)
        except FrameDecodeError as e:
            logger.warning("Dropping malformed bridge frame: %s (payload: %r)", e, e.details.get("preview"))
            return
        self._events.emit(BridgeEvent.MESSAGE, frame)
