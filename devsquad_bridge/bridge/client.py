"""Asynchronous bridge client facade.

Combines a `TransportSession`, a `CorrelationTable` and a
`ReconnectionPolicy` into the public API used by tool adapters:
`connect`, `disconnect`, `is_connected`, `send_request` and
`send_stream_request`.

Each client is an explicitly constructed value; nothing is shared between
instances, so several clients (or tests) can coexist in one process.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .config import BridgeSettings
from .correlation import CorrelationTable, TokenCallback
from .errors import BridgeTimeoutError, NotConnectedError
from .events import BridgeEvent, EventHub, Unsubscribe
from .reconnect import ReconnectionPolicy, ReconnectState
from .schemas.frames import ErrorFrame, RequestFrame, ResponseFrame, StreamFrame
from .transport import TransportSession, WebSocketSession
from .transport.websocket import Connector

logger = logging.getLogger(__name__)

_MAX_ID_RETRIES = 8


def generate_request_id() -> str:
    """Millisecond timestamp plus a random suffix, unique across reconnect cycles."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


class BridgeClient:
    """Request/response and streaming RPC over one bridge connection.

    Args:
        settings: Connection, reconnect and credential settings. Read from the environment when omitted.
        session: Transport to use; a `WebSocketSession` built from `settings` by default.
        connector: Socket factory forwarded to the default `WebSocketSession`.
        table: Correlation table; a fresh one by default.
        id_factory: Correlation identifier generator.
        sleep: Awaitable sleep used between reconnect attempts.
        random_source: Jitter source for the reconnect backoff.
    """

    def __init__(
        self,
        settings: Optional[BridgeSettings] = None,
        *,
        session: Optional[TransportSession] = None,
        connector: Optional[Connector] = None,
        table: Optional[CorrelationTable] = None,
        id_factory: Callable[[], str] = generate_request_id,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        random_source: Callable[[], float] = random.random,
    ) -> None:
        self._settings = settings or BridgeSettings()
        self._session: TransportSession = session or WebSocketSession.from_settings(
            self._settings, connector=connector
        )
        if not isinstance(self._session, TransportSession):
            raise TypeError(f"Session {type(self._session).__name__} does not conform to TransportSession protocol")
        self._table = table or CorrelationTable()
        self._id_factory = id_factory
        self._events = EventHub()
        self._policy = ReconnectionPolicy.from_settings(
            self._session.connect,
            self._settings,
            is_connected=self.is_connected,
            on_exhausted=self._on_reconnect_exhausted,
            sleep=sleep,
            random_source=random_source,
        )
        self._session.on(BridgeEvent.CONNECTED, self._on_connected)
        self._session.on(BridgeEvent.DISCONNECTED, self._on_disconnected)
        self._session.on(BridgeEvent.ERROR, self._on_error)
        self._session.on(BridgeEvent.MESSAGE, self._on_message)

    @classmethod
    def from_settings(cls, settings: BridgeSettings, **kwargs: Any) -> "BridgeClient":
        return cls(settings, **kwargs)

    @property
    def settings(self) -> BridgeSettings:
        return self._settings

    @property
    def session(self) -> TransportSession:
        return self._session

    @property
    def pending_count(self) -> int:
        return len(self._table)

    @property
    def reconnect_state(self) -> ReconnectState:
        return self._policy.state

    @property
    def reconnect_attempt(self) -> int:
        return self._policy.attempt

    @property
    def reconnect_policy(self) -> ReconnectionPolicy:
        return self._policy

    def is_connected(self) -> bool:
        return self._session.is_connected

    def on(self, event: Union[BridgeEvent, str], callback: Callable[..., Any]) -> Unsubscribe:
        """Subscribe to `connected`, `disconnected`, `error`, `message` or `reconnect_exhausted`."""
        return self._events.subscribe(event, callback)

    async def connect(self) -> None:
        """Open the connection and re-arm automatic reconnection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        self._policy.resume()
        await self._session.connect()
        if self.is_connected():
            self._policy.on_connected()

    async def disconnect(self) -> None:
        """Close the connection without reconnecting and fail the requests still waiting."""
        await self._policy.suppress()
        await self._session.close()
        rejected = self._table.reject_all(NotConnectedError("Connection closed"))
        if rejected:
            logger.info("Rejected %s pending bridge request(s) on disconnect", rejected)

    async def send_request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send a request and wait for its result.

        Args:
            method: Remote method name.
            params: Method parameters.
            timeout: Optional seconds to wait; without it the call waits until answered.

        Returns:
            The `result` payload of the matching `response` frame.

        Raises:
            NotConnectedError: If not connected (no frame is sent).
            RemoteError: If the service answers with an error.
            BridgeTimeoutError: If `timeout` expires first.
        """
        return await self._call(method, dict(params or {}), None, timeout)

    async def send_stream_request(
        self,
        method: str,
        params: Optional[Dict[str, Any]],
        on_token: TokenCallback,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """Send a streaming request; `on_token` receives each token in arrival order.

        Resolves once the terminal frame arrives. If the connection drops
        mid-stream the token sequence is truncated and the call keeps waiting
        (until `timeout`, when given).
        """
        payload = dict(params or {})
        payload["stream"] = True
        await self._call(method, payload, on_token, timeout)

    async def __aenter__(self) -> "BridgeClient":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    async def _call(
        self,
        method: str,
        params: Dict[str, Any],
        on_token: Optional[TokenCallback],
        timeout: Optional[float],
    ) -> Any:
        if not self.is_connected():
            raise NotConnectedError()

        request_id = self._new_request_id()
        if on_token is None:
            future = self._table.register_request(request_id, method)
        else:
            future = self._table.register_stream(request_id, method, on_token)

        try:
            await self._session.send(RequestFrame(id=request_id, method=method, params=params))
        except BaseException:
            self._table.discard(request_id)
            raise
        logger.debug("BridgeClient._call: sent %s id=%s stream=%s", method, request_id, on_token is not None)

        try:
            if timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            self._table.discard(request_id)
            raise BridgeTimeoutError(method, timeout or 0.0) from None
        except asyncio.CancelledError:
            self._table.discard(request_id)
            raise

    def _new_request_id(self) -> str:
        for _ in range(_MAX_ID_RETRIES):
            request_id = self._id_factory()
            if request_id not in self._table:
                return request_id
        raise RuntimeError(f"Could not generate a unique request id after {_MAX_ID_RETRIES} attempts")

    def _on_connected(self) -> None:
        self._policy.on_connected()
        self._events.emit(BridgeEvent.CONNECTED)

    def _on_disconnected(self) -> None:
        self._events.emit(BridgeEvent.DISCONNECTED)
        self._policy.on_disconnected()

    def _on_error(self, error: BaseException) -> None:
        self._events.emit(BridgeEvent.ERROR, error)

    def _on_message(self, frame: Union[RequestFrame, ResponseFrame, StreamFrame, ErrorFrame]) -> None:
        self._table.dispatch(frame)
        self._events.emit(BridgeEvent.MESSAGE, frame)

    def _on_reconnect_exhausted(self) -> None:
        self._events.emit(BridgeEvent.RECONNECT_EXHAUSTED)
