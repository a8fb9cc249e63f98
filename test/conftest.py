from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import pytest
import pytest_asyncio
from websockets.exceptions import ConnectionClosedError

from devsquad_bridge.bridge import transport
from devsquad_bridge.bridge.client import BridgeClient
from devsquad_bridge.bridge.config import BridgeSettings

_CLOSE = object()
_DROP = object()


class FakeConnection:
    """In-memory stand-in for a `websockets` client connection.

    Outbound messages are recorded in `sent`; inbound messages are queued with
    `push` and handed to the session's read loop in order.
    """

    def __init__(self) -> None:
        self.sent: List[str] = []
        self.closed = False
        self.send_error: Optional[BaseException] = None
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()

    async def send(self, message: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        if self.closed:
            raise ConnectionClosedError(None, None)
        self.sent.append(message)

    def sent_frames(self) -> List[Dict[str, Any]]:
        return [json.loads(m) for m in self.sent]

    def push(self, payload: Union[Dict[str, Any], str]) -> None:
        self._inbox.put_nowait(payload if isinstance(payload, str) else json.dumps(payload))

    def drop(self) -> None:
        """Terminate the connection abnormally (no close handshake)."""
        self._inbox.put_nowait(_DROP)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._inbox.put_nowait(_CLOSE)

    def __aiter__(self) -> "FakeConnection":
        return self

    async def __anext__(self) -> str:
        item = await self._inbox.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if item is _DROP:
            self.closed = True
            raise ConnectionClosedError(None, None)
        return item


class FakeConnector:
    """Callable with the signature of `websockets.asyncio.client.connect`.

    Fails the next `fail_times` calls with a refused connection.
    """

    def __init__(self, fail_times: int = 0) -> None:
        self.fail_times = fail_times
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.connections: List[FakeConnection] = []

    async def __call__(self, url: str, **kwargs: Any) -> FakeConnection:
        self.calls.append((url, kwargs))
        if self.fail_times > 0:
            self.fail_times -= 1
            raise OSError(f"Connection refused: {url}")
        conn = FakeConnection()
        self.connections.append(conn)
        return conn

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]


class GatedConnector(FakeConnector):
    """`FakeConnector` whose handshakes block until `gate` is set."""

    def __init__(self, fail_times: int = 0) -> None:
        super().__init__(fail_times)
        self.gate = asyncio.Event()
        self.waiting = 0

    async def __call__(self, url: str, **kwargs: Any) -> FakeConnection:
        self.waiting += 1
        await self.gate.wait()
        return await super().__call__(url, **kwargs)


class RecordingSleep:
    """Awaitable sleep that records requested delays and only yields to the loop."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


async def _eventually(predicate: Callable[[], bool], *, attempts: int = 500) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition was not met")


@pytest.fixture(autouse=True)
def _global_offline_socket_guard(monkeypatch: pytest.MonkeyPatch):
    """Block sockets to anything but the local machine when the default connector is used."""
    allowed_prefixes = ("ws://localhost", "ws://127.0.0.1", "wss://localhost", "wss://127.0.0.1")
    orig_connect = transport.websocket.ws_connect

    async def offline_connect(url: str, *args: Any, **kwargs: Any) -> Any:
        if url.startswith(allowed_prefixes):
            return await orig_connect(url, *args, **kwargs)
        raise RuntimeError(f"External WebSocket blocked by global offline guard: {url}")

    monkeypatch.setattr(transport.websocket, "ws_connect", offline_connect, raising=True)


@pytest.fixture
def settings() -> BridgeSettings:
    return BridgeSettings(
        _env_file=None,
        bridge_url="ws://mock-bridge:8765",
        api_key="test-key",
        client_type="cursor-mcp",
        client_version="2.1.0",
        reconnect_base_interval=0.01,
        max_reconnect_attempts=3,
        reconnect_jitter=0.0,
        request_timeout_seconds=None,
        planning_agent_id=None,
    )


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def gated_connector() -> GatedConnector:
    return GatedConnector()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def eventually() -> Callable[..., Awaitable[None]]:
    return _eventually


@pytest.fixture
def make_client(
    settings: BridgeSettings, connector: FakeConnector, recording_sleep: RecordingSleep
) -> Callable[..., BridgeClient]:
    def factory(**kwargs: Any) -> BridgeClient:
        kwargs.setdefault("connector", connector)
        kwargs.setdefault("sleep", recording_sleep)
        kwargs.setdefault("random_source", lambda: 0.5)
        return BridgeClient(kwargs.pop("settings", settings), **kwargs)

    return factory


@pytest_asyncio.fixture
async def client(make_client: Callable[..., BridgeClient]):
    """A `BridgeClient` connected through the fake connector."""
    c = make_client()
    await c.connect()
    yield c
    await c.disconnect()
