"""Bridge RPC client.

A long-lived WebSocket connection to the planning-agent service that
multiplexes request/response and streaming calls over one socket and
reconnects with exponential backoff.

Usage
-----

    from devsquad_bridge.bridge import BridgeClient, BridgeSettings

    async with BridgeClient(BridgeSettings()) as client:
        result = await client.send_request("chat", {"message": "hi"}, timeout=30)
"""

from .client import BridgeClient, generate_request_id
from .config import BridgeSettings
from .correlation import CorrelationTable, PendingRequest
from .errors import (
    BridgeError,
    BridgeTimeoutError,
    DuplicateRequestIdError,
    FrameDecodeError,
    NotConnectedError,
    RemoteError,
    TransportError,
)
from .events import BridgeEvent, EventHub
from .reconnect import ReconnectionPolicy, ReconnectState
from .transport import SessionState, TransportSession, WebSocketSession

__all__ = [
    "BridgeClient",
    "BridgeError",
    "BridgeEvent",
    "BridgeSettings",
    "BridgeTimeoutError",
    "CorrelationTable",
    "DuplicateRequestIdError",
    "EventHub",
    "FrameDecodeError",
    "NotConnectedError",
    "PendingRequest",
    "ReconnectState",
    "ReconnectionPolicy",
    "RemoteError",
    "SessionState",
    "TransportError",
    "TransportSession",
    "WebSocketSession",
    "generate_request_id",
]
