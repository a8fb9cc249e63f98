"""Lifecycle event subscription.

`EventHub.subscribe` hands back an unsubscribe callable instead of exposing
the listener list, so owners can detach exactly what they attached.
Listeners are plain synchronous callables invoked on the event-loop thread.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]
Unsubscribe = Callable[[], None]


class BridgeEvent(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    MESSAGE = "message"
    RECONNECT_EXHAUSTED = "reconnect_exhausted"


class EventHub:
    """Per-owner listener registry."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, event: BridgeEvent | str, callback: Listener) -> Unsubscribe:
        """Attach `callback` to `event` and return a handle that detaches it.

        Calling the handle more than once is harmless.
        """
        key = BridgeEvent(event).value
        self._listeners.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners and callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def emit(self, event: BridgeEvent | str, *args: Any) -> None:
        """Invoke every listener of `event` in subscription order.

        A failing listener is logged and does not prevent the others from
        running, nor does it propagate into the emitter (the socket read loop).
        """
        key = BridgeEvent(event).value
        for callback in list(self._listeners.get(key, ())):
            try:
                callback(*args)
            except Exception:
                logger.exception("Listener %r for '%s' raised", callback, key)

    def listener_count(self, event: BridgeEvent | str) -> int:
        return len(self._listeners.get(BridgeEvent(event).value, ()))

    def clear(self) -> None:
        self._listeners.clear()
