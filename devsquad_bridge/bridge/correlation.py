"""Request/response correlation.

Binds outbound requests to the inbound frames that answer them. Each pending
request owns an asyncio future; the caller awaits it, the socket read loop
completes it. Frames for identifiers that are not (or no longer) pending are
dropped: that is what late or duplicate deliveries look like after a
reconnect.

The table has no TTL. A request the remote never answers stays registered
until the caller's timeout evicts it (`BridgeClient.send_request(timeout=...)`)
or the client is explicitly disconnected.

All methods must be called from the event-loop thread.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import DuplicateRequestIdError, RemoteError
from .schemas.frames import ErrorFrame, RequestFrame, ResponseFrame, StreamFrame, StreamToken

logger = logging.getLogger(__name__)

TokenCallback = Callable[[StreamToken], Any]


@dataclass
class PendingRequest:
    id: str
    method: str
    future: "asyncio.Future[Any]"
    created_at: float = field(default_factory=time.monotonic)
    on_token: Optional[TokenCallback] = None

    @property
    def is_stream(self) -> bool:
        return self.on_token is not None


class CorrelationTable:
    """Maps in-flight request identifiers to their pending completions."""

    def __init__(self) -> None:
        self._pending: Dict[str, PendingRequest] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def pending_ids(self) -> List[str]:
        return list(self._pending)

    def get(self, request_id: str) -> Optional[PendingRequest]:
        return self._pending.get(request_id)

    def register_request(
        self,
        request_id: str,
        method: str,
        *,
        on_token: Optional[TokenCallback] = None,
    ) -> "asyncio.Future[Any]":
        """Register a pending request and return the future its caller awaits.

        Raises:
            DuplicateRequestIdError: If `request_id` is already pending.
        """
        if request_id in self._pending:
            raise DuplicateRequestIdError(request_id)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = PendingRequest(id=request_id, method=method, future=future, on_token=on_token)
        return future

    def register_stream(self, request_id: str, method: str, on_token: TokenCallback) -> "asyncio.Future[Any]":
        """Register a streaming request: `on_token` fires per stream frame until the terminal frame."""
        return self.register_request(request_id, method, on_token=on_token)

    def resolve(self, request_id: str, result: Any) -> bool:
        entry = self._pending.pop(request_id, None)
        if entry is None:
            logger.debug("Dropping response for unknown request id %s", request_id)
            return False
        if not entry.future.done():
            entry.future.set_result(None if entry.is_stream else result)
        return True

    def reject(self, request_id: str, error: BaseException) -> bool:
        entry = self._pending.pop(request_id, None)
        if entry is None:
            logger.debug("Dropping error for unknown request id %s: %s", request_id, error)
            return False
        if not entry.future.done():
            entry.future.set_exception(error)
        return True

    def feed_token(self, request_id: str, token: StreamToken) -> bool:
        entry = self._pending.get(request_id)
        if entry is None or entry.on_token is None:
            logger.debug("Dropping stream token for unknown request id %s", request_id)
            return False
        try:
            entry.on_token(token)
        except Exception:
            logger.exception("Stream token callback failed for request %s (%s)", request_id, entry.method)
        return True

    def discard(self, request_id: str) -> Optional[PendingRequest]:
        """Forget a pending request without completing it (caller timeout, failed send)."""
        return self._pending.pop(request_id, None)

    def reject_all(self, error: BaseException) -> int:
        """Reject every pending request with `error`; returns how many were rejected."""
        entries = list(self._pending.values())
        self._pending.clear()
        for entry in entries:
            if not entry.future.done():
                entry.future.set_exception(error)
        return len(entries)

    def dispatch(self, frame: Union[RequestFrame, ResponseFrame, StreamFrame, ErrorFrame]) -> bool:
        """Route one inbound frame to its pending request.

        Returns:
            True if the frame matched a pending request, False if it was dropped.
        """
        if frame.id is None:
            logger.debug("Dropping %s frame without id", frame.type)
            return False
        if isinstance(frame, StreamFrame):
            return self.feed_token(frame.id, frame.result)
        if isinstance(frame, ResponseFrame):
            fault = frame.fault()
            if fault is not None:
                return self.reject(frame.id, _remote_error(fault.code, fault.message, fault.extra_fields()))
            return self.resolve(frame.id, frame.result)
        if isinstance(frame, ErrorFrame):
            return self.reject(
                frame.id, _remote_error(frame.error.code, frame.error.message, frame.error.extra_fields())
            )
        logger.debug("Ignoring inbound %s frame %s", frame.type, frame.id)
        return False


def _remote_error(code: str, message: str, extra: Dict[str, Any]) -> RemoteError:
    return RemoteError(code, message or f"Request failed ({code})", details=extra)
