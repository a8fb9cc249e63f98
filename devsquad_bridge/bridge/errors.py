"""Error types for the bridge client package.

Defines a small hierarchy of exceptions raised by the transport session, the
correlation table and the client facade. Every error carries a stable `code`
string and optional structured `details` so the tool dispatcher can turn it
into an error envelope without inspecting messages.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BridgeError(Exception):
    """Base error for all bridge client exceptions.

    Args:
        message: Human-readable error description.
        code: Stable machine-readable error code.
        details: Optional structured context for diagnosis.
    """

    code: str = "BRIDGE_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details: Dict[str, Any] = dict(details or {})


class TransportError(BridgeError):
    """Raised when the socket cannot be opened or the handshake fails."""

    code = "TRANSPORT_ERROR"


class NotConnectedError(BridgeError):
    """Raised when a frame is sent, or a request issued, without an open connection."""

    code = "NOT_CONNECTED"

    def __init__(self, message: str = "Not connected to bridge") -> None:
        super().__init__(message)


class FrameDecodeError(BridgeError):
    """Raised when an inbound payload is not a valid bridge frame."""

    code = "PROTOCOL_ERROR"


class DuplicateRequestIdError(BridgeError):
    """Raised when a correlation identifier is registered twice."""

    code = "DUPLICATE_REQUEST_ID"

    def __init__(self, request_id: str) -> None:
        super().__init__(f"Request id already pending: '{request_id}'", details={"requestId": request_id})
        self.request_id = request_id


class RemoteError(BridgeError):
    """Raised when the planning-agent service answers a request with an error.

    Args:
        remote_code: The error code supplied by the remote service.
        message: The remote error message.
        details: Any extra fields of the remote error payload.
    """

    code = "REMOTE_ERROR"

    def __init__(self, remote_code: str, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)
        self.remote_code = remote_code


class BridgeTimeoutError(BridgeError):
    """Raised when a caller-supplied timeout expires before the terminal frame arrives."""

    code = "TIMEOUT"

    def __init__(self, method: str, timeout: float) -> None:
        super().__init__(
            f"Request timeout: {method} (no response within {timeout}s)",
            details={"method": method, "timeoutSeconds": timeout},
        )
        self.method = method
        self.timeout = timeout
