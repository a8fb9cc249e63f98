"""Reconnection policy.

Observes transport lifecycle events and, after an unexpected disconnect,
re-opens the connection with exponential backoff:

    delay(n) = base_interval * 2 ** (n - 1) * (1 + jitter * U[0, 1))

`jitter` is kept below 1 so delay(n) is always strictly greater than
delay(n - 1). After `max_attempts` consecutive failures the policy gives up
and stays in `gave_up` until the owner calls `resume()` (an explicit connect).

Only one reconnect task exists at a time; a disconnect observed while an
attempt is in flight is re-checked when that attempt finishes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from .config import BridgeSettings

logger = logging.getLogger(__name__)


class ReconnectState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SCHEDULED = "scheduled"
    GAVE_UP = "gave_up"


class ReconnectionPolicy:
    """Backoff-driven reconnect scheduler.

    Args:
        connect: Coroutine function that opens the transport (raises on failure).
        is_connected: Returns whether the transport is currently open.
        base_interval: Delay in seconds before the first attempt.
        max_attempts: Consecutive failures tolerated before giving up.
        jitter: Upper bound of the random fraction added to each delay, in [0, 1).
        on_exhausted: Called once when the policy gives up.
        sleep: Awaitable sleep, injectable for tests.
        random_source: Returns a float in [0, 1), injectable for tests.
    """

    def __init__(
        self,
        connect: Callable[[], Awaitable[Any]],
        *,
        is_connected: Callable[[], bool],
        base_interval: float = 1.0,
        max_attempts: int = 5,
        jitter: float = 0.1,
        on_exhausted: Optional[Callable[[], Any]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        random_source: Callable[[], float] = random.random,
    ) -> None:
        if base_interval <= 0:
            raise ValueError("base_interval must be positive")
        if max_attempts < 0:
            raise ValueError("max_attempts must not be negative")
        if not 0.0 <= jitter < 1.0:
            raise ValueError("jitter must be in [0, 1)")
        self._connect = connect
        self._is_connected = is_connected
        self._base_interval = base_interval
        self._max_attempts = max_attempts
        self._jitter = jitter
        self._on_exhausted = on_exhausted
        self._sleep = sleep
        self._random = random_source
        self._task: Optional[asyncio.Task[None]] = None
        self._suppressed = False
        self._delays: List[float] = []
        self.attempt = 0
        self.state = ReconnectState.IDLE

    @classmethod
    def from_settings(
        cls,
        connect: Callable[[], Awaitable[Any]],
        settings: BridgeSettings,
        **kwargs: Any,
    ) -> "ReconnectionPolicy":
        return cls(
            connect,
            base_interval=settings.reconnect_base_interval,
            max_attempts=settings.max_reconnect_attempts,
            jitter=settings.reconnect_jitter,
            **kwargs,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def scheduled_delays(self) -> List[float]:
        """Delays scheduled during the current outage, oldest first."""
        return list(self._delays)

    @property
    def is_suppressed(self) -> bool:
        return self._suppressed

    @property
    def has_pending_attempt(self) -> bool:
        return self._task is not None and not self._task.done()

    def compute_delay(self, attempt: int) -> float:
        base = self._base_interval * (2 ** (attempt - 1))
        return base * (1.0 + self._jitter * self._random())

    def on_connected(self) -> None:
        self.attempt = 0
        self._delays.clear()
        self.state = ReconnectState.CONNECTED

    def on_disconnected(self) -> None:
        if self._suppressed:
            self.state = ReconnectState.IDLE
            return
        if self.has_pending_attempt:
            return
        self._schedule_next()

    def resume(self) -> None:
        """Re-arm the policy after an explicit disconnect or after giving up."""
        self._suppressed = False
        if self.state is ReconnectState.GAVE_UP:
            self.attempt = 0
            self._delays.clear()
            self.state = ReconnectState.IDLE

    async def suppress(self) -> None:
        """Stop reconnecting: cancel any scheduled attempt and ignore later disconnects."""
        self._suppressed = True
        self.state = ReconnectState.IDLE
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _schedule_next(self) -> None:
        if self.attempt >= self._max_attempts:
            self.state = ReconnectState.GAVE_UP
            logger.error("Max reconnection attempts reached (%s); giving up", self._max_attempts)
            if self._on_exhausted is not None:
                try:
                    self._on_exhausted()
                except Exception:
                    logger.exception("Reconnect exhaustion callback failed")
            return
        self.attempt += 1
        delay = self.compute_delay(self.attempt)
        self._delays.append(delay)
        self.state = ReconnectState.SCHEDULED
        logger.warning(
            "Bridge disconnected; reconnecting in %.2fs (attempt %s/%s)",
            delay,
            self.attempt,
            self._max_attempts,
        )
        self._task = asyncio.get_running_loop().create_task(self._run(delay))

    async def _run(self, delay: float) -> None:
        try:
            await self._sleep(delay)
            if self._suppressed:
                return
            self.state = ReconnectState.CONNECTING
            try:
                await self._connect()
            except Exception as e:
                logger.warning("Reconnection attempt %s/%s failed: %s", self.attempt, self._max_attempts, e)
        finally:
            if self._task is asyncio.current_task():
                self._task = None
        if self._suppressed or self._is_connected():
            return
        self._schedule_next()
