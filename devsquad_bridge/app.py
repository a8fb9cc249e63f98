"""
Application entry point.

`BridgeApplication` is the composition root used by the hosting process: it
loads settings, configures logging, builds the bridge client and the tool
dispatcher, and owns their lifecycle.

Start-up connects to the planning-agent bridge but keeps the application
usable when the platform is unreachable: tool calls then answer with
``NOT_CONNECTED`` envelopes while the reconnection policy is idle, and an
explicit `start()` (or `client.connect()`) can be retried later.
"""

from typing import Any, Dict, List, Optional

from devsquad_bridge.bridge.client import BridgeClient
from devsquad_bridge.bridge.config import BridgeSettings
from devsquad_bridge.bridge.correlation import TokenCallback
from devsquad_bridge.bridge.errors import TransportError
from devsquad_bridge.bridge.events import BridgeEvent, Unsubscribe
from devsquad_bridge.core.logging_config import get_logger, setup_logging
from devsquad_bridge.tools.dispatcher import ToolDispatcher
from devsquad_bridge.tools.results import ToolResult

logger = get_logger(__name__)


class BridgeApplication:
    """
    Wires settings, logging, the bridge client and the tool dispatcher together.

    Args:
        settings: Application settings; read from the environment when omitted.
        client: Pre-built client (tests inject one with a fake connector).
        configure_logging: Whether to install the logging configuration.
    """

    def __init__(
        self,
        settings: Optional[BridgeSettings] = None,
        *,
        client: Optional[BridgeClient] = None,
        configure_logging: bool = True,
    ) -> None:
        self.settings = settings or BridgeSettings()
        if configure_logging:
            setup_logging(log_level=self.settings.log_level, log_format=self.settings.log_format)
        self.client = client or BridgeClient(self.settings)
        self.dispatcher = ToolDispatcher(self.client, self.settings)
        self._subscriptions: List[Unsubscribe] = [
            self.client.on(BridgeEvent.CONNECTED, self._log_connected),
            self.client.on(BridgeEvent.DISCONNECTED, self._log_disconnected),
            self.client.on(BridgeEvent.ERROR, self._log_error),
            self.client.on(BridgeEvent.RECONNECT_EXHAUSTED, self._log_exhausted),
        ]
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> bool:
        """
        Connect to the bridge.

        Returns:
            Whether the connection was established.
        """
        logger.info("Starting DevSquad bridge (%s, %s)", self.settings.client_type, self.settings.bridge_url)
        self._started = True
        try:
            await self.client.connect()
        except TransportError as e:
            logger.warning(f"Failed to connect to Vibe DevSquad platform: {e.message}")
            logger.warning("Tools are available but return NOT_CONNECTED until the platform is reachable")
            return False
        return True

    async def stop(self) -> None:
        logger.info("Shutting down DevSquad bridge...")
        await self.client.disconnect()
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()
        self._started = False

    def list_tools(self) -> List[Dict[str, Any]]:
        return self.dispatcher.list_tools()

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        *,
        on_token: Optional[TokenCallback] = None,
    ) -> ToolResult:
        return await self.dispatcher.invoke(name, arguments, on_token=on_token)

    async def __aenter__(self) -> "BridgeApplication":
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    def _log_connected(self) -> None:
        logger.info("Connected to Vibe DevSquad platform")

    def _log_disconnected(self) -> None:
        logger.info("Disconnected from Vibe DevSquad platform")

    def _log_error(self, error: BaseException) -> None:
        logger.error(f"Bridge error: {error}")

    def _log_exhausted(self) -> None:
        logger.error("Giving up on the Vibe DevSquad platform until the next explicit connect")
