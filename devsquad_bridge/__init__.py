"""DevSquad bridge.

Client side of the Vibe DevSquad planning-agent bridge used by editor
integrations (Cursor, Windsurf).

Subpackages
-----------

- ``devsquad_bridge.bridge``: the Bridge RPC client. A WebSocket transport
  session, the request/response correlation table, the reconnection policy
  and the `BridgeClient` facade tying them together.
- ``devsquad_bridge.tools``: the fixed tool catalogue (chat, file and project
  analysis, task management), argument validation and result envelopes.
- ``devsquad_bridge.core``: logging configuration.

`BridgeApplication` (``devsquad_bridge.app``) composes all of the above for a
hosting process.
"""

from devsquad_bridge.app import BridgeApplication
from devsquad_bridge.bridge import BridgeClient, BridgeSettings
from devsquad_bridge.tools import ToolDispatcher, ToolResult

__version__ = "0.1.0"

__all__ = [
    "BridgeApplication",
    "BridgeClient",
    "BridgeSettings",
    "ToolDispatcher",
    "ToolResult",
    "__version__",
]
