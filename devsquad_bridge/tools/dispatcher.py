"""Tool dispatcher.

Turns one tool invocation into exactly one bridge call:

1. look the tool up in the catalogue (``UNKNOWN_TOOL`` otherwise)
2. validate the arguments against its model (``VALIDATION_ERROR`` otherwise,
   and nothing is sent)
3. add the ambient context keys the tool declares
4. call `send_request`, or `send_stream_request` for streaming chat
5. wrap the normalised result, or the failure, in a `ToolResult`

No exception raised by the bridge client escapes `invoke`.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ..bridge.client import BridgeClient
from ..bridge.config import BridgeSettings
from ..bridge.correlation import TokenCallback
from ..bridge.errors import BridgeError, BridgeTimeoutError, NotConnectedError, RemoteError
from ..bridge.schemas.frames import StreamToken
from ..core.logging_config import get_logger
from . import results
from .definitions import (
    AMBIENT_AGENT_ID,
    AMBIENT_MAX_TOKENS,
    AMBIENT_WORKSPACE_ROOT,
    TOOL_CATALOGUE,
    ToolDefinition,
)
from .results import ToolResult

logger = get_logger(__name__)

_AMBIENT_KEYS = frozenset({AMBIENT_WORKSPACE_ROOT, AMBIENT_MAX_TOKENS, AMBIENT_AGENT_ID})


class ToolDispatcher:
    """Validates tool invocations and forwards them to a `BridgeClient`.

    Args:
        client: The shared bridge client.
        settings: Supplies the streaming default, token budget, agent id and request timeout.
            Defaults to the client's settings.
        tools: Catalogue to expose; the built-in catalogue by default.
        cwd_provider: Returns the workspace root added as ambient context.

    Raises:
        ValueError: If a tool declares an ambient key the dispatcher cannot supply.
    """

    def __init__(
        self,
        client: BridgeClient,
        settings: Optional[BridgeSettings] = None,
        *,
        tools: Optional[Iterable[ToolDefinition]] = None,
        cwd_provider: Callable[[], str] = os.getcwd,
    ) -> None:
        self._client = client
        self._settings = settings or client.settings
        self._tools: Dict[str, ToolDefinition] = {t.name: t for t in (tools or TOOL_CATALOGUE)}
        for tool in self._tools.values():
            unknown = sorted(set(tool.ambient) - _AMBIENT_KEYS)
            if unknown:
                raise ValueError(f"Tool '{tool.name}' declares unknown ambient context keys: {unknown}")
        self._cwd_provider = cwd_provider

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def list_tools(self) -> List[Dict[str, Any]]:
        """JSON-schema descriptors of every tool, in catalogue order."""
        return [tool.to_dict() for tool in self._tools.values()]

    async def invoke(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        *,
        on_token: Optional[TokenCallback] = None,
    ) -> ToolResult:
        """Run one tool invocation and return its envelope.

        Args:
            name: Tool name.
            arguments: Raw arguments as received from the host (camelCase keys).
            on_token: Receives each stream token when the invocation streams.
        """
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Rejected call to unknown tool '%s'", name)
            return ToolResult.fail(
                results.UNKNOWN_TOOL,
                f"Unknown tool: {name}",
                {"tool": name, "available": sorted(self._tools)},
            )

        try:
            args = tool.input_schema.model_validate(arguments if arguments is not None else {})
        except ValidationError as e:
            logger.info("Invalid arguments for tool '%s': %s error(s)", name, e.error_count())
            return ToolResult.fail(
                results.VALIDATION_ERROR,
                f"Invalid arguments for {name}",
                {"tool": name, "errors": e.errors(include_url=False, include_context=False)},
            )

        params = args.model_dump(by_alias=True, exclude_none=True)
        stream = self._wants_stream(tool, params)
        timeout = self._settings.request_timeout_seconds

        try:
            self._add_ambient(tool, params)
            if stream:
                data = await self._stream(tool, params, on_token, timeout)
            else:
                result = await self._client.send_request(tool.name, params, timeout=timeout)
                data = tool.normalize(result, params)
        except NotConnectedError as e:
            return ToolResult.fail(results.NOT_CONNECTED, e.message, {"tool": name, **e.details})
        except BridgeTimeoutError as e:
            return ToolResult.fail(results.TIMEOUT, e.message, {"tool": name, **e.details})
        except RemoteError as e:
            return ToolResult.fail(
                results.REMOTE_ERROR,
                e.message,
                {"tool": name, "remoteCode": e.remote_code, **e.details},
            )
        except BridgeError as e:
            logger.error("Bridge error while running tool '%s': %s", name, e)
            return ToolResult.fail(results.BRIDGE_ERROR, e.message, {"tool": name, "code": e.code, **e.details})
        except Exception as e:
            logger.exception("Unexpected error while running tool '%s'", name)
            return ToolResult.fail(results.INTERNAL_ERROR, str(e) or type(e).__name__, {"tool": name})

        return ToolResult.ok(data)

    async def _stream(
        self,
        tool: ToolDefinition,
        params: Dict[str, Any],
        on_token: Optional[TokenCallback],
        timeout: Optional[float],
    ) -> Dict[str, Any]:
        tokens: List[str] = []

        def collect(token: StreamToken) -> None:
            tokens.append(token.token)
            if on_token is not None:
                on_token(token)

        await self._client.send_stream_request(tool.name, params, collect, timeout=timeout)
        return {"content": "".join(tokens), "tokens": tokens, "streamed": True}

    def _wants_stream(self, tool: ToolDefinition, params: Dict[str, Any]) -> bool:
        requested = params.pop("streaming", None)
        if not tool.streaming:
            return False
        if requested is None:
            return self._settings.enable_streaming
        return bool(requested)

    def _add_ambient(self, tool: ToolDefinition, params: Dict[str, Any]) -> None:
        context = params.get("context")
        for key in tool.ambient:
            if key in params or (isinstance(context, dict) and key in context):
                continue
            value = self._ambient_value(key)
            if value is not None:
                params[key] = value

    def _ambient_value(self, key: str) -> Any:
        if key == AMBIENT_WORKSPACE_ROOT:
            return self._cwd_provider()
        if key == AMBIENT_MAX_TOKENS:
            return self._settings.max_tokens
        if key == AMBIENT_AGENT_ID:
            return self._settings.planning_agent_id
        raise ValueError(f"Unknown ambient context key: {key}")
