"""
Configuration Settings.

Bridge configuration using Pydantic's BaseSettings. Values are read from
environment variables and an optional .env file; keyword arguments (by field
name) override both, which is how tests build isolated settings.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ClientType = Literal["cursor-mcp", "windsurf-mcp"]


class BridgeSettings(BaseSettings):
    """
    Settings for one bridge client and its tool dispatcher.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Connection
    # =====================================================================
    bridge_url: str = Field(
        default="ws://localhost:8765",
        alias="VIBE_DEVSQUAD_BRIDGE_URL",
        description="WebSocket endpoint of the planning-agent bridge",
        min_length=1,
    )
    api_key: str = Field(
        default="",
        alias="VIBE_DEVSQUAD_API_KEY",
        description="Bearer credential sent in the Authorization handshake header",
    )
    client_type: ClientType = Field(
        default="windsurf-mcp",
        alias="VIBE_DEVSQUAD_CLIENT_TYPE",
        description="Value of the X-Client-Type handshake header",
    )
    client_version: str = Field(
        default="1.0.0",
        alias="VIBE_DEVSQUAD_CLIENT_VERSION",
        description="Value of the X-Client-Version handshake header",
    )
    open_timeout_seconds: float = Field(
        default=10.0,
        alias="VIBE_DEVSQUAD_OPEN_TIMEOUT",
        description="Maximum time allowed for the WebSocket opening handshake",
        gt=0,
    )

    # =====================================================================
    # Reconnection
    # =====================================================================
    reconnect_base_interval: float = Field(
        default=1.0,
        alias="VIBE_DEVSQUAD_RECONNECT_INTERVAL",
        description="Delay in seconds before the first reconnect attempt; doubles per attempt",
        gt=0,
    )
    max_reconnect_attempts: int = Field(
        default=5,
        alias="VIBE_DEVSQUAD_MAX_RECONNECT_ATTEMPTS",
        description="Consecutive failed reconnect attempts before giving up",
        ge=0,
    )
    reconnect_jitter: float = Field(
        default=0.1,
        alias="VIBE_DEVSQUAD_RECONNECT_JITTER",
        description="Upper bound of the random fraction added to each backoff delay",
        ge=0.0,
        lt=1.0,
    )

    # =====================================================================
    # Tools
    # =====================================================================
    enable_streaming: bool = Field(
        default=True,
        alias="VIBE_DEVSQUAD_ENABLE_STREAMING",
        description="Default streaming flag for chat-style tools",
    )
    max_tokens: int = Field(
        default=4000,
        alias="VIBE_DEVSQUAD_MAX_TOKENS",
        description="Token budget forwarded to the planning agent with chat requests",
        gt=0,
    )
    planning_agent_id: Optional[str] = Field(
        default=None,
        alias="VIBE_DEVSQUAD_PLANNING_AGENT_ID",
        description="Planning agent to address; omitted from requests when unset",
    )
    request_timeout_seconds: Optional[float] = Field(
        default=30.0,
        alias="VIBE_DEVSQUAD_REQUEST_TIMEOUT",
        description="Caller-side timeout applied by the tool dispatcher; None waits forever",
        gt=0,
    )

    # =====================================================================
    # Logging
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        alias="VIBE_DEVSQUAD_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: Literal["simple", "detailed", "json"] = Field(
        default="detailed",
        alias="VIBE_DEVSQUAD_LOG_FORMAT",
        description="Log line format",
    )

    def handshake_headers(self) -> dict[str, str]:
        """Headers sent with the WebSocket opening handshake."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "X-Client-Type": self.client_type,
            "X-Client-Version": self.client_version,
        }
