"""Pydantic base schema utilities for bridge models.

Provides the common `BaseSchema` (camelCase aliases, strict extra-field
policy) used by tool argument models, and `WireSchema`, the lenient variant
used for frames arriving from the remote service.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def _to_camel(s: str) -> str:
    """Convert snake_case to camelCase for JSON aliasing."""
    parts = s.split("_")
    return parts[0] + "".join(p.capitalize() or "_" for p in parts[1:])


class BaseSchema(BaseModel):
    """Shared base for models exchanged with editor hosts.

    - Forbids unknown fields
    - Enables populate_by_name for using either snake_case or camelCase
    - Uses a snake->camel alias generator for JSON interop
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        alias_generator=_to_camel,
    )


class WireSchema(BaseModel):
    """Base for bridge frames.

    The remote service decorates frames with extra keys (timestamps, trace
    ids); those are ignored rather than rejected.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        alias_generator=_to_camel,
    )
