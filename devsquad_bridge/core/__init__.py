"""
Core utilities for the DevSquad bridge.

This package provides logging configuration shared by the bridge client,
the tool dispatcher and the hosting application.
"""

from devsquad_bridge.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
