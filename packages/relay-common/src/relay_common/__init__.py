"""
relay-common: Shared library for alert-relay.

Provides the data models, configuration management, structured logging
and Redis messaging helpers used by the relay service.
"""

from relay_common.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
