"""Configuration management module.

This module provides:
- Environment-based configuration with validation
- Service-specific settings classes

There is no cached accessor: the entry point builds one settings value
and hands it to whatever needs it.
"""

from .settings import (
    DEFAULT_CONTROL_PLANE_NAMESPACE,
    DEFAULT_SINGLE_CALL_TIMEOUT_SECONDS,
    ClusterRegistrySettings,
    DatabaseSettings,
    Environment,
    LogFormat,
    LogLevel,
    RedisSettings,
    Settings,
)

__all__ = [
    # Main settings
    "Settings",
    "ClusterRegistrySettings",
    # Enums
    "Environment",
    "LogLevel",
    "LogFormat",
    # Component settings
    "DatabaseSettings",
    "RedisSettings",
    # Defaults
    "DEFAULT_CONTROL_PLANE_NAMESPACE",
    "DEFAULT_SINGLE_CALL_TIMEOUT_SECONDS",
]
