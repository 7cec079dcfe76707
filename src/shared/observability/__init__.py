"""Observability module for structured logging."""

from .logging import (
    cluster_log_context,
    get_logger,
    log_external_call_end,
    log_external_call_start,
    setup_logging,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Context
    "cluster_log_context",
    # Logging helpers
    "log_external_call_start",
    "log_external_call_end",
]
