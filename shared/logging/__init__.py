"""Structured logging module using structlog."""

from .structured_logger import (
    bind_context,
    clear_context,
    configure_logging,
    redact_secrets,
)

__all__ = ["configure_logging", "bind_context", "clear_context", "redact_secrets"]
