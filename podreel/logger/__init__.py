"""Logging utilities shared across podreel."""

from .logging_decorator import (
    setup_logging,
    log_function,
    log_with_timer,
    debug_logging_enabled,
)

__all__ = ["setup_logging", "log_function", "log_with_timer", "debug_logging_enabled"]
