"""
Polling module.

Provides the batch polling engine used to learn when remote jobs finish,
the two-level retry policy used for single long-running jobs, and console
progress rendering.
"""

from .config import PollConfig
from .engine import (
    BatchOutcome,
    StatusSource,
    check_batch,
    parse_progress,
    poll_batch,
    write_artifact,
)
from .progress import ProgressBoard, render_progress_bar
from .retry import RetryPolicy, is_server_error

__all__ = [
    "PollConfig",
    "BatchOutcome",
    "StatusSource",
    "check_batch",
    "parse_progress",
    "poll_batch",
    "write_artifact",
    "ProgressBoard",
    "render_progress_bar",
    "RetryPolicy",
    "is_server_error",
]
