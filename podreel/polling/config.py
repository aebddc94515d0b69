"""
Configuration for the batch polling engine.

Observers receive 0-based batch indices so callers can map them back to the
positional output paths they submitted.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional


ProgressObserver = Callable[[int, int, float], None]
SuccessObserver = Callable[[int, str], None]
ErrorObserver = Callable[[int, BaseException], None]


@dataclass
class PollConfig:
    """Configuration for one batch polling run"""

    # 12 rounds per minute for 15 minutes
    max_attempts: int = 12 * 15
    delay: float = 5.0

    # Observers: on_progress(index, attempt, progress), on_success(index, path),
    # on_error(index, error)
    on_progress: Optional[ProgressObserver] = None
    on_success: Optional[SuccessObserver] = None
    on_error: Optional[ErrorObserver] = None

    def validate(self) -> List[str]:
        errors = []
        if self.max_attempts < 1:
            errors.append("max_attempts must be at least 1")
        if self.delay < 0:
            errors.append("delay must not be negative")
        return errors
