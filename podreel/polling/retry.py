"""
Two-level retry policy.

The inner level is a bounded polling loop (max_attempts tries, delay seconds
apart) implemented by the operation itself. The outer level restarts the whole
inner loop when it fails with a restartable error, at most max_restarts times
and restart_delay seconds apart.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import httpx


T = TypeVar("T")


def is_server_error(error: BaseException) -> bool:
    """Return True for HTTP 5xx responses raised by httpx."""
    return (
        isinstance(error, httpx.HTTPStatusError)
        and 500 <= error.response.status_code < 600
    )


@dataclass
class RetryPolicy:
    max_attempts: int = 10
    delay: float = 5.0
    max_restarts: int = 5
    restart_delay: float = 60.0
    should_restart: Callable[[BaseException], bool] = is_server_error

    async def run(
        self, operation: Callable[[int, float], Awaitable[Optional[T]]]
    ) -> Optional[T]:
        """
        Run operation(max_attempts, delay) under the outer restart loop.

        Args:
            operation: Coroutine function implementing the inner polling loop.
                It returns a result, or None once its own attempts are exhausted.

        Returns:
            The operation result, or None when the inner loop gave up or every
            restart was used.

        Raises:
            Exception: Any error the should_restart predicate rejects.
        """
        logger = logging.getLogger("polling")
        restarts = 0
        while restarts < self.max_restarts:
            try:
                return await operation(self.max_attempts, self.delay)
            except Exception as e:
                if not self.should_restart(e):
                    raise
                restarts += 1
                logger.warning(
                    f"Restartable error ({e}) encountered ({restarts}/{self.max_restarts})"
                )
                if restarts < self.max_restarts:
                    await asyncio.sleep(self.restart_delay)

        logger.error(f"Max restarts ({self.max_restarts}) reached, giving up")
        return None
