"""
Completion strategies for a submitted batch.

A strategy learns when the jobs of a batch are finished and writes each
finished artifact to the output path at the same index:
    - PollingStrategy: queries the status endpoint of every job each round
    - FeedStrategy: waits for completion events, then fetches every artifact
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Callable, Optional, Sequence

from podreel.errors import FeedClosedError, StatusQueryError
from podreel.feed import CompletionFeedListener
from podreel.polling import (
    BatchOutcome,
    PollConfig,
    ProgressBoard,
    StatusSource,
    check_batch,
    poll_batch,
    write_artifact,
)
from podreel.tracking import CorrelationTracker

logger = logging.getLogger("pipeline")


def _chain(first: Callable[..., None], second: Optional[Callable[..., None]]) -> Callable[..., None]:
    if second is None:
        return first

    def observer(*args) -> None:
        first(*args)
        second(*args)

    return observer


class CompletionStrategy(ABC):
    """Base class for the ways a batch can be waited on."""

    name: str = ""

    async def prepare(self) -> None:
        """Called once before any job of the batch is submitted."""

    @abstractmethod
    async def wait(self, ids: Sequence[str], outputs: Sequence[str]) -> BatchOutcome:
        """Wait for the batch and write every finished artifact."""

    async def close(self) -> None:
        """Release whatever prepare() acquired."""


class PollingStrategy(CompletionStrategy):
    """Polls the status endpoint of every job until it is ready."""

    name = "poll"

    def __init__(
        self,
        source: StatusSource,
        poll_config: Optional[PollConfig] = None,
        board: Optional[ProgressBoard] = None,
    ):
        self.source = source
        # One round per second for 20 minutes
        self.poll_config = poll_config or PollConfig(max_attempts=60 * 20, delay=1.0)
        self.board = board

    @staticmethod
    def _log_success(index: int, path: str) -> None:
        logger.info(f"[Clip {index + 1}] Video completed at {path}")

    @staticmethod
    def _log_error(index: int, error: BaseException) -> None:
        logger.error(f"[Clip {index + 1}] Polling error: {error}")

    async def wait(self, ids: Sequence[str], outputs: Sequence[str]) -> BatchOutcome:
        config = replace(
            self.poll_config,
            on_success=_chain(self._log_success, self.poll_config.on_success),
            on_error=_chain(self._log_error, self.poll_config.on_error),
        )
        return await poll_batch(self.source, ids, outputs, config, self.board)


class FeedStrategy(CompletionStrategy):
    """
    Waits for completion events from the feed, then retrieves every artifact.

    The feed only signals completion; artifacts are fetched afterwards, one at
    a time, in batch order. With a timeout, jobs still unfinished when it
    expires are reported as failed.
    """

    name = "feed"

    def __init__(
        self,
        listener: CompletionFeedListener,
        tracker: CorrelationTracker,
        source: StatusSource,
        timeout: Optional[float] = None,
    ):
        self.listener = listener
        self.tracker = tracker
        self.source = source
        self.timeout = timeout

    async def prepare(self) -> None:
        await self.listener.start()

    async def close(self) -> None:
        await self.listener.stop()

    async def wait(self, ids: Sequence[str], outputs: Sequence[str]) -> BatchOutcome:
        """
        Raises:
            FeedClosedError: If the feed stops before every job completed
            StatusQueryError: If a completed job has no video to download
        """
        check_batch(ids, outputs)
        if not ids:
            return BatchOutcome([])

        logger.info(f"Waiting for {len(ids)} completion events")
        future = self.tracker.wait_for_all(ids)
        pending = {future}
        feed_task = self.listener.task
        if feed_task is not None:
            pending.add(feed_task)

        try:
            await asyncio.wait(pending, timeout=self.timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            finished = future.done()
            if not finished:
                future.cancel()
        if not finished:
            if feed_task is not None and feed_task.done():
                raise FeedClosedError("Completion feed stopped before every job completed")
            logger.error(f"Timed out after {self.timeout}s waiting for completion events")

        completed = []
        for index, job_id in enumerate(ids):
            if not self.tracker.is_completed(job_id):
                logger.error(f"[Clip {index + 1}] No completion received for {job_id}")
                completed.append(False)
                continue

            report = await self.source.fetch_status(job_id)
            if not report.is_ready:
                raise StatusQueryError(job_id, detail="job reported completed but no video is available")
            await write_artifact(report, outputs[index])
            logger.info(f"[Clip {index + 1}] Video completed at {outputs[index]}")
            completed.append(True)

        return BatchOutcome(completed)
