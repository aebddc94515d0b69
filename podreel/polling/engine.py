"""
Batch polling engine.

Polls a status endpoint for every outstanding job of a batch, one query per
job per round, until every job is ready or the attempt budget is spent.

Rules:
- Jobs are visited in batch order every round; finished jobs are skipped.
- A ready job has its artifact written to the output path at the same index.
- A failing status query is reported through on_error and retried next round.
- The sleep between rounds is shared by the whole batch.
- Jobs still unfinished after the last round get one on_error call carrying a
  PollTimeoutError; the engine itself never raises for them.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence

from podreel.errors import (
    BatchMismatchError,
    PodreelError,
    PollTimeoutError,
    StatusQueryError,
)
from podreel.logger import log_function
from podreel.models import StatusReport
from .config import PollConfig
from .progress import ProgressBoard


class StatusSource(Protocol):
    """Anything able to report the state of a remote job."""

    async def fetch_status(self, job_id: str) -> StatusReport: ...


@dataclass
class BatchOutcome:
    """Per-index completion flags of a finished polling run."""

    completed: list[bool]

    @property
    def all_completed(self) -> bool:
        return all(self.completed)

    @property
    def succeeded(self) -> list[int]:
        return [index for index, done in enumerate(self.completed) if done]

    @property
    def failed(self) -> list[int]:
        return [index for index, done in enumerate(self.completed) if not done]


def check_batch(ids: Sequence[str], outputs: Sequence[str]) -> None:
    """Raise BatchMismatchError unless ids and outputs pair up one to one."""
    if len(ids) != len(outputs):
        raise BatchMismatchError(len(ids), len(outputs))


def parse_progress(value: Any) -> float:
    """
    Convert a reported progress value to a percentage in [0, 100].

    Missing or unparseable values count as 0.
    """
    try:
        progress = float(value)
    except (TypeError, ValueError):
        return 0.0
    if progress != progress:  # NaN
        return 0.0
    return min(max(progress, 0.0), 100.0)


async def write_artifact(report: StatusReport, output_path: str) -> str:
    """Write the payload of a ready report to output_path."""
    if report.payload is None:
        raise StatusQueryError(report.job_id, detail="ready report carries no payload")

    def _write() -> None:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(report.payload)

    await asyncio.to_thread(_write)
    return output_path


def _notify(observer: Optional[Callable[..., None]], *args) -> None:
    if observer is not None:
        observer(*args)


@log_function(logger_name="polling", log_execution_time=True)
async def poll_batch(
    source: StatusSource,
    ids: Sequence[str],
    outputs: Sequence[str],
    config: Optional[PollConfig] = None,
    board: Optional[ProgressBoard] = None,
) -> BatchOutcome:
    """
    Poll every job of a batch until it is ready or attempts run out.

    Args:
        source: Status endpoint wrapper
        ids: Job ids, in batch order
        outputs: Output paths, positionally matching ids
        config: Attempt budget, delay and observers
        board: Optional console board printing progress once per round

    Returns:
        BatchOutcome with one completion flag per index

    Raises:
        BatchMismatchError: If ids and outputs differ in length (before any query)
    """
    check_batch(ids, outputs)
    config = config or PollConfig()
    logger = logging.getLogger("polling")

    completed = [False] * len(ids)
    logger.info(
        f"Polling {len(ids)} jobs (max {config.max_attempts} rounds, {config.delay}s apart)"
    )

    for attempt in range(config.max_attempts):
        logger.debug(f"Bulk polling attempt {attempt + 1} of {config.max_attempts}")

        for index, job_id in enumerate(ids):
            if completed[index]:
                continue

            try:
                report = await source.fetch_status(job_id)
                if report.is_ready:
                    await write_artifact(report, outputs[index])
            except (PodreelError, OSError) as e:
                logger.warning(f"[Job {index + 1}] Polling error for {job_id}: {e}")
                _notify(config.on_error, index, e)
                continue

            if report.is_ready:
                completed[index] = True
                logger.info(f"[Job {index + 1}] {job_id} ready, saved to {outputs[index]}")
                _notify(config.on_success, index, outputs[index])
                continue

            progress = parse_progress(report.progress)
            if board is not None:
                board.add(index, progress)
            _notify(config.on_progress, index, attempt, progress)

        if board is not None:
            board.flush()

        if all(completed):
            logger.info("All jobs of the batch are ready")
            return BatchOutcome(completed)

        if attempt < config.max_attempts - 1:
            logger.debug(f"Waiting {config.delay}s before next polling round")
            await asyncio.sleep(config.delay)

    for index, job_id in enumerate(ids):
        if not completed[index]:
            logger.error(f"[Job {index + 1}] Polling timed out for {job_id}")
            _notify(config.on_error, index, PollTimeoutError(job_id, config.max_attempts))

    return BatchOutcome(completed)
