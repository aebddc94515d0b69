"""
Correlation tracker.

Keeps one record per job id and lets independent callers wait for the joint
completion of any subset of ids. Completions usually arrive from a push feed,
in any order, possibly duplicated, possibly for ids no caller asked about.

Invariants:
- A record's completed flag never goes back to False.
- Each wait registration is resolved at most once and is dropped from the
  active list as soon as it resolves.
- A registration whose ids are all complete at registration time is returned
  already resolved.

Everything runs on one event loop, so no locking is done here. Callers driving
the tracker from several OS threads must serialise access themselves.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional


@dataclass
class JobRecord:
    job_id: str
    completed: bool = False
    progress: float = 0.0


@dataclass
class WaitRegistration:
    ids: frozenset[str]
    future: asyncio.Future = field(repr=False)


class CorrelationTracker:
    """
    Registry of job completion state with multi-waiter fan-out.

    A tracker is an ordinary object: create one per pipeline process (or per
    batch) and hand it to the components that need it.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._records: dict[str, JobRecord] = {}
        self._registrations: list[WaitRegistration] = []
        self.logger = logging.getLogger("tracker")

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def _record(self, job_id: str) -> JobRecord:
        record = self._records.get(job_id)
        if record is None:
            record = JobRecord(job_id)
            self._records[job_id] = record
        return record

    def is_completed(self, job_id: str) -> bool:
        record = self._records.get(job_id)
        return record is not None and record.completed

    @property
    def pending_registrations(self) -> int:
        return len(self._registrations)

    def wait_for_all(self, job_ids: Iterable[str]) -> asyncio.Future:
        """
        Register interest in the joint completion of job_ids.

        Args:
            job_ids: Non-empty collection of job ids

        Returns:
            A future resolved with None once every id is completed. It is
            already resolved when every id was completed beforehand.

        Raises:
            ValueError: If job_ids is empty
        """
        ids = frozenset(job_ids)
        if not ids:
            raise ValueError("wait_for_all requires at least one job id")

        future = self._get_loop().create_future()

        if all(self.is_completed(job_id) for job_id in ids):
            self.logger.info(f"All job ids already completed: {', '.join(sorted(ids))}")
            future.set_result(None)
            return future

        for job_id in ids:
            self._record(job_id)

        self._registrations.append(WaitRegistration(ids, future))
        self.logger.debug(f"Waiting for job ids: {', '.join(sorted(ids))}")
        return future

    def mark_completed(self, job_id: str) -> None:
        """
        Mark job_id as completed and resolve every registration it finishes.

        Calling it again for an already-completed id changes nothing. Unknown
        ids are recorded so later registrations see them as completed.
        """
        record = self._record(job_id)
        if record.completed:
            self.logger.debug(f"Duplicate completion ignored: {job_id}")
            return

        record.completed = True
        record.progress = 100.0
        self.logger.info(f"Marked completed: {job_id}")

        remaining = []
        for registration in self._registrations:
            if registration.future.done():
                # Cancelled by its owner (e.g. a wait_for timeout)
                continue
            if all(self.is_completed(i) for i in registration.ids):
                registration.future.set_result(None)
                self.logger.debug(
                    f"Resolved registration for: {', '.join(sorted(registration.ids))}"
                )
                continue
            self.logger.debug(
                f"Total progress for {', '.join(sorted(registration.ids))}: "
                f"{self.calculate_total_progress(registration.ids):.1f}%"
            )
            remaining.append(registration)
        self._registrations = remaining

    def set_progress(self, job_id: str, percentage: float) -> None:
        """Store the last reported progress of job_id, clamped to [0, 100]."""
        if job_id not in self._records:
            self.logger.warning(f"Progress set for unknown job id: {job_id}")
        record = self._record(job_id)
        record.progress = min(max(float(percentage), 0.0), 100.0)
        self.logger.debug(f"Progress for {job_id}: {record.progress}%")

    def get_progress(self, job_id: str) -> float:
        record = self._records.get(job_id)
        return record.progress if record is not None else 0.0

    def calculate_total_progress(self, job_ids: Iterable[str]) -> float:
        """Mean progress over job_ids; unknown ids count as 0, no ids as 0."""
        ids = list(job_ids)
        if not ids:
            return 0.0
        total = sum(self.get_progress(job_id) for job_id in ids)
        return total / len(ids)
