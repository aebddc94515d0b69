"""
Error taxonomy for podreel.

Structural errors (BatchMismatchError, SubmissionError) abort a whole batch.
Per-job errors (StatusQueryError, PollTimeoutError) are reported through the
polling observers and never abort sibling jobs.
"""

from typing import Optional


class PodreelError(Exception):
    """Base class for every error raised by podreel."""


class SubmissionError(PodreelError):
    """A unit of work was not accepted by the remote service."""

    def __init__(self, service: str, status: Optional[int] = None, detail: str = ""):
        self.service = service
        self.status = status
        self.detail = detail
        message = f"{service} submission failed"
        if status is not None:
            message += f" (HTTP {status})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class StatusQueryError(PodreelError):
    """Transient failure while querying the status of one job."""

    def __init__(self, job_id: str, status: Optional[int] = None, detail: str = ""):
        self.job_id = job_id
        self.status = status
        self.detail = detail
        message = f"Status query failed for {job_id}"
        if status is not None:
            message += f" (HTTP {status})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class PollTimeoutError(PodreelError, TimeoutError):
    """Polling attempts were exhausted before a job became ready."""

    def __init__(self, job_id: str, attempts: int):
        self.job_id = job_id
        self.attempts = attempts
        super().__init__(f"Polling timed out for {job_id} after {attempts} attempts")


class MalformedEventError(PodreelError):
    """A completion feed message could not be parsed."""


class FeedClosedError(PodreelError):
    """The completion feed stopped while a batch was still waiting on it."""


class BatchMismatchError(PodreelError, ValueError):
    """Job id count and output path count differ."""

    def __init__(self, id_count: int, output_count: int):
        self.id_count = id_count
        self.output_count = output_count
        super().__init__(
            f"Mismatch between job ids ({id_count}) and output paths ({output_count})"
        )


class ImageUnavailableError(PodreelError):
    """The image service answered with a placeholder instead of image bytes."""

    def __init__(self, file_key: Optional[str]):
        self.file_key = file_key
        super().__init__(f"Image unavailable. FileKey: {file_key}")


class ConcatenationError(PodreelError):
    """ffmpeg exited with a non-zero code while concatenating clips."""

    def __init__(self, returncode: int, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"ffmpeg process exited with code {returncode}")


class InvalidWordTimingError(PodreelError, ValueError):
    """A word has a start time at or after its end time."""
