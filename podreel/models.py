"""
Data models exchanged between the remote-service clients and the pipeline.

Models:
    Word: One timed word of the spoken script
    VideoCreationOptions: One fully-resolved video render request
    Clip: One time-bounded podcast segment with its image query
    StatusReport: One answer of a status endpoint

Enums:
    JobState: Whether a remote job is finished
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class JobState(str, Enum):
    """
    State of a remote job as seen through its status endpoint.

        READY: The finished artifact is available
        IN_PROGRESS: The job is still running (or not yet visible)
    """

    READY = "ready"
    IN_PROGRESS = "in_progress"


@dataclass
class Word:
    word: str
    start: float
    end: float

    def to_dict(self) -> dict[str, Any]:
        return {"word": self.word, "start": self.start, "end": self.end}


@dataclass
class VideoCreationOptions:
    """Everything the video render service needs for one clip."""

    start_time: float
    end_time: float
    speech_file_path: str
    music_file_path: str
    image_file_paths: list[str]
    text_data: list[Word]
    duration: float
    output_file_path: str
    video_size: Optional[tuple[int, int]] = None
    text_config: Optional[dict[str, str]] = None
    fps: Optional[int] = None


@dataclass
class Clip:
    segments: list[dict[str, Any]]
    query: str
    start_time: float
    end_time: float
    audio_base64: str = ""
    audio_buffer: Optional[bytes] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Clip":
        return cls(
            segments=data.get("segments") or [],
            query=data.get("query", ""),
            start_time=float(data.get("startTime", 0)),
            end_time=float(data.get("endTime", 0)),
            audio_base64=data.get("audioBase64") or "",
        )


@dataclass
class StatusReport:
    job_id: str
    state: JobState
    progress: float = 0.0
    payload: Optional[bytes] = field(default=None, repr=False)

    @property
    def is_ready(self) -> bool:
        return self.state == JobState.READY
