"""
Configuration settings for the remote-service clients.

This module defines the ServiceConfig dataclass holding the endpoints of the
podcast, image-search and video-render services together with the local paths
the pipeline writes to.
"""

import os
import tempfile
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables at module import time
load_dotenv()


@dataclass
class ServiceConfig:
    """Configuration for the podcast, image and video services"""

    # Remote services
    podcast_api_url: str = os.getenv(
        "PODCAST_API_URL", "https://http-bairingaru-okane-production-80.schnworks.com"
    )
    image_api_url: str = os.getenv(
        "IMAGE_API_URL", "https://http-fotosutokku-kiban-production-80.schnworks.com"
    )
    video_api_url: str = os.getenv(
        "VIDEO_API_URL",
        "https://http-chokkanteki-okane-production-80.schnworks.com/api/v1/video-creation/",
    )
    request_timeout_sec: float = float(os.getenv("REQUEST_TIMEOUT_SEC", "60"))

    # Images fetched per clip query
    image_limit: int = int(os.getenv("IMAGE_LIMIT", "12"))

    # Local paths
    music_file_path: str = os.getenv("MUSIC_FILE_PATH", "./sample-data/emo.mp3")
    cache_dir: str = os.getenv("CACHE_DIR", "data/cache")
    work_dir: Optional[str] = os.getenv("WORK_DIR")

    def __post_init__(self):
        """Normalise URLs and fall back to the system temp dir for work files"""
        self.podcast_api_url = self.podcast_api_url.rstrip("/")
        self.image_api_url = self.image_api_url.rstrip("/")
        if not self.video_api_url.endswith("/"):
            self.video_api_url += "/"
        if not self.work_dir:
            self.work_dir = tempfile.gettempdir()

    def validate(self) -> List[str]:
        """
        Validate configuration and return any error messages.

        Returns:
            List of error messages (empty when the configuration is usable)
        """
        errors = []
        for name in ("podcast_api_url", "image_api_url", "video_api_url"):
            if not getattr(self, name).startswith(("http://", "https://")):
                errors.append(f"{name} must be an http(s) URL")
        if self.request_timeout_sec <= 0:
            errors.append("request_timeout_sec must be positive")
        if self.image_limit < 1:
            errors.append("image_limit must be at least 1")
        return errors
