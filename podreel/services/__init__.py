"""
Remote service clients.

Each external service is reached over HTTP through its own async client:
    - PodcastClient: bilingual podcast script and audio generation
    - ImageSearchClient: image search sessions and image downloads
    - VideoRenderClient: per-clip video rendering (also the polling status source)

All clients share ServiceConfig and accept an injected httpx.AsyncClient.
"""

from .base import ServiceClient
from .config import ServiceConfig
from .images import ImageSearchClient
from .podcast import PodcastClient, djb2
from .video import VideoRenderClient, VIDEO_CONTENT_TYPE

__all__ = [
    "ServiceClient",
    "ServiceConfig",
    "ImageSearchClient",
    "PodcastClient",
    "djb2",
    "VideoRenderClient",
    "VIDEO_CONTENT_TYPE",
]
