"""
Content preparation for the video pipeline.

Turns a prompt into a list of render requests:
1. Generate the bilingual podcast (script, audio and trimmed clips)
2. Split the response into clips
3. For each clip: extract word timings, save its speech audio, fetch images
   for its query and build a VideoCreationOptions
"""

import base64
import binascii
import logging
import os
import random
import re
import time
from typing import Any, Callable, Optional

from podreel.logger import log_function
from podreel.models import Clip, VideoCreationOptions
from podreel.services import ImageSearchClient, PodcastClient, ServiceConfig
from .words import extract_words

CLIP_FPS = 2
CLIP_VIDEO_SIZE = (1920, 1080)
CLIP_TEXT_CONFIG = {"font_color": "white", "background_color": "black"}


def _decode_audio(data: str) -> bytes:
    try:
        return base64.b64decode(data or "")
    except (binascii.Error, ValueError):
        return b""


class ContentProcessor:
    """
    Builds video render requests from a generated podcast.

    Args:
        podcast_client: Client of the podcast generation service
        config: Service configuration (work dir, music file, image limit)
        image_client_factory: Builds an image search client for a query
    """

    def __init__(
        self,
        podcast_client: PodcastClient,
        config: Optional[ServiceConfig] = None,
        image_client_factory: Optional[Callable[[str], ImageSearchClient]] = None,
    ):
        self.podcast_client = podcast_client
        self.config = config or podcast_client.config
        self._image_client_factory = image_client_factory or (
            lambda query: ImageSearchClient(query, config=self.config)
        )
        self._image_clients: dict[str, ImageSearchClient] = {}
        os.makedirs(self.config.work_dir, exist_ok=True)
        self.logger = logging.getLogger("content")

    async def aclose(self) -> None:
        for client in self._image_clients.values():
            await client.aclose()
        self._image_clients.clear()

    async def check_service_health(self) -> bool:
        self.logger.debug("Checking service health...")
        healthy = await self.podcast_client.check_health()
        if not healthy:
            self.logger.error("Service health check failed. Aborting...")
        return healthy

    @log_function(logger_name="content", log_execution_time=True)
    async def generate_content(self, prompt: str) -> Optional[dict[str, Any]]:
        response = await self.podcast_client.create_and_wait_for_podcast(prompt)
        if response:
            self.logger.info("Content generated.")
        else:
            self.logger.error("Content generation failed.")
        return response

    def extract_clips_from_response(self, response: Optional[dict[str, Any]]) -> list[Clip]:
        """
        Extract the trimmed clips of a podcast response.

        Each clip carries its own decoded audio; clips without audio fall back
        to the audio of the full podcast.
        """
        if not response or not response.get("choices"):
            return []

        audio = response["choices"][0].get("message", {}).get("audio", {}) or {}
        full_audio = _decode_audio(audio.get("data", ""))

        clips = []
        for raw in audio.get("trimmed") or []:
            clip = Clip.from_dict(raw)
            clip.audio_buffer = _decode_audio(clip.audio_base64) or full_audio
            clips.append(clip)

        self.logger.debug(f"Extracted {len(clips)} clips from response")
        return clips

    async def fetch_images(self, query: str) -> list[str]:
        """
        Download the images for a query into the work dir.

        Returns:
            list[str]: Paths of the saved images
        """
        client = self._image_clients.get(query)
        if client is None:
            client = self._image_client_factory(query)
            self._image_clients[query] = client

        images = await client.download_all_images()
        slug = re.sub(r"\s+", "_", query)

        paths = []
        for index, content in enumerate(images):
            path = os.path.join(self.config.work_dir, f"temp_image_{slug}_{index}.jpg")
            with open(path, "wb") as f:
                f.write(content)
            self.logger.debug(f"Saved image {index} for query '{query}' at {path}")
            paths.append(path)
        return paths

    def _save_audio(self, clip: Clip, path: str) -> None:
        with open(path, "wb") as f:
            f.write(clip.audio_buffer or b"")

    async def create_video_options_from_clip(
        self, clip: Clip, index: int
    ) -> VideoCreationOptions:
        """
        Build the render request of one clip.

        Raises:
            InvalidWordTimingError: If the clip carries inconsistent word timings
        """
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 9999)}"
        output_file_path = os.path.join(self.config.work_dir, f"te-{index}-{suffix}.mp4")

        words = extract_words(clip)
        speech_file_path = os.path.join(self.config.work_dir, f"speech-{index}.aac")
        self._save_audio(clip, speech_file_path)

        image_file_paths = await self.fetch_images(clip.query)

        return VideoCreationOptions(
            start_time=clip.start_time,
            end_time=clip.end_time,
            speech_file_path=speech_file_path,
            music_file_path=self.config.music_file_path,
            image_file_paths=image_file_paths,
            text_data=words,
            duration=words[-1].end if words else clip.end_time,
            output_file_path=output_file_path,
            video_size=CLIP_VIDEO_SIZE,
            text_config=dict(CLIP_TEXT_CONFIG),
            fps=CLIP_FPS,
        )

    @log_function(logger_name="content", log_execution_time=True)
    async def compile_video_creation_options(
        self, clips: list[Clip]
    ) -> list[VideoCreationOptions]:
        """Build render requests for all clips, one clip at a time, numbered from 1."""
        options = []
        for number, clip in enumerate(clips, start=1):
            options.append(await self.create_video_options_from_clip(clip, number))
        return options
