"""
Video render service client.

Submits one render job per clip (speech audio, background music, images and
word timings as a multipart upload) and reports job state through the status
endpoint. The status endpoint answers with the finished mp4 itself once the
render is done, and with a JSON progress document before that.

Usage:
    async with VideoRenderClient() as client:
        job_ids = await client.bulk_submit(options_list)
        outcome = await poll_batch(client, job_ids, output_paths, PollConfig())
"""

import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import httpx

from podreel.errors import PodreelError, SubmissionError, StatusQueryError
from podreel.logger import log_function
from podreel.models import JobState, StatusReport, VideoCreationOptions
from podreel.polling import PollConfig, parse_progress, poll_batch
from .base import ServiceClient


VIDEO_CONTENT_TYPE = "video/mp4"
DEFAULT_VIDEO_SIZE = (2560, 1440)
DEFAULT_TEXT_CONFIG = {"font_color": "white", "background_color": "black"}
DEFAULT_FPS = 24


def _content_type(response: httpx.Response) -> str:
    return response.headers.get("content-type", "").split(";")[0].strip().lower()


class VideoRenderClient(ServiceClient):
    """A client for the video render service."""

    service_name = "video-render"

    @property
    def api_url(self) -> str:
        return self.config.video_api_url

    def validate_and_resolve_files(self, options: VideoCreationOptions) -> dict[str, Any]:
        """
        Check every asset of a render request and resolve it to an absolute path.

        Args:
            options: The render request

        Returns:
            dict with keys speech, music and images (list)

        Raises:
            ValueError: If no image is given
            FileNotFoundError: If an asset is missing or empty
        """
        if not options.image_file_paths:
            raise ValueError("No image files provided.")

        speech = os.path.abspath(options.speech_file_path)
        music = os.path.abspath(options.music_file_path)
        images = [os.path.abspath(path) for path in options.image_file_paths]

        for label, path in [("Speech", speech), ("Music", music)] + [
            ("Image", image) for image in images
        ]:
            if not os.path.isfile(path) or os.path.getsize(path) == 0:
                raise FileNotFoundError(f"{label} file is missing or empty: {path}")

        return {"speech": speech, "music": music, "images": images}

    def prepare_form(
        self, options: VideoCreationOptions, paths: dict[str, Any]
    ) -> tuple[dict[str, str], list[tuple[str, tuple[str, bytes]]]]:
        """Build the multipart data fields and file parts of a render request."""
        files = [
            ("speech_file", (os.path.basename(paths["speech"]), Path(paths["speech"]).read_bytes())),
            ("music_file", (os.path.basename(paths["music"]), Path(paths["music"]).read_bytes())),
        ]
        for image in paths["images"]:
            files.append(("image_files", (os.path.basename(image), Path(image).read_bytes())))

        data = {
            "text_data": json.dumps([word.to_dict() for word in options.text_data]),
            "video_size": json.dumps(list(options.video_size or DEFAULT_VIDEO_SIZE)),
            "text_config": json.dumps(options.text_config or DEFAULT_TEXT_CONFIG),
            "fps": str(options.fps or DEFAULT_FPS),
            "duration": str(options.duration),
            "start_time": str(options.start_time),
            "end_time": str(options.end_time),
        }
        return data, files

    @log_function(logger_name="services", log_execution_time=True)
    async def submit(self, options: VideoCreationOptions) -> str:
        """
        Submit one render request.

        Returns:
            str: The job (correlation) id issued by the service

        Raises:
            SubmissionError: If the service rejects the request or cannot be reached
        """
        paths = self.validate_and_resolve_files(options)
        data, files = self.prepare_form(options, paths)

        try:
            response = await self.client.post(self.api_url, data=data, files=files)
        except httpx.HTTPError as e:
            raise SubmissionError(self.service_name, detail=str(e)) from e

        if response.status_code == 400:
            self.logger.error(f"400 Bad Request response body: {response.text}")
            raise SubmissionError(
                self.service_name,
                400,
                "Bad Request: please check the provided video creation data",
            )
        if response.is_error:
            raise SubmissionError(self.service_name, response.status_code, response.text[:200])

        try:
            payload = response.json()
        except ValueError:
            payload = None
        job_id = payload.get("correlation_id") if isinstance(payload, dict) else None
        if not job_id:
            raise SubmissionError(
                self.service_name, response.status_code, "response has no correlation_id"
            )

        self.logger.info(f"Video processing started. Correlation ID: {job_id}")
        return str(job_id)

    @log_function(logger_name="services", log_execution_time=True)
    async def bulk_submit(self, options_list: list[VideoCreationOptions]) -> list[str]:
        """
        Submit render requests one after the other.

        Returns:
            list[str]: Job ids, positionally matching options_list

        Raises:
            SubmissionError: On the first rejected request; no partial list is returned
        """
        job_ids = []
        for index, options in enumerate(options_list):
            self.logger.debug(f"Processing request {index + 1} of {len(options_list)}")
            try:
                job_ids.append(await self.submit(options))
            except Exception as e:
                self.logger.error(f"Bulk video creation failed at request {index + 1}: {e}")
                raise
        self.logger.info(f"Bulk video creation requests submitted: {job_ids}")
        return job_ids

    async def fetch_status(self, job_id: str) -> StatusReport:
        """
        Query the status endpoint of one render job.

        Raises:
            StatusQueryError: On transport failures and 5xx answers
        """
        url = f"{self.api_url}{job_id}"
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise StatusQueryError(job_id, detail=str(e)) from e

        if response.status_code >= 500:
            raise StatusQueryError(job_id, response.status_code, response.text[:200])

        content_type = _content_type(response)
        self.logger.debug(f"Status {response.status_code} for {job_id}, content-type {content_type}")

        if content_type == VIDEO_CONTENT_TYPE:
            return StatusReport(job_id, JobState.READY, 100.0, response.content)

        progress = 0.0
        if content_type == "application/json":
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                progress = parse_progress(body.get("progress"))
        return StatusReport(job_id, JobState.IN_PROGRESS, progress)

    @log_function(logger_name="services", log_execution_time=True)
    async def create_video(
        self, options: VideoCreationOptions, poll_config: Optional[PollConfig] = None
    ) -> str:
        """
        Submit one render request and poll until its video is saved.

        Returns:
            str: The output file path

        Raises:
            SubmissionError: If the request is rejected
            PodreelError: The last polling error when the video never became ready
        """
        poll_config = poll_config or PollConfig()
        errors: list[BaseException] = []

        def on_error(index: int, error: BaseException) -> None:
            errors.append(error)
            if poll_config.on_error is not None:
                poll_config.on_error(index, error)

        job_id = await self.submit(options)
        outcome = await poll_batch(
            self,
            [job_id],
            [options.output_file_path],
            replace(poll_config, on_error=on_error),
        )
        if not outcome.all_completed:
            if errors:
                raise errors[-1]
            raise PodreelError(f"Video {job_id} was not created")
        return options.output_file_path
