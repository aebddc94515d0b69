"""
Bilingual podcast service client.

The service turns a prompt into a bilingual script, synthesised audio and
time-stamped clips. Generation takes minutes: a job is created, then its
status endpoint is polled until the response carries "choices".

Finished responses are cached on disk, keyed by a hash of the prompt, so the
same prompt is never generated twice.
"""

import asyncio
from typing import Any, Optional

import httpx

from podreel.errors import SubmissionError
from podreel.logger import log_function
from podreel.polling import RetryPolicy
from podreel.storage import BaseStorage, LocalStorage
from .base import ServiceClient
from .config import ServiceConfig


def djb2(text: str) -> int:
    """32-bit unsigned djb2 hash over the UTF-16 code units of text."""
    value = 5381
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        value = ((value << 5) + value + unit) & 0xFFFFFFFF
    return value


class PodcastClient(ServiceClient):
    """A client for the bilingual podcast generation service."""

    service_name = "podcast"

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        storage: Optional[BaseStorage] = None,
    ):
        super().__init__(config, http_client)
        self.storage = storage or LocalStorage(self.config.cache_dir)

    @property
    def api_url(self) -> str:
        return self.config.podcast_api_url

    async def check_health(self) -> bool:
        """Return True when the service answers its health endpoint with 200."""
        try:
            response = await self.client.get(f"{self.api_url}/healthz")
        except httpx.HTTPError as e:
            self.logger.error(f"Error checking podcast service health: {e}")
            return False

        if response.status_code == 200:
            self.logger.info("Podcast service is healthy.")
            return True
        self.logger.error(f"Podcast service health check failed. Status: {response.status_code}")
        return False

    @log_function(logger_name="services", log_execution_time=True)
    async def create_podcast(self, prompt: str) -> str:
        """
        Create a podcast generation job.

        Returns:
            str: The job (correlation) id

        Raises:
            SubmissionError: If the job is not accepted
        """
        try:
            response = await self.client.post(
                f"{self.api_url}/api/podcasts", json={"prompt": prompt}
            )
        except httpx.HTTPError as e:
            raise SubmissionError(self.service_name, detail=str(e)) from e

        if response.is_error:
            raise SubmissionError(self.service_name, response.status_code, response.text[:200])

        try:
            payload = response.json()
        except ValueError:
            payload = None
        job_id = payload.get("correlationId") if isinstance(payload, dict) else None
        if not job_id:
            raise SubmissionError(
                self.service_name, response.status_code, "Failed to retrieve correlationId"
            )
        return str(job_id)

    async def get_podcast_status(self, job_id: str) -> dict[str, Any]:
        """
        Fetch the current status document of a job.

        4xx answers are returned as regular (not ready) documents.

        Raises:
            httpx.HTTPStatusError: On 5xx answers
        """
        response = await self.client.get(f"{self.api_url}/api/podcasts/{job_id}")
        if response.status_code >= 500:
            response.raise_for_status()
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    async def poll_for_podcast_status(
        self, job_id: str, max_attempts: int, delay: float
    ) -> Optional[dict[str, Any]]:
        """Poll until the status document carries choices, None after max_attempts."""
        for attempt in range(max_attempts):
            status = await self.get_podcast_status(job_id)

            if status.get("error"):
                self.logger.error(f"Podcast generation error: {status['error']}")
            if status.get("choices"):
                return status

            self.logger.info(
                f"Attempt {attempt + 1}: podcast {job_id} not ready yet. Retrying in {delay}s..."
            )
            if attempt < max_attempts - 1:
                await asyncio.sleep(delay)

        return None

    @log_function(logger_name="services", log_execution_time=True)
    async def wait_for_podcast(
        self, job_id: str, policy: Optional[RetryPolicy] = None
    ) -> Optional[dict[str, Any]]:
        """
        Wait for a podcast job under a two-level retry policy.

        The inner loop polls up to policy.max_attempts times; a 5xx answer
        restarts the inner loop after policy.restart_delay, at most
        policy.max_restarts times. Other failures end the wait.

        Returns:
            The finished response, or None when the podcast never became available
        """
        policy = policy or RetryPolicy()

        async def _poll(max_attempts: int, delay: float) -> Optional[dict[str, Any]]:
            return await self.poll_for_podcast_status(job_id, max_attempts, delay)

        try:
            response = await policy.run(_poll)
        except httpx.HTTPError as e:
            self.logger.error(f"Error waiting for podcast {job_id}: {e}")
            return None

        if response is None:
            self.logger.error(f"Max retries reached. Podcast {job_id} not available.")
        return response

    @log_function(logger_name="services", log_execution_time=True)
    async def create_and_wait_for_podcast(
        self, prompt: str, policy: Optional[RetryPolicy] = None
    ) -> Optional[dict[str, Any]]:
        """
        Return the finished podcast for prompt, from cache when available.

        Raises:
            SubmissionError: If the generation job is not accepted
        """
        policy = policy or RetryPolicy(max_attempts=12 * 30, delay=5.0)
        cache_key = f"full_podcast_{djb2(prompt)}.json"

        cached = self.storage.read_json(cache_key)
        if cached:
            self.logger.info(f"Podcast loaded from cache: {cache_key}")
            return cached

        job_id = await self.create_podcast(prompt)
        self.logger.info(f"Podcast job created: {job_id}")
        response = await self.wait_for_podcast(job_id, policy)

        if response:
            self.storage.write_json(cache_key, response)
        return response
