"""
Image search service client.

A search session is started for one query; the service then collects images
in the background. The client polls the image count until enough images are
available and downloads them one index at a time.
"""

import asyncio
from typing import Optional
from urllib.parse import quote

import httpx

from podreel.errors import ImageUnavailableError, PollTimeoutError, SubmissionError
from podreel.logger import log_function
from .base import ServiceClient
from .config import ServiceConfig


class ImageSearchClient(ServiceClient):
    """A client for the image search service, bound to one query."""

    service_name = "image-search"

    def __init__(
        self,
        query: str,
        limit: Optional[int] = None,
        config: Optional[ServiceConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(config, http_client)
        if not query:
            raise ValueError("Query is required for image search.")
        self.query = query
        self.limit = limit or self.config.image_limit

    @property
    def api_url(self) -> str:
        return self.config.image_api_url

    async def start_quick_search_session(
        self, task_id: Optional[str] = None, output: str = "image", index: int = 0
    ) -> str:
        """
        Start a search session for the query.

        Returns:
            str: The session (conversation) id

        Raises:
            SubmissionError: If the session cannot be started
        """
        body = {
            "query": self.query,
            "output": output,
            "limit": str(self.limit),
            "index": str(index),
        }
        if task_id:
            body["taskId"] = task_id

        try:
            response = await self.client.post(f"{self.api_url}/quick-search", json=body)
        except httpx.HTTPError as e:
            raise SubmissionError(self.service_name, detail=str(e)) from e
        if response.is_error:
            raise SubmissionError(self.service_name, response.status_code, response.text[:200])

        try:
            payload = response.json()
        except ValueError:
            payload = None
        return str(payload.get("conversationId", "")) if isinstance(payload, dict) else ""

    async def fetch_image_count(self) -> int:
        response = await self.client.get(f"{self.api_url}/image-count/{quote(self.query, safe='')}")
        response.raise_for_status()
        count = int(response.json().get("count", 0))
        self.logger.debug(f"Fetched image count for query '{self.query}': {count}")
        return count

    async def has_enough_images(self, min_count: Optional[int] = None) -> bool:
        min_count = self.limit if min_count is None else min_count
        try:
            return await self.fetch_image_count() >= min_count
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            self.logger.error(f"Error checking image count: {e}")
            return False

    async def wait_for_images(
        self, retries: int = 5 * 60, interval: float = 1.0, min_count: int = 1
    ) -> int:
        """
        Poll the image count until at least min_count images exist.

        Returns:
            int: The image count

        Raises:
            PollTimeoutError: After retries unsuccessful checks
        """
        for attempt in range(retries):
            enough = await self.has_enough_images(min_count)
            self.logger.debug(
                f"Attempt {attempt + 1}: {'sufficient images found' if enough else 'not enough images yet'}"
            )
            if enough:
                return await self.fetch_image_count()
            if attempt < retries - 1:
                await asyncio.sleep(interval)

        raise PollTimeoutError(f"images:{self.query}", retries)

    def _check_image_response(self, response: httpx.Response) -> bytes:
        response.raise_for_status()
        if "application/json" in response.headers.get("content-type", ""):
            try:
                file_key = response.json().get("fileKey")
            except (ValueError, AttributeError):
                file_key = None
            raise ImageUnavailableError(file_key)
        return response.content

    async def get_image(self, index: int) -> bytes:
        if index < 0:
            raise ValueError("Invalid image index.")
        response = await self.client.get(
            f"{self.api_url}/get-image",
            params={"query": self.query, "output": "image", "index": str(index)},
        )
        return self._check_image_response(response)

    async def get_image_jpg(self, index: int) -> bytes:
        url = f"{self.api_url}/get-image/image/{quote(self.query, safe='')}/{index}/image.jpg"
        response = await self.client.get(url)
        return self._check_image_response(response)

    @log_function(logger_name="services", log_execution_time=True)
    async def download_all_images(
        self, retries: int = 5 * 60, interval: float = 1.0
    ) -> list[bytes]:
        """
        Run a search session and download up to limit images.

        Indices that fail to download are logged and skipped.
        """
        await self.start_quick_search_session()
        await self.wait_for_images(retries=retries, interval=interval, min_count=self.limit)

        count = await self.fetch_image_count()
        results = []
        for index in range(min(self.limit, count)):
            try:
                results.append(await self.get_image(index))
            except (httpx.HTTPError, ImageUnavailableError) as e:
                self.logger.warning(f"Failed to download image {index} for '{self.query}': {e}")
        return results
