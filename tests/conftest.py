"""Shared fixtures: service configuration and mocked HTTP transport."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from podreel.services import ServiceConfig


@pytest.fixture
def service_config(tmp_path) -> ServiceConfig:
    return ServiceConfig(
        podcast_api_url="http://podcast.test/",
        image_api_url="http://images.test",
        video_api_url="http://video.test/api/v1/video-creation",
        request_timeout_sec=5,
        image_limit=2,
        music_file_path=str(tmp_path / "music.mp3"),
        cache_dir=str(tmp_path / "cache"),
        work_dir=str(tmp_path / "work"),
    )


@pytest.fixture
def make_http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an httpx.AsyncClient whose requests are answered by handler."""

    def _make(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
