import httpx
import pytest

from podreel.errors import ImageUnavailableError, PollTimeoutError
from podreel.services import ImageSearchClient


def test_query_is_required(service_config):
    with pytest.raises(ValueError):
        ImageSearchClient("", config=service_config)


@pytest.mark.asyncio
async def test_quick_search_returns_conversation_id(service_config, make_http_client):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json={"conversationId": "conv-7"})

    client = ImageSearchClient("red fox", config=service_config, http_client=make_http_client(handler))

    assert await client.start_quick_search_session() == "conv-7"
    assert seen["path"] == "/quick-search"
    assert b'"limit": "2"' in seen["body"] or b'"limit":"2"' in seen["body"]


@pytest.mark.asyncio
async def test_wait_for_images_polls_the_count(service_config, make_http_client):
    counts = iter([0, 1, 3, 3])
    client = ImageSearchClient(
        "red fox",
        config=service_config,
        http_client=make_http_client(lambda r: httpx.Response(200, json={"count": next(counts)})),
    )

    assert await client.wait_for_images(retries=5, interval=0, min_count=2) == 3


@pytest.mark.asyncio
async def test_wait_for_images_times_out(service_config, make_http_client):
    client = ImageSearchClient(
        "red fox",
        config=service_config,
        http_client=make_http_client(lambda r: httpx.Response(500)),
    )

    with pytest.raises(PollTimeoutError):
        await client.wait_for_images(retries=2, interval=0)


@pytest.mark.asyncio
async def test_json_answer_means_image_unavailable(service_config, make_http_client):
    client = ImageSearchClient(
        "red fox",
        config=service_config,
        http_client=make_http_client(lambda r: httpx.Response(200, json={"fileKey": "k-1"})),
    )

    with pytest.raises(ImageUnavailableError) as excinfo:
        await client.get_image(0)
    assert excinfo.value.file_key == "k-1"


@pytest.mark.asyncio
async def test_download_all_images_skips_unavailable(service_config, make_http_client):
    def handler(request):
        path = request.url.path
        if path == "/quick-search":
            return httpx.Response(200, json={"conversationId": "conv-1"})
        if path.startswith("/image-count/"):
            return httpx.Response(200, json={"count": 2})
        if path == "/get-image":
            index = request.url.params["index"]
            if index == "1":
                return httpx.Response(200, json={"fileKey": "missing"})
            return httpx.Response(200, headers={"content-type": "image/jpeg"}, content=b"jpg-" + index.encode())
        return httpx.Response(404)

    client = ImageSearchClient("red fox", config=service_config, http_client=make_http_client(handler))

    assert await client.download_all_images(retries=2, interval=0) == [b"jpg-0"]


@pytest.mark.asyncio
async def test_get_image_jpg_uses_path_url(service_config, make_http_client):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        return httpx.Response(200, headers={"content-type": "image/jpeg"}, content=b"jpg")

    client = ImageSearchClient("owl", config=service_config, http_client=make_http_client(handler))

    assert await client.get_image_jpg(3) == b"jpg"
    assert seen["path"] == "/get-image/image/owl/3/image.jpg"
