import base64
import os

import pytest

from podreel.content import ContentProcessor


class FakePodcastClient:
    def __init__(self, response=None, healthy=True):
        self.response = response
        self.healthy = healthy
        self.prompts = []

    async def check_health(self):
        return self.healthy

    async def create_and_wait_for_podcast(self, prompt):
        self.prompts.append(prompt)
        return self.response


class FakeImageClient:
    def __init__(self, query):
        self.query = query
        self.downloads = 0
        self.closed = False

    async def download_all_images(self):
        self.downloads += 1
        return [b"img-0", b"img-1"]

    async def aclose(self):
        self.closed = True


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode()


def podcast_response() -> dict:
    words = [{"word": "Hi.", "start": 0.0, "end": 0.4}, {"word": "there", "start": 0.5, "end": 1.2}]
    return {
        "choices": [
            {
                "message": {
                    "content": [{"translated": "...", "original": "..."}],
                    "audio": {
                        "data": encode(b"full-audio"),
                        "trimmed": [
                            {"segments": [{"words": words}], "query": "red fox", "startTime": 0, "endTime": 1.5, "audioBase64": encode(b"clip-audio")},
                            {"segments": [{"words": words}], "query": "red fox", "startTime": 1.5, "endTime": 3.0},
                        ],
                    },
                }
            }
        ]
    }


@pytest.fixture
def factory_calls():
    return []


@pytest.fixture
def processor(service_config, factory_calls):
    def factory(query):
        client = FakeImageClient(query)
        factory_calls.append(client)
        return client

    return ContentProcessor(FakePodcastClient(podcast_response()), service_config, factory)


def test_clips_prefer_their_own_audio(processor):
    clips = processor.extract_clips_from_response(podcast_response())

    assert [clip.audio_buffer for clip in clips] == [b"clip-audio", b"full-audio"]
    assert clips[1].start_time == 1.5


def test_no_response_means_no_clips(processor):
    assert processor.extract_clips_from_response(None) == []
    assert processor.extract_clips_from_response({"choices": []}) == []


@pytest.mark.asyncio
async def test_generate_content_and_health(processor):
    assert await processor.check_service_health() is True
    assert await processor.generate_content("owls") == podcast_response()
    assert processor.podcast_client.prompts == ["owls"]


@pytest.mark.asyncio
async def test_video_options_from_clip(processor, service_config):
    clip = processor.extract_clips_from_response(podcast_response())[0]

    options = await processor.create_video_options_from_clip(clip, 1)

    assert options.fps == 2
    assert options.video_size == (1920, 1080)
    assert options.text_config == {"font_color": "white", "background_color": "black"}
    assert options.duration == 1.2
    assert options.music_file_path == service_config.music_file_path
    assert options.speech_file_path == os.path.join(service_config.work_dir, "speech-1.aac")
    with open(options.speech_file_path, "rb") as f:
        assert f.read() == b"clip-audio"
    assert [os.path.basename(p) for p in options.image_file_paths] == [
        "temp_image_red_fox_0.jpg",
        "temp_image_red_fox_1.jpg",
    ]
    assert os.path.basename(options.output_file_path).startswith("te-1-")


@pytest.mark.asyncio
async def test_compile_numbers_clips_from_one_and_reuses_image_client(processor, factory_calls, service_config):
    clips = processor.extract_clips_from_response(podcast_response())

    options = await processor.compile_video_creation_options(clips)

    assert [os.path.basename(o.speech_file_path) for o in options] == ["speech-1.aac", "speech-2.aac"]
    assert len(factory_calls) == 1
    assert factory_calls[0].downloads == 2

    await processor.aclose()
    assert factory_calls[0].closed
