"""Shared fixtures and fakes for the ad generator tests."""

import asyncio
import json
from typing import Optional

import httpx
import pytest

from adgen.config import Config
from adgen.errors import RemoteAPIError
from adgen.models import PipelineInput, VideoStatus
from adgen.services.storage import MediaPersister


def decision(method: str = "text-to-video", video_prompt: str = "A sneaker bursts through neon rain",
             image_prompt: str = "", reasoning: str = "Bold opener") -> dict:
    return {
        "method": method,
        "video_prompt": video_prompt,
        "image_prompt": image_prompt,
        "reasoning": reasoning,
    }


class FakeXAIClient:
    """Scripted stand-in for XAIClient.

    Chat calls answer with the queued decisions in order. Every video job
    reports ``processing`` for ``pending_polls`` reads, then finishes.
    Submissions whose 1-based index is in ``fail_submissions`` get a 500.
    """

    chat_model = "fake-chat"

    def __init__(
        self,
        decisions: Optional[list] = None,
        pending_polls: int = 0,
        fail_submissions: Optional[set] = None,
        chat_delay: float = 0.0,
    ) -> None:
        self.decisions = list(decisions or [])
        self.pending_polls = pending_polls
        self.fail_submissions = fail_submissions or set()
        self.chat_delay = chat_delay
        self.chat_calls: list[dict] = []
        self.submissions: list[tuple[str, dict]] = []
        self.images: list[dict] = []
        self.status_calls: list[str] = []
        self.on_status = None

    async def chat(self, messages, temperature=0.7, response_format=None, model=None):
        self.chat_calls.append({
            "messages": messages,
            "temperature": temperature,
            "response_format": response_format,
            "model": model,
        })
        if self.chat_delay:
            await asyncio.sleep(self.chat_delay)
        answer = self.decisions[len(self.chat_calls) - 1]
        return answer if isinstance(answer, str) else json.dumps(answer)

    def _submit(self, kind: str, **kwargs) -> str:
        self.submissions.append((kind, kwargs))
        number = len(self.submissions)
        if number in self.fail_submissions:
            raise RemoteAPIError(f"xAI {kind}", 500, "internal error")
        return f"req-{number}"

    async def submit_text_to_video(self, prompt, duration=None, aspect_ratio=None, resolution=None):
        return self._submit("text-to-video", prompt=prompt, duration=duration,
                            aspect_ratio=aspect_ratio, resolution=resolution)

    async def submit_image_to_video(self, prompt, image_url, duration=None, aspect_ratio=None,
                                    resolution=None):
        return self._submit("image-to-video", prompt=prompt, image_url=image_url, duration=duration,
                            aspect_ratio=aspect_ratio, resolution=resolution)

    async def submit_video_edit(self, prompt, video_url):
        return self._submit("video-edit", prompt=prompt, video_url=video_url)

    async def generate_image(self, prompt, aspect_ratio=None, n=1, response_format=None):
        self.images.append({"prompt": prompt, "aspect_ratio": aspect_ratio})
        return f"https://remote.test/image-{len(self.images)}.png"

    async def get_video_status(self, request_id):
        self.status_calls.append(request_id)
        reads = self.status_calls.count(request_id)
        if self.on_status is not None:
            self.on_status(request_id, reads)
        if reads <= self.pending_polls:
            return VideoStatus(state="processing")
        return VideoStatus(
            state="done",
            url=f"https://remote.test/{request_id}.mp4",
            duration=6,
            width=1280,
            height=720,
        )

    async def aclose(self):
        pass


class FakeMediaStore:
    """In-memory durable store."""

    def __init__(self, fail: bool = False) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail = fail

    async def upload(self, data: bytes, content_type: str, name: str) -> str:
        if self.fail:
            raise RuntimeError("bucket unavailable")
        self.objects[name] = (data, content_type)
        return f"https://store.test/{name}"


def media_transport(store: Optional[FakeMediaStore] = None) -> httpx.MockTransport:
    """Serve remote media, and anything already in ``store``, by URL."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if store is not None and url.startswith("https://store.test/"):
            name = url.rsplit("/", 1)[-1]
            if name not in store.objects:
                return httpx.Response(404)
            data, content_type = store.objects[name]
            return httpx.Response(200, content=data, headers={"content-type": content_type})
        if url.endswith(".png"):
            return httpx.Response(200, content=b"PNG-" + url.encode(), headers={"content-type": "image/png"})
        if url.endswith(".mp4"):
            return httpx.Response(200, content=b"MP4-" + url.encode(), headers={"content-type": "video/mp4"})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def settings() -> Config:
    return Config(
        xai_api_key="test-key",
        xai_base_url="https://api.test/v1",
        media_bucket="",
        step_timeout=5.0,
        poll_interval=0.0,
        poll_max_attempts=5,
        poll_timeout_margin=5.0,
    )


@pytest.fixture
def store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture
def persister(store: FakeMediaStore) -> MediaPersister:
    return MediaPersister(store, http_client=httpx.AsyncClient(transport=media_transport(store)))


@pytest.fixture
def sneaker_launch() -> PipelineInput:
    return PipelineInput(concept="sneaker launch", duration=6, aspect_ratio="16:9")
