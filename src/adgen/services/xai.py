"""xAI Grok Imagine API client wrapper.

Endpoints:
    - Text-to-video:  POST /videos/generations  {prompt, model, duration?, aspect_ratio?, resolution?}
    - Image-to-video: POST /videos/generations  {prompt, model, image: {url}, ...}
    - Edit video:     POST /videos/edits        {prompt, model, video: {url}}
    - Poll video:     GET  /videos/{request_id}
    - Image:          POST /images/generations  {prompt, model, n, aspect_ratio?, response_format?}
    - Chat (vision):  POST /chat/completions
"""

import json
import logging
from typing import Any, Optional

import httpx

from ..config import config
from ..errors import ConfigurationError, RemoteAPIError
from ..models import VideoStatus

logger = logging.getLogger(__name__)

Message = dict[str, Any]


def _preview(url: str, limit: int = 80) -> str:
    return url if len(url) <= limit else url[:limit] + "..."


def _generation_settings(
    duration: Optional[int],
    aspect_ratio: Optional[str],
    resolution: Optional[str],
) -> dict[str, Any]:
    """Optional video settings; unset values are left out of the request."""
    settings: dict[str, Any] = {}
    if duration:
        settings["duration"] = duration
    if aspect_ratio:
        settings["aspect_ratio"] = aspect_ratio
    if resolution:
        settings["resolution"] = resolution
    return settings


class XAIClient:
    """Async client for xAI chat, image and video generation endpoints.

    The client owns request construction, authentication and surfacing
    non-2xx responses as ``RemoteAPIError``. It holds no pipeline state.
    """

    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        chat_model: Optional[str] = None,
        video_model: Optional[str] = None,
        image_model: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the xAI client.

        Args:
            api_key: xAI API key. Defaults to XAI_API_KEY env var.
            base_url: API root. Defaults to XAI_BASE_URL env var.
            chat_model: Default chat model. Defaults to config.chat_model.
            video_model: Video model. Defaults to config.video_model.
            image_model: Image model. Defaults to config.image_model.
            http_client: Shared httpx client. Created if not provided.
            timeout: Per-request transport timeout in seconds.
        """
        self._api_key = api_key if api_key is not None else config.xai_api_key
        self._base_url = (base_url or config.xai_base_url).rstrip("/")
        self._chat_model = chat_model or config.chat_model
        self._video_model = video_model or config.video_model
        self._image_model = image_model or config.image_model
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def chat_model(self) -> str:
        """Return the default chat model."""
        return self._chat_model

    async def __aenter__(self) -> "XAIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            raise ConfigurationError("XAI_API_KEY is not configured")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    async def _request(
        self,
        method: str,
        path: str,
        label: str,
        body: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Raises:
            RemoteAPIError: If the endpoint answers with a non-2xx status.
        """
        response = await self._http.request(
            method,
            f"{self._base_url}{path}",
            headers=self._headers(),
            json=body,
        )
        if response.is_error:
            logger.error(f"xAI {label} failed: {response.status_code} {response.text[:500]}")
            raise RemoteAPIError(f"xAI {label}", response.status_code, response.text)
        return response.json()

    async def _submit_video(self, path: str, label: str, body: dict[str, Any]) -> str:
        data = await self._request("POST", path, label, body)
        request_id = data.get("request_id")
        if not request_id:
            raise ValueError(f"No request_id returned from xAI {label}")
        logger.info(f"xAI {label} accepted: request_id={request_id}")
        return request_id

    # Video generation

    async def submit_text_to_video(
        self,
        prompt: str,
        duration: Optional[int] = None,
        aspect_ratio: Optional[str] = None,
        resolution: Optional[str] = None,
    ) -> str:
        """Submit a text-to-video job.

        Returns:
            The request id to poll.
        """
        body = {
            "prompt": prompt,
            "model": self._video_model,
            **_generation_settings(duration, aspect_ratio, resolution),
        }
        logger.debug(f"submit text-to-video: {json.dumps(body)}")
        return await self._submit_video("/videos/generations", "text-to-video", body)

    async def submit_image_to_video(
        self,
        prompt: str,
        image_url: str,
        duration: Optional[int] = None,
        aspect_ratio: Optional[str] = None,
        resolution: Optional[str] = None,
    ) -> str:
        """Submit an image-to-video job animating ``image_url``.

        Returns:
            The request id to poll.
        """
        body = {
            "prompt": prompt,
            "model": self._video_model,
            "image": {"url": image_url},
            **_generation_settings(duration, aspect_ratio, resolution),
        }
        logger.debug(f"submit image-to-video from {_preview(image_url)}")
        return await self._submit_video("/videos/generations", "image-to-video", body)

    async def submit_video_edit(self, prompt: str, video_url: str) -> str:
        """Submit an edit of an existing (short) video.

        Returns:
            The request id to poll.
        """
        body = {
            "prompt": prompt,
            "model": self._video_model,
            "video": {"url": video_url},
        }
        logger.debug(f"submit video edit of {_preview(video_url)}")
        return await self._submit_video("/videos/edits", "video-edit", body)

    async def get_video_status(self, request_id: str) -> VideoStatus:
        """Read the current status of a video job."""
        data = await self._request("GET", f"/videos/{request_id}", "poll")
        return VideoStatus.from_response(data)

    # Images

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: Optional[str] = None,
        n: int = 1,
        response_format: Optional[str] = None,
    ) -> str:
        """Generate a still image.

        Returns:
            URL of the first generated image. The URL is short-lived.

        Raises:
            RemoteAPIError: If the endpoint rejects the request.
            ValueError: If the response carries no image URL.
        """
        body: dict[str, Any] = {"prompt": prompt, "model": self._image_model, "n": n}
        if aspect_ratio:
            body["aspect_ratio"] = aspect_ratio
        if response_format:
            body["response_format"] = response_format

        logger.info(f"Generating image: {prompt[:50]}...")
        data = await self._request("POST", "/images/generations", "image generation", body)
        images = data.get("data") or []
        url = images[0].get("url") if images else None
        if not url:
            raise ValueError("No image URL returned from xAI")
        logger.info(f"Image ready: {_preview(url)}")
        return url

    # Chat

    async def chat(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        response_format: Optional[dict[str, Any]] = None,
        model: Optional[str] = None,
    ) -> str:
        """Run a chat completion.

        Args:
            messages: Chat messages; user content may be a list of
                ``input_text`` / ``input_image`` parts.
            temperature: Sampling temperature.
            response_format: Optional structured-output constraint.
            model: Model override. Defaults to the client's chat model.

        Returns:
            The content of the first choice.
        """
        body: dict[str, Any] = {
            "model": model or self._chat_model,
            "messages": messages,
            "temperature": temperature,
        }
        if response_format:
            body["response_format"] = response_format

        logger.debug(
            f"chat: model={body['model']} messages={len(messages)} "
            f"structured={response_format is not None}"
        )
        data = await self._request("POST", "/chat/completions", "chat", body)
        choices = data.get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        if not content:
            raise ValueError("No content returned from xAI chat")
        logger.debug(f"chat response length: {len(content)} chars")
        return content

    async def chat_json(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        response_format: Optional[dict[str, Any]] = None,
        model: Optional[str] = None,
    ) -> Any:
        """Run a chat completion and decode its content as JSON.

        Raises:
            ValueError: If the content is not valid JSON.
        """
        raw = await self.chat(messages, temperature, response_format, model)
        return json.loads(raw)
