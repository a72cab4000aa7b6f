"""Clip prompt writer agent."""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..config import config
from ..errors import PlanningError, RemoteAPIError
from ..services.xai import XAIClient
from .base import BaseAgent, UserContent
from .prompts import CLIP_PROMPTS_IMAGE_SYSTEM, CLIP_PROMPTS_TEXT_SYSTEM

MAX_IMAGES = 3

_FENCE = re.compile(r"```(?:json)?\s*")


@dataclass
class ClipPromptInput:
    """Input data for the clip prompt writer."""

    master_prompt: str
    images: list[str] = field(default_factory=list)


@dataclass
class ClipPrompts:
    """Three clip prompts and, for image mode, the image each clip starts from."""

    prompts: list[str]
    image_assignment: Optional[list[int]] = None


class ClipPromptWriter(BaseAgent[ClipPromptInput, ClipPrompts]):
    """Agent that drafts hook / showcase / closer prompts from one concept.

    With reference images (URLs or data URIs) the prompts describe motion
    for image-to-video, and the model assigns an image to every clip.
    """

    def __init__(self, client: XAIClient, model: Optional[str] = None) -> None:
        super().__init__(client, model or config.prompt_model)

    @property
    def name(self) -> str:
        return "ClipPromptWriter"

    async def run(self, input_data: ClipPromptInput) -> ClipPrompts:
        """Generate three clip prompts.

        Raises:
            ValueError: If the input is empty or carries too many images.
            PlanningError: If the call fails or the response is unusable.
        """
        if not input_data.master_prompt.strip():
            raise ValueError("masterPrompt is required")
        if len(input_data.images) > MAX_IMAGES:
            raise ValueError(f"At most {MAX_IMAGES} images are supported")

        has_images = bool(input_data.images)
        self._logger.info(
            f"Writing clip prompts for: '{input_data.master_prompt[:60]}' "
            f"({len(input_data.images)} images)"
        )

        try:
            response = await self._create_message(
                system=CLIP_PROMPTS_IMAGE_SYSTEM if has_images else CLIP_PROMPTS_TEXT_SYSTEM,
                content=self._build_content(input_data),
                temperature=0.8,
            )
        except (RemoteAPIError, httpx.HTTPError, ValueError) as e:
            raise PlanningError(f"Clip prompt generation failed: {e}", step="prompts") from e

        return self._parse_response(response, len(input_data.images))

    def _build_content(self, input_data: ClipPromptInput) -> UserContent:
        if not input_data.images:
            return f"Master ad concept: {input_data.master_prompt}"

        count = len(input_data.images)
        parts: list[dict[str, Any]] = []
        for i, image in enumerate(input_data.images, start=1):
            parts.append({"type": "input_image", "image_url": image, "detail": "high"})
            parts.append({"type": "input_text", "text": f"[Image {i} of {count}]"})
        parts.append({
            "type": "input_text",
            "text": (
                f"Master ad concept: {input_data.master_prompt}\n\n"
                f"I have provided {count} image(s). Generate 3 clip prompts describing "
                f"motion/action for image-to-video generation, and assign each clip to "
                f"the most appropriate image."
            ),
        })
        return parts

    def _parse_response(self, response: str, image_count: int) -> ClipPrompts:
        cleaned = _FENCE.sub("", response).strip()
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            self._logger.debug(f"Raw response: {response}")
            raise PlanningError(f"Invalid JSON in clip prompts: {e}", step="prompts") from e

        if not isinstance(data, dict):
            raise PlanningError("Invalid response format from xAI", step="prompts")

        prompts = [data.get(f"clip_{i}") for i in range(1, 4)]
        if not all(isinstance(p, str) and p.strip() for p in prompts):
            raise PlanningError("Invalid response format from xAI", step="prompts")

        result = ClipPrompts(prompts=prompts)
        assignment = data.get("image_assignment")
        if image_count and isinstance(assignment, list):
            indices = [n - 1 for n in assignment if isinstance(n, int)]
            if len(indices) != 3 or any(not 0 <= i < image_count for i in indices):
                raise PlanningError(
                    f"Invalid image assignment {assignment} for {image_count} image(s)",
                    step="prompts",
                )
            result.image_assignment = indices
        return result
