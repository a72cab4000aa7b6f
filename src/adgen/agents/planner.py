"""Scene planner agent."""

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..config import config
from ..errors import PlanningError, RemoteAPIError
from ..models import GenerationMethod, PipelineInput, SceneDecision, SceneResult
from ..services.xai import XAIClient
from .base import BaseAgent, UserContent
from .prompts import SCENE_ROLES, SCENE_SYSTEMS

SCENE_COUNT = 3


@dataclass(frozen=True)
class SceneContext:
    """Everything the planner sees when deciding one scene."""

    scene_number: int
    request: PipelineInput
    prior_results: tuple[SceneResult, ...] = field(default_factory=tuple)
    allow_edit: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.scene_number <= SCENE_COUNT:
            raise ValueError(f"scene_number must be 1-{SCENE_COUNT}, got {self.scene_number}")
        if len(self.prior_results) != self.scene_number - 1:
            raise ValueError(
                f"Scene {self.scene_number} needs {self.scene_number - 1} prior results, "
                f"got {len(self.prior_results)}"
            )


def allowed_methods(scene_number: int, allow_edit: bool) -> list[GenerationMethod]:
    """Methods the planner may pick for a scene.

    Editing needs a previous scene and source videos short enough for the
    remote edit endpoint.
    """
    methods = [GenerationMethod.TEXT_TO_VIDEO, GenerationMethod.IMAGE_THEN_VIDEO]
    if scene_number > 1 and allow_edit:
        methods.append(GenerationMethod.EDIT_VIDEO)
    return methods


def decision_schema(methods: Sequence[GenerationMethod]) -> dict[str, Any]:
    """Structured-output format restricting the decision to ``methods``."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "scene_decision",
            "strict": True,
            "schema": {
                "type": "object",
                "properties": {
                    "method": {
                        "type": "string",
                        "enum": [method.value for method in methods],
                        "description": "The generation method to use for this scene",
                    },
                    "video_prompt": {
                        "type": "string",
                        "description": "Rich cinematic prompt for video generation or editing",
                    },
                    "image_prompt": {
                        "type": "string",
                        "description": (
                            "Prompt for reference image generation (required if method is "
                            "image-then-video, empty string otherwise)"
                        ),
                    },
                    "reasoning": {
                        "type": "string",
                        "description": "Brief explanation of why this method was chosen",
                    },
                },
                "required": ["method", "video_prompt", "image_prompt", "reasoning"],
                "additionalProperties": False,
            },
        },
    }


def settings_clause(request: PipelineInput, allow_edit: bool, edit_max_duration: int) -> str:
    """Pin the run settings, and only the configured duration, into the prompt."""
    text = (
        f"Settings: duration={request.duration}s, aspect_ratio={request.aspect_ratio.value}, "
        f"resolution={request.resolution.value}. IMPORTANT: Do not mention any other duration. "
        f"If you mention seconds in the prompt, it MUST be exactly {request.duration}s."
    )
    if not allow_edit:
        text += (
            f' NOTE: "edit-video" is not available at {request.duration}s '
            f"(video edits require source videos of {edit_max_duration}s or less)."
        )
    return text


class ScenePlanner(BaseAgent[SceneContext, SceneDecision]):
    """Agent that picks a generation method and writes prompts for one scene.

    Scenes 2 and 3 are planned with the earlier scenes in view: their
    reference images (never their videos) and the method and prompt that
    produced them.
    """

    def __init__(
        self,
        client: XAIClient,
        model: Optional[str] = None,
        temperature: float = 0.7,
        edit_max_duration: Optional[int] = None,
    ) -> None:
        super().__init__(client, model)
        self._temperature = temperature
        self._edit_max_duration = edit_max_duration or config.edit_max_duration

    @property
    def name(self) -> str:
        return "ScenePlanner"

    async def plan(
        self,
        scene_number: int,
        request: PipelineInput,
        prior_results: Sequence[SceneResult] = (),
    ) -> SceneDecision:
        """Plan ``scene_number`` of ``request`` given the scenes already made."""
        context = SceneContext(
            scene_number=scene_number,
            request=request,
            prior_results=tuple(prior_results),
            allow_edit=request.allows_edit(self._edit_max_duration),
        )
        return await self.run(context)

    async def run(self, input_data: SceneContext) -> SceneDecision:
        """Ask the reasoning model for a scene decision.

        Raises:
            PlanningError: If the call fails or the decision is unusable.
        """
        scene = input_data.scene_number
        methods = allowed_methods(scene, input_data.allow_edit)
        self._logger.info(
            f"Planning scene {scene}/{SCENE_COUNT} "
            f"(methods: {', '.join(m.value for m in methods)})"
        )

        try:
            raw = await self._create_message(
                system=SCENE_SYSTEMS[scene - 1],
                content=self._build_content(input_data),
                temperature=self._temperature,
                response_format=decision_schema(methods),
            )
        except (RemoteAPIError, httpx.HTTPError, ValueError) as e:
            raise PlanningError(
                f"Scene {scene} planning failed: {e}", scene=scene, step="planning"
            ) from e

        decision = self._parse_decision(raw, scene, methods)
        self._logger.info(
            f"Scene {scene} decision: {decision.method.value} - {decision.reasoning[:100]}"
        )
        return decision

    def _build_content(self, context: SceneContext) -> UserContent:
        """Build the user turn: prior-scene segments, then the request."""
        request_text = (
            f"Ad concept: {context.request.concept}\n"
            f"{settings_clause(context.request, context.allow_edit, self._edit_max_duration)}\n\n"
            f"Decide the best generation method for Scene {context.scene_number} of {SCENE_COUNT}. "
            f"{SCENE_ROLES[context.scene_number - 1]}"
        )
        if not context.prior_results:
            return request_text

        parts: list[dict[str, Any]] = []
        for prior in context.prior_results:
            # Only stills are valid image inputs; videos are referenced by text
            if prior.image_url:
                parts.append({
                    "type": "input_image",
                    "image_url": {"url": prior.image_url},
                    "detail": "high",
                })
            parts.append({
                "type": "input_text",
                "text": (
                    f"[Scene {prior.scene_number} - method: {prior.method.value}]\n"
                    f"Video URL: {prior.video_url}\n"
                    f'Prompt used: "{prior.decision.video_prompt}"'
                ),
            })
        parts.append({"type": "input_text", "text": request_text})
        return parts

    def _parse_decision(
        self, raw: str, scene: int, methods: Sequence[GenerationMethod]
    ) -> SceneDecision:
        try:
            decision = SceneDecision.model_validate(json.loads(raw))
        except (ValueError, PydanticValidationError) as e:
            self._logger.debug(f"Raw planner response: {raw}")
            raise PlanningError(
                f"Scene {scene} decision could not be parsed: {e}", scene=scene, step="planning"
            ) from e

        if decision.method not in methods:
            raise PlanningError(
                f"Scene {scene} decision chose unavailable method {decision.method.value}",
                scene=scene,
                step="planning",
            )
        if not decision.video_prompt.strip():
            raise PlanningError(
                f"Scene {scene} decision has an empty video prompt", scene=scene, step="planning"
            )

        if decision.method != GenerationMethod.IMAGE_THEN_VIDEO and decision.image_prompt:
            decision = decision.model_copy(update={"image_prompt": ""})
        return decision
