"""Sequential three-scene pipeline controller."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..agents.planner import SCENE_COUNT, ScenePlanner
from ..config import Config, config
from ..errors import CancellationError, ValidationError
from ..models import (
    EventData,
    EventType,
    PipelineEvent,
    PipelineInput,
    RunStage,
    SceneResult,
)
from ..services.storage import GCSMediaStore, MediaPersister
from ..services.xai import XAIClient
from .cancellation import CancellationToken
from .deadline import with_deadline
from .executor import EventSink, SceneExecutor

logger = logging.getLogger(__name__)


def parse_input(payload: Any) -> PipelineInput:
    """Validate a raw request body.

    Raises:
        ValidationError: If required fields are missing or malformed.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    if not isinstance(payload.get("concept"), str) or not payload["concept"].strip():
        raise ValidationError("concept is required")
    try:
        return PipelineInput.model_validate(payload)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid pipeline input: {details}") from e


@dataclass
class _RunState:
    scene: int = 0
    stage: RunStage = RunStage.PLANNING


class PipelineController:
    """Runs planner and executor for scenes 1 to 3, streaming progress.

    Each scene is planned with every earlier scene's result in view, so
    scenes run strictly in order. The controller keeps no per-run state on
    the instance; concurrent runs share only the remote clients.
    """

    def __init__(
        self,
        client: XAIClient,
        persister: MediaPersister,
        settings: Optional[Config] = None,
        planner: Optional[ScenePlanner] = None,
        executor: Optional[SceneExecutor] = None,
    ) -> None:
        self._client = client
        self._persister = persister
        self._settings = settings or config
        self._planner = planner or ScenePlanner(
            client, edit_max_duration=self._settings.edit_max_duration
        )
        self._executor = executor or SceneExecutor(client, persister, self._settings)

    @classmethod
    def from_config(cls, settings: Config = config) -> "PipelineController":
        """Build a controller with clients configured from ``settings``."""
        client = XAIClient(
            api_key=settings.xai_api_key,
            base_url=settings.xai_base_url,
            chat_model=settings.chat_model,
            video_model=settings.video_model,
            image_model=settings.image_model,
        )
        persister = MediaPersister(GCSMediaStore.from_config(settings))
        return cls(client, persister, settings)

    @property
    def client(self) -> XAIClient:
        return self._client

    async def aclose(self) -> None:
        await self._client.aclose()
        await self._persister.aclose()

    async def run(
        self,
        request: PipelineInput,
        emit: EventSink,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[tuple[SceneResult, ...]]:
        """Run the pipeline, reporting every outcome through ``emit``.

        Failures become a single ``error`` event tagged with the failing
        scene. Once ``cancel`` is raised nothing more is emitted.

        Returns:
            The three scene results, or None if the run failed or was
            cancelled.
        """
        token = cancel or CancellationToken()
        state = _RunState()

        async def guarded_emit(event: PipelineEvent) -> None:
            if not token.cancelled:
                await emit(event)

        start = time.monotonic()
        logger.info(
            f"Starting pipeline: concept='{request.concept[:60]}' duration={request.duration}s "
            f"aspect_ratio={request.aspect_ratio.value} resolution={request.resolution.value}"
        )
        try:
            results = await self._run_scenes(request, guarded_emit, token, state)

        except CancellationError:
            logger.info(f"Pipeline cancelled during scene {state.scene} ({state.stage.value})")
            return None

        except Exception as e:
            scene = getattr(e, "scene", None) or state.scene
            state.stage = RunStage.FAILED
            logger.exception(f"Pipeline failed in scene {scene}: {e}")
            await guarded_emit(PipelineEvent(
                type=EventType.ERROR,
                scene=scene,
                message=str(e) or type(e).__name__,
            ))
            return None

        state.stage = RunStage.COMPLETE
        logger.info(f"Pipeline complete ({time.monotonic() - start:.1f}s total)")
        await guarded_emit(PipelineEvent(
            type=EventType.PIPELINE_COMPLETE,
            scene=SCENE_COUNT,
            message=f"All {SCENE_COUNT} scenes complete!",
        ))
        return results

    async def _run_scenes(
        self,
        request: PipelineInput,
        emit: EventSink,
        cancel: CancellationToken,
        state: _RunState,
    ) -> tuple[SceneResult, ...]:
        results: tuple[SceneResult, ...] = ()

        for scene in range(1, SCENE_COUNT + 1):
            cancel.raise_if_cancelled()
            scene_start = time.monotonic()
            state.scene, state.stage = scene, RunStage.PLANNING
            logger.info(f"Scene {scene}/{SCENE_COUNT} start")

            await emit(PipelineEvent(
                type=EventType.SCENE_PLANNING,
                scene=scene,
                message=f"Planning Scene {scene}...",
            ))
            decision = await cancel.guard(
                with_deadline(
                    self._planner.plan(scene, request, results),
                    f"Scene {scene} planning",
                    self._settings.step_timeout,
                ),
                f"Scene {scene} planning cancelled",
            )
            await emit(PipelineEvent(
                type=EventType.SCENE_PLANNED,
                scene=scene,
                message=f"Scene {scene}: {decision.method.value} - {decision.reasoning}",
                data=EventData.from_decision(decision),
            ))

            state.stage = RunStage.EXECUTING
            generated = await self._executor.generate(
                scene, decision, request, results, emit=emit, cancel=cancel
            )

            state.stage = RunStage.PERSISTING
            cancel.raise_if_cancelled()
            media = await self._executor.persist(scene, generated)
            cancel.raise_if_cancelled()
            await emit(PipelineEvent(
                type=EventType.VIDEO_COMPLETE,
                scene=scene,
                message=f"Scene {scene} video ready!",
                data=EventData(
                    image_url=media.image_url,
                    video_url=media.video_url,
                    video_duration=media.duration,
                    video_width=media.width,
                    video_height=media.height,
                ),
            ))

            result = SceneResult.from_media(scene, decision, media)
            results = results + (result,)
            await emit(PipelineEvent(
                type=EventType.SCENE_COMPLETE,
                scene=scene,
                message=f"Scene {scene} complete",
                data=EventData.from_result(result),
            ))
            logger.info(
                f"Scene {scene}/{SCENE_COUNT} complete ({time.monotonic() - scene_start:.1f}s)"
            )

        return results
