"""Scene execution: submit, poll, persist."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import httpx

from ..config import Config, config
from ..errors import PipelineError, PreconditionError, RemoteAPIError, SubmissionError
from ..models import (
    EventData,
    EventType,
    GenerationMethod,
    PipelineEvent,
    PipelineInput,
    SceneDecision,
    SceneMedia,
    SceneResult,
    VideoResult,
)
from ..services.storage import MediaPersister
from ..services.xai import XAIClient
from .cancellation import CancellationToken
from .deadline import with_deadline
from .polling import poll_video

logger = logging.getLogger(__name__)

T = TypeVar("T")

EventSink = Callable[[PipelineEvent], Awaitable[None]]


@dataclass(frozen=True)
class Submission:
    """A video job accepted by the remote service."""

    request_id: str
    image_url: Optional[str] = None


@dataclass(frozen=True)
class GeneratedScene:
    """A finished video job, before persistence."""

    video: VideoResult
    image_url: Optional[str] = None


@dataclass(frozen=True)
class _SceneJob:
    scene: int
    decision: SceneDecision
    request: PipelineInput
    prior_results: tuple[SceneResult, ...]
    emit: EventSink
    cancel: CancellationToken


Strategy = Callable[[_SceneJob], Awaitable[Submission]]


async def _discard(event: PipelineEvent) -> None:
    return None


class SceneExecutor:
    """Carries out a scene decision against the remote generation service.

    Every method variant submits a video job in its own way, then shares the
    same poll and persistence steps. The returned video URL is always the
    persisted one when persistence succeeds.
    """

    def __init__(
        self,
        client: XAIClient,
        persister: MediaPersister,
        settings: Optional[Config] = None,
    ) -> None:
        self._client = client
        self._persister = persister
        self._settings = settings or config
        self._strategies: dict[GenerationMethod, Strategy] = {
            GenerationMethod.TEXT_TO_VIDEO: self._submit_text_to_video,
            GenerationMethod.IMAGE_THEN_VIDEO: self._submit_image_then_video,
            GenerationMethod.EDIT_VIDEO: self._submit_video_edit,
        }
        missing = set(GenerationMethod) - set(self._strategies)
        if missing:
            raise TypeError(f"No strategy for methods: {sorted(m.value for m in missing)}")

    async def execute(
        self,
        scene_number: int,
        decision: SceneDecision,
        request: PipelineInput,
        prior_results: Sequence[SceneResult] = (),
        emit: EventSink = _discard,
        cancel: Optional[CancellationToken] = None,
    ) -> SceneMedia:
        """Generate a scene's video and persist it."""
        generated = await self.generate(scene_number, decision, request, prior_results, emit, cancel)
        if cancel is not None:
            cancel.raise_if_cancelled()
        return await self.persist(scene_number, generated)

    async def generate(
        self,
        scene_number: int,
        decision: SceneDecision,
        request: PipelineInput,
        prior_results: Sequence[SceneResult] = (),
        emit: EventSink = _discard,
        cancel: Optional[CancellationToken] = None,
    ) -> GeneratedScene:
        """Submit the scene's video job and wait for it to finish.

        Args:
            scene_number: 1-based scene index.
            decision: The planner's decision for this scene.
            request: Run settings.
            prior_results: Finished earlier scenes, oldest first.
            emit: Receives progress events.
            cancel: Run cancellation token.

        Returns:
            The finished video and, for image-then-video, the durable
            reference image URL.

        Raises:
            PreconditionError: If an edit is requested with no prior scene.
            SubmissionError: If a submission is rejected.
            StepTimeoutError: If a submission or the poll phase overruns.
            PollFailureError: If the remote job fails.
            PollTimeoutError: If the job never finishes.
            CancellationError: If ``cancel`` is raised.
        """
        run_token = cancel or CancellationToken()
        job = _SceneJob(scene_number, decision, request, tuple(prior_results), emit, run_token)
        submission = await self._strategies[decision.method](job)

        await emit(PipelineEvent(
            type=EventType.VIDEO_POLLING,
            scene=scene_number,
            message="Waiting for video generation...",
        ))

        async def on_progress(state: str) -> None:
            await emit(PipelineEvent(
                type=EventType.VIDEO_POLLING,
                scene=scene_number,
                message=f"Video status: {state}",
            ))

        poll_token = run_token.child()
        video = await self._tagged(
            scene_number,
            f"Scene {scene_number} video polling",
            with_deadline(
                poll_video(
                    self._client,
                    submission.request_id,
                    on_progress=on_progress,
                    max_attempts=self._settings.poll_max_attempts,
                    interval=self._settings.poll_interval,
                    cancel=poll_token,
                ),
                f"Scene {scene_number} video polling",
                self._settings.poll_timeout,
                on_timeout=poll_token.cancel,
            ),
        )
        return GeneratedScene(video=video, image_url=submission.image_url)

    async def persist(self, scene_number: int, generated: GeneratedScene) -> SceneMedia:
        """Persist the finished video durably."""
        logger.info(f"Scene {scene_number} video done, persisting")
        video_url = await self._persister.persist(generated.video.url, f"scene-{scene_number}.mp4")
        return SceneMedia(
            video_url=video_url,
            image_url=generated.image_url,
            duration=generated.video.duration,
            width=generated.video.width,
            height=generated.video.height,
        )

    # Strategies

    async def _submit_text_to_video(self, job: _SceneJob) -> Submission:
        await job.emit(PipelineEvent(
            type=EventType.VIDEO_SUBMITTED,
            scene=job.scene,
            message="Generating video from text...",
        ))
        request_id = await self._submit(
            job,
            f"Scene {job.scene} text-to-video submit",
            self._client.submit_text_to_video(
                prompt=job.decision.video_prompt,
                duration=job.request.duration,
                aspect_ratio=job.request.aspect_ratio.value,
                resolution=job.request.resolution.value,
            ),
        )
        return Submission(request_id=request_id)

    async def _submit_image_then_video(self, job: _SceneJob) -> Submission:
        await job.emit(PipelineEvent(
            type=EventType.IMAGE_GENERATING,
            scene=job.scene,
            message="Generating reference image...",
        ))
        remote_image_url = await self._submit(
            job,
            f"Scene {job.scene} image generation",
            self._client.generate_image(
                prompt=job.decision.image_prompt or job.decision.video_prompt,
                aspect_ratio=job.request.aspect_ratio.value,
            ),
        )
        job.cancel.raise_if_cancelled()
        image_url = await self._persister.persist(remote_image_url, f"scene-{job.scene}-ref.png")

        await job.emit(PipelineEvent(
            type=EventType.IMAGE_COMPLETE,
            scene=job.scene,
            message="Reference image ready. Generating video...",
            data=EventData(image_url=image_url),
        ))
        await job.emit(PipelineEvent(
            type=EventType.VIDEO_SUBMITTED,
            scene=job.scene,
            message="Animating reference image...",
        ))
        request_id = await self._submit(
            job,
            f"Scene {job.scene} image-to-video submit",
            self._client.submit_image_to_video(
                prompt=job.decision.video_prompt,
                image_url=image_url,
                duration=job.request.duration,
                aspect_ratio=job.request.aspect_ratio.value,
                resolution=job.request.resolution.value,
            ),
        )
        return Submission(request_id=request_id, image_url=image_url)

    async def _submit_video_edit(self, job: _SceneJob) -> Submission:
        if not job.prior_results or not job.prior_results[-1].video_url:
            raise PreconditionError(
                "edit-video requires a previous scene", scene=job.scene, step="video edit submit"
            )
        previous = job.prior_results[-1]

        await job.emit(PipelineEvent(
            type=EventType.VIDEO_SUBMITTED,
            scene=job.scene,
            message=f"Editing scene {previous.scene_number}...",
        ))
        request_id = await self._submit(
            job,
            f"Scene {job.scene} video edit submit",
            self._client.submit_video_edit(
                prompt=job.decision.video_prompt,
                video_url=previous.video_url,
            ),
        )
        return Submission(request_id=request_id)

    # Helpers

    async def _submit(self, job: _SceneJob, label: str, call: Awaitable[T]) -> T:
        """Run one submission under the step deadline, abandoning it on cancel."""
        scene = job.scene
        try:
            return await self._tagged(
                scene,
                label,
                job.cancel.guard(
                    with_deadline(call, label, self._settings.step_timeout),
                    f"{label} cancelled",
                ),
            )
        except (RemoteAPIError, httpx.HTTPError, ValueError) as e:
            raise SubmissionError(f"{label} failed: {e}", scene=scene, step=label) from e

    @staticmethod
    async def _tagged(scene: int, label: str, call: Awaitable[T]) -> T:
        """Attach the scene and step to pipeline errors raised by ``call``."""
        try:
            return await call
        except PipelineError as e:
            if e.scene is None:
                e.scene = scene
            if e.step is None:
                e.step = label
            raise
