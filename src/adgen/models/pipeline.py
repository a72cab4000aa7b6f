"""Pipeline request, state and event models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .scene import GenerationMethod, SceneDecision, SceneResult


class AspectRatio(str, Enum):
    """Supported output aspect ratios."""

    WIDESCREEN = "16:9"
    STANDARD = "4:3"
    CLASSIC = "3:2"
    SQUARE = "1:1"
    PORTRAIT_CLASSIC = "2:3"
    PORTRAIT_STANDARD = "3:4"
    VERTICAL = "9:16"


class Resolution(str, Enum):
    """Supported output resolutions."""

    SD = "480p"
    HD = "720p"


class PipelineInput(BaseModel):
    """A request to generate one three-scene ad."""

    model_config = ConfigDict(frozen=True)

    concept: str = Field(..., description="Natural-language ad concept")
    duration: int = Field(default=6, ge=1, le=15, description="Per-scene duration in seconds")
    aspect_ratio: AspectRatio = Field(default=AspectRatio.WIDESCREEN)
    resolution: Resolution = Field(default=Resolution.HD)

    @field_validator("concept")
    @classmethod
    def _concept_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("concept is required")
        return value.strip()

    def allows_edit(self, max_duration: int) -> bool:
        """Return True if scenes are short enough to be video-edited."""
        return self.duration <= max_duration


class RunStage(str, Enum):
    """Stage of a pipeline run, per scene."""

    PLANNING = "planning"
    EXECUTING = "executing"
    PERSISTING = "persisting"
    COMPLETE = "complete"
    FAILED = "failed"


class EventType(str, Enum):
    """Kinds of progress events streamed to the client."""

    SCENE_PLANNING = "scene_planning"
    SCENE_PLANNED = "scene_planned"
    IMAGE_GENERATING = "image_generating"
    IMAGE_COMPLETE = "image_complete"
    VIDEO_SUBMITTED = "video_submitted"
    VIDEO_POLLING = "video_polling"
    VIDEO_COMPLETE = "video_complete"
    SCENE_COMPLETE = "scene_complete"
    PIPELINE_COMPLETE = "pipeline_complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (EventType.PIPELINE_COMPLETE, EventType.ERROR)


class EventData(BaseModel):
    """Structured payload attached to an event."""

    model_config = ConfigDict(frozen=True)

    method: Optional[GenerationMethod] = None
    reasoning: Optional[str] = None
    video_prompt: Optional[str] = None
    image_prompt: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    video_duration: Optional[float] = None
    video_width: Optional[int] = None
    video_height: Optional[int] = None

    @classmethod
    def from_decision(cls, decision: SceneDecision) -> "EventData":
        """Payload describing a decision; an empty image prompt is left out."""
        return cls(
            method=decision.method,
            reasoning=decision.reasoning,
            video_prompt=decision.video_prompt,
            image_prompt=decision.image_prompt or None,
        )

    @classmethod
    def from_result(cls, result: SceneResult) -> "EventData":
        """Payload describing a finished scene."""
        return cls(
            method=result.method,
            reasoning=result.decision.reasoning,
            video_prompt=result.decision.video_prompt,
            image_prompt=result.decision.image_prompt or None,
            image_url=result.image_url,
            video_url=result.video_url,
            video_duration=result.duration,
            video_width=result.width,
            video_height=result.height,
        )


class PipelineEvent(BaseModel):
    """One progress event; scene 0 marks failures outside any scene."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    scene: int = Field(..., ge=0, le=3)
    message: str
    data: Optional[EventData] = None

    def to_json(self) -> str:
        """Serialize without unset fields."""
        return self.model_dump_json(exclude_none=True)


class VideoStatus(BaseModel):
    """One reading of a video job's status endpoint."""

    state: Optional[str] = None
    url: Optional[str] = None
    duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_response(cls, data: dict) -> "VideoStatus":
        """Read a status payload, tolerating the nested shapes the API uses."""
        result = data.get("result") or {}
        output = data.get("output") or {}
        error = data.get("error")
        return cls(
            state=data.get("state") or data.get("status") or result.get("state"),
            url=data.get("url") or result.get("url") or output.get("url"),
            duration=data.get("duration"),
            width=data.get("width"),
            height=data.get("height"),
            error=str(error) if error else None,
        )


class VideoResult(BaseModel):
    """A finished video job."""

    model_config = ConfigDict(frozen=True)

    url: str
    request_id: str
    duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
