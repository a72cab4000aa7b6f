"""Scene data models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationMethod(str, Enum):
    """How a scene's video is produced."""

    TEXT_TO_VIDEO = "text-to-video"
    IMAGE_THEN_VIDEO = "image-then-video"
    EDIT_VIDEO = "edit-video"


class SceneDecision(BaseModel):
    """The planner's choice of method and prompts for one scene."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: GenerationMethod = Field(..., description="Generation method for this scene")
    video_prompt: str = Field(..., description="Prompt for video generation or editing")
    image_prompt: str = Field(..., description="Reference image prompt, empty unless image-then-video")
    reasoning: str = Field(..., description="Why this method was chosen")


class SceneMedia(BaseModel):
    """Durable media produced by executing a scene."""

    model_config = ConfigDict(frozen=True)

    video_url: str
    image_url: Optional[str] = None
    duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None


class SceneResult(BaseModel):
    """A finished scene, as seen by the scenes planned after it."""

    model_config = ConfigDict(frozen=True)

    scene_number: int = Field(..., ge=1, le=3, description="1-based scene index")
    method: GenerationMethod
    decision: SceneDecision
    video_url: str = Field(..., description="Durable video URL")
    image_url: Optional[str] = Field(None, description="Durable reference image URL")
    duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_media(
        cls, scene_number: int, decision: SceneDecision, media: SceneMedia
    ) -> "SceneResult":
        """Combine a decision with the media it produced."""
        return cls(
            scene_number=scene_number,
            method=decision.method,
            decision=decision,
            video_url=media.video_url,
            image_url=media.image_url,
            duration=media.duration,
            width=media.width,
            height=media.height,
        )
