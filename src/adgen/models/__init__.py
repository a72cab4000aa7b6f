"""Data models for the ad generator."""

from .scene import GenerationMethod, SceneDecision, SceneMedia, SceneResult
from .pipeline import (
    AspectRatio,
    EventData,
    EventType,
    PipelineEvent,
    PipelineInput,
    Resolution,
    RunStage,
    VideoResult,
    VideoStatus,
)
from .manifest import AdManifest

__all__ = [
    "AdManifest",
    "AspectRatio",
    "EventData",
    "EventType",
    "GenerationMethod",
    "PipelineEvent",
    "PipelineInput",
    "Resolution",
    "RunStage",
    "SceneDecision",
    "SceneMedia",
    "SceneResult",
    "VideoResult",
    "VideoStatus",
]
