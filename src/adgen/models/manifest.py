"""Ad manifest data model."""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from .pipeline import PipelineInput
from .scene import SceneResult


class AdManifest(BaseModel):
    """A finished ad: the request that produced it and its scenes."""

    request: PipelineInput = Field(..., description="Pipeline input")
    scenes: List[SceneResult] = Field(default_factory=list, description="Finished scenes in order")
    generated_at: Optional[datetime] = Field(None, description="When the run finished")

    @property
    def total_duration(self) -> float:
        """Sum of scene durations, falling back to the requested duration."""
        return sum(
            scene.duration if scene.duration is not None else self.request.duration
            for scene in self.scenes
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "AdManifest":
        """Load manifest from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save manifest to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(
                self.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )
