"""Error taxonomy for the ad pipeline."""

from typing import Optional


class AdGenError(Exception):
    """Base class for all ad generator errors."""


class ConfigurationError(AdGenError):
    """Required credentials or settings are missing."""


class ValidationError(AdGenError):
    """A pipeline request is malformed or missing required fields."""


class RemoteAPIError(AdGenError):
    """A remote endpoint answered with a non-2xx status."""

    def __init__(self, label: str, status_code: int, body: str) -> None:
        self.label = label
        self.status_code = status_code
        self.body = body
        super().__init__(f"{label} error {status_code}: {body}")


class PipelineError(AdGenError):
    """An error raised while a pipeline run is streaming.

    Args:
        message: Human-readable failure detail.
        scene: Scene number the failure belongs to, if known.
        step: Name of the step that failed, if known.
    """

    def __init__(
        self,
        message: str,
        scene: Optional[int] = None,
        step: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.scene = scene
        self.step = step


class PlanningError(PipelineError):
    """The reasoning call failed or returned an unusable decision."""


class SubmissionError(PipelineError):
    """A generation or edit submission was rejected."""


class PollTimeoutError(PipelineError):
    """The poll loop ran out of attempts without a finished video."""


class PollFailureError(PipelineError):
    """The remote job reported failure, or its status could not be read."""


class PreconditionError(PipelineError):
    """A step was requested without the state it depends on."""


class StepTimeoutError(PipelineError):
    """A step or poll deadline expired."""


class CancellationError(PipelineError):
    """The caller abandoned the run."""
