"""Sequential scene pipeline."""

from .cancellation import CancellationToken
from .controller import PipelineController, parse_input
from .deadline import with_deadline
from .events import EventChannel
from .executor import SceneExecutor
from .polling import poll_video

__all__ = [
    "CancellationToken",
    "EventChannel",
    "PipelineController",
    "SceneExecutor",
    "parse_input",
    "poll_video",
    "with_deadline",
]
