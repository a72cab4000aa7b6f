"""AI agents for scene planning and prompt writing."""

from .base import BaseAgent
from .planner import SceneContext, ScenePlanner, allowed_methods, decision_schema
from .prompt_writer import ClipPromptInput, ClipPrompts, ClipPromptWriter

__all__ = [
    "BaseAgent",
    "ClipPromptInput",
    "ClipPromptWriter",
    "ClipPrompts",
    "SceneContext",
    "ScenePlanner",
    "allowed_methods",
    "decision_schema",
]
