"""Tests for the scene planner agent."""

import pytest

from adgen.agents import SceneContext, ScenePlanner, allowed_methods, decision_schema
from adgen.errors import PlanningError, RemoteAPIError
from adgen.models import GenerationMethod, PipelineInput, SceneDecision, SceneResult

from .conftest import FakeXAIClient, decision


def prior_scene(number: int, method: str = "text-to-video", image_url=None) -> SceneResult:
    chosen = SceneDecision(**decision(method=method, video_prompt=f"Prompt for scene {number}"))
    return SceneResult(
        scene_number=number,
        method=chosen.method,
        decision=chosen,
        video_url=f"https://store.test/scene-{number}.mp4",
        image_url=image_url,
        duration=6,
    )


def schema_methods(response_format: dict) -> list:
    return response_format["json_schema"]["schema"]["properties"]["method"]["enum"]


class TestAllowedMethods:
    """Test which methods each scene may pick."""

    def test_scene_one_never_edits(self):
        """Test scene 1 cannot edit a previous scene."""
        assert GenerationMethod.EDIT_VIDEO not in allowed_methods(1, allow_edit=True)

    def test_later_scenes_may_edit(self):
        """Test edits are offered for scenes 2 and 3."""
        assert GenerationMethod.EDIT_VIDEO in allowed_methods(2, allow_edit=True)
        assert GenerationMethod.EDIT_VIDEO in allowed_methods(3, allow_edit=True)

    def test_long_scenes_never_edit(self):
        """Test edits are withheld when not allowed."""
        assert allowed_methods(3, allow_edit=False) == [
            GenerationMethod.TEXT_TO_VIDEO,
            GenerationMethod.IMAGE_THEN_VIDEO,
        ]

    def test_schema_is_strict(self):
        """Test the structured-output schema shape."""
        schema = decision_schema(allowed_methods(1, allow_edit=True))

        assert schema["type"] == "json_schema"
        assert schema["json_schema"]["strict"] is True
        body = schema["json_schema"]["schema"]
        assert body["additionalProperties"] is False
        assert body["required"] == ["method", "video_prompt", "image_prompt", "reasoning"]
        assert schema_methods(schema) == ["text-to-video", "image-then-video"]


class TestSceneContext:
    """Test planner context validation."""

    def test_prior_results_must_match_scene(self, sneaker_launch):
        """Test scene N needs exactly N-1 prior results."""
        with pytest.raises(ValueError, match="prior results"):
            SceneContext(scene_number=2, request=sneaker_launch, prior_results=())

    def test_scene_number_range(self, sneaker_launch):
        """Test scene numbers outside 1-3."""
        with pytest.raises(ValueError, match="scene_number"):
            SceneContext(scene_number=4, request=sneaker_launch, prior_results=())


class TestScenePlanner:
    """Test ScenePlanner."""

    @pytest.mark.asyncio
    async def test_scene_one_uses_plain_text(self, sneaker_launch):
        """Test scene 1 sends text only and excludes edit-video."""
        client = FakeXAIClient(decisions=[decision()])
        planner = ScenePlanner(client)

        result = await planner.plan(1, sneaker_launch)

        assert result.method == GenerationMethod.TEXT_TO_VIDEO
        call = client.chat_calls[0]
        system, user = call["messages"]
        assert system["role"] == "system"
        assert isinstance(user["content"], str)
        assert "sneaker launch" in user["content"]
        assert "duration=6s" in user["content"]
        assert schema_methods(call["response_format"]) == ["text-to-video", "image-then-video"]
        assert call["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_later_scene_sees_prior_images_not_videos(self, sneaker_launch):
        """Test prior reference images are image parts and videos stay text."""
        client = FakeXAIClient(decisions=[decision(method="edit-video")])
        planner = ScenePlanner(client)
        priors = (
            prior_scene(1, method="image-then-video", image_url="https://store.test/scene-1-ref.png"),
            prior_scene(2),
        )

        await planner.plan(3, sneaker_launch, priors)

        call = client.chat_calls[0]
        parts = call["messages"][1]["content"]
        image_parts = [p for p in parts if p["type"] == "input_image"]
        assert image_parts == [{
            "type": "input_image",
            "image_url": {"url": "https://store.test/scene-1-ref.png"},
            "detail": "high",
        }]
        assert not any(".mp4" in str(p.get("image_url", "")) for p in parts)
        text_parts = [p["text"] for p in parts if p["type"] == "input_text"]
        assert "Video URL: https://store.test/scene-1.mp4" in text_parts[0]
        assert "Prompt for scene 2" in text_parts[1]
        assert "Scene 3 of 3" in text_parts[-1]
        assert "edit-video" in schema_methods(call["response_format"])

    @pytest.mark.asyncio
    async def test_long_duration_withholds_edit(self):
        """Test a 10s run never offers edit-video."""
        request = PipelineInput(concept="sneaker launch", duration=10)
        client = FakeXAIClient(decisions=[decision()])

        await ScenePlanner(client).plan(2, request, (prior_scene(1),))

        call = client.chat_calls[0]
        assert "edit-video" not in schema_methods(call["response_format"])
        assert "not available at 10s" in call["messages"][1]["content"][-1]["text"]

    @pytest.mark.asyncio
    async def test_unavailable_method_is_rejected(self, sneaker_launch):
        """Test an edit chosen for scene 1 fails planning."""
        client = FakeXAIClient(decisions=[decision(method="edit-video")])

        with pytest.raises(PlanningError, match="unavailable method") as exc_info:
            await ScenePlanner(client).plan(1, sneaker_launch)

        assert exc_info.value.scene == 1

    @pytest.mark.asyncio
    async def test_unknown_method_is_rejected(self, sneaker_launch):
        """Test a method outside the enum."""
        client = FakeXAIClient(decisions=[decision(method="stop-motion")])

        with pytest.raises(PlanningError, match="could not be parsed"):
            await ScenePlanner(client).plan(1, sneaker_launch)

    @pytest.mark.asyncio
    async def test_missing_field_is_rejected(self, sneaker_launch):
        """Test a decision missing a required field."""
        answer = decision()
        del answer["reasoning"]
        client = FakeXAIClient(decisions=[answer])

        with pytest.raises(PlanningError):
            await ScenePlanner(client).plan(1, sneaker_launch)

    @pytest.mark.asyncio
    async def test_invalid_json_is_rejected(self, sneaker_launch):
        """Test a non-JSON answer."""
        client = FakeXAIClient(decisions=["Scene 1 should be text-to-video"])

        with pytest.raises(PlanningError, match="could not be parsed"):
            await ScenePlanner(client).plan(1, sneaker_launch)

    @pytest.mark.asyncio
    async def test_empty_video_prompt_is_rejected(self, sneaker_launch):
        """Test a blank video prompt."""
        client = FakeXAIClient(decisions=[decision(video_prompt="   ")])

        with pytest.raises(PlanningError, match="empty video prompt"):
            await ScenePlanner(client).plan(1, sneaker_launch)

    @pytest.mark.asyncio
    async def test_image_prompt_cleared_for_text_methods(self, sneaker_launch):
        """Test image_prompt is only kept for image-then-video."""
        client = FakeXAIClient(decisions=[
            decision(image_prompt="stray still"),
            decision(method="image-then-video", image_prompt="Studio shot of a red sneaker"),
        ])
        planner = ScenePlanner(client)

        text_decision = await planner.plan(1, sneaker_launch)
        image_decision = await planner.plan(1, sneaker_launch)

        assert text_decision.image_prompt == ""
        assert image_decision.image_prompt == "Studio shot of a red sneaker"

    @pytest.mark.asyncio
    async def test_remote_error_becomes_planning_error(self, sneaker_launch):
        """Test a failed chat call."""
        client = FakeXAIClient()

        async def chat(*args, **kwargs):
            raise RemoteAPIError("xAI chat", 429, "rate limited")

        client.chat = chat

        with pytest.raises(PlanningError, match="429") as exc_info:
            await ScenePlanner(client).plan(1, sneaker_launch)

        assert exc_info.value.step == "planning"
