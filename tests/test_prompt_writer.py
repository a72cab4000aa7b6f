"""Tests for the clip prompt writer agent."""

import json

import pytest

from adgen.agents import ClipPromptInput, ClipPromptWriter
from adgen.errors import PlanningError

from .conftest import FakeXAIClient

CLIPS = {
    "clip_1": "Extreme close-up of laces snapping tight",
    "clip_2": "The runner sprints across a wet rooftop",
    "clip_3": "Logo reveal as the shoe lands on a puddle",
}


class TestClipPromptWriter:
    """Test ClipPromptWriter."""

    @pytest.mark.asyncio
    async def test_text_mode(self):
        """Test three prompts from a text concept."""
        client = FakeXAIClient(decisions=[json.dumps(CLIPS)])
        writer = ClipPromptWriter(client, model="prompt-model")

        result = await writer.run(ClipPromptInput(master_prompt="sneaker launch"))

        assert result.prompts == list(CLIPS.values())
        assert result.image_assignment is None
        call = client.chat_calls[0]
        assert call["model"] == "prompt-model"
        assert call["temperature"] == 0.8
        assert call["messages"][1]["content"] == "Master ad concept: sneaker launch"

    @pytest.mark.asyncio
    async def test_fenced_json_with_images(self):
        """Test fenced JSON and 1-based image assignment."""
        answer = "```json\n" + json.dumps({**CLIPS, "image_assignment": [1, 2, 2]}) + "\n```"
        client = FakeXAIClient(decisions=[answer])
        images = ["https://img.test/a.png", "data:image/png;base64,AAAA"]

        result = await ClipPromptWriter(client, model="m").run(
            ClipPromptInput(master_prompt="sneaker launch", images=images)
        )

        assert result.image_assignment == [0, 1, 1]
        parts = client.chat_calls[0]["messages"][1]["content"]
        assert [p["image_url"] for p in parts if p["type"] == "input_image"] == images

    @pytest.mark.asyncio
    async def test_assignment_out_of_range(self):
        """Test an assignment pointing past the given images."""
        answer = json.dumps({**CLIPS, "image_assignment": [1, 2, 3]})
        client = FakeXAIClient(decisions=[answer])

        with pytest.raises(PlanningError, match="image assignment"):
            await ClipPromptWriter(client, model="m").run(
                ClipPromptInput(master_prompt="sneaker launch", images=["https://img.test/a.png"])
            )

    @pytest.mark.asyncio
    async def test_missing_clip(self):
        """Test a response without all three clips."""
        client = FakeXAIClient(decisions=[json.dumps({"clip_1": "a", "clip_2": "b"})])

        with pytest.raises(PlanningError, match="Invalid response format"):
            await ClipPromptWriter(client, model="m").run(ClipPromptInput(master_prompt="x"))

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        """Test a non-JSON response."""
        client = FakeXAIClient(decisions=["Here are your clips!"])

        with pytest.raises(PlanningError, match="Invalid JSON"):
            await ClipPromptWriter(client, model="m").run(ClipPromptInput(master_prompt="x"))

    @pytest.mark.asyncio
    async def test_input_validation(self):
        """Test empty prompts and too many images are rejected before any call."""
        client = FakeXAIClient()
        writer = ClipPromptWriter(client, model="m")

        with pytest.raises(ValueError, match="masterPrompt"):
            await writer.run(ClipPromptInput(master_prompt="  "))
        with pytest.raises(ValueError, match="At most 3"):
            await writer.run(ClipPromptInput(master_prompt="x", images=["a", "b", "c", "d"]))

        assert client.chat_calls == []
