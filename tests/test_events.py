"""Tests for event models, the event channel and config."""

import asyncio

import pytest

from adgen.api.streaming import event_stream, format_frame
from adgen.config import Config
from adgen.errors import ConfigurationError
from adgen.models import EventData, EventType, PipelineEvent, SceneDecision, VideoStatus
from adgen.pipeline import CancellationToken, EventChannel

from .conftest import decision


class SlowToStopRun:
    """A run task that ignores cancellation until released."""

    def __init__(self):
        self.cancel_calls = 0
        self._released = asyncio.get_running_loop().create_future()

    def done(self):
        return False

    def cancel(self):
        self.cancel_calls += 1

    def cancelled(self):
        return False

    def __await__(self):
        return self._released.__await__()


def event(kind: EventType, scene: int = 1) -> PipelineEvent:
    return PipelineEvent(type=kind, scene=scene, message=kind.value)


class TestEventChannel:
    """Test EventChannel."""

    @pytest.mark.asyncio
    async def test_closes_after_terminal_event(self):
        """Test sends after a terminal event are dropped."""
        channel = EventChannel()

        await channel.send(event(EventType.SCENE_PLANNING))
        await channel.send(event(EventType.ERROR))
        await channel.send(event(EventType.SCENE_PLANNED))

        assert channel.closed
        assert [e.type async for e in channel] == [EventType.SCENE_PLANNING, EventType.ERROR]

    @pytest.mark.asyncio
    async def test_stream_cancels_run_on_disconnect(self):
        """Test closing the stream early cancels the run."""
        channel = EventChannel()
        token = CancellationToken()
        task = asyncio.create_task(asyncio.sleep(10))
        await channel.send(event(EventType.SCENE_PLANNING))

        stream = event_stream(channel, task, token)
        first = await stream.__anext__()
        await stream.aclose()

        assert first.startswith("data: ")
        assert token.cancelled
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_stream_cleanup_keeps_consumer_cancellation(self):
        """Test cancelling the consumer while it waits for the run is not swallowed."""
        channel = EventChannel()
        token = CancellationToken()
        run = SlowToStopRun()
        await channel.send(event(EventType.SCENE_PLANNING))
        stream = event_stream(channel, run, token)
        await stream.__anext__()

        async def disconnect():
            await stream.aclose()

        closer = asyncio.create_task(disconnect())
        for _ in range(5):
            await asyncio.sleep(0)
        assert run.cancel_calls == 1
        assert token.cancelled

        closer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await closer


class TestEventModels:
    """Test event payloads."""

    def test_frame_omits_unset_fields(self):
        """Test SSE frames carry only set fields."""
        frame = format_frame(PipelineEvent(
            type=EventType.SCENE_PLANNED,
            scene=2,
            message="Scene 2 planned",
            data=EventData.from_decision(SceneDecision(**decision())),
        ))

        assert frame.endswith("\n\n")
        assert '"method":"text-to-video"' in frame
        assert "image_prompt" not in frame
        assert "image_url" not in frame

    def test_scene_out_of_range(self):
        """Test events only exist for scenes 0-3."""
        with pytest.raises(ValueError):
            PipelineEvent(type=EventType.ERROR, scene=4, message="x")

    def test_status_from_output_shape(self):
        """Test URL under output and a structured error."""
        status = VideoStatus.from_response({"status": "failed", "error": {"code": "policy"}})
        assert status.state == "failed"
        assert "policy" in status.error

        status = VideoStatus.from_response({"output": {"url": "https://remote.test/o.mp4"}})
        assert status.url == "https://remote.test/o.mp4"
        assert status.state is None


class TestConfig:
    """Test configuration."""

    def test_poll_timeout_exceeds_poll_bound(self):
        """Test the poll deadline adds its margin."""
        settings = Config(poll_interval=5, poll_max_attempts=180, poll_timeout_margin=30)

        assert settings.poll_timeout == 930

    def test_env_overrides(self, monkeypatch):
        """Test settings come from the environment."""
        monkeypatch.setenv("ADGEN_POLL_MAX_ATTEMPTS", "12")
        monkeypatch.setenv("XAI_API_KEY", "from-env")

        settings = Config()

        assert settings.poll_max_attempts == 12
        assert settings.xai_api_key == "from-env"

    def test_validate_required(self):
        """Test a missing key."""
        with pytest.raises(ConfigurationError):
            Config(xai_api_key="").validate_required()

    def test_validate_storage(self):
        """Test bucket URIs."""
        assert Config(media_bucket="").validate_storage() is None
        assert Config(media_bucket="gs://ads/renders/").validate_storage() == "ads/renders"
        with pytest.raises(ConfigurationError, match="gs://"):
            Config(media_bucket="s3://ads").validate_storage()
