"""Server-sent event framing for pipeline runs."""

import asyncio
import logging
from typing import AsyncGenerator

from ..models import PipelineEvent, PipelineInput
from ..pipeline import CancellationToken, EventChannel, PipelineController

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_frame(event: PipelineEvent) -> str:
    """Format one event as an SSE ``data:`` frame."""
    return f"data: {event.to_json()}\n\n"


def start_run(
    controller: PipelineController, request: PipelineInput
) -> tuple[EventChannel, asyncio.Task, CancellationToken]:
    """Start a pipeline run in the background, writing into a fresh channel."""
    channel = EventChannel()
    token = CancellationToken()
    task = asyncio.create_task(controller.run(request, channel.send, token))
    # A cancelled run ends without a terminal event
    task.add_done_callback(lambda _: channel.close())
    return channel, task, token


async def event_stream(
    channel: EventChannel,
    task: asyncio.Task,
    token: CancellationToken,
) -> AsyncGenerator[str, None]:
    """Drain ``channel`` as SSE frames.

    If the consumer goes away before the run finishes, the run is cancelled
    and its task awaited.
    """
    try:
        async for event in channel:
            yield format_frame(event)
    finally:
        if not task.done():
            logger.info("Client disconnected, cancelling pipeline run")
            token.cancel()
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
