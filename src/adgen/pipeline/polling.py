"""Bounded polling of asynchronous video jobs."""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Protocol, Union

import httpx

from ..errors import PollFailureError, PollTimeoutError, RemoteAPIError
from ..models import VideoResult, VideoStatus
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 180  # ~15 minutes at the default interval
DEFAULT_INTERVAL = 5.0

ProgressCallback = Callable[[str], Union[None, Awaitable[None]]]


class VideoStatusSource(Protocol):
    async def get_video_status(self, request_id: str) -> VideoStatus:
        ...


async def poll_video(
    client: VideoStatusSource,
    request_id: str,
    on_progress: Optional[ProgressCallback] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL,
    cancel: Optional[CancellationToken] = None,
) -> VideoResult:
    """Poll a video job until it finishes, fails, or runs out of attempts.

    Each attempt reads the job status once. A ``failed`` state ends the
    loop with the remote error; a media URL ends it with success. Any other
    reading is reported through ``on_progress`` and followed by a sleep of
    ``interval`` seconds, which a cancelled token cuts short.

    Args:
        client: Anything exposing ``get_video_status``.
        request_id: The job to poll.
        on_progress: Called with the remote state after each unfinished
            reading. May be a coroutine function.
        max_attempts: Status reads before giving up.
        interval: Seconds between reads.
        cancel: Token that abandons the loop within one tick.

    Returns:
        The finished video.

    Raises:
        PollFailureError: If the job failed or its status could not be read.
        PollTimeoutError: If ``max_attempts`` reads found no finished video.
        CancellationError: If ``cancel`` was raised.
    """
    token = cancel or CancellationToken()
    logger.info(f"Polling video {request_id} (max {max_attempts} attempts, {interval:g}s interval)")

    for attempt in range(1, max_attempts + 1):
        token.raise_if_cancelled(f"Polling of {request_id} cancelled")

        try:
            status = await client.get_video_status(request_id)
        except (RemoteAPIError, httpx.HTTPError) as e:
            raise PollFailureError(
                f"Video status check failed: {type(e).__name__}: {e}"
            ) from e

        state = status.state or "processing"
        logger.debug(
            f"Poll {request_id} attempt {attempt}/{max_attempts}: "
            f"state={state}, url={'yes' if status.url else 'no'}"
        )

        if state == "failed":
            logger.error(f"Video {request_id} failed: {status.error}")
            raise PollFailureError(f"Video generation failed: {status.error or 'unknown error'}")

        if status.url:
            logger.info(f"Video {request_id} complete: {status.url[:80]}")
            return VideoResult(
                url=status.url,
                request_id=request_id,
                duration=status.duration,
                width=status.width,
                height=status.height,
            )

        if on_progress is not None:
            outcome = on_progress(state)
            if inspect.isawaitable(outcome):
                await outcome

        if attempt < max_attempts and await token.sleep(interval):
            token.raise_if_cancelled(f"Polling of {request_id} cancelled")

    logger.error(f"Video {request_id} timed out after {max_attempts} attempts")
    raise PollTimeoutError(f"Video generation timed out after {max_attempts} attempts")
