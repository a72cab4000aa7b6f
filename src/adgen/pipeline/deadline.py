"""Deadlines around pipeline steps."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from ..errors import StepTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_deadline(
    awaitable: Awaitable[T],
    label: str,
    seconds: float,
    on_timeout: Optional[Callable[[], None]] = None,
) -> T:
    """Race ``awaitable`` against a deadline.

    Args:
        awaitable: The work to bound.
        label: Step name used in the timeout message.
        seconds: Deadline in seconds.
        on_timeout: Best-effort callback fired when the deadline expires,
            e.g. to signal a poll loop to stop.

    Returns:
        The awaitable's result.

    Raises:
        StepTimeoutError: If the deadline expires first.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        if on_timeout is not None:
            try:
                on_timeout()
            except Exception as e:
                logger.debug(f"on_timeout callback for {label} failed: {e}")
        logger.error(f"{label} timed out after {seconds:g}s")
        raise StepTimeoutError(f"{label} timed out after {seconds:g}s", step=label) from None
