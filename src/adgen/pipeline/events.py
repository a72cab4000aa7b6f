"""Single-consumer event channel between a pipeline run and its transport."""

import asyncio
from typing import AsyncIterator, Optional

from ..models import PipelineEvent

_CLOSED = None


class EventChannel:
    """Queue of pipeline events written by one run and drained by one reader.

    The channel closes itself after a terminal event; later sends are
    dropped. Iteration ends once the channel is closed and drained.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[PipelineEvent]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: PipelineEvent) -> None:
        if self._closed:
            return
        await self._queue.put(event)
        if event.type.is_terminal:
            self.close()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[PipelineEvent]:
        while True:
            event = await self._queue.get()
            if event is _CLOSED:
                return
            yield event
