"""
Progress plumbing for one scraping job: a bounded event channel and the
cooperative cancellation handle.
"""
import asyncio
import logging
from typing import Callable, Optional

import config
from api.models import ProgressEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressChannel:
    """
    Bounded, ordered, single-producer/single-consumer event channel.

    ``publish`` hands each event to the optional callback synchronously and
    queues it for ``async for event in channel``. When the queue is full the
    oldest queued event is dropped, never the newest, so the terminal event
    always gets through. Nothing is delivered after a terminal event.
    """

    def __init__(self, maxsize: Optional[int] = None, on_event: Optional[ProgressCallback] = None):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize or config.PROGRESS_QUEUE_SIZE)
        self._on_event = on_event
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: ProgressEvent) -> bool:
        """Deliver an event. Returns False if the channel already saw a terminal event."""
        if self._closed:
            logger.debug(f"Dropping {event.kind.value} event published after terminal event")
            return False
        if event.is_terminal:
            self._closed = True

        if self._queue.full():
            stale = self._queue.get_nowait()
            self.dropped += 1
            logger.warning(f"Progress queue full, dropped {stale.kind.value} event ({stale.message})")
        self._queue.put_nowait(event)

        if self._on_event is not None:
            try:
                self._on_event(event)
            except Exception:
                logger.exception("Progress callback raised")
        return True

    def __aiter__(self):
        return self

    async def __anext__(self) -> ProgressEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        return await self._queue.get()


class CancellationHandle:
    """
    Opaque cancel signal shared between the orchestrator and its in-flight call.

    ``cancel`` may be called from any thread: the flag flips at once and the
    waiter is woken on the loop the handle was created on.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._cancelled = False
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    def cancel(self):
        self._cancelled = True
        if self._loop is None or self._loop.is_closed() or _running_loop() is self._loop:
            self._event.set()
        else:
            self._loop.call_soon_threadsafe(self._event.set)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def wait(self):
        await self._event.wait()


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
