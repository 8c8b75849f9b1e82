"""
Server-sent event stream for one live dashboard connection.

Each connection owns a bounded queue. The hub writes frames into it
without waiting; the generator drains it and sends a comment frame when
the connection has been idle for the keepalive interval. Leaving the
generator for any reason (client disconnect, server shutdown, prune)
unregisters the subscriber exactly once. The subscriber is
registered on the first read.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from errors import SubscriberLimitError
from hub import KEEPALIVE_FRAME, format_frame
from schemas import InitEvent
from service import ReportService

logger = logging.getLogger(__name__)


class StreamSubscription:
    def __init__(self, maxsize: int):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def write(self, frame: str) -> None:
        if self.closed:
            return
        # raises asyncio.QueueFull for a stalled reader; the hub prunes it
        self.queue.put_nowait(frame)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.queue.full():
            self.queue.get_nowait()
        self.queue.put_nowait(None)


async def open_event_stream(service: ReportService, keepalive_seconds: Optional[float] = None) -> AsyncIterator[str]:
    """Hydrate the snapshot and return the frame iterator for one connection.

    Raises SubscriberLimitError before anything is sent when the hub is
    full. The subscriber itself is registered when iteration starts, so an
    iterator that is never started holds no slot.
    """
    keepalive = keepalive_seconds or service.settings.keepalive_seconds
    await service.hydrate_for_stream()
    service.hub.check_capacity()
    return _drain(service, keepalive)


async def _drain(service: ReportService, keepalive: float) -> AsyncIterator[str]:
    subscription = StreamSubscription(service.settings.subscriber_queue_size)
    try:
        subscriber_id = service.hub.subscribe(subscription.write, subscription.close)
    except SubscriberLimitError as e:
        # the hub filled up between the capacity check and the first read
        logger.warning(f"Stream refused: {e}")
        return
    # no await between subscribe and this write, so init is always first
    subscription.write(format_frame(InitEvent(reports=service.store.all())))
    logger.info(f"Stream {subscriber_id} opened")

    try:
        while True:
            try:
                frame = await asyncio.wait_for(subscription.queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
                continue
            if frame is None:
                break
            yield frame
    finally:
        subscription.closed = True
        service.hub.unsubscribe(subscriber_id, skip_close=True)
        logger.info(f"Stream {subscriber_id} closed")
