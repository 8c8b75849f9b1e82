"""
Fan-out of report change events to live stream subscribers.

All methods are synchronous and run on the event loop thread. A write must
not block: stream subscribers enqueue the frame and return immediately.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List

from pydantic import BaseModel

from errors import SubscriberLimitError

logger = logging.getLogger(__name__)

WriteFn = Callable[[str], None]
CloseFn = Callable[[], None]

KEEPALIVE_FRAME = ':\n\n'


def format_frame(event: BaseModel) -> str:
    return f"data: {event.model_dump_json()}\n\n"


@dataclass
class Subscriber:
    id: int
    write: WriteFn
    close: CloseFn


class BroadcastHub:
    def __init__(self, max_subscribers: int = 100):
        self.max_subscribers = max_subscribers
        self._subscribers: Dict[int, Subscriber] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber_id: int) -> bool:
        return subscriber_id in self._subscribers

    def check_capacity(self) -> None:
        if len(self._subscribers) >= self.max_subscribers:
            raise SubscriberLimitError(self.max_subscribers)

    def subscribe(self, write: WriteFn, close: CloseFn) -> int:
        """Register a subscriber and return its id. Ids are never reused."""
        self.check_capacity()
        subscriber_id = next(self._ids)
        self._subscribers[subscriber_id] = Subscriber(subscriber_id, write, close)
        logger.debug(f"Subscriber {subscriber_id} registered ({len(self._subscribers)} active)")
        return subscriber_id

    def unsubscribe(self, subscriber_id: int, skip_close: bool = False) -> bool:
        """Remove a subscriber. Unknown ids are ignored.

        `skip_close` is for callers whose transport is already closing.
        """
        subscriber = self._subscribers.pop(subscriber_id, None)
        if subscriber is None:
            return False
        if not skip_close:
            try:
                subscriber.close()
            except Exception:
                logger.warning(f"Closing subscriber {subscriber_id} failed", exc_info=True)
        logger.debug(f"Subscriber {subscriber_id} removed ({len(self._subscribers)} active)")
        return True

    def broadcast(self, event: BaseModel) -> int:
        """Write one event to every subscriber; returns the number reached.

        Subscribers whose write fails are pruned after the fan-out.
        """
        frame = format_frame(event)
        delivered = 0
        failed: List[int] = []
        for subscriber in list(self._subscribers.values()):
            try:
                subscriber.write(frame)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber {subscriber.id} after failed write: {e!r}")
                failed.append(subscriber.id)
        for subscriber_id in failed:
            self.unsubscribe(subscriber_id)
        return delivered

    def close_all(self) -> None:
        for subscriber_id in list(self._subscribers):
            self.unsubscribe(subscriber_id)
