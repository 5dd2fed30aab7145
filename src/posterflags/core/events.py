"""In-process library change notifications."""

import threading
from typing import Callable, List, Protocol

from posterflags.models.item import ItemChangeEvent, ItemEventKind, MediaItem
from posterflags.utils.logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[ItemChangeEvent], None]


class NotificationSource(Protocol):
    """Anything the coordinator can subscribe to."""

    def subscribe(self, handler: EventHandler) -> None: ...

    def unsubscribe(self, handler: EventHandler) -> None: ...


class LibraryEventHub:
    """Synchronous fan-out of item change events to subscribers.

    Handlers run on the publishing thread, in subscription order. A failing
    handler is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._handlers: List[EventHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: EventHandler) -> None:
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def publish(self, event: ItemChangeEvent) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.exception("Event handler failed", item_id=event.item.item_id, error=str(e))

    def item_added(self, item: MediaItem) -> None:
        self.publish(ItemChangeEvent(kind=ItemEventKind.ADDED, item=item))

    def item_updated(self, item: MediaItem) -> None:
        self.publish(ItemChangeEvent(kind=ItemEventKind.UPDATED, item=item))
