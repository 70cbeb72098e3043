"""
Event bus for domain event publishing and subscription.

Handlers subscribe to an event class and also receive events of its
subclasses, so subscribing to ``DomainEvent`` sees everything.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from collections.abc import Callable

from ...core.config import settings
from ...domain.shared.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventBusInterface(ABC):
    """Contract for publishing events and subscribing to event types."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        pass

    @abstractmethod
    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        pass

    @abstractmethod
    def clear_handlers(self, event_type: type[DomainEvent] | None = None) -> None:
        pass


class InMemoryEventBus(EventBusInterface):
    """
    In-memory, synchronous event bus.

    A failing handler is logged and the remaining handlers still run; the
    write that produced the event is never rolled back.
    """

    def __init__(self, max_history_size: int | None = None):
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)
        self._lock = threading.RLock()
        size = settings.EVENT_HISTORY_SIZE if max_history_size is None else max_history_size
        self._event_history: deque[DomainEvent] = deque(maxlen=size)

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            self._event_history.append(event)
            handlers = [
                handler
                for event_type in type(event).__mro__
                for handler in self._handlers.get(event_type, [])
            ]

        event_name = type(event).__name__
        if not handlers:
            logger.debug(f"No handlers registered for event type: {event_name}")
            return

        logger.debug(f"Publishing event {event_name} to {len(handlers)} handlers")
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error handling event {event_name} with {handler}: {e}")

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            if handler in self._handlers[event_type]:
                logger.warning(
                    f"Handler {handler} already subscribed to event type {event_type.__name__}"
                )
                return
            self._handlers[event_type].append(handler)
        logger.info(f"Subscribed handler {handler} to event type {event_type.__name__}")

    def unsubscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            if handler not in self._handlers.get(event_type, []):
                logger.warning(
                    f"Handler {handler} not found for event type {event_type.__name__}"
                )
                return
            self._handlers[event_type].remove(handler)
        logger.info(f"Unsubscribed handler {handler} from event type {event_type.__name__}")

    def clear_handlers(self, event_type: type[DomainEvent] | None = None) -> None:
        with self._lock:
            if event_type:
                self._handlers.pop(event_type, None)
            else:
                self._handlers.clear()

    def get_handler_count(self, event_type: type[DomainEvent]) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, []))

    def get_event_history(
        self, event_type: type[DomainEvent] | None = None
    ) -> list[DomainEvent]:
        """Published events, oldest first, optionally filtered by type."""
        with self._lock:
            if event_type:
                return [e for e in self._event_history if isinstance(e, event_type)]
            return list(self._event_history)

    def clear_event_history(self) -> None:
        with self._lock:
            self._event_history.clear()
