"""
Domain Event Publisher.

Moves the events collected on an aggregate onto the event bus once the write
that produced them has been committed.
"""

import logging

from ...domain.shared.base import AggregateRoot, DomainEvent
from .event_bus import EventBusInterface

logger = logging.getLogger(__name__)


class DomainEventPublisher:
    """Bridge between aggregates and the infrastructure event bus."""

    def __init__(self, event_bus: EventBusInterface):
        self._event_bus = event_bus

    @property
    def event_bus(self) -> EventBusInterface:
        return self._event_bus

    def publish_batch(self, events: list[DomainEvent]) -> None:
        for event in events:
            self._event_bus.publish(event)
        if events:
            logger.debug(f"Published batch of {len(events)} domain events")

    def publish_events(self, aggregate: AggregateRoot) -> list[DomainEvent]:
        """
        Publish and clear the aggregate's pending events.

        Returns:
            The events that were published
        """
        events = aggregate.get_domain_events()
        aggregate.clear_domain_events()
        self.publish_batch(events)
        return events
