# salonbook/events.py
"""Post-commit notifications for downstream collaborators.

Loyalty points, reminders and the like hang off these events. They are
published by the HTTP layer after the booking manager has committed, so a
failing subscriber can never undo or block a reservation.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingCreated:
    reservation_id: int
    customer_id: int
    service_id: int
    price_cents: int


@dataclass(frozen=True)
class ReservationStatusChanged:
    reservation_id: int
    old_status: str
    new_status: str


class EventBus:
    def __init__(self):
        self._subscribers: Dict[Type, List[Callable]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: Callable) -> None:
        self._subscribers[event_type].append(handler)

    def publish(self, event) -> None:
        for handler in list(self._subscribers[type(event)]):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed for %r", handler, event)


def log_event(event) -> None:
    logger.info("Event: %r", event)


def default_bus() -> EventBus:
    bus = EventBus()
    bus.subscribe(BookingCreated, log_event)
    bus.subscribe(ReservationStatusChanged, log_event)
    return bus


bus = default_bus()
