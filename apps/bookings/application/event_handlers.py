"""
Booking Event Handlers

Reactions to booking events. They run after the transaction commits and
must never raise into the request that produced the event.
"""

import logging

from shared.application.message_bus import MessageBus
from apps.bookings.domain.events import BookingDecided

logger = logging.getLogger(__name__)


def notify_requester_of_decision(event: BookingDecided) -> None:
    """Queue the push notification telling the requester the new status"""
    from apps.notifications.tasks import dispatch_booking_status_push

    dispatch_booking_status_push(event.booking_id)


def register_event_handlers(bus: MessageBus) -> None:
    bus.register_event_handler(BookingDecided, notify_requester_of_decision)
