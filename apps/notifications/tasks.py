"""Celery tasks for push notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import Notifier

logger = logging.getLogger(__name__)

BOOKING_UPDATE_TITLE = "Booking update"
BOOKING_UPDATE_URL = "/bookings"


@shared_task(name="notifications.send_booking_status_push")
def send_booking_status_push(booking_id: int) -> dict[str, int]:
    """Tell the requester of ``booking_id`` its current status.

    Delivery is best effort: failures are logged and never retried.
    """
    from apps.bookings.models import Booking

    try:
        booking = Booking.objects.get(pk=booking_id)
    except Booking.DoesNotExist:
        logger.warning("Booking %s vanished before its status push was sent", booking_id)
        return {"sent": 0, "failed": 0, "expired": 0}

    try:
        return Notifier().notify(
            booking.requester_id,
            BOOKING_UPDATE_TITLE,
            f"Your booking is {booking.status}.",
            url=BOOKING_UPDATE_URL,
        )
    except Exception:
        logger.exception("Status push for booking %s failed", booking_id)
        return {"sent": 0, "failed": 1, "expired": 0}


def dispatch_booking_status_push(booking_id: int) -> None:
    """Queue the status push; a broker outage must not reach the caller."""
    try:
        send_booking_status_push.delay(booking_id)
    except Exception:
        logger.exception("Could not queue status push for booking %s", booking_id)
