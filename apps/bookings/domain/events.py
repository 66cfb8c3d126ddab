"""
Booking Domain Events

Published by the unit of work after the transaction commits.
They carry identifiers only, never model instances.
"""

from dataclasses import dataclass
from typing import Any

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingDecided(DomainEvent):
    """
    Event: The owner approved or rejected a pending booking

    Triggers:
    - Push notification to the requester with the new status
    """
    booking_id: Any
    vehicle_id: Any
    requester_id: Any
    previous_status: str
    status: str
