"""
Booking Lifecycle

Core entity for the booking domain:
- BookingStatus: FSM states
- Decision: what an owner may decide about a pending request
- Booking: aggregate root enforcing the transitions
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from shared.domain.base import Aggregate
from shared.domain.value_objects import DateRange

from .exceptions import Forbidden, InvalidTransition, OutOfWindow

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .ledger import AvailabilityLedger


class BookingStatus(str, Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> APPROVED (owner approves, no approved overlap)
    - PENDING -> REJECTED (owner rejects)

    APPROVED and REJECTED are terminal.
    """
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED})

TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED}),
    BookingStatus.APPROVED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
}


class Decision(str, Enum):
    APPROVE = 'approve'
    REJECT = 'reject'

    @property
    def target_status(self) -> BookingStatus:
        return BookingStatus.APPROVED if self is Decision.APPROVE else BookingStatus.REJECTED

    @classmethod
    def from_status(cls, status: str) -> 'Decision':
        """Map the API's requested status ('approved'/'rejected') to a decision"""
        if status == BookingStatus.APPROVED.value:
            return cls.APPROVE
        if status == BookingStatus.REJECTED.value:
            return cls.REJECT
        raise ValueError(f"Unsupported status: {status!r}")


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[current]


@dataclass(kw_only=True, eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    A renter's request to use a vehicle on an inclusive range of days.

    Key invariants:
    - start_date <= end_date, inside the vehicle's window at creation
    - only the vehicle owner decides, and only while PENDING
    - approval requires that no other APPROVED booking overlaps
    """

    vehicle_id: Any
    owner_id: Any
    requester_id: Any
    dates: DateRange
    status: BookingStatus = BookingStatus.PENDING
    decided_at: datetime | None = None

    @classmethod
    def request(cls, ledger: 'AvailabilityLedger', requester_id, dates: DateRange) -> 'Booking':
        """
        Create a PENDING booking after checking the ledger
        """
        if not dates.is_valid:
            raise OutOfWindow()
        ledger.check_creatable(dates)
        return cls(
            vehicle_id=ledger.vehicle_id,
            owner_id=ledger.owner_id,
            requester_id=requester_id,
            dates=dates,
        )

    def mark_persisted(self, booking_id) -> None:
        self.id = booking_id

    def ensure_decidable_by(self, actor_id) -> None:
        """Authorization and state preconditions shared by every decision"""
        if actor_id != self.owner_id:
            raise Forbidden()
        if self.status.is_terminal:
            raise InvalidTransition(self.status.value, message=f"Booking is already {self.status.value}.")

    def decide(self, actor_id, decision: Decision, ledger: 'AvailabilityLedger') -> BookingStatus:
        """
        Apply an owner's decision (PENDING -> APPROVED | REJECTED)

        The ledger must be freshly loaded inside the commit section; the
        approval check is only meaningful against current state.

        Events: BookingDecided
        """
        self.ensure_decidable_by(actor_id)

        target = decision.target_status
        if not can_transition(self.status, target):
            raise InvalidTransition(self.status.value, target.value)

        if decision is Decision.APPROVE:
            ledger.check_approvable(self.id, self.dates)

        from apps.bookings.domain.events import BookingDecided

        previous = self.status
        self.status = target
        self.decided_at = datetime.now(timezone.utc)

        self.add_event(BookingDecided(
            aggregate_id=self.id,
            booking_id=self.id,
            vehicle_id=self.vehicle_id,
            requester_id=self.requester_id,
            previous_status=previous.value,
            status=target.value,
        ))
        return target

    def __str__(self):
        return f"Booking {self.id} ({self.status.value}, {self.dates})"
