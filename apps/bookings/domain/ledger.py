"""
Availability Ledger

The per-vehicle authority on whether a date range can be granted.

A ledger is a read-consistent snapshot of one vehicle: its availability
window and its pending and approved bookings. It is derived on demand from the
booking table; nothing here is persisted. Only APPROVED bookings hold an
exclusive claim on their days, so both checks scan the approved subset:

    ledger = ledger_repo.load(vehicle_id)
    ledger.check_creatable(dates)            # advisory, at creation
    ledger.check_approvable(booking_id, dates)  # final gate, at approval

The scan is linear in the vehicle's booking count. A sorted-interval
index could replace it without changing this contract.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Set

from shared.domain.value_objects import DateRange

from .exceptions import BookingOverlap, OutOfWindow
from .lifecycle import BookingStatus


@dataclass(frozen=True)
class BookedRange:
    """One booking's claim on a vehicle's calendar"""
    booking_id: Any
    dates: DateRange
    status: BookingStatus

    @property
    def is_approved(self) -> bool:
        return self.status == BookingStatus.APPROVED


@dataclass
class AvailabilityLedger:
    """
    Snapshot of a vehicle's window and bookings

    Key invariant (enforced by the commit protocol, checked here):
    - No two APPROVED bookings overlap
    """

    vehicle_id: Any
    owner_id: Any
    window: DateRange
    bookings: List[BookedRange] = field(default_factory=list)

    def approved(self) -> List[BookedRange]:
        return [b for b in self.bookings if b.is_approved]

    def overlapping_approved(self, dates: DateRange, exclude_booking_id=None) -> List[BookedRange]:
        """Approved bookings sharing at least one day with ``dates``"""
        return [
            b for b in self.approved()
            if b.booking_id != exclude_booking_id and b.dates.overlaps(dates)
        ]

    def check_creatable(self, dates: DateRange) -> None:
        """
        Raise unless ``dates`` may be requested

        Raises:
            OutOfWindow: range is inverted or not inside the window
            BookingOverlap: an approved booking already holds one of the days
        """
        if not dates.is_valid or not self.window.contains(dates):
            raise OutOfWindow()

        conflicts = self.overlapping_approved(dates)
        if conflicts:
            raise BookingOverlap(conflicting_ids=[c.booking_id for c in conflicts])

    def check_approvable(self, booking_id, dates: DateRange) -> None:
        """
        Raise BookingOverlap if any other approved booking overlaps ``dates``
        """
        conflicts = self.overlapping_approved(dates, exclude_booking_id=booking_id)
        if conflicts:
            raise BookingOverlap(
                'Vehicle already approved for an overlapping period.',
                conflicting_ids=[c.booking_id for c in conflicts],
            )

    def occupied_days(self, statuses: Iterable[BookingStatus] = (BookingStatus.PENDING, BookingStatus.APPROVED)) -> Set[date]:
        wanted = set(statuses)
        days: Set[date] = set()
        for booking in self.bookings:
            if booking.status in wanted:
                days.update(booking.dates.days())
        return days

    def free_days(self, statuses: Iterable[BookingStatus] = (BookingStatus.PENDING, BookingStatus.APPROVED)) -> List[date]:
        """Window days not claimed by a booking in one of ``statuses``"""
        occupied = self.occupied_days(statuses)
        return [day for day in self.window.days() if day not in occupied]

    def is_listed_on(self, day: date) -> bool:
        """Window covers ``day`` and at least one window day is still unclaimed"""
        return self.window.includes(day) and bool(self.free_days())

    def __str__(self):
        return f"AvailabilityLedger(vehicle={self.vehicle_id}, bookings={len(self.bookings)})"
