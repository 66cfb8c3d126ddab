"""Domain services for booking workflows.

Conflict-safe commit protocol for owner decisions:

1. ``vehicle_decision_lock`` serialises decisions on one vehicle inside
   this process (bounded wait).
2. The handler opens a transaction and reloads the ledger with the vehicle
   row locked (SELECT FOR UPDATE where supported), serialising decisions
   across processes.
3. The approval check runs against that fresh ledger.
4. The status write is a compare-and-commit on ``status = pending``.
5. ``verify_no_approved_overlap`` re-scans inside the same transaction; a
   hit raises BookingOverlap and the transaction rolls back.

A writer that gives up waiting on a database lock (``is_lock_contention``)
lost the race too and is reported as BookingOverlap.

``check_creatable`` and ``check_approvable`` are the read-only entry points
for callers outside the command path. The command handlers run the same
ledger checks on the snapshot they load inside their transaction.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from django.conf import settings  # type: ignore
from django.db import DEFAULT_DB_ALIAS, OperationalError  # type: ignore

from shared.domain.value_objects import DateRange

from .domain.exceptions import BookingOverlap
from .domain.ledger import AvailabilityLedger
from .repositories import BookingRepository, LedgerRepository

logger = logging.getLogger(__name__)


class _VehicleLockRegistry:
    """Process-local mutexes keyed by vehicle id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[object, list] = {}  # vehicle_id -> [lock, holders]

    def _acquire_entry(self, vehicle_id) -> threading.Lock:
        with self._guard:
            entry = self._locks.setdefault(vehicle_id, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _release_entry(self, vehicle_id) -> None:
        with self._guard:
            entry = self._locks.get(vehicle_id)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._locks[vehicle_id]

    @contextmanager
    def hold(self, vehicle_id, timeout: float) -> Iterator[None]:
        lock = self._acquire_entry(vehicle_id)
        try:
            if not lock.acquire(timeout=timeout):
                logger.warning("Timed out waiting for decision lock on vehicle %s", vehicle_id)
                raise BookingOverlap("Vehicle is being booked by someone else. Try again.")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release_entry(vehicle_id)


_registry = _VehicleLockRegistry()


def vehicle_decision_lock(vehicle_id, timeout: float | None = None):
    """Critical section for decisions on one vehicle."""

    if timeout is None:
        timeout = float(getattr(settings, "BOOKING_DECISION_LOCK_TIMEOUT", 10))
    return _registry.hold(vehicle_id, timeout)


# Lock wait, serialization and deadlock failures on PostgreSQL
_CONTENTION_PGCODES = {"40001", "40P01", "55P03"}


def is_lock_contention(exc: OperationalError) -> bool:
    """True when ``exc`` means another writer held the rows we needed."""

    cause = exc.__cause__
    # psycopg2 names it pgcode, psycopg 3 sqlstate
    if (getattr(cause, "pgcode", None) or getattr(cause, "sqlstate", None)) in _CONTENTION_PGCODES:
        return True
    message = str(exc).lower()
    return "locked" in message or "busy" in message


def verify_no_approved_overlap(ledger: AvailabilityLedger, booking_id, dates: DateRange) -> None:
    """Post-commit-write check: the just-approved booking must stand alone."""

    conflicts = ledger.overlapping_approved(dates, exclude_booking_id=booking_id)
    if conflicts:
        logger.warning(
            "Approval of booking %s lost a race on vehicle %s against %s; rolling back",
            booking_id,
            ledger.vehicle_id,
            [c.booking_id for c in conflicts],
        )
        raise BookingOverlap(
            "Vehicle already approved for an overlapping period.",
            conflicting_ids=[c.booking_id for c in conflicts],
        )


def check_creatable(vehicle_id, dates: DateRange, *, using: str = DEFAULT_DB_ALIAS) -> None:
    """
    Raise unless a booking for ``dates`` may be created on the vehicle

    Raises VehicleNotFound, OutOfWindow or BookingOverlap. Advisory only:
    approval re-checks against the state at that time.
    """
    LedgerRepository(using).load(vehicle_id).check_creatable(dates)


def check_approvable(booking_id, *, using: str = DEFAULT_DB_ALIAS) -> None:
    """
    Raise BookingOverlap if another approved booking overlaps this one

    Raises BookingNotFound if the booking does not exist.
    """
    booking = BookingRepository(using).get(booking_id)
    LedgerRepository(using).load(booking.vehicle_id).check_approvable(booking.id, booking.dates)
