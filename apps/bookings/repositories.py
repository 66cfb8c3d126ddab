"""Repositories mapping booking aggregates and ledgers to the ORM.

Both repositories take the database alias they operate on (the storage
session). Command handlers receive them already constructed; nothing
here reaches for a global connection on its own.
"""

from __future__ import annotations

import logging
from typing import Iterable

from django.db import DEFAULT_DB_ALIAS, connections  # type: ignore
from django.db.models import QuerySet  # type: ignore
from django.utils import timezone  # type: ignore

from apps.vehicles.models import Vehicle
from shared.domain.value_objects import DateRange

from .domain.exceptions import BookingNotFound, VehicleNotFound
from .domain.ledger import AvailabilityLedger, BookedRange
from .domain.lifecycle import Booking as BookingAggregate
from .domain.lifecycle import BookingStatus
from .models import Booking

logger = logging.getLogger(__name__)


def lock_queryset_if_possible(queryset: QuerySet, using: str) -> QuerySet:
    """Apply select_for_update when inside an atomic block and supported."""

    connection = connections[using]
    if not connection.in_atomic_block or not connection.features.has_select_for_update:
        return queryset
    return queryset.select_for_update()


class LedgerRepository:
    """Builds AvailabilityLedger snapshots from committed state."""

    ledger_statuses = (BookingStatus.PENDING.value, BookingStatus.APPROVED.value)

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _bookings_for(self, vehicle_ids: Iterable[int]):
        return (
            Booking.objects.using(self.using)
            .filter(vehicle_id__in=list(vehicle_ids), status__in=self.ledger_statuses)
            .values_list("id", "vehicle_id", "start_date", "end_date", "status")
        )

    @staticmethod
    def _build(vehicle: Vehicle, rows) -> AvailabilityLedger:
        return AvailabilityLedger(
            vehicle_id=vehicle.pk,
            owner_id=vehicle.owner_id,
            window=DateRange(vehicle.available_from, vehicle.available_to),
            bookings=[
                BookedRange(booking_id=pk, dates=DateRange(start, end), status=BookingStatus(status))
                for pk, _vehicle_id, start, end, status in rows
            ],
        )

    def load(self, vehicle_id, *, lock: bool = False) -> AvailabilityLedger:
        """
        Load the ledger for one vehicle

        With ``lock=True`` (inside a transaction) the vehicle row is locked
        with SELECT FOR UPDATE, serialising decisions on that vehicle across
        processes on backends that support row locks.

        Raises VehicleNotFound if the vehicle does not exist (including one
        deleted between two reads).
        """
        qs = Vehicle.objects.using(self.using).filter(pk=vehicle_id)
        if lock:
            qs = lock_queryset_if_possible(qs, self.using)
        vehicle = qs.first()
        if vehicle is None:
            raise VehicleNotFound()
        return self._build(vehicle, self._bookings_for([vehicle.pk]))

    def load_many(self, vehicles: Iterable[Vehicle]) -> dict[int, AvailabilityLedger]:
        """Ledgers for several vehicles with a single bookings query"""
        vehicles = list(vehicles)
        rows_by_vehicle: dict[int, list] = {v.pk: [] for v in vehicles}
        for row in self._bookings_for(rows_by_vehicle):
            rows_by_vehicle[row[1]].append(row)
        return {v.pk: self._build(v, rows_by_vehicle[v.pk]) for v in vehicles}


class BookingRepository:
    """Loads and persists Booking aggregates."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    @staticmethod
    def _to_aggregate(row: Booking) -> BookingAggregate:
        return BookingAggregate(
            id=row.pk,
            vehicle_id=row.vehicle_id,
            owner_id=row.vehicle.owner_id,
            requester_id=row.requester_id,
            dates=DateRange(row.start_date, row.end_date),
            status=BookingStatus(row.status),
            decided_at=row.decided_at,
        )

    def get(self, booking_id) -> BookingAggregate:
        row = (
            Booking.objects.using(self.using)
            .select_related("vehicle")
            .filter(pk=booking_id)
            .first()
        )
        if row is None:
            raise BookingNotFound()
        return self._to_aggregate(row)

    def add(self, booking: BookingAggregate) -> Booking:
        row = Booking.objects.using(self.using).create(
            vehicle_id=booking.vehicle_id,
            requester_id=booking.requester_id,
            start_date=booking.dates.start_date,
            end_date=booking.dates.end_date,
            status=booking.status.value,
        )
        booking.mark_persisted(row.pk)
        return row

    def compare_and_set_status(
        self,
        booking: BookingAggregate,
        expected: BookingStatus,
    ) -> bool:
        """
        Write the aggregate's status only if the stored status is still ``expected``

        Returns False when another decision got there first.
        """
        updated = (
            Booking.objects.using(self.using)
            .filter(pk=booking.id, status=expected.value)
            .update(
                status=booking.status.value,
                decided_at=booking.decided_at,
                updated_at=timezone.now(),
            )
        )
        return updated == 1

    def fetch_row(self, booking_id) -> Booking:
        return Booking.objects.using(self.using).select_related("vehicle", "requester").get(pk=booking_id)
