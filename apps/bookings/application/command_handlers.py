"""
Booking Command Handlers

The use cases of the booking domain. They orchestrate domain operations
within transactions.

Commands:
- CreateBookingCommand: A renter requests a vehicle for a date range
- DecideBookingCommand: The owner approves or rejects a pending request
"""

from dataclasses import dataclass
from datetime import date
from typing import Any
import logging

from django.db import OperationalError

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import DateRange
from apps.bookings.domain.exceptions import BookingOverlap
from apps.bookings.domain.lifecycle import Booking, BookingStatus, Decision
from apps.bookings.repositories import BookingRepository, LedgerRepository
from apps.bookings.services import is_lock_contention, vehicle_decision_lock, verify_no_approved_overlap

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """Request a vehicle for an inclusive range of days"""
    vehicle_id: Any
    requester_id: Any
    start_date: date
    end_date: date


@dataclass
class DecideBookingCommand:
    """Approve or reject a pending booking"""
    booking_id: Any
    actor_id: Any
    decision: Decision


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Runs the (advisory) ledger check and stores a PENDING booking.
    Overlapping PENDING requests are allowed; conflicts between them are
    settled when the owner approves one.
    """

    def __init__(self, booking_repo: BookingRepository, ledger_repo: LedgerRepository, bus: MessageBus | None = None):
        self.booking_repo = booking_repo
        self.ledger_repo = ledger_repo
        self.bus = bus

    def handle(self, command: CreateBookingCommand) -> Booking:
        """
        Raises:
            VehicleNotFound, OutOfWindow, BookingOverlap
        """
        dates = DateRange(command.start_date, command.end_date)
        logger.info(
            "Creating booking for vehicle %s, requester %s, dates %s",
            command.vehicle_id, command.requester_id, dates,
        )

        with DjangoUnitOfWork(self.booking_repo.using, self.bus) as uow:
            ledger = self.ledger_repo.load(command.vehicle_id)
            booking = Booking.request(ledger, command.requester_id, dates)
            self.booking_repo.add(booking)
            uow.collect_events(booking)

        logger.info("Booking %s created as pending", booking.id)
        return booking


class DecideBookingHandler:
    """
    Handler for DecideBooking command

    Strategy:
    1. Fail fast on authorization and terminal state (no lock needed)
    2. Enter the per-vehicle critical section
    3. Start transaction, reload ledger with the vehicle row locked
    4. Reload the booking and apply the decision against the fresh ledger
    5. Compare-and-commit the status (only if still PENDING)
    6. For approvals, re-scan for overlaps inside the same transaction
    7. Commit; BookingDecided is published after commit
    """

    def __init__(self, booking_repo: BookingRepository, ledger_repo: LedgerRepository, bus: MessageBus | None = None):
        self.booking_repo = booking_repo
        self.ledger_repo = ledger_repo
        self.bus = bus

    def handle(self, command: DecideBookingCommand) -> Booking:
        """
        Raises:
            BookingNotFound, Forbidden, InvalidTransition, BookingOverlap
        """
        booking = self.booking_repo.get(command.booking_id)
        booking.ensure_decidable_by(command.actor_id)

        with vehicle_decision_lock(booking.vehicle_id):
            try:
                booking = self._commit_decision(command, booking.vehicle_id)
            except OperationalError as exc:
                if not is_lock_contention(exc):
                    raise
                logger.warning(
                    "Decision on booking %s gave up waiting for a database lock: %s",
                    command.booking_id, exc,
                )
                raise BookingOverlap("Vehicle is being booked by someone else. Try again.") from exc

        logger.info(
            "Booking %s %s by owner %s",
            booking.id, booking.status.value, command.actor_id,
        )
        return booking

    def _commit_decision(self, command: DecideBookingCommand, vehicle_id) -> Booking:
        with DjangoUnitOfWork(self.booking_repo.using, self.bus) as uow:
            ledger = self.ledger_repo.load(vehicle_id, lock=True)
            booking = self.booking_repo.get(command.booking_id)
            previous = booking.status

            booking.decide(command.actor_id, command.decision, ledger)

            if not self.booking_repo.compare_and_set_status(booking, expected=previous):
                logger.warning(
                    "Booking %s changed concurrently; %s not applied",
                    booking.id, command.decision.value,
                )
                raise BookingOverlap()

            if booking.status is BookingStatus.APPROVED:
                verify_no_approved_overlap(
                    self.ledger_repo.load(vehicle_id),
                    booking.id,
                    booking.dates,
                )

            uow.collect_events(booking)
        return booking


def register_handlers(bus: MessageBus, booking_repo: BookingRepository, ledger_repo: LedgerRepository) -> None:
    """Wire the booking use cases into ``bus`` with the given repositories"""
    bus.register_command_handler(
        CreateBookingCommand,
        CreateBookingHandler(booking_repo, ledger_repo, bus).handle,
        replace=True,
    )
    bus.register_command_handler(
        DecideBookingCommand,
        DecideBookingHandler(booking_repo, ledger_repo, bus).handle,
        replace=True,
    )
