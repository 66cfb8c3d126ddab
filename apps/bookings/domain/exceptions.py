"""
Booking Domain Exceptions

Every failure of a booking operation is one of these. None of them
changes state: they are raised before any write, or inside the
transaction that is then rolled back.
"""

from shared.domain.exceptions import DomainError


class BookingDomainError(DomainError):
    """Base class for booking workflow errors"""


class BookingValidationError(BookingDomainError):
    """Malformed or missing input, e.g. an inverted date range"""
    code = 'validation_error'
    status_code = 400
    default_message = 'Invalid booking request.'


class OutOfWindow(BookingValidationError):
    """Requested range is invalid or outside the vehicle's availability window"""
    code = 'out_of_window'
    default_message = 'Invalid booking dates.'


class VehicleNotFound(BookingDomainError):
    code = 'not_found'
    status_code = 404
    default_message = 'Vehicle not found.'


class BookingNotFound(BookingDomainError):
    code = 'not_found'
    status_code = 404
    default_message = 'Booking not found.'


class Forbidden(BookingDomainError):
    """Actor is not allowed to perform the mutation"""
    code = 'forbidden'
    status_code = 403
    default_message = 'Only the vehicle owner can change the status.'


class InvalidTransition(BookingDomainError):
    """The booking is not in a state that allows the requested transition"""
    code = 'invalid_transition'
    status_code = 400
    default_message = 'Booking has already been decided.'

    def __init__(self, from_status: str | None = None, to_status: str | None = None, message: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        if message is None and from_status and to_status:
            message = f"Cannot change booking status from {from_status} to {to_status}."
        super().__init__(message)


class BookingOverlap(BookingDomainError):
    """
    Granting the range would overlap an approved booking

    Also raised when a concurrent decision wins the race for the same
    days; callers cannot (and need not) tell the two apart.
    """
    code = 'overlap'
    status_code = 400
    default_message = 'Vehicle is already booked during this period.'

    def __init__(self, message: str | None = None, conflicting_ids=()):
        self.conflicting_ids = tuple(conflicting_ids)
        super().__init__(message)
