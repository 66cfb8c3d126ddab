from django.apps import AppConfig
from django.db import DEFAULT_DB_ALIAS


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bookings"
    label = "bookings"

    booking_repo = None
    ledger_repo = None

    def ready(self) -> None:
        from shared.application.message_bus import message_bus

        from .application.command_handlers import register_handlers
        from .application.event_handlers import register_event_handlers
        from .repositories import BookingRepository, LedgerRepository

        # One storage session for the process, handed to the handlers and views explicitly
        self.booking_repo = BookingRepository(DEFAULT_DB_ALIAS)
        self.ledger_repo = LedgerRepository(DEFAULT_DB_ALIAS)
        register_handlers(message_bus, self.booking_repo, self.ledger_repo)
        register_event_handlers(message_bus)
