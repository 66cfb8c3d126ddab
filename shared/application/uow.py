"""
Unit of Work Pattern

Manages database transactions and ensures that domain events
are published only after a successful commit.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    @abstractmethod
    def commit(self):
        pass

    @abstractmethod
    def rollback(self):
        pass

    @abstractmethod
    def collect_events(self, aggregate):
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Wraps ``transaction.atomic`` on the given database alias. Events
    collected from aggregates are handed to the message bus through
    ``transaction.on_commit`` so nothing is published for a transaction
    that rolls back.

    Usage:
        with DjangoUnitOfWork(using) as uow:
            ledger = ledger_repo.load(vehicle_id, lock=True)
            booking.decide(actor_id, decision, ledger)
            booking_repo.compare_and_set_status(booking, expected=previous)
            uow.collect_events(booking)
        # Events are published after commit
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS, bus=None):
        self.using = using
        self._bus = bus
        self._events: List[DomainEvent] = []
        self._transaction = None

    def __enter__(self):
        self._transaction = transaction.atomic(using=self.using)
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        logger.debug("Committing transaction with %d events", len(self._events))

        events = self._events.copy()
        self._events.clear()

        if events:
            transaction.on_commit(lambda: self._publish_events(events), using=self.using)

    def rollback(self):
        if self._events:
            logger.info("Rolling back transaction, discarding %d events", len(self._events))
        self._events.clear()

    def collect_events(self, aggregate):
        """Move pending events from the aggregate into this unit of work"""
        if hasattr(aggregate, 'events'):
            new_events = aggregate.events
            if new_events:
                self._events.extend(new_events)
                aggregate.clear_events()
                logger.debug(
                    "Collected %d events from %s (ID: %s)",
                    len(new_events), aggregate.__class__.__name__, aggregate.id,
                )

    def _publish_events(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info("Publishing %d domain events after commit", len(events))

        try:
            bus.publish_events(events)
        except Exception as e:
            # The transaction is already committed; publishing must not undo it
            logger.error("Error publishing events: %s", e, exc_info=True)
