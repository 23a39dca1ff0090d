"""
Unit of Work Pattern

Wraps a database transaction and runs post-commit work (cache
invalidation) synchronously once the transaction has been committed,
before control returns to the command handler's caller.
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from django.db import transaction

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""
        pass

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""
        pass

    @abstractmethod
    def after_commit(self, callback: Callable[[], None]):
        """Register work to run once the transaction is committed"""
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            rental = Rental.objects.select_for_update().get(pk=rental_id)
            rental.cancel()
            rental.save()
            uow.after_commit(lambda: router.on_reservation_mutated(...))
        # Callbacks have run here, the caller sees fresh cache state
    """

    def __init__(self):
        self._callbacks: List[Callable[[], None]] = []
        self._transaction = None

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction, then run post-commit work"""
        committed = False
        try:
            if exc_type is None:
                self.commit()
                committed = True
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)
        if committed:
            self._run_callbacks()

    def commit(self):
        logger.debug(f"Committing transaction with {len(self._callbacks)} post-commit callbacks")

    def rollback(self):
        """Rollback changes and discard post-commit work"""
        logger.warning(f"Rolling back transaction, discarding {len(self._callbacks)} callbacks")
        self._callbacks.clear()

    def after_commit(self, callback: Callable[[], None]):
        self._callbacks.append(callback)

    def _run_callbacks(self):
        # Synchronous; failures propagate to the caller.
        callbacks = self._callbacks.copy()
        self._callbacks.clear()
        for callback in callbacks:
            callback()
