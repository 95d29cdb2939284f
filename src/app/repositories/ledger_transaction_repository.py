"""Ledger Transaction Repository Interface

Defines the contract for ledger transaction persistence operations.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Tuple
from src.domain.ledger_transaction import LedgerTransaction


class LedgerTransactionRepository(ABC):
    """
    Repository interface for LedgerTransaction persistence

    Transactions are immutable and append-only for audit trail.
    """

    @abstractmethod
    async def create(self, transaction: LedgerTransaction) -> LedgerTransaction:
        """
        Create a new ledger transaction

        Args:
            transaction: LedgerTransaction entity to persist

        Returns:
            Created LedgerTransaction with generated ID

        Raises:
            ConcurrencyTimeout: If a concurrent writer recorded the same
                (document, generation) first; retrying resolves to a no-op
        """
        pass

    @abstractmethod
    async def get_by_id(self, transaction_id: int) -> Optional[LedgerTransaction]:
        pass

    @abstractmethod
    async def get_active_application(self, document_id: int) -> Optional[LedgerTransaction]:
        """
        Retrieve the document's non-reversal transaction that no reversal references

        Args:
            document_id: Document ID

        Returns:
            The active application if any, None otherwise
        """
        pass

    @abstractmethod
    async def get_reversal_of(self, original_transaction_id: int) -> Optional[LedgerTransaction]:
        """Retrieve the reversal referencing a transaction, if one exists"""
        pass

    @abstractmethod
    async def has_reversal_for_document(self, document_id: int) -> bool:
        pass

    @abstractmethod
    async def get_last_generation(self, document_id: int) -> int:
        """Highest generation recorded for the document (0 if none)"""
        pass

    @abstractmethod
    async def get_signed_sum_by_account(self, account_id: int) -> Decimal:
        """Sum of increases minus decreases for an account"""
        pass

    @abstractmethod
    async def get_by_account_id(
        self, account_id: int, limit: int = 20, offset: int = 0
    ) -> Tuple[List[LedgerTransaction], int]:
        """
        Retrieve an account's transactions, newest first

        Returns:
            (page of transactions, total count)
        """
        pass
