"""Account Repository Interface

Defines the contract for account persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from decimal import Decimal
from src.domain.account import Account


class AccountRepository(ABC):
    """
    Repository interface for Account persistence

    Methods use pessimistic locking (SELECT FOR UPDATE) to serialize
    read-modify-write of a single account's balance.
    """

    @abstractmethod
    async def get_by_id(self, account_id: int, for_update: bool = False) -> Optional[Account]:
        """
        Retrieve account by ID

        Args:
            account_id: Account ID
            for_update: If True, lock the row with SELECT FOR UPDATE (pessimistic lock)

        Returns:
            Account if found, None otherwise

        Raises:
            ConcurrencyTimeout: If the lock could not be acquired in time
        """
        pass

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """
        Create a new account

        Args:
            account: Account entity to persist

        Returns:
            Created Account with generated ID
        """
        pass

    @abstractmethod
    async def update_balance(self, account_id: int, new_balance: Decimal) -> None:
        """
        Update account balance

        Args:
            account_id: Account ID (must already be locked by the caller)
            new_balance: New balance value
        """
        pass

    @abstractmethod
    async def get_all(self) -> List[Account]:
        """Retrieve all accounts (used by reconciliation)"""
        pass
