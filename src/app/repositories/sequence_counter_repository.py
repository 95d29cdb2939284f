"""Sequence Counter Repository Interface

Defines the contract for durable document numbering counters.
"""

from abc import ABC, abstractmethod
from typing import Optional


class SequenceCounterRepository(ABC):

    @abstractmethod
    async def increment(self, company_id: str, document_type: str, date_key: str) -> int:
        """
        Atomically create-or-increment the counter and return the new value

        Two concurrent callers for the same key never observe the same value.

        Args:
            company_id: Company identifier
            document_type: DocumentType value
            date_key: Calendar day as YYYYMMDD

        Returns:
            The post-increment counter (1 for the first call of the day)
        """
        pass

    @abstractmethod
    async def get_current(self, company_id: str, document_type: str, date_key: str) -> int:
        """Current counter value without incrementing (0 if the key has no row)"""
        pass

    @abstractmethod
    async def reset(self, company_id: str, date_key: str, document_type: Optional[str] = None) -> int:
        """
        Set counters for a company and day back to zero (admin only)

        Args:
            company_id: Company identifier
            date_key: Calendar day as YYYYMMDD
            document_type: Reset only this type; all types when None

        Returns:
            Number of counters reset
        """
        pass
