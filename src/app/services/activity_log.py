"""Activity Log Interface

Defines the contract for emitting ledger events to the activity log.
"""

from abc import ABC, abstractmethod
from src.domain.activity_record import LedgerActivityRecord, StatusChangeRecord


class ActivityLogSink(ABC):
    """
    Abstract sink for ledger activity

    Implementations can deliver records via:
    - Application log
    - Webhook (HTTP POST)
    - Several channels at once
    """

    @abstractmethod
    async def record_transaction(self, record: LedgerActivityRecord) -> bool:
        """
        Emit one ledger transaction (application or reversal)

        Args:
            record: LedgerActivityRecord to emit

        Returns:
            True if the record was delivered, False otherwise
        """
        pass

    @abstractmethod
    async def record_status_change(self, record: StatusChangeRecord) -> bool:
        """
        Emit a status change made on a linked document

        Returns:
            True if the record was delivered, False otherwise
        """
        pass
