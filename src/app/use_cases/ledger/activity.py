"""Shared helpers for the lifecycle use cases

Error conversion and post-commit activity emission.
"""

import logging
from typing import Iterable, Optional
from src.libs.result import Error
from src.app.services.activity_log import ActivityLogSink
from src.domain.activity_record import LedgerActivityRecord, StatusChangeRecord
from src.domain.errors import LedgerError
from src.domain.base import utcnow
from .dtos import LedgerEffectDTO, StatusChangeDTO

logger = logging.getLogger(__name__)


def error_from_exception(exc: LedgerError) -> Error:
    return Error(
        code=exc.code,
        message=exc.message,
        reason=exc.reason,
        retryable=exc.retryable,
    )


async def publish_activity(
    sink: Optional[ActivityLogSink],
    triggered_by_document_id: int,
    effects: Iterable[LedgerEffectDTO],
    status_changes: Iterable[StatusChangeDTO],
) -> None:
    """
    Emit activity records for a committed unit of work

    Delivery failures are logged; the ledger change is already durable.
    """
    if sink is None:
        return

    for effect in effects:
        if not effect.created_transaction or effect.transaction is None:
            continue
        transaction = effect.transaction
        record = LedgerActivityRecord(
            document_id=transaction.document_id,
            account_id=transaction.account_id,
            transaction_id=transaction.transaction_id,
            type=transaction.transaction_type,
            amount=transaction.amount,
            balance_before=transaction.balance_before,
            balance_after=transaction.balance_after,
            timestamp=transaction.created_at,
            is_reversal=transaction.metadata.is_reversal,
            original_transaction_id=transaction.metadata.original_transaction_id,
        )
        if not await sink.record_transaction(record):
            logger.warning(f"Activity record for transaction {transaction.transaction_id} was not delivered")

    for change in status_changes:
        record = StatusChangeRecord(
            document_id=change.document_id,
            previous_status=change.previous_status.value,
            new_status=change.new_status.value,
            triggered_by_document_id=triggered_by_document_id,
            timestamp=utcnow(),
        )
        if not await sink.record_status_change(record):
            logger.warning(f"Status change record for document {change.document_id} was not delivered")
