"""Activity Log Sink Implementations

Concrete channels for ledger activity records.
"""

import logging
from typing import Optional
import httpx
from src.app.services.activity_log import ActivityLogSink
from src.domain.activity_record import LedgerActivityRecord, StatusChangeRecord

logger = logging.getLogger(__name__)


class LoggingActivityLogSink(ActivityLogSink):
    """
    Activity sink that writes records to the application log

    Always available; used on its own in development and tests.
    """

    async def record_transaction(self, record: LedgerActivityRecord) -> bool:
        kind = "REVERSAL" if record.is_reversal else "APPLY"
        logger.info(
            f"[LEDGER {kind}] Document: {record.document_id}, "
            f"Account: {record.account_id}, "
            f"Transaction: {record.transaction_id}, "
            f"Type: {record.type}, "
            f"Amount: {record.amount}, "
            f"Balance: {record.balance_before} -> {record.balance_after}"
        )
        return True

    async def record_status_change(self, record: StatusChangeRecord) -> bool:
        logger.info(
            f"[STATUS CHANGE] Document: {record.document_id}, "
            f"{record.previous_status} -> {record.new_status}, "
            f"triggered by document {record.triggered_by_document_id}"
        )
        return True


class WebhookActivityLogSink(ActivityLogSink):
    """
    Activity sink that POSTs records to an HTTP endpoint

    Sends one JSON payload per record.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def record_transaction(self, record: LedgerActivityRecord) -> bool:
        payload = {"type": "ledger_transaction", **record.model_dump(mode="json")}
        return await self._post(payload, f"transaction {record.transaction_id}")

    async def record_status_change(self, record: StatusChangeRecord) -> bool:
        payload = {"type": "status_change", **record.model_dump(mode="json")}
        return await self._post(payload, f"status change of document {record.document_id}")

    async def _post(self, payload: dict, subject: str) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.debug(f"Activity record for {subject} sent to {self.webhook_url}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send activity record for {subject}: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error sending activity record for {subject}: {e}")
            return False


class CompositeActivityLogSink(ActivityLogSink):
    """
    Activity sink that delegates to multiple sinks

    A record counts as delivered if at least one sink took it.
    """

    def __init__(self, sinks: list[ActivityLogSink]):
        self.sinks = sinks

    async def record_transaction(self, record: LedgerActivityRecord) -> bool:
        success = False
        for sink in self.sinks:
            try:
                if await sink.record_transaction(record):
                    success = True
            except Exception as e:
                logger.error(f"Activity sink {type(sink).__name__} failed: {e}")
        return success

    async def record_status_change(self, record: StatusChangeRecord) -> bool:
        success = False
        for sink in self.sinks:
            try:
                if await sink.record_status_change(record):
                    success = True
            except Exception as e:
                logger.error(f"Activity sink {type(sink).__name__} failed: {e}")
        return success


def create_activity_log_sink(webhook_url: Optional[str] = None) -> ActivityLogSink:
    """
    Factory function to create the configured activity sink

    Args:
        webhook_url: Optional webhook URL. If provided, creates a composite
                     sink with logging + webhook. Otherwise, just logging.
    """
    sinks: list[ActivityLogSink] = [LoggingActivityLogSink()]

    if webhook_url:
        sinks.append(WebhookActivityLogSink(webhook_url))

    if len(sinks) == 1:
        return sinks[0]

    return CompositeActivityLogSink(sinks)
