"""Ledger Reconciliation Background Worker

Runs ReconcileLedger on a schedule and raises an alert per company for
accounts out of balance and completed documents missing from the ledger.
Findings are never corrected here.

    python -m src.worker.ledger_reconciler --once
    python -m src.worker.ledger_reconciler --interval 3600
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.document_repository import SqlAlchemyDocumentRepository
from src.adapter.repositories.ledger_transaction_repository import SqlAlchemyLedgerTransactionRepository
from src.adapter.services.locking import serialize_sqlite_writers, sqlite_connect_args
from src.app.use_cases.ledger import ReconcileLedger, ReconciliationResultDTO

logger = logging.getLogger(__name__)

# Exit status of --once when the ledger needs investigation
EXIT_FINDINGS = 1


class LedgerReconcilerWorker:
    """
    Scheduled ledger reconciliation

    Each cycle opens its own session, so one reconciliation sees a single
    consistent snapshot. A failing cycle is logged and the schedule goes on;
    `consecutive_failures` tells a supervisor when it keeps failing.
    """

    def __init__(self, db_uri: Optional[str] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.engine = serialize_sqlite_writers(
            create_async_engine(
                self.db_uri,
                echo=False,
                future=True,
                connect_args=sqlite_connect_args(self.db_uri, ApplicationConfig.LOCK_TIMEOUT_MS),
            )
        )
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
        self.consecutive_failures = 0
        self._stopping = asyncio.Event()

    async def run_once(self) -> Optional[ReconciliationResultDTO]:
        """
        Reconcile every account once

        Returns None when reconciliation is switched off in the config.

        Raises:
            RuntimeError: If the reconciliation query failed
        """
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Ledger reconciliation is disabled")
            return None

        async with self.async_session_factory() as session:
            result = await ReconcileLedger(
                account_repo=SqlAlchemyAccountRepository(session),
                transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
                document_repo=SqlAlchemyDocumentRepository(session),
            ).execute()

        if result.is_err():
            raise RuntimeError(f"{result.error.code}: {result.error.reason or result.error.message}")

        self.raise_alerts(result.value)
        return result.value

    def raise_alerts(self, result: ReconciliationResultDTO) -> None:
        for company_id, (discrepancies, unposted) in result.findings_by_company().items():
            logger.error(
                f"Ledger of company {company_id} needs investigation: "
                f"{len(discrepancies)} account(s) out of balance, "
                f"{len(unposted)} completed document(s) without a ledger transaction"
            )
            for d in discrepancies:
                logger.error(
                    f"  account {d.account_id}: cached {d.current_balance}, "
                    f"history {d.calculated_balance} (off by {d.discrepancy})"
                )
            for document in unposted:
                logger.error(
                    f"  {document.document_number} ({document.document_type.value}, id={document.document_id}) "
                    f"never posted to account {document.account_id}"
                )

    async def run_forever(self, interval_seconds: int = 86400):
        """Reconcile every `interval_seconds` until shutdown() is called"""
        logger.info(f"Ledger reconciliation scheduled every {interval_seconds}s")

        while not self._stopping.is_set():
            try:
                result = await self.run_once()
                self.consecutive_failures = 0
                if result is not None and not result.has_findings:
                    logger.info(
                        f"Ledger balanced: {result.total_accounts_checked} account(s) "
                        f"checked in {result.execution_time_ms}ms"
                    )
            except Exception as e:
                self.consecutive_failures += 1
                logger.error(f"Reconciliation cycle failed ({self.consecutive_failures} in a row): {e}")

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass

    async def shutdown(self):
        self._stopping.set()
        await self.engine.dispose()
        logger.info("Ledger reconciler stopped")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ledger Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Reconcile once, print the result as JSON and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Seconds between runs (default: RECONCILIATION_INTERVAL_SECONDS)"
    )
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)
    worker = LedgerReconcilerWorker()

    try:
        if not args.once:
            await worker.run_forever(interval_seconds=args.interval)
            return 0

        result = await worker.run_once()
        if result is None:
            return 0
        print(result.model_dump_json(indent=2))
        return EXIT_FINDINGS if result.has_findings else 0
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
