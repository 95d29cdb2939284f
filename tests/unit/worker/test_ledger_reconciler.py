"""Unit tests for LedgerReconcilerWorker

Tests cover:
- run_once wiring of repositories into ReconcileLedger
- Per-company alerts for discrepancies and unposted documents
- The run_forever schedule, failure counting and shutdown
- The --once command line exit status
"""

import logging
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

from src.worker.ledger_reconciler import EXIT_FINDINGS, LedgerReconcilerWorker, main
from src.app.use_cases.ledger.dtos import AccountDiscrepancyDTO, ReconciliationResultDTO, UnpostedDocumentDTO
from src.domain.base import utcnow
from src.domain.document import DocumentType
from src.libs.result import Error, Return

MODULE = "src.worker.ledger_reconciler"


def reconciliation_result(discrepancies=(), unposted=()) -> ReconciliationResultDTO:
    return ReconciliationResultDTO(
        total_accounts_checked=3,
        discrepancies_found=len(discrepancies),
        discrepancies=list(discrepancies),
        unposted_documents=list(unposted),
        reconciliation_time=utcnow(),
        execution_time_ms=42,
    )


@pytest.fixture
def findings_result():
    return reconciliation_result(
        discrepancies=[
            AccountDiscrepancyDTO(
                account_id=1,
                company_id="company_wif",
                current_balance=Decimal("7500.00"),
                calculated_balance=Decimal("7000.00"),
                discrepancy=Decimal("500.00"),
            )
        ],
        unposted=[
            UnpostedDocumentDTO(
                document_id=11,
                company_id="company_acme",
                account_id=4,
                document_type=DocumentType.RECEIPT,
                document_number="RCP-20250101-011",
            )
        ],
    )


@pytest.fixture
def worker_env():
    """Patch config, engine, sessionmaker, repositories and use case"""
    with patch(f"{MODULE}.ApplicationConfig") as config, \
            patch(f"{MODULE}.create_async_engine") as create_engine, \
            patch(f"{MODULE}.sessionmaker") as session_maker, \
            patch(f"{MODULE}.SqlAlchemyAccountRepository") as account_repo_cls, \
            patch(f"{MODULE}.SqlAlchemyLedgerTransactionRepository") as transaction_repo_cls, \
            patch(f"{MODULE}.SqlAlchemyDocumentRepository") as document_repo_cls, \
            patch(f"{MODULE}.ReconcileLedger") as use_case_cls:
        config.DB_URI = "sqlite+aiosqlite:///:memory:"
        config.RECONCILIATION_ENABLED = True
        config.LOG_LEVEL = "INFO"
        config.RECONCILIATION_INTERVAL_SECONDS = 86400
        config.LOCK_TIMEOUT_MS = 2500

        engine = MagicMock()
        engine.dispose = AsyncMock()
        create_engine.return_value = engine

        session = MagicMock()
        session.__aenter__ = AsyncMock(return_value=session)
        session.__aexit__ = AsyncMock(return_value=False)
        session_maker.return_value = MagicMock(return_value=session)

        use_case = MagicMock()
        use_case_cls.return_value = use_case

        yield {
            "config": config,
            "engine": engine,
            "session": session,
            "use_case": use_case,
            "use_case_cls": use_case_cls,
            "account_repo_cls": account_repo_cls,
            "transaction_repo_cls": transaction_repo_cls,
            "document_repo_cls": document_repo_cls,
        }


class TestWorkerInit:

    def test_defaults_to_configured_db_uri(self, worker_env):
        worker = LedgerReconcilerWorker()

        assert worker.db_uri == "sqlite+aiosqlite:///:memory:"
        assert worker.consecutive_failures == 0

    def test_custom_db_uri(self, worker_env):
        worker = LedgerReconcilerWorker(db_uri="postgresql+asyncpg://ledger@localhost/ledger")

        assert worker.db_uri == "postgresql+asyncpg://ledger@localhost/ledger"


@pytest.mark.asyncio
class TestRunOnce:

    async def test_runs_reconciliation_with_session_repositories(self, worker_env, findings_result):
        """
        Given: Reconciliation is enabled
        When: run_once is called
        Then: ReconcileLedger runs on repositories bound to one session
        """
        worker_env["use_case"].execute = AsyncMock(return_value=Return.ok(findings_result))

        result = await LedgerReconcilerWorker().run_once()

        assert result.has_findings
        assert [d.document_number for d in result.unposted_documents] == ["RCP-20250101-011"]
        session = worker_env["session"]
        worker_env["account_repo_cls"].assert_called_once_with(session)
        worker_env["transaction_repo_cls"].assert_called_once_with(session)
        worker_env["document_repo_cls"].assert_called_once_with(session)
        worker_env["use_case"].execute.assert_called_once()

    async def test_returns_none_when_disabled(self, worker_env):
        worker_env["config"].RECONCILIATION_ENABLED = False

        assert await LedgerReconcilerWorker().run_once() is None
        worker_env["use_case_cls"].assert_not_called()

    async def test_raises_on_use_case_error(self, worker_env):
        worker_env["use_case"].execute = AsyncMock(
            return_value=Return.err(
                Error(code="RECONCILIATION_FAILED", message="Failed to reconcile ledger", reason="connection refused")
            )
        )

        with pytest.raises(RuntimeError, match="RECONCILIATION_FAILED: connection refused"):
            await LedgerReconcilerWorker().run_once()


class TestAlerts:

    def test_alerts_are_grouped_per_company(self, worker_env, findings_result, caplog):
        """
        Given: A discrepancy in one company and an unposted receipt in another
        When: Alerts are raised
        Then: Each company gets its own alert naming the account or document number
        """
        with caplog.at_level(logging.ERROR, logger=MODULE):
            LedgerReconcilerWorker().raise_alerts(findings_result)

        messages = [record.getMessage() for record in caplog.records]
        assert messages[0].startswith("Ledger of company company_acme needs investigation: 0 account(s)")
        assert "RCP-20250101-011 (receipt, id=11) never posted to account 4" in messages[1]
        assert messages[2].startswith("Ledger of company company_wif needs investigation: 1 account(s)")
        assert "account 1: cached 7500.00, history 7000.00 (off by 500.00)" in messages[3]

    def test_balanced_ledger_raises_no_alert(self, worker_env, caplog):
        with caplog.at_level(logging.ERROR, logger=MODULE):
            LedgerReconcilerWorker().raise_alerts(reconciliation_result())

        assert caplog.records == []


@pytest.mark.asyncio
class TestRunForever:

    async def test_continues_after_failed_cycle(self, worker_env):
        """
        Given: The first cycle fails
        When: run_forever is running
        Then: The next cycle still runs and resets the failure count
        """
        worker = LedgerReconcilerWorker()
        calls = 0

        async def execute():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise Exception("database gone")
            await worker.shutdown()
            return Return.ok(reconciliation_result())

        worker_env["use_case"].execute = AsyncMock(side_effect=execute)

        await worker.run_forever(interval_seconds=0)

        assert calls == 2
        assert worker.consecutive_failures == 0

    async def test_counts_consecutive_failures(self, worker_env):
        worker = LedgerReconcilerWorker()

        async def execute():
            if worker_env["use_case"].execute.call_count == 3:
                await worker.shutdown()
            raise Exception("database gone")

        worker_env["use_case"].execute = AsyncMock(side_effect=execute)

        await worker.run_forever(interval_seconds=0)

        assert worker.consecutive_failures == 3

    async def test_shutdown_disposes_engine(self, worker_env):
        await LedgerReconcilerWorker().shutdown()

        worker_env["engine"].dispose.assert_called_once()


@pytest.mark.asyncio
class TestCommandLine:

    async def test_once_prints_json_and_flags_findings(self, worker_env, findings_result, capsys):
        worker_env["use_case"].execute = AsyncMock(return_value=Return.ok(findings_result))

        exit_status = await main(["--once"])

        assert exit_status == EXIT_FINDINGS
        assert '"document_number": "RCP-20250101-011"' in capsys.readouterr().out
        worker_env["engine"].dispose.assert_called_once()

    async def test_once_on_balanced_ledger_exits_zero(self, worker_env):
        worker_env["use_case"].execute = AsyncMock(return_value=Return.ok(reconciliation_result()))

        assert await main(["--once"]) == 0
