"""Integration tests for the ledger engines with a real database

Tests cover:
- Receipts and statements of payment moving account balances
- Insufficient balance with and without the company override
- Invoice and payment voucher status propagation
- Idempotent retries, reversal symmetry and edit re-posting
- Reconciliation of balances against transactions
"""

import pytest
from decimal import Decimal

from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.use_cases.ledger import (
    EditDocumentCommandDTO,
    LedgerEffectStatus,
    ReconcileLedger,
)
from src.domain.account import Account
from src.domain.document import DocumentStatus
from src.domain.ledger_transaction import TransactionType
from tests.fixtures.builders import make_invoice, make_receipt, make_statement, make_voucher
from tests.fixtures.ledger_wiring import (
    LedgerWiring,
    balance_of,
    seed_account,
    seed_document,
    seed_settings,
    status_of,
    transactions_for,
)

ISSUED = DocumentStatus.ISSUED
COMPLETED = DocumentStatus.COMPLETED


@pytest.mark.asyncio
class TestBalanceMovements:

    async def test_receipt_statement_and_delete(self, db_session: AsyncSession):
        """
        Given: Account at 5000 JPY
        When: A 2000 receipt completes, a statement deducting 1500 completes,
              then the receipt is deleted
        Then: Balance goes 7000, 5500, 3500 with matching transactions
        """
        account = await seed_account(db_session, "5000.00")
        receipt = await seed_document(
            db_session, make_receipt(id=None, status=ISSUED, amount="2000.00", account_id=account.id, number="RCP-20250101-001")
        )
        statement = await seed_document(
            db_session,
            make_statement(
                id=None, status=ISSUED, amount="1400.00", total_deducted="1500.00", transaction_fee="100.00",
                account_id=account.id, number="SOP-20250101-001",
            ),
        )
        ledger = LedgerWiring(db_session)

        result = await ledger.move(receipt.id, ISSUED, COMPLETED)
        assert result.is_ok()
        assert await balance_of(db_session, account.id) == Decimal("7000.00")
        [application] = await transactions_for(db_session, document_id=receipt.id)
        assert application.transaction_type == TransactionType.INCREASE
        assert application.amount == Decimal("2000.00")
        assert application.balance_before == Decimal("5000.00")
        assert application.balance_after == Decimal("7000.00")

        result = await ledger.move(statement.id, ISSUED, COMPLETED)
        assert result.is_ok()
        assert await balance_of(db_session, account.id) == Decimal("5500.00")
        [deduction] = await transactions_for(db_session, document_id=statement.id)
        assert deduction.transaction_type == TransactionType.DECREASE
        assert deduction.amount == Decimal("1500.00")
        assert deduction.balance_after == Decimal("5500.00")

        result = await ledger.soft_delete().execute(receipt.id)
        assert result.is_ok()
        assert await balance_of(db_session, account.id) == Decimal("3500.00")
        reversal = (await transactions_for(db_session, document_id=receipt.id))[-1]
        assert reversal.transaction_type == TransactionType.DECREASE
        assert reversal.amount == Decimal("2000.00")
        assert reversal.balance_before == Decimal("5500.00")
        assert reversal.balance_after == Decimal("3500.00")
        assert reversal.is_reversal is True
        assert reversal.original_transaction_id == application.id

    async def test_insufficient_balance_changes_nothing(self, db_session: AsyncSession):
        account = await seed_account(db_session, "100.00")
        await seed_settings(db_session, allow_negative_balance=False)
        statement = await seed_document(
            db_session,
            make_statement(id=None, status=ISSUED, amount="500.00", total_deducted="500.00",
                           account_id=account.id, number="SOP-20250101-002"),
        )

        result = await LedgerWiring(db_session).move(statement.id, ISSUED, COMPLETED)

        assert result.is_err()
        assert result.error.code == "INSUFFICIENT_BALANCE"
        assert await balance_of(db_session, account.id) == Decimal("100.00")
        assert await transactions_for(db_session, account_id=account.id) == []
        assert await status_of(db_session, statement.id) == ISSUED

    async def test_negative_balance_allowed_by_company(self, db_session: AsyncSession):
        account = await seed_account(db_session, "100.00")
        await seed_settings(db_session, allow_negative_balance=True)
        statement = await seed_document(
            db_session,
            make_statement(id=None, status=ISSUED, amount="500.00", total_deducted="500.00",
                           account_id=account.id, number="SOP-20250101-003"),
        )

        result = await LedgerWiring(db_session).move(statement.id, ISSUED, COMPLETED)

        assert result.is_ok()
        assert await balance_of(db_session, account.id) == Decimal("-400.00")

    async def test_statement_without_details_is_refused(self, db_session: AsyncSession):
        account = await seed_account(db_session, "5000.00")
        statement = await seed_document(
            db_session,
            make_statement(id=None, status=ISSUED, with_details=False, account_id=account.id, number="SOP-20250101-004"),
        )

        result = await LedgerWiring(db_session).move(statement.id, ISSUED, COMPLETED)

        assert result.error.code == "INTEGRITY_ERROR"
        assert await balance_of(db_session, account.id) == Decimal("5000.00")
        assert await status_of(db_session, statement.id) == ISSUED

    async def test_currency_mismatch(self, db_session: AsyncSession):
        account = await seed_account(db_session, "5000.00", currency="JPY")
        receipt = await seed_document(
            db_session,
            make_receipt(id=None, status=ISSUED, currency="USD", account_id=account.id, number="RCP-20250101-005"),
        )

        result = await LedgerWiring(db_session).move(receipt.id, ISSUED, COMPLETED)

        assert result.error.code == "CURRENCY_MISMATCH"
        assert await transactions_for(db_session, document_id=receipt.id) == []


@pytest.mark.asyncio
class TestPropagation:

    async def test_partial_receipts_settle_invoice(self, db_session: AsyncSession):
        """
        Given: Invoice of 1000
        When: Receipts of 400 and 600 complete, then the 600 receipt is deleted
        Then: Invoice goes issued, paid, issued
        """
        account = await seed_account(db_session, "0")
        invoice = await seed_document(db_session, make_invoice(id=None, amount="1000.00", number="INV-20250101-001"))
        first = await seed_document(
            db_session,
            make_receipt(id=None, status=ISSUED, amount="400.00", linked_invoice_id=invoice.id,
                         account_id=account.id, number="RCP-20250101-010"),
        )
        second = await seed_document(
            db_session,
            make_receipt(id=None, status=ISSUED, amount="600.00", linked_invoice_id=invoice.id,
                         account_id=account.id, number="RCP-20250101-011"),
        )
        ledger = LedgerWiring(db_session)

        await ledger.move(first.id, ISSUED, COMPLETED)
        assert await status_of(db_session, invoice.id) == ISSUED

        result = await ledger.move(second.id, ISSUED, COMPLETED)
        assert await status_of(db_session, invoice.id) == DocumentStatus.PAID
        [change] = result.value.linked_status_changes
        assert change.document_id == invoice.id

        await ledger.soft_delete().execute(second.id)
        assert await status_of(db_session, invoice.id) == ISSUED
        assert await balance_of(db_session, account.id) == Decimal("400.00")

    async def test_statement_completes_and_reverts_voucher(self, db_session: AsyncSession):
        account = await seed_account(db_session, "5000.00")
        voucher = await seed_document(db_session, make_voucher(id=None, account_id=account.id, number="PV-20250101-001"))
        statement = await seed_document(
            db_session,
            make_statement(id=None, status=ISSUED, amount="1000.00", total_deducted="1020.00", transaction_fee="20.00",
                           linked_voucher_id=voucher.id, account_id=account.id, number="SOP-20250101-010"),
        )
        ledger = LedgerWiring(db_session)

        await ledger.move(statement.id, ISSUED, COMPLETED)
        assert await status_of(db_session, voucher.id) == COMPLETED
        assert await balance_of(db_session, account.id) == Decimal("3980.00")

        await ledger.soft_delete().execute(statement.id)
        assert await status_of(db_session, voucher.id) == ISSUED
        assert await balance_of(db_session, account.id) == Decimal("5000.00")


@pytest.mark.asyncio
class TestIdempotenceAndReversal:

    async def test_retried_completion_applies_once(self, db_session: AsyncSession):
        account = await seed_account(db_session, "5000.00")
        receipt = await seed_document(
            db_session, make_receipt(id=None, status=ISSUED, account_id=account.id, number="RCP-20250101-020")
        )
        ledger = LedgerWiring(db_session)

        await ledger.move(receipt.id, ISSUED, COMPLETED)
        retry = await ledger.move(receipt.id, ISSUED, COMPLETED)

        assert retry.is_ok()
        assert retry.value.effects[0].status == LedgerEffectStatus.ALREADY_APPLIED
        assert len(await transactions_for(db_session, document_id=receipt.id)) == 1
        assert await balance_of(db_session, account.id) == Decimal("7000.00")

    async def test_cancel_restores_balance(self, db_session: AsyncSession):
        account = await seed_account(db_session, "5000.00")
        receipt = await seed_document(
            db_session, make_receipt(id=None, status=ISSUED, account_id=account.id, number="RCP-20250101-021")
        )
        ledger = LedgerWiring(db_session)

        await ledger.move(receipt.id, ISSUED, COMPLETED)
        result = await ledger.move(receipt.id, COMPLETED, DocumentStatus.CANCELLED)

        assert result.value.effects[0].status == LedgerEffectStatus.REVERSED
        assert await balance_of(db_session, account.id) == Decimal("5000.00")
        application, reversal = await transactions_for(db_session, document_id=receipt.id)
        assert reversal.original_transaction_id == application.id
        assert reversal.amount == application.amount

        again = await LedgerWiring(db_session).soft_delete().execute(receipt.id)
        assert again.is_ok()
        assert len(await transactions_for(db_session, document_id=receipt.id)) == 2

    async def test_edit_amount_moves_balance_by_delta(self, db_session: AsyncSession):
        account = await seed_account(db_session, "5000.00")
        receipt = await seed_document(
            db_session, make_receipt(id=None, status=ISSUED, amount="2000.00", account_id=account.id, number="RCP-20250101-022")
        )
        ledger = LedgerWiring(db_session)
        await ledger.move(receipt.id, ISSUED, COMPLETED)

        result = await ledger.edit().execute(EditDocumentCommandDTO(document_id=receipt.id, amount=Decimal("2500.00")))

        assert result.is_ok()
        assert await balance_of(db_session, account.id) == Decimal("7500.00")
        first, reversal, second = await transactions_for(db_session, document_id=receipt.id)
        assert reversal.original_transaction_id == first.id
        assert second.amount == Decimal("2500.00")
        assert second.generation == 2

    async def test_edit_account_moves_effect(self, db_session: AsyncSession):
        source = await seed_account(db_session, "5000.00")
        target = await seed_account(db_session, "1000.00")
        receipt = await seed_document(
            db_session, make_receipt(id=None, status=ISSUED, amount="2000.00", account_id=source.id, number="RCP-20250101-023")
        )
        ledger = LedgerWiring(db_session)
        await ledger.move(receipt.id, ISSUED, COMPLETED)

        await ledger.edit().execute(EditDocumentCommandDTO(document_id=receipt.id, account_id=target.id))

        assert await balance_of(db_session, source.id) == Decimal("5000.00")
        assert await balance_of(db_session, target.id) == Decimal("3000.00")


@pytest.mark.asyncio
class TestReconciliation:

    async def test_reports_drift_and_missing_transactions(self, db_session: AsyncSession):
        account = await seed_account(db_session, "5000.00")
        receipt = await seed_document(
            db_session, make_receipt(id=None, status=ISSUED, account_id=account.id, number="RCP-20250101-030")
        )
        orphan = await seed_document(
            db_session, make_receipt(id=None, status=COMPLETED, account_id=account.id, number="RCP-20250101-031")
        )
        ledger = LedgerWiring(db_session)
        await ledger.move(receipt.id, ISSUED, COMPLETED)

        stored = await db_session.get(Account, account.id, populate_existing=True)
        stored.current_balance = Decimal("7100.00")
        db_session.add(stored)
        await db_session.commit()

        result = await ReconcileLedger(ledger.account_repo, ledger.transaction_repo, ledger.document_repo).execute()

        assert result.is_ok()
        [discrepancy] = result.value.discrepancies
        assert discrepancy.calculated_balance == Decimal("7000.00")
        assert discrepancy.discrepancy == Decimal("100.00")
        assert [(d.document_id, d.document_number) for d in result.value.unposted_documents] == [
            (orphan.id, "RCP-20250101-031")
        ]
