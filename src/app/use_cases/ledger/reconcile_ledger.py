"""ReconcileLedger Use Case

Checks cached account balances against the transaction history and finds
completed documents that never reached the ledger.
"""

import logging
import time
from decimal import Decimal
from src.libs.result import Result, Return, Error
from src.app.repositories.account_repository import AccountRepository
from src.app.repositories.document_repository import DocumentRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.document import DocumentType
from src.domain.base import utcnow
from .dtos import AccountDiscrepancyDTO, ReconciliationResultDTO, UnpostedDocumentDTO

logger = logging.getLogger(__name__)


class ReconcileLedger:
    """
    Use Case: Reconcile account balances against transactions

    Business Rules:
    1. Expected balance = initial_balance + sum of signed transaction amounts
    2. Any difference is reported and logged, never corrected
    3. Completed receipts/statements with an account but no active
       application are reported as missing ledger effects
    4. Read-only

    Flow:
    1. Get all accounts
    2. For each account compare cached and calculated balance
    3. Find completed documents without transactions
    4. Return reconciliation result
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        transaction_repo: LedgerTransactionRepository,
        document_repo: DocumentRepository,
    ):
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo
        self.document_repo = document_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        start_time = time.time()
        reconciliation_time = utcnow()

        try:
            logger.info("Starting ledger reconciliation")

            # Step 1: Get all accounts
            accounts = await self.account_repo.get_all()
            total_accounts = len(accounts)

            logger.info(f"Found {total_accounts} accounts to reconcile")

            # Step 2: Check each account
            discrepancies: list[AccountDiscrepancyDTO] = []

            for account in accounts:
                transaction_sum = await self.transaction_repo.get_signed_sum_by_account(account.id)
                calculated_balance = Decimal(str(account.initial_balance)) + Decimal(str(transaction_sum))
                current_balance = Decimal(str(account.current_balance))

                if current_balance != calculated_balance:
                    discrepancy_amount = current_balance - calculated_balance
                    discrepancies.append(
                        AccountDiscrepancyDTO(
                            account_id=account.id,
                            company_id=account.company_id,
                            current_balance=current_balance,
                            calculated_balance=calculated_balance,
                            discrepancy=discrepancy_amount,
                        )
                    )

                    logger.warning(
                        f"Discrepancy found for account {account.id} "
                        f"(company={account.company_id}): "
                        f"current_balance={current_balance}, "
                        f"calculated_balance={calculated_balance}, "
                        f"discrepancy={discrepancy_amount}"
                    )

            # Step 3: Completed documents that never reached the ledger
            missing = [
                UnpostedDocumentDTO(
                    document_id=document.id,
                    company_id=document.company_id,
                    account_id=document.account_id,
                    document_type=DocumentType(document.document_type),
                    document_number=document.document_number,
                )
                for document in await self.document_repo.find_completed_without_application()
            ]
            for document in missing:
                logger.warning(
                    f"Completed {document.document_type.value} {document.document_number} "
                    f"(id={document.document_id}, account={document.account_id}) has no ledger transaction"
                )

            # Step 4: Build response
            execution_time_ms = int((time.time() - start_time) * 1000)

            response = ReconciliationResultDTO(
                total_accounts_checked=total_accounts,
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                unposted_documents=missing,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies or missing:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {total_accounts} accounts and {len(missing)} documents without "
                    f"transactions in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {total_accounts} accounts balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Ledger reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile ledger",
                    reason=str(e),
                )
            )
