"""ApplyOnCompletion Engine

Records the ledger effect of a document entering the completed state:
completed receipts increase the account, completed statements of payment
decrease it.
"""

import logging
from decimal import Decimal
from typing import Tuple
from src.app.repositories.account_repository import AccountRepository
from src.app.repositories.company_settings_repository import CompanySettingsRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.document import DocumentType, LedgerDocument, StatementOfPaymentDetails
from src.domain.errors import (
    AccountUnavailable,
    CurrencyMismatch,
    InsufficientBalance,
    InvalidAmount,
    LedgerIntegrityError,
)
from src.domain.ledger_transaction import LedgerTransaction, TransactionType
from src.domain.lifecycle import LEDGER_TYPES
from .dtos import LedgerEffectDTO, LedgerEffectStatus, LedgerTransactionDTO

logger = logging.getLogger(__name__)


class ApplyOnCompletion:
    """
    Engine: Apply a completed document to its account

    Business Rules:
    1. Only receipts and statements of payment move money
    2. Idempotency: a document has at most one active application
    3. Document and account currency must match
    4. Statements deduct total_deducted (fees included) when it is set
    5. Payments may not take a balance below zero unless the company allows it
    6. Balance and transaction are written in the caller's database transaction

    Flow:
    1. Skip types without ledger effect and documents without an account
    2. Lock the account (SELECT FOR UPDATE)
    3. Check for an active application (return it if found)
    4. Validate currency
    5. Compute signed amount
    6. Validate balance
    7. Create transaction record
    8. Update account balance

    The engine never commits; the orchestrating use case owns the unit of work.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        transaction_repo: LedgerTransactionRepository,
        settings_repo: CompanySettingsRepository,
    ):
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo
        self.settings_repo = settings_repo

    async def execute(self, document: LedgerDocument) -> LedgerEffectDTO:
        """
        Apply the ledger effect of a completed document

        Args:
            document: Locked document with its extension row

        Returns:
            LedgerEffectDTO with status applied, already_applied or skipped

        Raises:
            AccountUnavailable, CurrencyMismatch, InsufficientBalance,
            InvalidAmount, LedgerIntegrityError, ConcurrencyTimeout
        """
        # Step 1: Only ledger-affecting documents with an account
        if document.document_type not in LEDGER_TYPES:
            return LedgerEffectDTO(document_id=document.id, status=LedgerEffectStatus.SKIPPED)

        if document.account_id is None:
            logger.warning(
                f"Document {document.id} ({document.document_type.value}) completed without an account; "
                f"no ledger effect recorded"
            )
            return LedgerEffectDTO(document_id=document.id, status=LedgerEffectStatus.SKIPPED)

        # Step 2: Get account with pessimistic lock (SELECT FOR UPDATE)
        account = await self.account_repo.get_by_id(document.account_id, for_update=True)
        if account is None or not account.is_usable:
            raise AccountUnavailable(
                f"Account {document.account_id} is missing, inactive or deleted",
                reason=f"document_id={document.id}",
            )

        # Step 3: Idempotency - an active application means this already ran
        existing = await self.transaction_repo.get_active_application(document.id)
        if existing:
            logger.info(f"Document {document.id} already applied as transaction {existing.id}")
            return LedgerEffectDTO(
                document_id=document.id,
                status=LedgerEffectStatus.ALREADY_APPLIED,
                transaction=LedgerTransactionDTO.from_entity(existing),
            )

        # Step 4: Validate currency
        if document.header.currency != account.currency:
            raise CurrencyMismatch(
                f"Document currency {document.header.currency} does not match "
                f"account currency {account.currency}",
                reason=f"document_id={document.id}, account_id={account.id}",
            )

        # Step 5: Compute amount and direction
        transaction_type, amount = self._ledger_amount(document)

        # Step 6: Validate balance
        balance_before = account.current_balance
        if transaction_type == TransactionType.DECREASE:
            balance_after = balance_before - amount
            if balance_after < 0 and not await self.settings_repo.allows_negative_balance(account.company_id):
                raise InsufficientBalance(
                    f"Insufficient balance. Required: {amount}, Available: {balance_before}",
                    reason=f"balance={balance_before}, required={amount}",
                )
        else:
            balance_after = balance_before + amount

        # Step 7: Create transaction record with balance snapshots
        generation = await self.transaction_repo.get_last_generation(document.id) + 1
        transaction = LedgerTransaction(
            account_id=account.id,
            document_id=document.id,
            transaction_type=transaction_type,
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_after,
            generation=generation,
            description=f"{document.document_type.value} {document.header.document_number} completed",
        )
        created_transaction = await self.transaction_repo.create(transaction)

        # Step 8: Update account balance
        await self.account_repo.update_balance(account.id, balance_after)

        logger.info(
            f"Applied document {document.id}: {transaction_type.value} {amount} on account {account.id} "
            f"({balance_before} -> {balance_after})"
        )

        return LedgerEffectDTO(
            document_id=document.id,
            status=LedgerEffectStatus.APPLIED,
            transaction=LedgerTransactionDTO.from_entity(created_transaction),
        )

    def _ledger_amount(self, document: LedgerDocument) -> Tuple[TransactionType, Decimal]:
        match document.document_type:
            case DocumentType.RECEIPT:
                transaction_type = TransactionType.INCREASE
            case DocumentType.STATEMENT_OF_PAYMENT:
                if not isinstance(document.details, StatementOfPaymentDetails):
                    logger.error(f"Statement of payment {document.id} has no extension row")
                    raise LedgerIntegrityError(
                        f"Statement of payment {document.id} has no payment details",
                        reason="total_deducted cannot be determined",
                    )
                transaction_type = TransactionType.DECREASE
            case _:
                raise LedgerIntegrityError(f"Document type {document.document_type.value} has no ledger effect")

        amount = document.effective_amount
        if amount is None:
            logger.error(f"Document {document.id} has no amount")
            raise LedgerIntegrityError(f"Document {document.id} has no amount")
        amount = Decimal(str(amount))
        if amount <= 0:
            raise InvalidAmount(
                f"Ledger amount must be positive, got {amount}",
                reason=f"document_id={document.id}",
            )
        return transaction_type, amount
