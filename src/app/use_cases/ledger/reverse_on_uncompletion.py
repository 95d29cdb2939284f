"""ReverseOnUncompletion Engine

Undoes the active ledger application of a document that leaves the
completed state, is edited, or is soft-deleted.
"""

import logging
from typing import Optional
from src.app.repositories.account_repository import AccountRepository
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.domain.document import LedgerDocument
from src.domain.errors import LedgerIntegrityError
from src.domain.ledger_transaction import LedgerTransaction, ReversalReason, TransactionType
from src.domain.lifecycle import LEDGER_TYPES
from .dtos import LedgerEffectDTO, LedgerEffectStatus, LedgerTransactionDTO

logger = logging.getLogger(__name__)


class ReverseOnUncompletion:
    """
    Engine: Reverse the active application of a document

    Business Rules:
    1. The reversal moves the original's stored amount the opposite way,
       so reversing after an edit undoes exactly what was applied
    2. The reversal lands on the account of the original transaction
    3. A transaction is reversed at most once
    4. No balance check: undoing a recorded effect is always allowed
    5. A completed ledger document with no application is an integrity error

    The engine never commits; the orchestrating use case owns the unit of work.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        transaction_repo: LedgerTransactionRepository,
    ):
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo

    async def execute(
        self,
        document: LedgerDocument,
        account_id: Optional[int],
        reason: ReversalReason,
    ) -> LedgerEffectDTO:
        """
        Reverse the active application of a document

        Args:
            document: Locked document
            account_id: Account the document pointed at while completed
            reason: Why the effect is undone

        Returns:
            LedgerEffectDTO with status reversed, already_reversed or skipped
        """
        if document.document_type not in LEDGER_TYPES:
            return LedgerEffectDTO(document_id=document.id, status=LedgerEffectStatus.SKIPPED)

        if account_id is None:
            logger.warning(f"Document {document.id} has no account; nothing to reverse")
            return LedgerEffectDTO(document_id=document.id, status=LedgerEffectStatus.SKIPPED)

        # Step 1: Find the application to undo
        original = await self.transaction_repo.get_active_application(document.id)
        if original is None:
            if await self.transaction_repo.has_reversal_for_document(document.id):
                return LedgerEffectDTO(document_id=document.id, status=LedgerEffectStatus.ALREADY_REVERSED)
            logger.error(f"Completed document {document.id} has no ledger application to reverse")
            raise LedgerIntegrityError(
                f"Document {document.id} was completed but has no ledger transaction",
                reason=f"reversal_reason={ReversalReason(reason).value}",
            )

        if original.account_id != account_id:
            logger.warning(
                f"Document {document.id} points at account {account_id} but was applied to "
                f"account {original.account_id}; reversing on the applied account"
            )

        # Step 2: Lock the account the original moved
        account = await self.account_repo.get_by_id(original.account_id, for_update=True)
        if account is None:
            raise LedgerIntegrityError(
                f"Account {original.account_id} of transaction {original.id} no longer exists"
            )

        # Step 3: Re-check under lock, a concurrent call may have won
        existing_reversal = await self.transaction_repo.get_reversal_of(original.id)
        if existing_reversal:
            return LedgerEffectDTO(
                document_id=document.id,
                status=LedgerEffectStatus.ALREADY_REVERSED,
                transaction=LedgerTransactionDTO.from_entity(existing_reversal),
            )

        # Step 4: Create the opposite transaction
        reversal_type = TransactionType(original.transaction_type).opposite
        balance_before = account.current_balance
        if reversal_type == TransactionType.INCREASE:
            balance_after = balance_before + original.amount
        else:
            balance_after = balance_before - original.amount

        reason = ReversalReason(reason)
        reversal = LedgerTransaction(
            account_id=account.id,
            document_id=document.id,
            transaction_type=reversal_type,
            amount=original.amount,
            balance_before=balance_before,
            balance_after=balance_after,
            generation=original.generation,
            is_reversal=True,
            original_transaction_id=original.id,
            reason=reason.value,
            description=f"Reversal of transaction {original.id} ({reason.value})",
        )
        created_reversal = await self.transaction_repo.create(reversal)

        # Step 5: Update account balance
        await self.account_repo.update_balance(account.id, balance_after)

        logger.info(
            f"Reversed transaction {original.id} of document {document.id} ({reason.value}): "
            f"{reversal_type.value} {original.amount} on account {account.id}"
        )

        return LedgerEffectDTO(
            document_id=document.id,
            status=LedgerEffectStatus.REVERSED,
            transaction=LedgerTransactionDTO.from_entity(created_reversal),
        )
