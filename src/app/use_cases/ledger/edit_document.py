"""EditDocument Use Case

Applies edits to the financial fields of a document. A completed document
whose ledger effect changes is re-posted: the old effect is reversed and
the new one applied in the same database transaction.
"""

import logging
from typing import Optional, Tuple
from src.libs.result import Result, Return, Error
from src.app.repositories.document_repository import DocumentRepository
from src.app.services.activity_log import ActivityLogSink
from src.app.services.unit_of_work import UnitOfWork
from src.domain.document import (
    DocumentStatus,
    DocumentType,
    LedgerDocument,
    ReceiptDetails,
    StatementOfPaymentDetails,
)
from src.domain.errors import DocumentNotFound, LedgerError, ValidationError
from src.domain.ledger_transaction import ReversalReason
from .activity import error_from_exception, publish_activity
from .apply_on_completion import ApplyOnCompletion
from .dtos import DocumentLedgerResponseDTO, EditDocumentCommandDTO
from .propagate_linked_status import PropagateLinkedStatus
from .reverse_on_uncompletion import ReverseOnUncompletion

logger = logging.getLogger(__name__)


class EditDocument:
    """
    Use Case: Edit the financial fields of a document

    Business Rules:
    1. Only documents in completed status carry a ledger effect to re-post
    2. A change of account, currency or effective amount re-posts the effect
    3. Re-posting reverses the original amount and applies the new one, so
       the net account change equals new amount minus old amount
    4. Editing a completed receipt recomputes both the old and new invoice

    Flow:
    1. Lock the document
    2. Snapshot the ledger-relevant fields
    3. Apply the edit in memory
    4. Persist the document
    5. Reverse the old effect if it changed
    6. Apply the new effect
    7. Recompute linked invoices
    8. Commit transaction and emit activity
    """

    def __init__(
        self,
        uow: UnitOfWork,
        document_repo: DocumentRepository,
        apply_engine: ApplyOnCompletion,
        reverse_engine: ReverseOnUncompletion,
        propagator: PropagateLinkedStatus,
        activity_sink: Optional[ActivityLogSink] = None,
    ):
        self.uow = uow
        self.document_repo = document_repo
        self.apply_engine = apply_engine
        self.reverse_engine = reverse_engine
        self.propagator = propagator
        self.activity_sink = activity_sink

    async def execute(self, command: EditDocumentCommandDTO) -> Result[DocumentLedgerResponseDTO]:
        effects = []
        status_changes = []

        try:
            # Step 1: Get document with pessimistic lock
            document = await self.document_repo.get_by_id(command.document_id, for_update=True)
            if document is None or document.header.is_deleted:
                raise DocumentNotFound(f"Document {command.document_id} not found")

            # Step 2: Snapshot what the ledger saw
            previous_account_id = document.account_id
            previous_fingerprint = self._ledger_fingerprint(document)
            previous_invoice_id = document.linked_document_id
            completed = document.status == DocumentStatus.COMPLETED

            # Step 3: Apply the edit in memory
            self._apply_changes(document, command)
            reposting = completed and self._ledger_fingerprint(document) != previous_fingerprint

            # Step 4: Persist the document, taking its write before any balance is read
            await self.document_repo.update(document)

            # Step 5: Undo the old effect
            if reposting:
                effects.append(
                    await self.reverse_engine.execute(
                        document, previous_account_id, ReversalReason.DOCUMENT_EDITED
                    )
                )

            # Step 6: Apply the new effect
            if reposting:
                effects.append(await self.apply_engine.execute(document))

            # Step 7: Linked invoices
            if completed and document.document_type == DocumentType.RECEIPT:
                status_changes = await self.propagator.on_receipt_changed(document, previous_invoice_id)

            # Step 8: Commit transaction
            await self.uow.commit()

        except LedgerError as e:
            await self.uow.rollback()
            logger.warning(f"Edit of document {command.document_id} rejected: {e.code} {e.message}")
            return Return.err(error_from_exception(e))
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"Edit of document {command.document_id} failed")
            return Return.err(
                Error(
                    code="EDIT_DOCUMENT_FAILED",
                    message="Failed to edit document",
                    reason=str(e),
                )
            )

        await publish_activity(self.activity_sink, document.id, effects, status_changes)

        return Return.ok(
            DocumentLedgerResponseDTO(
                document_id=document.id,
                document_type=document.document_type,
                previous_status=document.status,
                status=document.status,
                effects=effects,
                linked_status_changes=status_changes,
            )
        )

    def _ledger_fingerprint(self, document: LedgerDocument) -> Tuple:
        return document.account_id, document.header.currency, document.effective_amount

    def _apply_changes(self, document: LedgerDocument, command: EditDocumentCommandDTO) -> None:
        header = document.header
        if command.amount is not None:
            header.amount = command.amount
        if command.account_id is not None:
            header.account_id = command.account_id
        if command.currency is not None:
            header.currency = command.currency.upper()

        statement_fields = command.total_deducted is not None or command.transaction_fee is not None
        if statement_fields:
            if document.document_type != DocumentType.STATEMENT_OF_PAYMENT:
                raise ValidationError(
                    "total_deducted and transaction_fee apply to statements of payment only",
                    reason=f"document_type={document.document_type.value}",
                )
            if document.details is None:
                document.details = StatementOfPaymentDetails(document_id=document.id)
            if command.total_deducted is not None:
                document.details.total_deducted = command.total_deducted
            if command.transaction_fee is not None:
                document.details.transaction_fee = command.transaction_fee

        if command.linked_invoice_id is not None:
            if document.document_type != DocumentType.RECEIPT:
                raise ValidationError(
                    "linked_invoice_id applies to receipts only",
                    reason=f"document_type={document.document_type.value}",
                )
            if document.details is None:
                document.details = ReceiptDetails(document_id=document.id)
            document.details.linked_invoice_id = command.linked_invoice_id
