"""PropagateLinkedStatus Engine

Keeps linked documents in step after a receipt or statement of payment
moves:
- Invoice is paid while its completed receipts cover the amount
- Payment voucher is completed while its statement of payment is
"""

import logging
from decimal import Decimal
from typing import List, Optional
from src.app.repositories.document_repository import DocumentRepository
from src.domain.document import DocumentStatus, DocumentType, LedgerDocument
from src.domain.lifecycle import (
    is_completing_transition,
    is_uncompleting_transition,
    validate_transition,
)
from .dtos import StatusChangeDTO

logger = logging.getLogger(__name__)


class PropagateLinkedStatus:
    """
    Engine: Propagate status changes to linked documents

    Business Rules:
    1. Invoice: paid when settled receipts cover the amount, back to
       issued when they no longer do; draft, completed, cancelled and
       deleted invoices are left alone
    2. Payment voucher: completed when its statement completes, back to
       issued when the statement leaves completed or is deleted
    3. Every move goes through the lifecycle guard as a system transition
    4. Missing linked documents are logged and ignored

    The engine never commits; the orchestrating use case owns the unit of work.
    """

    def __init__(self, document_repo: DocumentRepository):
        self.document_repo = document_repo

    async def execute(
        self,
        document: LedgerDocument,
        old_status: DocumentStatus,
        new_status: DocumentStatus,
    ) -> List[StatusChangeDTO]:
        """
        Propagate a status transition of `document` to its linked document

        Returns:
            Status changes made on linked documents (may be empty)
        """
        match document.document_type:
            case DocumentType.RECEIPT:
                return await self.on_receipt_changed(document)
            case DocumentType.STATEMENT_OF_PAYMENT if is_completing_transition(old_status, new_status):
                return await self.on_statement_completed(document)
            case DocumentType.STATEMENT_OF_PAYMENT if is_uncompleting_transition(old_status, new_status):
                return await self.on_statement_uncompleted(document)
            case _:
                return []

    async def on_receipt_changed(
        self,
        receipt: LedgerDocument,
        previous_invoice_id: Optional[int] = None,
    ) -> List[StatusChangeDTO]:
        """Recompute the receipt's invoice and, if it moved, the one it left"""
        invoice_ids = []
        if receipt.linked_document_id is not None:
            invoice_ids.append(receipt.linked_document_id)
        if previous_invoice_id is not None and previous_invoice_id not in invoice_ids:
            invoice_ids.append(previous_invoice_id)

        changes = []
        for invoice_id in invoice_ids:
            change = await self.recompute_invoice(invoice_id)
            if change:
                changes.append(change)
        return changes

    async def recompute_invoice(self, invoice_id: int) -> Optional[StatusChangeDTO]:
        """
        Derive an invoice's paid/issued status from its settled receipts

        Args:
            invoice_id: Invoice document ID

        Returns:
            StatusChangeDTO if the invoice moved, None otherwise
        """
        invoice = await self.document_repo.get_by_id(invoice_id, for_update=True)
        if invoice is None or invoice.document_type != DocumentType.INVOICE:
            logger.warning(f"Linked invoice {invoice_id} not found; skipping status propagation")
            return None
        if invoice.header.is_deleted:
            return None

        current_status = invoice.status
        if current_status not in (DocumentStatus.ISSUED, DocumentStatus.PAID):
            return None

        settled = Decimal(str(await self.document_repo.sum_settled_receipts(invoice_id)))
        amount_due = Decimal(str(invoice.header.amount))

        if settled >= amount_due:
            target_status = DocumentStatus.PAID
        else:
            target_status = DocumentStatus.ISSUED

        if target_status == current_status:
            return None

        return await self._move(invoice, target_status, f"settled={settled}, amount={amount_due}")

    async def on_statement_completed(self, statement: LedgerDocument) -> List[StatusChangeDTO]:
        voucher = await self._linked_voucher(statement)
        if voucher is None or voucher.status not in (DocumentStatus.ISSUED, DocumentStatus.PAID):
            return []
        change = await self._move(voucher, DocumentStatus.COMPLETED, f"statement_id={statement.id}")
        return [change]

    async def on_statement_uncompleted(self, statement: LedgerDocument) -> List[StatusChangeDTO]:
        voucher = await self._linked_voucher(statement)
        if voucher is None or voucher.status != DocumentStatus.COMPLETED:
            return []
        change = await self._move(voucher, DocumentStatus.ISSUED, f"statement_id={statement.id}")
        return [change]

    async def _linked_voucher(self, statement: LedgerDocument) -> Optional[LedgerDocument]:
        voucher_id = statement.linked_document_id
        if voucher_id is None:
            return None
        voucher = await self.document_repo.get_by_id(voucher_id, for_update=True)
        if voucher is None or voucher.document_type != DocumentType.PAYMENT_VOUCHER:
            logger.warning(f"Linked payment voucher {voucher_id} not found; skipping status propagation")
            return None
        if voucher.header.is_deleted:
            return None
        return voucher

    async def _move(self, document: LedgerDocument, new_status: DocumentStatus, detail: str) -> StatusChangeDTO:
        previous_status = document.status
        validate_transition(document.document_type, previous_status, new_status, system_initiated=True)
        await self.document_repo.update_status(document.header, new_status)

        logger.info(
            f"{document.document_type.value} {document.id}: {previous_status.value} -> "
            f"{new_status.value} ({detail})"
        )
        return StatusChangeDTO(
            document_id=document.id,
            previous_status=previous_status,
            new_status=new_status,
        )
