"""SQLAlchemy implementation of DocumentRepository

Loads document headers together with their per-type extension row.
"""

from decimal import Decimal
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import aliased
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.document_repository import DocumentRepository
from src.adapter.services.locking import apply_lock_timeout, lock_contention_as_timeout
from src.domain.document import (
    DETAILS_MODEL,
    Document,
    DocumentDetails,
    DocumentStatus,
    DocumentType,
    LedgerDocument,
    ReceiptDetails,
)
from src.domain.base import utcnow
from src.domain.ledger_transaction import LedgerTransaction

SETTLING_RECEIPT_STATUSES = (DocumentStatus.COMPLETED, DocumentStatus.PAID)


class SqlAlchemyDocumentRepository(DocumentRepository):
    """
    SQLAlchemy implementation of DocumentRepository

    Features:
    - Pessimistic locking of the header row via SELECT FOR UPDATE
    - Extension rows are resolved from the header's document_type
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, document_id: int, for_update: bool = False) -> Optional[LedgerDocument]:
        """
        Retrieve a document with optional row-level locking of its header

        Args:
            document_id: Document ID
            for_update: If True, locks the header row with SELECT FOR UPDATE

        Returns:
            LedgerDocument if found, None otherwise
        """
        stmt = select(Document).where(Document.id == document_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
            await apply_lock_timeout(self.session)

        async with lock_contention_as_timeout(f"lock of document {document_id}"):
            result = await self.session.execute(stmt)
        header = result.scalar_one_or_none()
        if header is None:
            return None

        details_model = DETAILS_MODEL[DocumentType(header.document_type)]
        details_stmt = select(details_model).where(details_model.document_id == header.id)
        if for_update:
            details_stmt = details_stmt.execution_options(populate_existing=True)
        details_result = await self.session.execute(details_stmt)

        return LedgerDocument(header=header, details=details_result.scalar_one_or_none())

    async def create(self, document: Document, details: Optional[DocumentDetails] = None) -> LedgerDocument:
        self.session.add(document)
        await self.session.flush()
        await self.session.refresh(document)

        if details is not None:
            details.document_id = document.id
            self.session.add(details)
            await self.session.flush()
            await self.session.refresh(details)

        return LedgerDocument(header=document, details=details)

    async def update(self, document: LedgerDocument) -> LedgerDocument:
        document.header.updated_at = utcnow()
        self.session.add(document.header)
        if document.details is not None:
            if document.details.document_id is None:
                document.details.document_id = document.header.id
            self.session.add(document.details)
        async with lock_contention_as_timeout(f"update of document {document.id}"):
            await self.session.flush()
        return document

    async def update_status(self, document: Document, status: DocumentStatus) -> Document:
        document.status = status
        document.updated_at = utcnow()
        self.session.add(document)
        async with lock_contention_as_timeout(f"status update of document {document.id}"):
            await self.session.flush()
        return document

    async def sum_settled_receipts(self, invoice_id: int) -> Decimal:
        """
        Sum amounts of live receipts settling an invoice

        Only non-deleted receipts in completed or paid status count.
        """
        stmt = (
            select(func.coalesce(func.sum(Document.amount), 0))
            .select_from(Document)
            .join(ReceiptDetails, ReceiptDetails.document_id == Document.id)
            .where(
                ReceiptDetails.linked_invoice_id == invoice_id,
                Document.document_type == DocumentType.RECEIPT,
                Document.status.in_(SETTLING_RECEIPT_STATUSES),
                Document.deleted_at.is_(None),
            )
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar_one()))

    async def find_completed_without_application(self) -> List[Document]:
        application = aliased(LedgerTransaction)
        reversal = aliased(LedgerTransaction)

        reversed_application = (
            select(reversal.id).where(reversal.original_transaction_id == application.id).exists()
        )
        active_application = (
            select(application.id)
            .where(
                application.document_id == Document.id,
                application.is_reversal.is_(False),
                ~reversed_application,
            )
            .exists()
        )
        stmt = (
            select(Document)
            .where(
                Document.status == DocumentStatus.COMPLETED,
                Document.document_type.in_((DocumentType.RECEIPT, DocumentType.STATEMENT_OF_PAYMENT)),
                Document.account_id.is_not(None),
                Document.deleted_at.is_(None),
                ~active_application,
            )
            .order_by(Document.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
