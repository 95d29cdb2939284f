"""Document Repository Interface

Defines the fields of the document store the ledger reads and the status
writes it performs on linked documents.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional
from src.domain.document import Document, DocumentDetails, DocumentStatus, LedgerDocument


class DocumentRepository(ABC):
    """Repository interface for documents and their per-type extensions"""

    @abstractmethod
    async def get_by_id(self, document_id: int, for_update: bool = False) -> Optional[LedgerDocument]:
        """
        Retrieve a document header together with its extension row

        Args:
            document_id: Document ID
            for_update: If True, lock the header row with SELECT FOR UPDATE

        Returns:
            LedgerDocument if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, document: Document, details: Optional[DocumentDetails] = None) -> LedgerDocument:
        pass

    @abstractmethod
    async def update(self, document: LedgerDocument) -> LedgerDocument:
        """Persist header and extension changes"""
        pass

    @abstractmethod
    async def update_status(self, document: Document, status: DocumentStatus) -> Document:
        """Write a new status on an already loaded (and locked) header"""
        pass

    @abstractmethod
    async def sum_settled_receipts(self, invoice_id: int) -> Decimal:
        """
        Sum amounts of non-deleted receipts linked to an invoice with
        status completed or paid
        """
        pass

    @abstractmethod
    async def find_completed_without_application(self) -> List[Document]:
        """
        Completed receipts and statements with an account but no active
        ledger application
        """
        pass
