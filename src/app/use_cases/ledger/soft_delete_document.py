"""SoftDeleteDocument Use Case

Marks a document deleted and undoes everything it contributed: its ledger
effect and the status it drove on linked documents.
"""

import logging
from typing import Optional
from src.libs.result import Result, Return, Error
from src.app.repositories.document_repository import DocumentRepository
from src.app.services.activity_log import ActivityLogSink
from src.app.services.unit_of_work import UnitOfWork
from src.domain.document import DocumentStatus, DocumentType
from src.domain.errors import DocumentNotFound, LedgerError
from src.domain.ledger_transaction import ReversalReason
from src.domain.base import utcnow
from .activity import error_from_exception, publish_activity
from .dtos import DocumentLedgerResponseDTO
from .propagate_linked_status import PropagateLinkedStatus
from .reverse_on_uncompletion import ReverseOnUncompletion

logger = logging.getLogger(__name__)


class SoftDeleteDocument:
    """
    Use Case: Soft-delete a document

    Business Rules:
    1. A completed document's ledger effect is reversed (document_deleted)
    2. A deleted receipt no longer counts towards its invoice
    3. A deleted completed statement reverts its payment voucher to issued
    4. Deleting an already deleted document changes nothing

    Flow:
    1. Lock the document
    2. Set deleted_at
    3. Reverse the ledger effect
    4. Propagate to the linked document
    5. Commit transaction and emit activity
    """

    def __init__(
        self,
        uow: UnitOfWork,
        document_repo: DocumentRepository,
        reverse_engine: ReverseOnUncompletion,
        propagator: PropagateLinkedStatus,
        activity_sink: Optional[ActivityLogSink] = None,
    ):
        self.uow = uow
        self.document_repo = document_repo
        self.reverse_engine = reverse_engine
        self.propagator = propagator
        self.activity_sink = activity_sink

    async def execute(self, document_id: int) -> Result[DocumentLedgerResponseDTO]:
        effects = []
        status_changes = []

        try:
            # Step 1: Get document with pessimistic lock
            document = await self.document_repo.get_by_id(document_id, for_update=True)
            if document is None:
                raise DocumentNotFound(f"Document {document_id} not found")

            if document.header.is_deleted:
                await self.uow.rollback()
                return Return.ok(self._response(document, effects, status_changes))

            # Step 2: Mark deleted
            document.header.deleted_at = utcnow()
            await self.document_repo.update(document)

            completed = document.status == DocumentStatus.COMPLETED

            # Step 3: Reverse the ledger effect
            if completed:
                effects.append(
                    await self.reverse_engine.execute(
                        document, document.account_id, ReversalReason.DOCUMENT_DELETED
                    )
                )

            # Step 4: Linked documents
            if document.document_type == DocumentType.RECEIPT:
                status_changes = await self.propagator.on_receipt_changed(document)
            elif completed and document.document_type == DocumentType.STATEMENT_OF_PAYMENT:
                status_changes = await self.propagator.on_statement_uncompleted(document)

            # Step 5: Commit transaction
            await self.uow.commit()

        except LedgerError as e:
            await self.uow.rollback()
            logger.warning(f"Deletion of document {document_id} rejected: {e.code} {e.message}")
            return Return.err(error_from_exception(e))
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"Deletion of document {document_id} failed")
            return Return.err(
                Error(
                    code="DELETE_DOCUMENT_FAILED",
                    message="Failed to delete document",
                    reason=str(e),
                )
            )

        logger.info(f"Document {document_id} soft-deleted with {len(effects)} ledger effect(s)")
        await publish_activity(self.activity_sink, document.id, effects, status_changes)

        return Return.ok(self._response(document, effects, status_changes))

    def _response(self, document, effects, status_changes) -> DocumentLedgerResponseDTO:
        return DocumentLedgerResponseDTO(
            document_id=document.id,
            document_type=document.document_type,
            previous_status=document.status,
            status=document.status,
            deleted=True,
            effects=effects,
            linked_status_changes=status_changes,
        )
