"""ChangeDocumentStatus Use Case

Entry point for a document status transition. Validates the move, writes
the new status, and runs the ledger and propagation engines in one
database transaction.
"""

import logging
from typing import Optional
from src.libs.result import Result, Return, Error
from src.app.repositories.document_repository import DocumentRepository
from src.app.services.activity_log import ActivityLogSink
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import DocumentNotFound, InvalidTransition, LedgerError
from src.domain.ledger_transaction import ReversalReason
from src.domain.lifecycle import (
    is_completing_transition,
    is_uncompleting_transition,
    validate_transition,
)
from .activity import error_from_exception, publish_activity
from .apply_on_completion import ApplyOnCompletion
from .dtos import ChangeStatusCommandDTO, DocumentLedgerResponseDTO
from .propagate_linked_status import PropagateLinkedStatus
from .reverse_on_uncompletion import ReverseOnUncompletion

logger = logging.getLogger(__name__)


class ChangeDocumentStatus:
    """
    Use Case: Move a document to a new status

    Business Rules:
    1. Transitions are validated per document type before anything is written
    2. The caller passes old_status; a document that has since moved is rejected
    3. A document already at new_status is a retry: engines re-run idempotently
    4. Entering completed applies the ledger effect, leaving it reverses it
    5. Linked invoice / payment voucher statuses follow in the same transaction
    6. Activity records are emitted only after commit

    Flow:
    1. Lock the document (SELECT FOR UPDATE)
    2. Check the observed status and validate the transition
    3. Write the new status
    4. Apply or reverse the ledger effect
    5. Propagate to the linked document
    6. Commit transaction
    7. Emit activity records
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

    async def execute(self, command: ChangeStatusCommandDTO) -> Result[DocumentLedgerResponseDTO]:
        """
        Execute a status transition

        Args:
            command: ChangeStatusCommandDTO with document_id, old_status, new_status

        Returns:
            Result[DocumentLedgerResponseDTO]: Ledger effects and linked status changes, or error
        """
        old_status = command.old_status
        new_status = command.new_status
        effects = []
        status_changes = []

        try:
            # Step 1: Get document with pessimistic lock
            document = await self.document_repo.get_by_id(command.document_id, for_update=True)
            if document is None or document.header.is_deleted:
                raise DocumentNotFound(f"Document {command.document_id} not found")

            # Step 2: Compare with the status the caller observed
            stored_status = document.status
            is_retry = stored_status == new_status and old_status != new_status
            if stored_status != old_status and not is_retry:
                raise InvalidTransition(
                    f"Document {document.id} is {stored_status.value}, not {old_status.value}",
                    reason="stale old_status",
                )
            validate_transition(document.document_type, old_status, new_status)

            # Step 3: Write the new status
            if stored_status != new_status:
                await self.document_repo.update_status(document.header, new_status)

            # Step 4: Ledger effect
            if is_completing_transition(old_status, new_status):
                effects.append(await self.apply_engine.execute(document))
            elif is_uncompleting_transition(old_status, new_status):
                effects.append(
                    await self.reverse_engine.execute(
                        document, document.account_id, ReversalReason.STATUS_REVERTED
                    )
                )

            # Step 5: Linked documents
            if is_completing_transition(old_status, new_status) or is_uncompleting_transition(old_status, new_status):
                status_changes = await self.propagator.execute(document, old_status, new_status)

            # Step 6: Commit transaction
            await self.uow.commit()

        except LedgerError as e:
            await self.uow.rollback()
            logger.warning(f"Status change of document {command.document_id} rejected: {e.code} {e.message}")
            return Return.err(error_from_exception(e))
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"Status change of document {command.document_id} failed")
            return Return.err(
                Error(
                    code="CHANGE_STATUS_FAILED",
                    message="Failed to change document status",
                    reason=str(e),
                )
            )

        # Step 7: Emit activity records
        await publish_activity(self.activity_sink, document.id, effects, status_changes)

        return Return.ok(
            DocumentLedgerResponseDTO(
                document_id=document.id,
                document_type=document.document_type,
                previous_status=old_status,
                status=new_status,
                effects=effects,
                linked_status_changes=status_changes,
            )
        )
