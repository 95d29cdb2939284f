"""Document Lifecycle API Routes

FastAPI routes the document store calls when a document changes status,
is edited, or is deleted.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.ledger_request import EditDocumentRequestSchema, StatusChangeRequestSchema
from src.app.services.activity_log import ActivityLogSink
from src.app.use_cases.ledger.dtos import (
    ChangeStatusCommandDTO,
    DocumentLedgerResponseDTO,
    EditDocumentCommandDTO,
)
from src.app.use_cases.ledger.apply_on_completion import ApplyOnCompletion
from src.app.use_cases.ledger.reverse_on_uncompletion import ReverseOnUncompletion
from src.app.use_cases.ledger.propagate_linked_status import PropagateLinkedStatus
from src.app.use_cases.ledger.change_document_status import ChangeDocumentStatus
from src.app.use_cases.ledger.edit_document import EditDocument
from src.app.use_cases.ledger.soft_delete_document import SoftDeleteDocument
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.company_settings_repository import SqlAlchemyCompanySettingsRepository
from src.adapter.repositories.document_repository import SqlAlchemyDocumentRepository
from src.adapter.repositories.ledger_transaction_repository import SqlAlchemyLedgerTransactionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_activity_log_sink, get_session
from src.api.error import ClientError

router = APIRouter(prefix="/ledger/documents", tags=["Documents"])

ERROR_RESPONSES = {
    404: {"description": "Document not found"},
    409: {
        "description": "Transition not allowed or document has moved since it was read",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "INVALID_TRANSITION",
                        "message": "Invalid status transition from draft to completed for receipt"
                    }
                }
            }
        }
    },
    402: {"description": "Payment would take the account below zero"},
    422: {"description": "Currency mismatch or account unavailable"},
    503: {"description": "Lock contention, retry the same request"},
}


def _engines(session: AsyncSession):
    account_repo = SqlAlchemyAccountRepository(session)
    transaction_repo = SqlAlchemyLedgerTransactionRepository(session)
    document_repo = SqlAlchemyDocumentRepository(session)
    apply_engine = ApplyOnCompletion(
        account_repo, transaction_repo, SqlAlchemyCompanySettingsRepository(session)
    )
    reverse_engine = ReverseOnUncompletion(account_repo, transaction_repo)
    propagator = PropagateLinkedStatus(document_repo)
    return document_repo, apply_engine, reverse_engine, propagator


@router.post(
    "/{document_id}/status",
    response_model=DocumentLedgerResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def change_document_status(
    document_id: int,
    request: StatusChangeRequestSchema,
    session: AsyncSession = Depends(get_session),
    activity_sink: ActivityLogSink = Depends(get_activity_log_sink),
):
    """
    Apply a document status transition to the ledger.

    Entering `completed` records the document's effect on its account;
    leaving it reverses the effect. Linked invoices and payment vouchers
    follow in the same database transaction.

    **Example request:**
    ```json
    {"old_status": "issued", "new_status": "completed"}
    ```

    **Returns:**
    - 200: Transition applied (or already applied on retry)
    - 409: Transition not allowed, or `old_status` is stale
    - 402: Insufficient balance
    - 503: Lock contention; safe to retry
    """
    document_repo, apply_engine, reverse_engine, propagator = _engines(session)

    command = ChangeStatusCommandDTO(
        document_id=document_id,
        old_status=request.old_status,
        new_status=request.new_status,
    )

    use_case = ChangeDocumentStatus(
        SqlAlchemyUnitOfWork(session), document_repo, apply_engine, reverse_engine, propagator, activity_sink
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.patch(
    "/{document_id}",
    response_model=DocumentLedgerResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def edit_document(
    document_id: int,
    request: EditDocumentRequestSchema,
    session: AsyncSession = Depends(get_session),
    activity_sink: ActivityLogSink = Depends(get_activity_log_sink),
):
    """
    Edit the financial fields of a document.

    Editing a completed document re-posts its ledger effect: the original
    amount is reversed and the new amount applied.
    """
    document_repo, apply_engine, reverse_engine, propagator = _engines(session)

    command = EditDocumentCommandDTO(document_id=document_id, **request.model_dump(exclude_unset=True))

    use_case = EditDocument(
        SqlAlchemyUnitOfWork(session), document_repo, apply_engine, reverse_engine, propagator, activity_sink
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.delete(
    "/{document_id}",
    response_model=DocumentLedgerResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def delete_document(
    document_id: int,
    session: AsyncSession = Depends(get_session),
    activity_sink: ActivityLogSink = Depends(get_activity_log_sink),
):
    """
    Soft-delete a document and undo its ledger effect.

    Deleting an already deleted document returns 200 without changes.
    """
    document_repo, _, reverse_engine, propagator = _engines(session)

    use_case = SoftDeleteDocument(
        SqlAlchemyUnitOfWork(session), document_repo, reverse_engine, propagator, activity_sink
    )
    result = await use_case.execute(document_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
