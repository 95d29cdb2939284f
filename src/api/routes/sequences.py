"""Document Numbering API Routes"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.schemas.ledger_request import NextNumberRequestSchema, ResetSequenceRequestSchema
from src.app.use_cases.ledger.dtos import (
    DocumentNumberResponseDTO,
    NextNumberCommandDTO,
    ResetSequenceCommandDTO,
    ResetSequenceResponseDTO,
    SequenceCounterDTO,
)
from src.app.use_cases.ledger.next_document_number import (
    GetSequenceCounter,
    NextDocumentNumber,
    ResetSequenceCounter,
)
from src.adapter.repositories.sequence_counter_repository import SqlAlchemySequenceCounterRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session
from src.domain.document import DocumentType
from src.api.error import ClientError

router = APIRouter(prefix="/ledger/sequences", tags=["Sequences"])


@router.post(
    "/next",
    response_model=DocumentNumberResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={503: {"description": "Counter row busy, retry"}},
)
async def next_document_number(
    request: NextNumberRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Issue the next document number for a company and document type.

    **Example request:**
    ```json
    {"company_id": "company_wif", "document_type": "receipt"}
    ```

    **Returns:**
    - 200: `{"document_number": "RCP-20250101-007", ...}`
    """
    use_case = NextDocumentNumber(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemySequenceCounterRepository(session),
        tz_name=ApplicationConfig.SEQUENCE_TIMEZONE,
    )
    result = await use_case.execute(
        NextNumberCommandDTO(company_id=request.company_id, document_type=request.document_type)
    )

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{company_id}/{document_type}",
    response_model=SequenceCounterDTO,
    status_code=status.HTTP_200_OK,
)
async def get_sequence_counter(
    company_id: str,
    document_type: DocumentType,
    date_key: Optional[str] = Query(default=None, pattern=r"^\d{8}$", description="YYYYMMDD, defaults to today"),
    session: AsyncSession = Depends(get_session),
):
    """Last serial issued for a company, document type and day."""
    use_case = GetSequenceCounter(
        SqlAlchemySequenceCounterRepository(session),
        tz_name=ApplicationConfig.SEQUENCE_TIMEZONE,
    )
    result = await use_case.execute(company_id, document_type, date_key)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/reset",
    response_model=ResetSequenceResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def reset_sequence_counter(
    request: ResetSequenceRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Reset a day's counters to zero (administrative).

    The next number issued for a reset key is serial 001 again.
    """
    use_case = ResetSequenceCounter(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemySequenceCounterRepository(session),
    )
    result = await use_case.execute(
        ResetSequenceCommandDTO(
            company_id=request.company_id,
            date_key=request.date_key,
            document_type=request.document_type,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    return result.value
