"""Document numbering use cases

Issues human-readable document numbers from durable per-day counters:
{PREFIX}-{YYYYMMDD}-{NNN}, e.g. RCP-20250101-007.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo
from src.libs.result import Result, Return, Error
from src.app.repositories.sequence_counter_repository import SequenceCounterRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.errors import LedgerError
from src.domain.sequence_counter import format_document_number
from .activity import error_from_exception
from .dtos import (
    DocumentNumberResponseDTO,
    NextNumberCommandDTO,
    ResetSequenceCommandDTO,
    ResetSequenceResponseDTO,
    SequenceCounterDTO,
)

logger = logging.getLogger(__name__)


def current_date_key(tz_name: str, clock: Callable[[], datetime] = utcnow) -> str:
    """Calendar day of `clock()` in the configured timezone, as YYYYMMDD"""
    return clock().astimezone(ZoneInfo(tz_name)).strftime("%Y%m%d")


class NextDocumentNumber:
    """
    Use Case: Issue the next document number

    Business Rules:
    1. Serials are per (company, document type, day) and restart at 1 each day
    2. The counter is incremented atomically in the database; concurrent
       callers never receive the same serial
    3. The day is taken in the configured timezone
    4. Serials above 999 widen the number instead of wrapping

    Flow:
    1. Compute the date key
    2. Atomically increment the counter
    3. Commit transaction
    4. Format the number
    """

    def __init__(
        self,
        uow: UnitOfWork,
        sequence_repo: SequenceCounterRepository,
        tz_name: str = "UTC",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.uow = uow
        self.sequence_repo = sequence_repo
        self.tz_name = tz_name
        self.clock = clock or utcnow

    async def execute(self, command: NextNumberCommandDTO) -> Result[DocumentNumberResponseDTO]:
        try:
            # Step 1: Date key in the numbering timezone
            date_key = current_date_key(self.tz_name, self.clock)

            # Step 2: Atomic increment
            serial = await self.sequence_repo.increment(
                command.company_id, command.document_type.value, date_key
            )

            # Step 3: Commit transaction
            await self.uow.commit()

        except LedgerError as e:
            await self.uow.rollback()
            logger.warning(f"Document number for {command.company_id}/{command.document_type.value} failed: {e.code}")
            return Return.err(error_from_exception(e))
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"Document number for {command.company_id}/{command.document_type.value} failed")
            return Return.err(
                Error(
                    code="NEXT_NUMBER_FAILED",
                    message="Failed to generate document number",
                    reason=str(e),
                )
            )

        # Step 4: Format
        document_number = format_document_number(command.document_type, date_key, serial)
        logger.info(f"Issued {document_number} for company {command.company_id}")

        return Return.ok(
            DocumentNumberResponseDTO(
                company_id=command.company_id,
                document_type=command.document_type,
                date_key=date_key,
                serial=serial,
                document_number=document_number,
            )
        )


class GetSequenceCounter:
    """Use Case: Read the last serial issued today (or on a given day)"""

    def __init__(
        self,
        sequence_repo: SequenceCounterRepository,
        tz_name: str = "UTC",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.sequence_repo = sequence_repo
        self.tz_name = tz_name
        self.clock = clock or utcnow

    async def execute(self, company_id: str, document_type, date_key: Optional[str] = None) -> Result[SequenceCounterDTO]:
        try:
            date_key = date_key or current_date_key(self.tz_name, self.clock)
            current = await self.sequence_repo.get_current(company_id, document_type.value, date_key)
            return Return.ok(
                SequenceCounterDTO(
                    company_id=company_id,
                    document_type=document_type,
                    date_key=date_key,
                    current_serial=current,
                )
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="GET_SEQUENCE_FAILED",
                    message="Failed to read sequence counter",
                    reason=str(e),
                )
            )


class ResetSequenceCounter:
    """
    Use Case: Administrative reset of a day's counters

    Resetting sets the counter back to 0, so the next number issued for the
    key is serial 1 again. Only meant for days whose numbers were voided.
    """

    def __init__(self, uow: UnitOfWork, sequence_repo: SequenceCounterRepository):
        self.uow = uow
        self.sequence_repo = sequence_repo

    async def execute(self, command: ResetSequenceCommandDTO) -> Result[ResetSequenceResponseDTO]:
        document_type = command.document_type.value if command.document_type else None
        try:
            count = await self.sequence_repo.reset(command.company_id, command.date_key, document_type)
            await self.uow.commit()
        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(error_from_exception(e))
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"Sequence reset for {command.company_id} on {command.date_key} failed")
            return Return.err(
                Error(
                    code="RESET_SEQUENCE_FAILED",
                    message="Failed to reset sequence counters",
                    reason=str(e),
                )
            )

        logger.warning(
            f"Reset {count} sequence counter(s) for company {command.company_id} "
            f"on {command.date_key} (type={document_type or 'all'})"
        )
        return Return.ok(
            ResetSequenceResponseDTO(
                company_id=command.company_id,
                date_key=command.date_key,
                document_type=command.document_type,
                counters_reset=count,
            )
        )
