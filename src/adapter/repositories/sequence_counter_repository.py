"""SQLAlchemy implementation of SequenceCounterRepository

Counters are incremented with a single INSERT .. ON CONFLICT DO UPDATE ..
RETURNING statement on PostgreSQL and SQLite. Other dialects fall back to
lock-or-create under SELECT FOR UPDATE.
"""

from typing import Optional
from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.sequence_counter_repository import SequenceCounterRepository
from src.adapter.services.locking import apply_lock_timeout, dialect_name, lock_contention_as_timeout
from src.domain.sequence_counter import SequenceCounter
from src.domain.base import utcnow

UPSERT_DIALECTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class SqlAlchemySequenceCounterRepository(SequenceCounterRepository):
    """
    SQLAlchemy implementation of SequenceCounterRepository

    Features:
    - Atomic create-or-increment, no read-then-write window
    - Counter rows are keyed by (company_id, document_type, date_key)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def increment(self, company_id: str, document_type: str, date_key: str) -> int:
        insert = UPSERT_DIALECTS.get(dialect_name(self.session))
        if insert is None:
            return await self._increment_locked(company_id, document_type, date_key)

        table = SequenceCounter.__table__
        now = utcnow()
        stmt = (
            insert(table)
            .values(
                company_id=company_id,
                document_type=document_type,
                date_key=date_key,
                counter=1,
                updated_at=now,
            )
            .on_conflict_do_update(
                index_elements=[table.c.company_id, table.c.document_type, table.c.date_key],
                set_={"counter": table.c.counter + 1, "updated_at": now},
            )
            .returning(table.c.counter)
        )

        await apply_lock_timeout(self.session)
        async with lock_contention_as_timeout(f"sequence {company_id}/{document_type}/{date_key}"):
            result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def _increment_locked(self, company_id: str, document_type: str, date_key: str) -> int:
        counter = await self._get_for_update(company_id, document_type, date_key)
        if counter is None:
            try:
                async with self.session.begin_nested():
                    counter = SequenceCounter(
                        company_id=company_id,
                        document_type=document_type,
                        date_key=date_key,
                        counter=0,
                    )
                    self.session.add(counter)
            except IntegrityError:
                counter = await self._get_for_update(company_id, document_type, date_key)

        counter.counter += 1
        counter.updated_at = utcnow()
        self.session.add(counter)
        await self.session.flush()
        return counter.counter

    async def _get_for_update(self, company_id: str, document_type: str, date_key: str) -> Optional[SequenceCounter]:
        stmt = (
            select(SequenceCounter)
            .where(
                SequenceCounter.company_id == company_id,
                SequenceCounter.document_type == document_type,
                SequenceCounter.date_key == date_key,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        async with lock_contention_as_timeout(f"sequence {company_id}/{document_type}/{date_key}"):
            result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_current(self, company_id: str, document_type: str, date_key: str) -> int:
        stmt = select(SequenceCounter.counter).where(
            SequenceCounter.company_id == company_id,
            SequenceCounter.document_type == document_type,
            SequenceCounter.date_key == date_key,
        )
        result = await self.session.execute(stmt)
        current = result.scalar_one_or_none()
        return current or 0

    async def reset(self, company_id: str, date_key: str, document_type: Optional[str] = None) -> int:
        stmt = (
            update(SequenceCounter)
            .where(
                SequenceCounter.company_id == company_id,
                SequenceCounter.date_key == date_key,
            )
            .values(counter=0, updated_at=utcnow())
        )
        if document_type is not None:
            stmt = stmt.where(SequenceCounter.document_type == document_type)

        result = await self.session.execute(stmt)
        return result.rowcount
