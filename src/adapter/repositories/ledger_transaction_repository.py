"""SQLAlchemy implementation of LedgerTransactionRepository

Provides persistence for LedgerTransaction entities. Duplicate
applications and double reversals are rejected by the unique
(document_id, generation, is_reversal) constraint.
"""

from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from src.adapter.services.locking import lock_contention_as_timeout
from src.domain.errors import ConcurrencyTimeout
from src.domain.ledger_transaction import LedgerTransaction, TransactionType


def _reversed(transaction):
    """EXISTS a reversal pointing at `transaction`"""
    reversal = aliased(LedgerTransaction)
    return select(reversal.id).where(reversal.original_transaction_id == transaction.id).exists()


class SqlAlchemyLedgerTransactionRepository(LedgerTransactionRepository):
    """
    SQLAlchemy implementation of LedgerTransactionRepository

    Features:
    - Immutable append-only transactions
    - Unique constraint violations surface as ConcurrencyTimeout (retryable)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: LedgerTransaction) -> LedgerTransaction:
        """
        Create a new ledger transaction

        Raises:
            ConcurrencyTimeout: If a concurrent writer recorded the same
                application or reversal first
        """
        self.session.add(transaction)
        try:
            async with lock_contention_as_timeout(f"ledger write for document {transaction.document_id}"):
                await self.session.flush()
        except IntegrityError as e:
            raise ConcurrencyTimeout(
                f"Concurrent ledger write for document {transaction.document_id}",
                reason=str(e.orig if e.orig is not None else e),
            ) from e
        await self.session.refresh(transaction)
        return transaction

    async def get_by_id(self, transaction_id: int) -> Optional[LedgerTransaction]:
        stmt = select(LedgerTransaction).where(LedgerTransaction.id == transaction_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_application(self, document_id: int) -> Optional[LedgerTransaction]:
        """
        Retrieve the document's application that no reversal points at

        Returns:
            LedgerTransaction if the document currently has a ledger effect, None otherwise
        """
        stmt = (
            select(LedgerTransaction)
            .where(
                LedgerTransaction.document_id == document_id,
                LedgerTransaction.is_reversal.is_(False),
                ~_reversed(LedgerTransaction),
            )
            .order_by(LedgerTransaction.generation.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_reversal_of(self, original_transaction_id: int) -> Optional[LedgerTransaction]:
        stmt = select(LedgerTransaction).where(
            LedgerTransaction.original_transaction_id == original_transaction_id
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def has_reversal_for_document(self, document_id: int) -> bool:
        stmt = (
            select(LedgerTransaction.id)
            .where(
                LedgerTransaction.document_id == document_id,
                LedgerTransaction.is_reversal.is_(True),
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_last_generation(self, document_id: int) -> int:
        stmt = select(func.coalesce(func.max(LedgerTransaction.generation), 0)).where(
            LedgerTransaction.document_id == document_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def get_signed_sum_by_account(self, account_id: int) -> Decimal:
        """
        Sum of transaction amounts for an account

        INCREASE transactions add, DECREASE transactions subtract.
        """
        signed_amount = case(
            (LedgerTransaction.transaction_type == TransactionType.DECREASE, -LedgerTransaction.amount),
            else_=LedgerTransaction.amount,
        )
        stmt = select(func.coalesce(func.sum(signed_amount), 0)).where(
            LedgerTransaction.account_id == account_id
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar_one()))

    async def get_by_account_id(
        self, account_id: int, limit: int = 20, offset: int = 0
    ) -> Tuple[List[LedgerTransaction], int]:
        count_stmt = select(func.count()).select_from(LedgerTransaction).where(
            LedgerTransaction.account_id == account_id
        )
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar_one()

        stmt = (
            select(LedgerTransaction)
            .where(LedgerTransaction.account_id == account_id)
            .order_by(LedgerTransaction.created_at.desc(), LedgerTransaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total
