"""SQLAlchemy implementation of AccountRepository

Provides persistence for Account entities with pessimistic locking support
to serialize concurrent balance changes.
"""

from typing import List, Optional
from decimal import Decimal
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.account_repository import AccountRepository
from src.adapter.services.locking import apply_lock_timeout, lock_contention_as_timeout
from src.domain.account import Account
from src.domain.base import utcnow


class SqlAlchemyAccountRepository(AccountRepository):
    """
    SQLAlchemy implementation of AccountRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE with a bounded wait
    - Locked reads always refresh the identity map copy
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, account_id: int, for_update: bool = False) -> Optional[Account]:
        """
        Retrieve account by ID with optional row-level locking

        Args:
            account_id: Account ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Account if found, None otherwise
        """
        stmt = select(Account).where(Account.id == account_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
            await apply_lock_timeout(self.session)

        async with lock_contention_as_timeout(f"lock of account {account_id}"):
            result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, account: Account) -> Account:
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def update_balance(self, account_id: int, new_balance: Decimal) -> None:
        """
        Update account balance and updated_at timestamp

        Note:
            Should be called within a transaction with the account already locked
        """
        account = await self.session.get(Account, account_id)
        if account:
            account.current_balance = new_balance
            account.updated_at = utcnow()
            self.session.add(account)
            async with lock_contention_as_timeout(f"balance update of account {account_id}"):
                await self.session.flush()

    async def get_all(self) -> List[Account]:
        stmt = select(Account).order_by(Account.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
