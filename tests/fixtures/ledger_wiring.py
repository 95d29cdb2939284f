"""Wires real repositories into the ledger use cases for integration tests"""

from decimal import Decimal
from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.company_settings_repository import SqlAlchemyCompanySettingsRepository
from src.adapter.repositories.document_repository import SqlAlchemyDocumentRepository
from src.adapter.repositories.ledger_transaction_repository import SqlAlchemyLedgerTransactionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.ledger import (
    ApplyOnCompletion,
    ChangeDocumentStatus,
    ChangeStatusCommandDTO,
    EditDocument,
    PropagateLinkedStatus,
    ReverseOnUncompletion,
    SoftDeleteDocument,
)
from src.domain.account import Account
from src.domain.company_settings import CompanySettings
from src.domain.document import Document, DocumentStatus, LedgerDocument
from src.domain.ledger_transaction import LedgerTransaction
from tests.fixtures.builders import COMPANY_ID, make_account


class LedgerWiring:
    """Use cases bound to one session, as the API routes build them"""

    def __init__(self, session: AsyncSession, activity_sink=None):
        self.session = session
        self.account_repo = SqlAlchemyAccountRepository(session)
        self.transaction_repo = SqlAlchemyLedgerTransactionRepository(session)
        self.document_repo = SqlAlchemyDocumentRepository(session)
        self.uow = SqlAlchemyUnitOfWork(session)
        self.apply_engine = ApplyOnCompletion(
            self.account_repo, self.transaction_repo, SqlAlchemyCompanySettingsRepository(session)
        )
        self.reverse_engine = ReverseOnUncompletion(self.account_repo, self.transaction_repo)
        self.propagator = PropagateLinkedStatus(self.document_repo)
        self.activity_sink = activity_sink

    def change_status(self) -> ChangeDocumentStatus:
        return ChangeDocumentStatus(
            self.uow, self.document_repo, self.apply_engine, self.reverse_engine, self.propagator, self.activity_sink
        )

    def edit(self) -> EditDocument:
        return EditDocument(
            self.uow, self.document_repo, self.apply_engine, self.reverse_engine, self.propagator, self.activity_sink
        )

    def soft_delete(self) -> SoftDeleteDocument:
        return SoftDeleteDocument(
            self.uow, self.document_repo, self.reverse_engine, self.propagator, self.activity_sink
        )

    async def move(self, document_id: int, old_status: DocumentStatus, new_status: DocumentStatus):
        return await self.change_status().execute(
            ChangeStatusCommandDTO(document_id=document_id, old_status=old_status, new_status=new_status)
        )


async def seed_account(session: AsyncSession, balance: str = "5000.00", currency: str = "JPY", **kwargs) -> Account:
    account = make_account(id=None, balance=balance, currency=currency, **kwargs)
    account = await SqlAlchemyAccountRepository(session).create(account)
    await session.commit()
    return account


async def seed_settings(session: AsyncSession, allow_negative_balance: bool, company_id: str = COMPANY_ID) -> None:
    session.add(CompanySettings(company_id=company_id, allow_negative_balance=allow_negative_balance))
    await session.commit()


async def seed_document(session: AsyncSession, document: LedgerDocument) -> LedgerDocument:
    seeded = await SqlAlchemyDocumentRepository(session).create(document.header, document.details)
    await session.commit()
    return seeded


async def balance_of(session: AsyncSession, account_id: int) -> Decimal:
    account = await session.get(Account, account_id, populate_existing=True)
    return account.current_balance


async def status_of(session: AsyncSession, document_id: int) -> DocumentStatus:
    document = await session.get(Document, document_id, populate_existing=True)
    return DocumentStatus(document.status)


async def transactions_for(session: AsyncSession, document_id: Optional[int] = None, account_id: Optional[int] = None):
    stmt = select(LedgerTransaction).order_by(LedgerTransaction.id)
    if document_id is not None:
        stmt = stmt.where(LedgerTransaction.document_id == document_id)
    if account_id is not None:
        stmt = stmt.where(LedgerTransaction.account_id == account_id)
    result = await session.execute(stmt.execution_options(populate_existing=True))
    return list(result.scalars().all())
