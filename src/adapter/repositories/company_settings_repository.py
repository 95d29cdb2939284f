"""SQLAlchemy implementation of CompanySettingsRepository"""

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.company_settings_repository import CompanySettingsRepository
from src.domain.company_settings import CompanySettings


class SqlAlchemyCompanySettingsRepository(CompanySettingsRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def allows_negative_balance(self, company_id: str) -> bool:
        stmt = select(CompanySettings.allow_negative_balance).where(
            CompanySettings.company_id == company_id
        )
        result = await self.session.execute(stmt)
        allowed = result.scalar_one_or_none()
        return bool(allowed)
