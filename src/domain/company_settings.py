"""Company Settings Domain Entity

Per-company switches consulted by the ledger engine.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from src.domain.base import BaseModel, IdType, TimestampType, utcnow


class CompanySettings(BaseModel, table=True):
    """
    Company Settings - Ledger policy per company

    Domain Rules:
    - One row per company (company_id is unique)
    - A company without a row does not allow negative balances
    """

    __tablename__ = "company_settings"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    company_id: str = Field(
        index=True,
        unique=True,
        description="Company ID (unique - one settings row per company)"
    )

    allow_negative_balance: bool = Field(
        default=False,
        description="Allow payments that take an account below zero (overdraft)"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=TimestampType,
    )
