"""Account Domain Entity

Cash account (bank or petty cash) whose balance is moved by completed
receipts and statements of payment.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String
from src.domain.base import BaseModel, IdType, MoneyType, TimestampType, utcnow


class Account(BaseModel, table=True):
    """
    Account - Per-company cash balance

    Domain Rules:
    - current_balance == initial_balance + sum of signed LedgerTransaction amounts
    - current_balance is only written by the ledger engines, under a row lock
    - Inactive or soft-deleted accounts accept no new ledger effects
    """

    __tablename__ = "accounts"
    __table_args__ = (
        Index('ix_accounts_company_id', 'company_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique account identifier (auto-increment)"
    )

    company_id: str = Field(
        description="Owning company"
    )

    name: str = Field(
        default="",
        sa_column=Column(String(255), nullable=False, default=""),
        description="Display name (e.g. 'Main Bank JPY')"
    )

    currency: str = Field(
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    country: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
        description="Country the account is held in"
    )

    initial_balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(MoneyType, nullable=False, default=0),
        description="Opening balance before any ledger transaction"
    )

    current_balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(MoneyType, nullable=False, default=0),
        description="Balance after all ledger transactions"
    )

    is_active: bool = Field(
        default=True,
        description="Inactive accounts reject new ledger effects"
    )

    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_type=TimestampType,
        description="Soft-delete marker"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_type=TimestampType,
        description="Account creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=TimestampType,
        description="Last balance update timestamp"
    )

    @property
    def is_usable(self) -> bool:
        return self.is_active and self.deleted_at is None
