"""Ledger Transaction Domain Entity

Immutable append-only record of every balance-affecting event.
Each transaction records balance changes with complete context.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint
from src.domain.base import BaseModel, IdType, MoneyType, TimestampType, utcnow


class TransactionType(str, Enum):
    """Direction of a balance change"""
    INCREASE = "increase"    # Money in (completed receipt, reversed payment)
    DECREASE = "decrease"    # Money out (completed statement of payment, reversed receipt)

    @property
    def opposite(self) -> "TransactionType":
        if self is TransactionType.INCREASE:
            return TransactionType.DECREASE
        return TransactionType.INCREASE


class ReversalReason(str, Enum):
    """Why a prior ledger effect was undone"""
    DOCUMENT_DELETED = "document_deleted"
    DOCUMENT_EDITED = "document_edited"
    STATUS_REVERTED = "status_reverted"


class LedgerTransaction(BaseModel, table=True):
    """
    Ledger Transaction - Immutable audit trail of balance mutations

    Domain Rules:
    - Transactions are never updated or deleted after insertion
    - amount is always positive; transaction_type carries the sign
    - generation numbers the successive applications of one document;
      a reversal carries the generation of the transaction it undoes
    - (document_id, generation, is_reversal) is unique: a document can
      neither be applied twice for the same generation nor reversed twice
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint('amount > 0', name='transaction_amount_positive'),
        UniqueConstraint(
            'document_id', 'generation', 'is_reversal',
            name='uq_transactions_document_generation',
        ),
        Index('ix_transactions_account_id', 'account_id'),
        Index('ix_transactions_document_id', 'document_id'),
        Index('ix_transactions_created_at', 'created_at'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique transaction identifier (auto-increment)"
    )

    account_id: int = Field(
        sa_column=Column(IdType, ForeignKey("accounts.id"), nullable=False),
        description="Account whose balance moved"
    )

    document_id: int = Field(
        sa_column=Column(IdType, ForeignKey("documents.id"), nullable=False),
        description="Document that caused the movement"
    )

    transaction_type: TransactionType = Field(
        description="Direction of the movement (increase, decrease)"
    )

    amount: Decimal = Field(
        sa_column=Column(MoneyType, nullable=False),
        description="Amount moved (always > 0)"
    )

    balance_before: Decimal = Field(
        sa_column=Column(MoneyType, nullable=False),
        description="Account balance read under lock before the movement"
    )

    balance_after: Decimal = Field(
        sa_column=Column(MoneyType, nullable=False),
        description="Account balance written by the movement"
    )

    generation: int = Field(
        default=1,
        description="Application ordinal for the document"
    )

    is_reversal: bool = Field(
        default=False,
        description="True when this transaction undoes original_transaction_id"
    )

    original_transaction_id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, ForeignKey("transactions.id"), nullable=True),
        description="Transaction undone by this reversal"
    )

    reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Reversal reason (document_deleted, document_edited, status_reverted)"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_type=TimestampType,
        description="Transaction timestamp (immutable)"
    )

    @property
    def signed_amount(self) -> Decimal:
        if self.transaction_type == TransactionType.DECREASE:
            return -self.amount
        return self.amount

    @property
    def transaction_metadata(self) -> dict:
        return {
            "is_reversal": self.is_reversal,
            "original_transaction_id": self.original_transaction_id,
            "reason": self.reason,
        }
