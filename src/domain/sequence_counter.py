"""Sequence Counter Domain Entity

Durable per-day document numbering counters.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String, UniqueConstraint
from src.domain.base import BaseModel, IdType, TimestampType, utcnow
from src.domain.document import DocumentType

DOCUMENT_PREFIXES = {
    DocumentType.INVOICE: "INV",
    DocumentType.RECEIPT: "RCP",
    DocumentType.PAYMENT_VOUCHER: "PV",
    DocumentType.STATEMENT_OF_PAYMENT: "SOP",
}


class SequenceCounter(BaseModel, table=True):
    """
    Sequence Counter - Last serial issued for a sequence key

    Domain Rules:
    - Keyed by (company_id, document_type, date_key YYYYMMDD)
    - Created lazily by the first number request of the day
    - Only ever incremented, except by an explicit admin reset
    """

    __tablename__ = "sequence_counters"
    __table_args__ = (
        UniqueConstraint(
            'company_id', 'document_type', 'date_key',
            name='uq_sequence_counters_key',
        ),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    company_id: str = Field(
        sa_column=Column(String(255), nullable=False),
    )

    document_type: str = Field(
        sa_column=Column(String(32), nullable=False),
        description="DocumentType value"
    )

    date_key: str = Field(
        sa_column=Column(String(8), nullable=False),
        description="Calendar day as YYYYMMDD"
    )

    counter: int = Field(
        default=0,
        description="Last serial issued for the key"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=TimestampType,
    )


def format_document_number(document_type: DocumentType, date_key: str, serial: int) -> str:
    """Format a document number, e.g. RCP-20250101-007"""
    return f"{DOCUMENT_PREFIXES[DocumentType(document_type)]}-{date_key}-{serial:03d}"
