"""Document Domain Entities

Business documents share a common header (documents table) and carry a
per-type extension row. The ledger only reads the financial fields and
reacts to status transitions; the rest of each document lives in the
document store.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, String, UniqueConstraint
from src.domain.base import BaseModel, IdType, MoneyType, TimestampType, utcnow


class DocumentType(str, Enum):
    """Business document types"""
    INVOICE = "invoice"
    RECEIPT = "receipt"
    PAYMENT_VOUCHER = "payment_voucher"
    STATEMENT_OF_PAYMENT = "statement_of_payment"


class DocumentStatus(str, Enum):
    """Document status values"""
    DRAFT = "draft"
    ISSUED = "issued"
    PAID = "paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Document(BaseModel, table=True):
    """
    Document - Common header of every business document

    Domain Rules:
    - document_number is unique per company
    - Creation has no ledger effect; status transitions do
    - Soft-deleted documents (deleted_at set) no longer count towards linked totals
    """

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint('company_id', 'document_number', name='uq_documents_company_number'),
        Index('ix_documents_company_id', 'company_id'),
        Index('ix_documents_account_id', 'account_id'),
        Index('ix_documents_status', 'status'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique document identifier (auto-increment)"
    )

    company_id: str = Field(
        description="Owning company"
    )

    account_id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, ForeignKey("accounts.id"), nullable=True),
        description="Account affected when the document completes"
    )

    document_type: DocumentType = Field(
        description="Type of document (invoice, receipt, payment_voucher, statement_of_payment)"
    )

    document_number: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Human-readable number (e.g., RCP-20250101-001)"
    )

    status: DocumentStatus = Field(
        default=DocumentStatus.DRAFT,
        description="Document status (draft, issued, paid, completed, cancelled)"
    )

    currency: str = Field(
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    amount: Decimal = Field(
        sa_column=Column(MoneyType, nullable=False),
        description="Document amount (invoice total, amount received, amount paid)"
    )

    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_type=TimestampType,
        description="Soft-delete marker"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_type=TimestampType,
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=TimestampType,
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class InvoiceDetails(BaseModel, table=True):
    """Invoice extension - the amount due is the header amount"""

    __tablename__ = "invoices"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    document_id: int = Field(
        sa_column=Column(IdType, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, unique=True),
    )

    customer_name: str = Field(
        default="",
        sa_column=Column(String(255), nullable=False, default=""),
    )

    due_date: Optional[date] = Field(default=None)


class ReceiptDetails(BaseModel, table=True):
    """Receipt extension - money received, optionally against an invoice"""

    __tablename__ = "receipts"
    __table_args__ = (
        Index('ix_receipts_linked_invoice_id', 'linked_invoice_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    document_id: int = Field(
        sa_column=Column(IdType, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, unique=True),
    )

    linked_invoice_id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, ForeignKey("documents.id"), nullable=True),
        description="Document ID of the invoice this receipt pays"
    )

    payer_name: str = Field(
        default="",
        sa_column=Column(String(255), nullable=False, default=""),
    )

    payment_method: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
    )


class PaymentVoucherDetails(BaseModel, table=True):
    """Payment voucher extension - authorization only, never moves money"""

    __tablename__ = "payment_vouchers"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    document_id: int = Field(
        sa_column=Column(IdType, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, unique=True),
    )

    payee_name: str = Field(
        default="",
        sa_column=Column(String(255), nullable=False, default=""),
    )


class StatementOfPaymentDetails(BaseModel, table=True):
    """
    Statement of Payment extension - proof that a voucher was paid

    total_deducted is what actually left the account (voucher total plus
    transaction fees). It must be persisted before the statement is
    completed.
    """

    __tablename__ = "statements_of_payment"
    __table_args__ = (
        Index('ix_statements_of_payment_linked_voucher_id', 'linked_voucher_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    document_id: int = Field(
        sa_column=Column(IdType, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, unique=True),
    )

    linked_voucher_id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, ForeignKey("documents.id"), nullable=True),
        description="Document ID of the payment voucher this statement settles"
    )

    transaction_fee: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(MoneyType, nullable=True),
    )

    total_deducted: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(MoneyType, nullable=True),
        description="Amount debited from the account including fees"
    )


DocumentDetails = Union[
    InvoiceDetails,
    ReceiptDetails,
    PaymentVoucherDetails,
    StatementOfPaymentDetails,
]

DETAILS_MODEL = {
    DocumentType.INVOICE: InvoiceDetails,
    DocumentType.RECEIPT: ReceiptDetails,
    DocumentType.PAYMENT_VOUCHER: PaymentVoucherDetails,
    DocumentType.STATEMENT_OF_PAYMENT: StatementOfPaymentDetails,
}


@dataclass
class LedgerDocument:
    """
    Tagged union of a document header and its per-type payload

    `details` is None when the extension row has not been persisted yet.
    """

    header: Document
    details: Optional[DocumentDetails] = None

    @property
    def id(self) -> int:
        return self.header.id

    @property
    def document_type(self) -> DocumentType:
        return DocumentType(self.header.document_type)

    @property
    def status(self) -> DocumentStatus:
        return DocumentStatus(self.header.status)

    @property
    def account_id(self) -> Optional[int]:
        return self.header.account_id

    @property
    def effective_amount(self) -> Decimal:
        """Amount that moves money: total_deducted for statements, else the header amount"""
        match self.details:
            case StatementOfPaymentDetails(total_deducted=total_deducted) if total_deducted is not None:
                return total_deducted
            case _:
                return self.header.amount

    @property
    def linked_document_id(self) -> Optional[int]:
        match self.details:
            case ReceiptDetails(linked_invoice_id=invoice_id):
                return invoice_id
            case StatementOfPaymentDetails(linked_voucher_id=voucher_id):
                return voucher_id
            case _:
                return None
