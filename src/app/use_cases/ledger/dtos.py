"""Data Transfer Objects for Ledger Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, Field
from src.domain.document import DocumentStatus, DocumentType
from src.domain.ledger_transaction import LedgerTransaction


class LedgerEffectStatus(str, Enum):
    """Outcome of an apply or reverse call"""
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REVERSED = "reversed"
    ALREADY_REVERSED = "already_reversed"
    SKIPPED = "skipped"


class TransactionMetadataDTO(BaseModel):
    is_reversal: bool = False
    original_transaction_id: Optional[int] = None
    reason: Optional[str] = None


class LedgerTransactionDTO(BaseModel):
    """
    Persisted ledger transaction as seen by callers

    Returned inside every ledger effect and by the transaction listing.
    """

    transaction_id: int = Field(..., description="Transaction ID")
    account_id: int = Field(..., description="Account whose balance moved")
    document_id: int = Field(..., description="Document that caused the movement")
    transaction_type: str = Field(..., description="increase or decrease")
    amount: Decimal = Field(..., description="Amount moved (always > 0)")
    balance_before: Decimal = Field(..., description="Balance before the movement")
    balance_after: Decimal = Field(..., description="Balance after the movement")
    generation: int = Field(..., description="Application ordinal for the document")
    metadata: TransactionMetadataDTO = Field(default_factory=TransactionMetadataDTO)
    created_at: datetime = Field(..., description="Transaction timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "transaction_id": 301,
                "account_id": 7,
                "document_id": 42,
                "transaction_type": "increase",
                "amount": "2000.00",
                "balance_before": "5000.00",
                "balance_after": "7000.00",
                "generation": 1,
                "metadata": {"is_reversal": False, "original_transaction_id": None, "reason": None},
                "created_at": "2025-01-01T09:00:00Z"
            }
        }

    @classmethod
    def from_entity(cls, transaction: LedgerTransaction) -> "LedgerTransactionDTO":
        transaction_type = transaction.transaction_type
        return cls(
            transaction_id=transaction.id,
            account_id=transaction.account_id,
            document_id=transaction.document_id,
            transaction_type=transaction_type.value if hasattr(transaction_type, "value") else transaction_type,
            amount=transaction.amount,
            balance_before=transaction.balance_before,
            balance_after=transaction.balance_after,
            generation=transaction.generation,
            metadata=TransactionMetadataDTO(**transaction.transaction_metadata),
            created_at=transaction.created_at,
        )


class LedgerEffectDTO(BaseModel):
    """Result of one apply or reverse call against the ledger"""

    document_id: int
    status: LedgerEffectStatus
    transaction: Optional[LedgerTransactionDTO] = None

    @property
    def created_transaction(self) -> bool:
        return self.status in (LedgerEffectStatus.APPLIED, LedgerEffectStatus.REVERSED)


class StatusChangeDTO(BaseModel):
    """Status change made on a linked document"""

    document_id: int
    previous_status: DocumentStatus
    new_status: DocumentStatus


class ChangeStatusCommandDTO(BaseModel):
    """
    Command DTO for a document status transition

    The document store passes both sides of the transition explicitly.
    """

    document_id: int = Field(..., description="Document being moved")
    old_status: DocumentStatus = Field(..., description="Status before the transition")
    new_status: DocumentStatus = Field(..., description="Requested status")

    class Config:
        json_schema_extra = {
            "example": {
                "document_id": 42,
                "old_status": "issued",
                "new_status": "completed"
            }
        }


class EditDocumentCommandDTO(BaseModel):
    """
    Command DTO for editing the financial fields of a document

    Only fields that are set are changed.
    """

    document_id: int = Field(..., description="Document being edited")
    amount: Optional[Decimal] = Field(default=None, gt=0, description="New document amount")
    account_id: Optional[int] = Field(default=None, description="New account")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    total_deducted: Optional[Decimal] = Field(
        default=None, gt=0, description="Statement of payment: amount debited incl. fees"
    )
    transaction_fee: Optional[Decimal] = Field(default=None, ge=0)
    linked_invoice_id: Optional[int] = Field(default=None, description="Receipt: invoice it pays")

    class Config:
        json_schema_extra = {
            "example": {
                "document_id": 42,
                "amount": "2500.00"
            }
        }


class DocumentLedgerResponseDTO(BaseModel):
    """
    Response DTO for document lifecycle operations

    Returned by ChangeDocumentStatus, EditDocument and SoftDeleteDocument.
    """

    document_id: int
    document_type: DocumentType
    previous_status: DocumentStatus
    status: DocumentStatus
    deleted: bool = False
    effects: List[LedgerEffectDTO] = Field(default_factory=list)
    linked_status_changes: List[StatusChangeDTO] = Field(default_factory=list)


class NextNumberCommandDTO(BaseModel):
    company_id: str = Field(..., min_length=1, description="Company identifier")
    document_type: DocumentType = Field(..., description="Type of document to number")


class DocumentNumberResponseDTO(BaseModel):
    """Response DTO for document number generation"""

    company_id: str
    document_type: DocumentType
    date_key: str = Field(..., description="Calendar day as YYYYMMDD")
    serial: int
    document_number: str

    class Config:
        json_schema_extra = {
            "example": {
                "company_id": "company_wif",
                "document_type": "receipt",
                "date_key": "20250101",
                "serial": 7,
                "document_number": "RCP-20250101-007"
            }
        }


class SequenceCounterDTO(BaseModel):
    company_id: str
    document_type: DocumentType
    date_key: str
    current_serial: int


class ResetSequenceCommandDTO(BaseModel):
    company_id: str = Field(..., min_length=1)
    date_key: str = Field(..., pattern=r"^\d{8}$", description="Calendar day as YYYYMMDD")
    document_type: Optional[DocumentType] = Field(
        default=None, description="Reset only this type (all types when omitted)"
    )


class ResetSequenceResponseDTO(BaseModel):
    company_id: str
    date_key: str
    document_type: Optional[DocumentType] = None
    counters_reset: int


class AccountBalanceResponseDTO(BaseModel):
    """
    Response DTO for get balance operation

    Returned by GetAccountBalance use case.
    """

    account_id: int
    company_id: str
    currency: str
    initial_balance: Decimal
    current_balance: Decimal
    last_updated: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "account_id": 7,
                "company_id": "company_wif",
                "currency": "JPY",
                "initial_balance": "5000.00",
                "current_balance": "5500.00",
                "last_updated": "2025-01-01T09:00:00Z"
            }
        }


class ListTransactionsResponseDTO(BaseModel):
    """Paginated transaction history of an account"""

    transactions: List[LedgerTransactionDTO]
    total: int
    limit: int
    offset: int


class AccountDiscrepancyDTO(BaseModel):
    """Account whose balance disagrees with its transactions"""

    account_id: int
    company_id: str
    current_balance: Decimal
    calculated_balance: Decimal = Field(..., description="initial_balance + signed transaction sum")
    discrepancy: Decimal = Field(..., description="current_balance - calculated_balance")


class UnpostedDocumentDTO(BaseModel):
    """Completed receipt or statement with an account but no active application"""

    document_id: int
    company_id: str
    account_id: int
    document_type: DocumentType
    document_number: str


class ReconciliationResultDTO(BaseModel):
    """Result of a reconciliation run"""

    total_accounts_checked: int
    discrepancies_found: int
    discrepancies: List[AccountDiscrepancyDTO] = Field(default_factory=list)
    unposted_documents: List[UnpostedDocumentDTO] = Field(default_factory=list)
    reconciliation_time: datetime
    execution_time_ms: int

    @property
    def has_findings(self) -> bool:
        return bool(self.discrepancies or self.unposted_documents)

    def findings_by_company(self) -> Dict[str, Tuple[List[AccountDiscrepancyDTO], List[UnpostedDocumentDTO]]]:
        """Discrepancies and unposted documents grouped per company, companies in order"""
        grouped: Dict[str, Tuple[list, list]] = {}
        for discrepancy in self.discrepancies:
            grouped.setdefault(discrepancy.company_id, ([], []))[0].append(discrepancy)
        for document in self.unposted_documents:
            grouped.setdefault(document.company_id, ([], []))[1].append(document)
        return dict(sorted(grouped.items()))
