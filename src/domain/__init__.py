from .base import BaseModel
from .account import Account
from .company_settings import CompanySettings
from .document import (
    Document,
    DocumentType,
    DocumentStatus,
    InvoiceDetails,
    ReceiptDetails,
    PaymentVoucherDetails,
    StatementOfPaymentDetails,
    LedgerDocument,
)
from .ledger_transaction import LedgerTransaction, TransactionType, ReversalReason
from .sequence_counter import SequenceCounter

__all__ = [
    "BaseModel",
    "Account",
    "CompanySettings",
    "Document",
    "DocumentType",
    "DocumentStatus",
    "InvoiceDetails",
    "ReceiptDetails",
    "PaymentVoucherDetails",
    "StatementOfPaymentDetails",
    "LedgerDocument",
    "LedgerTransaction",
    "TransactionType",
    "ReversalReason",
    "SequenceCounter",
]
