"""Entity builders shared by unit and integration tests"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from src.domain.account import Account
from src.domain.base import utcnow
from src.domain.document import (
    Document,
    DocumentStatus,
    DocumentType,
    InvoiceDetails,
    LedgerDocument,
    PaymentVoucherDetails,
    ReceiptDetails,
    StatementOfPaymentDetails,
)
from src.domain.ledger_transaction import LedgerTransaction, TransactionType

COMPANY_ID = "company_wif"


def make_account(
    id: Optional[int] = 1,
    balance: str = "5000.00",
    currency: str = "JPY",
    company_id: str = COMPANY_ID,
    is_active: bool = True,
    deleted_at: Optional[datetime] = None,
) -> Account:
    return Account(
        id=id,
        company_id=company_id,
        name=f"Main Bank {currency}",
        currency=currency,
        initial_balance=Decimal(balance),
        current_balance=Decimal(balance),
        is_active=is_active,
        deleted_at=deleted_at,
    )


def make_header(
    id: Optional[int],
    document_type: DocumentType,
    status: DocumentStatus,
    amount: str,
    account_id: Optional[int] = 1,
    currency: str = "JPY",
    number: Optional[str] = None,
) -> Document:
    prefix = {
        DocumentType.INVOICE: "INV",
        DocumentType.RECEIPT: "RCP",
        DocumentType.PAYMENT_VOUCHER: "PV",
        DocumentType.STATEMENT_OF_PAYMENT: "SOP",
    }[document_type]
    return Document(
        id=id,
        company_id=COMPANY_ID,
        account_id=account_id,
        document_type=document_type,
        document_number=number or f"{prefix}-20250101-{(id or 0) % 1000:03d}",
        status=status,
        currency=currency,
        amount=Decimal(amount),
    )


def make_invoice(id: Optional[int] = 30, status=DocumentStatus.ISSUED, amount: str = "5000.00", **kwargs) -> LedgerDocument:
    header = make_header(id, DocumentType.INVOICE, status, amount, account_id=None, **kwargs)
    return LedgerDocument(header=header, details=InvoiceDetails(document_id=id, customer_name="Kaiser Trading"))


def make_receipt(
    id: Optional[int] = 10,
    status=DocumentStatus.COMPLETED,
    amount: str = "2000.00",
    linked_invoice_id: Optional[int] = None,
    **kwargs,
) -> LedgerDocument:
    header = make_header(id, DocumentType.RECEIPT, status, amount, **kwargs)
    details = ReceiptDetails(document_id=id, linked_invoice_id=linked_invoice_id, payer_name="Kaiser Trading")
    return LedgerDocument(header=header, details=details)


def make_voucher(id: Optional[int] = 40, status=DocumentStatus.ISSUED, amount: str = "1000.00", **kwargs) -> LedgerDocument:
    header = make_header(id, DocumentType.PAYMENT_VOUCHER, status, amount, **kwargs)
    return LedgerDocument(header=header, details=PaymentVoucherDetails(document_id=id, payee_name="Office Supplies Co"))


def make_statement(
    id: Optional[int] = 20,
    status=DocumentStatus.COMPLETED,
    amount: str = "1000.00",
    total_deducted: Optional[str] = None,
    transaction_fee: Optional[str] = None,
    linked_voucher_id: Optional[int] = None,
    with_details: bool = True,
    **kwargs,
) -> LedgerDocument:
    header = make_header(id, DocumentType.STATEMENT_OF_PAYMENT, status, amount, **kwargs)
    details = None
    if with_details:
        details = StatementOfPaymentDetails(
            document_id=id,
            linked_voucher_id=linked_voucher_id,
            total_deducted=Decimal(total_deducted) if total_deducted is not None else None,
            transaction_fee=Decimal(transaction_fee) if transaction_fee is not None else None,
        )
    return LedgerDocument(header=header, details=details)


def make_transaction(
    id: int,
    document_id: int,
    transaction_type: TransactionType,
    amount: str,
    balance_before: str,
    balance_after: str,
    account_id: int = 1,
    generation: int = 1,
    is_reversal: bool = False,
    original_transaction_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> LedgerTransaction:
    return LedgerTransaction(
        id=id,
        account_id=account_id,
        document_id=document_id,
        transaction_type=transaction_type,
        amount=Decimal(amount),
        balance_before=Decimal(balance_before),
        balance_after=Decimal(balance_after),
        generation=generation,
        is_reversal=is_reversal,
        original_transaction_id=original_transaction_id,
        reason=reason,
        created_at=utcnow(),
    )
