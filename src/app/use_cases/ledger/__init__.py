"""Ledger use cases"""
from .apply_on_completion import ApplyOnCompletion
from .reverse_on_uncompletion import ReverseOnUncompletion
from .propagate_linked_status import PropagateLinkedStatus
from .change_document_status import ChangeDocumentStatus
from .edit_document import EditDocument
from .soft_delete_document import SoftDeleteDocument
from .next_document_number import NextDocumentNumber, GetSequenceCounter, ResetSequenceCounter
from .get_account_balance import GetAccountBalance
from .list_account_transactions import ListAccountTransactions
from .reconcile_ledger import ReconcileLedger
from .dtos import (
    LedgerEffectStatus,
    LedgerTransactionDTO,
    LedgerEffectDTO,
    StatusChangeDTO,
    ChangeStatusCommandDTO,
    EditDocumentCommandDTO,
    DocumentLedgerResponseDTO,
    NextNumberCommandDTO,
    DocumentNumberResponseDTO,
    SequenceCounterDTO,
    ResetSequenceCommandDTO,
    ResetSequenceResponseDTO,
    AccountBalanceResponseDTO,
    ListTransactionsResponseDTO,
    AccountDiscrepancyDTO,
    UnpostedDocumentDTO,
    ReconciliationResultDTO,
)

__all__ = [
    "ApplyOnCompletion",
    "ReverseOnUncompletion",
    "PropagateLinkedStatus",
    "ChangeDocumentStatus",
    "EditDocument",
    "SoftDeleteDocument",
    "NextDocumentNumber",
    "GetSequenceCounter",
    "ResetSequenceCounter",
    "GetAccountBalance",
    "ListAccountTransactions",
    "ReconcileLedger",
    "LedgerEffectStatus",
    "LedgerTransactionDTO",
    "LedgerEffectDTO",
    "StatusChangeDTO",
    "ChangeStatusCommandDTO",
    "EditDocumentCommandDTO",
    "DocumentLedgerResponseDTO",
    "NextNumberCommandDTO",
    "DocumentNumberResponseDTO",
    "SequenceCounterDTO",
    "ResetSequenceCommandDTO",
    "ResetSequenceResponseDTO",
    "AccountBalanceResponseDTO",
    "ListTransactionsResponseDTO",
    "AccountDiscrepancyDTO",
    "UnpostedDocumentDTO",
    "ReconciliationResultDTO",
]
