from .account_repository import AccountRepository
from .ledger_transaction_repository import LedgerTransactionRepository
from .document_repository import DocumentRepository
from .company_settings_repository import CompanySettingsRepository
from .sequence_counter_repository import SequenceCounterRepository

__all__ = [
    "AccountRepository",
    "LedgerTransactionRepository",
    "DocumentRepository",
    "CompanySettingsRepository",
    "SequenceCounterRepository",
]
