from .account_repository import SqlAlchemyAccountRepository
from .ledger_transaction_repository import SqlAlchemyLedgerTransactionRepository
from .document_repository import SqlAlchemyDocumentRepository
from .company_settings_repository import SqlAlchemyCompanySettingsRepository
from .sequence_counter_repository import SqlAlchemySequenceCounterRepository

__all__ = [
    "SqlAlchemyAccountRepository",
    "SqlAlchemyLedgerTransactionRepository",
    "SqlAlchemyDocumentRepository",
    "SqlAlchemyCompanySettingsRepository",
    "SqlAlchemySequenceCounterRepository",
]
