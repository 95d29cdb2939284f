"""Ledger error taxonomy

ValidationError subclasses are raised before any mutation and are never
retried automatically. ConcurrencyTimeout is retryable with the same
idempotent call. LedgerIntegrityError is fatal: the engine refuses to guess
an amount rather than corrupt a balance.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for ledger engine failures"""

    code = "LEDGER_ERROR"
    retryable = False

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"


class InvalidTransition(ValidationError):
    code = "INVALID_TRANSITION"


class CurrencyMismatch(ValidationError):
    code = "CURRENCY_MISMATCH"


class InsufficientBalance(ValidationError):
    code = "INSUFFICIENT_BALANCE"


class AccountUnavailable(ValidationError):
    code = "ACCOUNT_UNAVAILABLE"


class InvalidAmount(ValidationError):
    code = "INVALID_AMOUNT"


class DocumentNotFound(ValidationError):
    code = "DOCUMENT_NOT_FOUND"


class ConcurrencyTimeout(LedgerError):
    code = "CONCURRENCY_TIMEOUT"
    retryable = True


class LedgerIntegrityError(LedgerError):
    code = "INTEGRITY_ERROR"
