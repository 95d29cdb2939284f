"""Document Lifecycle Guard

Validates status transitions per document type and tells the ledger
whether a transition enters or leaves the completed state.

The engines act on the explicit (old_status, new_status) pair handed to
them by the caller; they never infer a change from the current row.
"""

from src.domain.document import DocumentStatus, DocumentType
from src.domain.errors import InvalidTransition

DRAFT = DocumentStatus.DRAFT
ISSUED = DocumentStatus.ISSUED
PAID = DocumentStatus.PAID
COMPLETED = DocumentStatus.COMPLETED
CANCELLED = DocumentStatus.CANCELLED

ALL_TYPES = frozenset(DocumentType)
LEDGER_TYPES = frozenset({DocumentType.RECEIPT, DocumentType.STATEMENT_OF_PAYMENT})

# (old, new) -> document types allowed to make the move on user request
USER_TRANSITIONS = {
    (DRAFT, ISSUED): ALL_TYPES,
    (ISSUED, COMPLETED): LEDGER_TYPES,
    (CANCELLED, DRAFT): ALL_TYPES,
    (PAID, COMPLETED): frozenset({DocumentType.INVOICE}),
}

# Moves only the propagator and the reversal path may make
SYSTEM_TRANSITIONS = {
    (COMPLETED, ISSUED): LEDGER_TYPES | {DocumentType.PAYMENT_VOUCHER},
    (ISSUED, PAID): frozenset({DocumentType.INVOICE}),
    (PAID, ISSUED): frozenset({DocumentType.INVOICE}),
    (ISSUED, COMPLETED): frozenset({DocumentType.PAYMENT_VOUCHER}),
    (PAID, COMPLETED): frozenset({DocumentType.PAYMENT_VOUCHER}),
}


def is_completing_transition(old_status: DocumentStatus, new_status: DocumentStatus) -> bool:
    """True when the transition newly enters the completed state"""
    return old_status != COMPLETED and new_status == COMPLETED


def is_uncompleting_transition(old_status: DocumentStatus, new_status: DocumentStatus) -> bool:
    """True when the transition leaves the completed state"""
    return old_status == COMPLETED and new_status != COMPLETED


def is_allowed_transition(
    document_type: DocumentType,
    old_status: DocumentStatus,
    new_status: DocumentStatus,
    system_initiated: bool = False,
) -> bool:
    """
    Check a status transition against the per-type rules

    Args:
        document_type: Type of the document being moved
        old_status: Status the caller observed before the change
        new_status: Requested status
        system_initiated: True for moves made by the propagator or reversal path

    Returns:
        True if the move is allowed. A same-status request is not a move and is
        rejected; a retried request keeps its original (old, new) pair.
    """
    document_type = DocumentType(document_type)
    old_status = DocumentStatus(old_status)
    new_status = DocumentStatus(new_status)

    if old_status == new_status:
        return False
    if new_status == CANCELLED:
        return True

    if document_type in USER_TRANSITIONS.get((old_status, new_status), frozenset()):
        return True
    if system_initiated:
        return document_type in SYSTEM_TRANSITIONS.get((old_status, new_status), frozenset())
    return False


def validate_transition(
    document_type: DocumentType,
    old_status: DocumentStatus,
    new_status: DocumentStatus,
    system_initiated: bool = False,
) -> None:
    """
    Raise InvalidTransition unless the move is allowed

    Raises:
        InvalidTransition: If the per-type rules reject the move
    """
    if not is_allowed_transition(document_type, old_status, new_status, system_initiated):
        origin = "system" if system_initiated else "user"
        raise InvalidTransition(
            f"Invalid status transition from {DocumentStatus(old_status).value} "
            f"to {DocumentStatus(new_status).value} for {DocumentType(document_type).value}",
            reason=f"origin={origin}",
        )
