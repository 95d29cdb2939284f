"""Unit tests for the document lifecycle guard"""

import pytest
from src.domain.document import DocumentStatus, DocumentType
from src.domain.errors import InvalidTransition
from src.domain.lifecycle import (
    is_allowed_transition,
    is_completing_transition,
    is_uncompleting_transition,
    validate_transition,
)

S = DocumentStatus
T = DocumentType


class TestUserTransitions:
    """Transitions a user (through the document store) may request"""

    @pytest.mark.parametrize("document_type", list(DocumentType))
    def test_draft_to_issued_allowed_for_every_type(self, document_type):
        assert is_allowed_transition(document_type, S.DRAFT, S.ISSUED)

    @pytest.mark.parametrize("document_type", [T.RECEIPT, T.STATEMENT_OF_PAYMENT])
    def test_issued_to_completed_allowed_for_ledger_documents(self, document_type):
        assert is_allowed_transition(document_type, S.ISSUED, S.COMPLETED)

    def test_invoice_cannot_be_completed_from_issued(self):
        assert not is_allowed_transition(T.INVOICE, S.ISSUED, S.COMPLETED)

    def test_invoice_completed_from_paid(self):
        assert is_allowed_transition(T.INVOICE, S.PAID, S.COMPLETED)

    @pytest.mark.parametrize("old_status", [s for s in DocumentStatus if s != S.CANCELLED])
    def test_cancel_allowed_from_any_status(self, old_status):
        assert is_allowed_transition(T.RECEIPT, old_status, S.CANCELLED)

    def test_cancelled_back_to_draft(self):
        assert is_allowed_transition(T.STATEMENT_OF_PAYMENT, S.CANCELLED, S.DRAFT)

    def test_draft_to_completed_rejected(self):
        assert not is_allowed_transition(T.RECEIPT, S.DRAFT, S.COMPLETED)

    @pytest.mark.parametrize("status", list(DocumentStatus))
    def test_same_status_is_not_a_transition(self, status):
        assert not is_allowed_transition(T.RECEIPT, status, status)
        assert not is_allowed_transition(T.RECEIPT, status, status, system_initiated=True)

    def test_same_status_raises_invalid_transition(self):
        with pytest.raises(InvalidTransition):
            validate_transition(T.INVOICE, S.ISSUED, S.ISSUED)

    def test_user_cannot_mark_invoice_paid(self):
        assert not is_allowed_transition(T.INVOICE, S.ISSUED, S.PAID)

    def test_user_cannot_uncomplete_receipt_to_issued(self):
        assert not is_allowed_transition(T.RECEIPT, S.COMPLETED, S.ISSUED)


class TestSystemTransitions:
    """Moves made by propagation and the reversal path"""

    def test_invoice_paid_and_back(self):
        assert is_allowed_transition(T.INVOICE, S.ISSUED, S.PAID, system_initiated=True)
        assert is_allowed_transition(T.INVOICE, S.PAID, S.ISSUED, system_initiated=True)

    @pytest.mark.parametrize("old_status", [S.ISSUED, S.PAID])
    def test_voucher_completed_by_statement(self, old_status):
        assert is_allowed_transition(T.PAYMENT_VOUCHER, old_status, S.COMPLETED, system_initiated=True)

    def test_voucher_reverted_to_issued(self):
        assert is_allowed_transition(T.PAYMENT_VOUCHER, S.COMPLETED, S.ISSUED, system_initiated=True)

    def test_voucher_cannot_be_completed_by_user(self):
        assert not is_allowed_transition(T.PAYMENT_VOUCHER, S.ISSUED, S.COMPLETED)

    def test_system_cannot_pay_a_draft_invoice(self):
        assert not is_allowed_transition(T.INVOICE, S.DRAFT, S.PAID, system_initiated=True)


class TestValidateTransition:

    def test_raises_invalid_transition(self):
        with pytest.raises(InvalidTransition) as exc_info:
            validate_transition(T.RECEIPT, S.DRAFT, S.COMPLETED)

        assert exc_info.value.code == "INVALID_TRANSITION"
        assert "draft" in exc_info.value.message
        assert exc_info.value.reason == "origin=user"

    def test_accepts_string_values(self):
        validate_transition("receipt", "issued", "completed")

    def test_marks_system_origin(self):
        with pytest.raises(InvalidTransition) as exc_info:
            validate_transition(T.RECEIPT, S.ISSUED, S.PAID, system_initiated=True)

        assert exc_info.value.reason == "origin=system"


class TestCompletionEdges:

    def test_completing(self):
        assert is_completing_transition(S.ISSUED, S.COMPLETED)
        assert not is_completing_transition(S.COMPLETED, S.COMPLETED)

    def test_uncompleting(self):
        assert is_uncompleting_transition(S.COMPLETED, S.CANCELLED)
        assert is_uncompleting_transition(S.COMPLETED, S.ISSUED)
        assert not is_uncompleting_transition(S.ISSUED, S.CANCELLED)
