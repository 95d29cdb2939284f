"""Request schemas for Ledger API

Pydantic models for validating incoming HTTP requests.
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from src.domain.document import DocumentStatus, DocumentType


class StatusChangeRequestSchema(BaseModel):
    """
    Request schema for a document status transition

    Used for POST /ledger/documents/{document_id}/status endpoint.
    """

    old_status: DocumentStatus = Field(
        ...,
        description="Status the caller observed before the change"
    )

    new_status: DocumentStatus = Field(
        ...,
        description="Requested status"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "old_status": "issued",
                "new_status": "completed"
            }
        }


class EditDocumentRequestSchema(BaseModel):
    """
    Request schema for editing the financial fields of a document

    Used for PATCH /ledger/documents/{document_id} endpoint. At least one
    field must be set.
    """

    amount: Optional[Decimal] = Field(default=None, gt=0, description="New document amount")
    account_id: Optional[int] = Field(default=None, description="New account")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3, description="ISO 4217 code")
    total_deducted: Optional[Decimal] = Field(
        default=None, gt=0, description="Statement of payment: amount debited including fees"
    )
    transaction_fee: Optional[Decimal] = Field(default=None, ge=0)
    linked_invoice_id: Optional[int] = Field(default=None, description="Receipt: invoice it pays")

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v):
        return v.upper() if v else v

    @model_validator(mode='after')
    def require_change(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "2500.00"
            }
        }


class NextNumberRequestSchema(BaseModel):
    """
    Request schema for issuing a document number

    Used for POST /ledger/sequences/next endpoint.
    """

    company_id: str = Field(
        ...,
        min_length=1,
        description="Company identifier (required, non-empty)"
    )

    document_type: DocumentType = Field(
        ...,
        description="Type of document to number"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "company_id": "company_wif",
                "document_type": "receipt"
            }
        }


class ResetSequenceRequestSchema(BaseModel):
    company_id: str = Field(..., min_length=1)
    date_key: str = Field(..., pattern=r"^\d{8}$", description="Calendar day as YYYYMMDD")
    document_type: Optional[DocumentType] = Field(
        default=None,
        description="Reset only this type (all types when omitted)"
    )
