"""Activity Log Records

Structured records handed to the activity log collaborator after a unit of
work commits. Rendering and storage happen elsewhere.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class LedgerActivityRecord(BaseModel):
    """One record per ledger transaction (application or reversal)"""

    document_id: int
    account_id: int
    transaction_id: int
    type: str = Field(..., description="increase or decrease")
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    timestamp: datetime
    is_reversal: bool = False
    original_transaction_id: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "document_id": 42,
                "account_id": 7,
                "transaction_id": 301,
                "type": "increase",
                "amount": "2000.00",
                "balance_before": "5000.00",
                "balance_after": "7000.00",
                "timestamp": "2025-01-01T09:00:00Z",
                "is_reversal": False,
                "original_transaction_id": None,
            }
        }


class StatusChangeRecord(BaseModel):
    """A linked document status changed because another document moved"""

    document_id: int
    previous_status: str
    new_status: str
    triggered_by_document_id: int
    timestamp: datetime
