"""Shared base for SQLModel domain entities"""

from datetime import datetime, timezone
from sqlalchemy import BigInteger, DateTime, Integer, Numeric
from sqlmodel import SQLModel

# SQLite only auto-increments INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer(), "sqlite")

# Money columns (matches DECIMAL(15,2) of the document store)
MoneyType = Numeric(15, 2)

# Every stored timestamp is timezone-aware UTC
TimestampType = DateTime(timezone=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(SQLModel):
    """Base class for all domain entities"""
    pass
