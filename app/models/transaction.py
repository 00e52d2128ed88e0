from pydantic import Field, field_validator
from typing import Literal, Optional
from datetime import datetime

from app.models.base import CamelModel, reject_null

TransactionType = Literal["debit", "credit"]

# Suggested categories for the UI; the store accepts any free-text category.
DEFAULT_CATEGORIES = [
    "Food", "Shopping", "Transport", "Bills", "Entertainment",
    "Health", "Education", "Rent", "Income", "Other",
]


def normalize_date(value):
    """Dates are stored as YYYY-MM-DD strings so that they sort and compare as text."""
    if value is None:
        return value
    return datetime.strptime(value, "%Y-%m-%d").date().isoformat()


class TransactionCreate(CamelModel):
    user_id: int
    amount: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    merchant: str = Field(..., min_length=1)
    date: str
    type: TransactionType
    description: Optional[str] = None

    check_date = field_validator("date")(normalize_date)


class TransactionUpdate(CamelModel):
    amount: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1)
    merchant: Optional[str] = Field(None, min_length=1)
    date: Optional[str] = None
    type: Optional[TransactionType] = None
    description: Optional[str] = None

    check_not_null = field_validator("amount", "category", "merchant", "date", "type", mode="before")(reject_null)
    check_date = field_validator("date")(normalize_date)


class TransactionInDB(CamelModel):
    id: int
    user_id: int
    amount: float
    category: str
    merchant: str
    date: str
    type: TransactionType
    description: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())


class TransactionPublic(TransactionInDB):
    pass
