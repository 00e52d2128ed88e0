from pydantic import Field, computed_field, field_validator
from typing import Optional

from app.models.base import CamelModel, reject_null


def budget_status(spent: float, limit_amount: float) -> str:
    """At or past the limit is over budget; from 80% of it is a warning."""
    percentage = (spent / limit_amount) * 100 if limit_amount else 100.0
    if percentage >= 100:
        return "Over Budget"
    if percentage >= 80:
        return "Warning"
    return "On Track"


class BudgetCreate(CamelModel):
    user_id: int
    category: str = Field(..., min_length=1)
    limit_amount: float = Field(..., gt=0)


class BudgetUpdate(CamelModel):
    category: Optional[str] = Field(None, min_length=1)
    limit_amount: Optional[float] = Field(None, gt=0)
    spent: Optional[float] = Field(None, ge=0)

    check_not_null = field_validator("category", "limit_amount", "spent", mode="before")(reject_null)


class BudgetPublic(CamelModel):
    id: int
    user_id: int
    category: str
    limit_amount: float
    spent: float = 0.0
    created_at: str
    updated_at: str

    @computed_field
    @property
    def percentage(self) -> float:
        return round(min(100.0, (self.spent / self.limit_amount) * 100), 2)

    @computed_field
    @property
    def status(self) -> str:
        return budget_status(self.spent, self.limit_amount)
