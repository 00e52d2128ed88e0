from pydantic import Field, computed_field, field_validator
from typing import Optional

from app.models.base import CamelModel, reject_null


class SavingsGoalCreate(CamelModel):
    user_id: int
    title: str = Field(..., min_length=1)
    target_amount: float = Field(..., gt=0)
    current_amount: float = Field(0.0, ge=0)
    deadline: str = Field(..., min_length=1)
    icon: Optional[str] = None


class SavingsGoalUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    target_amount: Optional[float] = Field(None, gt=0)
    current_amount: Optional[float] = Field(None, ge=0)
    deadline: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = None

    check_not_null = field_validator("title", "target_amount", "current_amount", "deadline", mode="before")(reject_null)


class AddFunds(CamelModel):
    amount: float = Field(..., gt=0)


class SavingsGoalPublic(CamelModel):
    id: int
    user_id: int
    title: str
    target_amount: float
    current_amount: float = 0.0
    deadline: str
    icon: Optional[str] = None
    created_at: str
    updated_at: str

    @computed_field
    @property
    def completed(self) -> bool:
        return self.current_amount >= self.target_amount
