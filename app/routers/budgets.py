from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Query, status

from app.core.errors import ApiError
from app.db import dynamo
from app.models.budget import BudgetCreate, BudgetPublic, BudgetUpdate
from app.utils.reconciler import calculate_budget_spent, current_month_spending

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_budget_or_404(budget_id: int) -> dict:
    budget = dynamo.get_budget(budget_id)
    if not budget:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Budget not found", "BUDGET_NOT_FOUND")
    return budget


def _with_fresh_spent(budget: dict) -> BudgetPublic:
    spent = calculate_budget_spent(budget["user_id"], budget["category"])
    return BudgetPublic(**{**budget, "spent": spent})


@router.get("")
def list_or_get_budgets(
    budget_id: Optional[int] = Query(None, alias="id"),
    user_id: Optional[int] = Query(None, alias="userId"),
):
    """
    Single budget by ``id`` or every budget of ``userId``. ``spent`` is always
    recomputed from this month's transactions, never read from the stored row.
    """
    if budget_id is not None:
        return _with_fresh_spent(_get_budget_or_404(budget_id))

    if user_id is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "userId is required for listing budgets", "MISSING_USER_ID")

    spending = current_month_spending(user_id)
    budgets = [
        BudgetPublic(**{**budget, "spent": spending.get(budget["category"], 0.0)})
        for budget in dynamo.get_budgets_for_user(user_id)
    ]
    return {"budgets": budgets}


@router.get("/{budget_id}", response_model=BudgetPublic)
def get_budget(budget_id: int):
    return _with_fresh_spent(_get_budget_or_404(budget_id))


@router.post("", response_model=BudgetPublic, status_code=status.HTTP_201_CREATED)
def create_budget(budget: BudgetCreate):
    now = datetime.utcnow().isoformat()
    budget_item = {
        "id": dynamo.next_id("budgets"),
        "user_id": budget.user_id,
        "category": budget.category,
        "limit_amount": budget.limit_amount,
        "spent": calculate_budget_spent(budget.user_id, budget.category),
        "created_at": now,
        "updated_at": now,
    }
    if not dynamo.put_budget(budget_item):
        raise ApiError(500, "Failed to save budget", "DATABASE_ERROR")
    return BudgetPublic(**budget_item)


def _apply_budget_update(budget_id: int, budget_update: BudgetUpdate) -> BudgetPublic:
    # Editing a budget does not trigger reconciliation; spent only changes if sent.
    _get_budget_or_404(budget_id)
    updates = budget_update.model_dump(exclude_unset=True)
    updates["updated_at"] = datetime.utcnow().isoformat()

    updated = dynamo.update_budget(budget_id, updates)
    if not updated:
        raise ApiError(500, "Failed to update budget", "DATABASE_ERROR")
    return BudgetPublic(**updated)


@router.put("", response_model=BudgetPublic)
def update_budget_by_query(budget_update: BudgetUpdate, budget_id: int = Query(..., alias="id")):
    return _apply_budget_update(budget_id, budget_update)


@router.put("/{budget_id}", response_model=BudgetPublic)
def update_budget(budget_id: int, budget_update: BudgetUpdate):
    return _apply_budget_update(budget_id, budget_update)


def _delete_budget(budget_id: int) -> dict:
    _get_budget_or_404(budget_id)
    deleted = dynamo.delete_budget(budget_id)
    if not deleted:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Budget not found", "BUDGET_NOT_FOUND")
    return {"message": "Budget deleted successfully", "budget": BudgetPublic(**deleted)}


@router.delete("")
def delete_budget_by_query(budget_id: int = Query(..., alias="id")):
    return _delete_budget(budget_id)


@router.delete("/{budget_id}")
def delete_budget(budget_id: int):
    return _delete_budget(budget_id)
