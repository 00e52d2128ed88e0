from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, status

from app.core.errors import ApiError
from app.db import dynamo
from app.models.savings_goal import AddFunds, SavingsGoalCreate, SavingsGoalPublic, SavingsGoalUpdate

router = APIRouter()


def _get_goal_or_404(goal_id: int) -> dict:
    goal = dynamo.get_savings_goal(goal_id)
    if not goal:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Savings goal not found", "NOT_FOUND")
    return goal


@router.get("")
def list_or_get_goals(
    goal_id: Optional[int] = Query(None, alias="id"),
    user_id: Optional[int] = Query(None, alias="userId"),
):
    if goal_id is not None:
        return SavingsGoalPublic(**_get_goal_or_404(goal_id))

    if user_id is None:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "userId is required for listing savings goals", "MISSING_USER_ID"
        )
    return {"goals": [SavingsGoalPublic(**goal) for goal in dynamo.get_savings_goals_for_user(user_id)]}


@router.get("/{goal_id}", response_model=SavingsGoalPublic)
def get_goal(goal_id: int):
    return SavingsGoalPublic(**_get_goal_or_404(goal_id))


@router.post("", response_model=SavingsGoalPublic, status_code=status.HTTP_201_CREATED)
def create_goal(goal: SavingsGoalCreate):
    now = datetime.utcnow().isoformat()
    goal_item = {
        "id": dynamo.next_id("savings_goals"),
        **goal.model_dump(),
        "current_amount": min(goal.current_amount, goal.target_amount),
        "created_at": now,
        "updated_at": now,
    }
    if not dynamo.put_savings_goal(goal_item):
        raise ApiError(500, "Failed to save savings goal", "DATABASE_ERROR")
    return SavingsGoalPublic(**goal_item)


def _cap_at_target(goal: dict, updates: dict) -> dict:
    """Keep currentAmount within targetAmount when either one changes."""
    target = float(updates.get("target_amount", goal["target_amount"]))
    current = float(updates.get("current_amount", goal["current_amount"]))
    if current > target:
        updates["current_amount"] = target
    return updates


def _apply_goal_update(goal_id: int, updates: dict) -> SavingsGoalPublic:
    updates["updated_at"] = datetime.utcnow().isoformat()
    updated = dynamo.update_savings_goal(goal_id, updates)
    if not updated:
        raise ApiError(500, "Failed to update savings goal", "DATABASE_ERROR")
    return SavingsGoalPublic(**updated)


@router.put("", response_model=SavingsGoalPublic)
def update_goal_by_query(goal_update: SavingsGoalUpdate, goal_id: int = Query(..., alias="id")):
    goal = _get_goal_or_404(goal_id)
    return _apply_goal_update(goal_id, _cap_at_target(goal, goal_update.model_dump(exclude_unset=True)))


@router.put("/{goal_id}", response_model=SavingsGoalPublic)
def update_goal(goal_id: int, goal_update: SavingsGoalUpdate):
    goal = _get_goal_or_404(goal_id)
    return _apply_goal_update(goal_id, _cap_at_target(goal, goal_update.model_dump(exclude_unset=True)))


@router.post("/{goal_id}/add-funds", response_model=SavingsGoalPublic)
def add_funds(goal_id: int, funds: AddFunds):
    """Add to a goal's saved amount, never past its target."""
    goal = _get_goal_or_404(goal_id)
    new_amount = min(float(goal["target_amount"]), float(goal["current_amount"]) + funds.amount)
    return _apply_goal_update(goal_id, {"current_amount": round(new_amount, 2)})


def _delete_goal(goal_id: int) -> dict:
    _get_goal_or_404(goal_id)
    deleted = dynamo.delete_savings_goal(goal_id)
    if not deleted:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Savings goal not found", "NOT_FOUND")
    return {"message": "Savings goal deleted successfully", "goal": SavingsGoalPublic(**deleted)}


@router.delete("")
def delete_goal_by_query(goal_id: int = Query(..., alias="id")):
    return _delete_goal(goal_id)


@router.delete("/{goal_id}")
def delete_goal(goal_id: int):
    return _delete_goal(goal_id)
