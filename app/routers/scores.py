"""
Score Router
Credit-style ratings computed from the user's full history on every request
"""
from typing import Dict

from fastapi import APIRouter, Query

from app.db import dynamo
from app.utils.scoring import CIBIL_CONFIG, CREDIT_CONFIG, ScoringConfig, calculate_score

router = APIRouter()


def _score_user(config: ScoringConfig, user_id: int) -> Dict:
    result = calculate_score(
        config,
        transactions=dynamo.get_transactions_for_user(user_id),
        budgets=dynamo.get_budgets_for_user(user_id),
        goals=dynamo.get_savings_goals_for_user(user_id),
    )
    return result.to_dict()


@router.get("/credit-score")
def credit_score(user_id: int = Query(..., alias="userId")) -> Dict:
    """300-850 score with FICO-style bands."""
    return _score_user(CREDIT_CONFIG, user_id)


@router.get("/cibil-score")
def cibil_score(user_id: int = Query(..., alias="userId")) -> Dict:
    """300-900 score with CIBIL bands and loan eligibility."""
    return _score_user(CIBIL_CONFIG, user_id)
