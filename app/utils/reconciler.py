"""
Budget Reconciler
Keeps each budget's ``spent`` equal to this month's debit total for its category.
"""
import logging
from datetime import date, datetime
from typing import Dict, Optional

from app.db import dynamo
from app.utils.aggregator import category_totals, current_month_bounds, in_window
from app.utils.events import TransactionMutated, subscribe

logger = logging.getLogger(__name__)


def current_month_spending(user_id: int, today: Optional[date] = None) -> Dict[str, float]:
    """Debit total per exact category string for the current calendar month."""
    start, end = current_month_bounds(today)
    month_transactions = [
        txn for txn in dynamo.get_transactions_for_user(user_id)
        if txn["type"] == "debit" and in_window(txn, start, end)
    ]
    return category_totals(month_transactions)


def calculate_budget_spent(user_id: int, category: str, today: Optional[date] = None) -> float:
    return current_month_spending(user_id, today).get(category, 0.0)


def recalculate_budget_spent(user_id: int, today: Optional[date] = None) -> Dict[int, float]:
    """
    Overwrite ``spent`` on every budget of the user. Returns budget id -> spent.
    Category matching is case-sensitive.
    """
    spending = current_month_spending(user_id, today)
    updated_at = datetime.utcnow().isoformat()
    results = {}
    for budget in dynamo.get_budgets_for_user(user_id):
        spent = spending.get(budget["category"], 0.0)
        dynamo.update_budget(budget["id"], {"spent": spent, "updated_at": updated_at})
        results[budget["id"]] = spent
    logger.info(f"Recalculated {len(results)} budgets for user {user_id}")
    return results


def on_transaction_mutated(event: TransactionMutated) -> None:
    recalculate_budget_spent(event.user_id)


subscribe(TransactionMutated, on_transaction_mutated)
