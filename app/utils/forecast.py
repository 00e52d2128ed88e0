from __future__ import annotations

import statistics
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from app.utils.aggregator import INCOME_CATEGORY

SIGNIFICANT_CHANGE_PCT = 20.0
SUGGESTED_CUT = 0.10


def fit_line(values: Sequence[float]) -> Tuple[float, float]:
    """
    Ordinary least squares over x = 0..n-1. Returns (slope, intercept).
    Needs at least two points.
    """
    slope, intercept = statistics.linear_regression(list(range(len(values))), [float(v) for v in values])
    return slope, intercept


def forecast_next(values: Sequence[float]) -> float:
    """
    Predict the value following ``values`` by extrapolating the OLS line one
    step. Negative predictions are clamped to zero.
    """
    values = [float(v) for v in values]
    if len(values) < 2:
        return values[0] if values else 0.0

    slope, intercept = fit_line(values)
    return max(0.0, slope * len(values) + intercept)


def category_breakdown(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Debit spend per category (Income excluded), largest first, with share of total."""
    totals: Dict[str, float] = {}
    for txn in transactions:
        if txn["type"] != "debit" or txn["category"] == INCOME_CATEGORY:
            continue
        totals[txn["category"]] = totals.get(txn["category"], 0.0) + float(txn["amount"])

    grand_total = sum(totals.values())
    breakdown = [
        {
            "category": category,
            "amount": round(amount, 2),
            "percentage": round(amount / grand_total * 100, 2) if grand_total else 0.0,
        }
        for category, amount in totals.items()
    ]
    return sorted(breakdown, key=lambda item: item["amount"], reverse=True)


def spending_insights(
    current: Iterable[Dict[str, Any]],
    previous: Iterable[Dict[str, Any]],
) -> List[str]:
    """Plain-language observations comparing this month's spending to last month's."""
    insights: List[str] = []
    current_breakdown = category_breakdown(current)
    previous_amounts = {item["category"]: item["amount"] for item in category_breakdown(previous)}

    for item in current_breakdown:
        before = previous_amounts.get(item["category"])
        if not before:
            continue
        change = (item["amount"] - before) / before * 100
        if abs(change) > SIGNIFICANT_CHANGE_PCT:
            direction = "more" if change > 0 else "less"
            insights.append(f"You spent {abs(change):.1f}% {direction} on {item['category']} this month.")

    if current_breakdown:
        highest = current_breakdown[0]
        insights.append(f"{highest['category']} is your highest spending category at ₹{highest['amount']:.2f}.")

    if len(current_breakdown) > 2:
        third = current_breakdown[2]
        saving = third["amount"] * SUGGESTED_CUT
        insights.append(
            f"Reducing {third['category']} by {int(SUGGESTED_CUT * 100)}% can save ₹{saving:.2f} next month."
        )

    return insights
