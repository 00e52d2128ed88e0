from datetime import date
from typing import Dict

from fastapi import APIRouter, Query

from app.db import dynamo
from app.utils.aggregator import current_month_bounds, in_window, monthly_trend, shift_months, summarize
from app.utils.forecast import category_breakdown, fit_line, forecast_next, spending_insights

router = APIRouter()


@router.get("/dashboard")
def dashboard(user_id: int = Query(..., alias="userId")) -> Dict:
    """Current calendar month totals and the biggest spending category."""
    start, end = current_month_bounds()
    summary = summarize(dynamo.get_transactions_for_user(user_id), start, end)
    return {
        "totalSpent": summary.total_spent,
        "totalIncome": summary.total_income,
        "topCategory": summary.top_category,
        "categorySpending": summary.category_spending,
        "transactionCount": summary.transaction_count,
    }


@router.get("/monthly-trend")
def monthly_trend_view(user_id: int = Query(..., alias="userId")) -> Dict:
    return {"trend": monthly_trend(dynamo.get_transactions_for_user(user_id))}


@router.get("/forecast")
def forecast(user_id: int = Query(..., alias="userId")) -> Dict:
    """Next month's expenditure extrapolated from the six-month trend."""
    trend = monthly_trend(dynamo.get_transactions_for_user(user_id))
    values = [month["expenditure"] for month in trend]
    slope, _ = fit_line(values)

    if slope > 0:
        direction = "increasing"
    elif slope < 0:
        direction = "decreasing"
    else:
        direction = "stable"

    return {
        "trend": [{"month": month["month"], "amount": month["expenditure"]} for month in trend],
        "predictedExpenditure": round(forecast_next(values), 2),
        "slope": round(slope, 2),
        "direction": direction,
    }


@router.get("/insights")
def insights(user_id: int = Query(..., alias="userId")) -> Dict:
    transactions = dynamo.get_transactions_for_user(user_id)
    today = date.today()
    start, end = current_month_bounds(today)
    prev_start, prev_end = current_month_bounds(shift_months(today.replace(day=1), -1))

    current = [t for t in transactions if in_window(t, start, end)]
    previous = [t for t in transactions if in_window(t, prev_start, prev_end)]
    return {
        "insights": spending_insights(current, previous),
        "categoryBreakdown": category_breakdown(current),
    }
