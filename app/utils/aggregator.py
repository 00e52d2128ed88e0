from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import dataclass, asdict, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

# Credits booked under this label are income, never a spending category.
INCOME_CATEGORY = "Income"

MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


@dataclass
class PeriodSummary:
    """Debit/credit totals and the per-category debit breakdown for a window."""

    total_spent: float = 0.0
    total_income: float = 0.0
    category_spending: Dict[str, float] = field(default_factory=dict)
    transaction_count: int = 0

    @property
    def top_category(self) -> Optional[Dict[str, Any]]:
        top = None
        for category, amount in self.category_spending.items():
            if amount > 0 and (top is None or amount > top["amount"]):
                top = {"category": category, "amount": amount}
        return top

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["top_category"] = self.top_category
        return data


def month_key(value: date) -> str:
    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def shift_months(value: date, delta: int) -> date:
    """Same day ``delta`` calendar months away, clamped to the end of short months."""
    year, month = shift_month(value.year, value.month, delta)
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def current_month_bounds(today: Optional[date] = None) -> Tuple[str, str]:
    """First and last ISO date of the calendar month containing ``today``."""
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return (
        date(today.year, today.month, 1).isoformat(),
        date(today.year, today.month, last_day).isoformat(),
    )


def parse_date(value: str) -> date:
    return date.fromisoformat(str(value)[:10])


def in_window(txn: Dict[str, Any], start: Optional[str] = None, end: Optional[str] = None) -> bool:
    txn_date = str(txn["date"])[:10]
    if start and txn_date < start:
        return False
    if end and txn_date > end:
        return False
    return True


def category_totals(transactions: Iterable[Dict[str, Any]]) -> Dict[str, float]:
    """Debit sum per category, exact category strings, rounded once at the end."""
    totals: Dict[str, float] = defaultdict(float)
    for txn in transactions:
        if txn["type"] == "debit":
            totals[txn["category"]] += float(txn["amount"])
    return {cat: round(total, 2) for cat, total in totals.items()}


def net_change(transactions: Iterable[Dict[str, Any]]) -> float:
    """Signed balance effect: credits add, debits subtract."""
    change = 0.0
    for txn in transactions:
        amount = float(txn["amount"])
        change += amount if txn["type"] == "credit" else -amount
    return change


def summarize(
    transactions: Iterable[Dict[str, Any]],
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> PeriodSummary:
    total_spent = 0.0
    total_income = 0.0
    categories: Dict[str, float] = defaultdict(float)
    count = 0

    for txn in transactions:
        if not in_window(txn, start, end):
            continue
        count += 1
        amount = float(txn["amount"])
        if txn["type"] == "debit":
            total_spent += amount
            if txn["category"] != INCOME_CATEGORY:
                categories[txn["category"]] += amount
        elif txn["type"] == "credit":
            total_income += amount

    return PeriodSummary(
        total_spent=round(total_spent, 2),
        total_income=round(total_income, 2),
        category_spending={cat: round(total, 2) for cat, total in categories.items()},
        transaction_count=count,
    )


def monthly_trend(
    transactions: Iterable[Dict[str, Any]],
    today: Optional[date] = None,
    months: int = 6,
) -> List[Dict[str, Any]]:
    """
    Trailing ``months`` calendar months ending with the current one, oldest
    first. Every month is present even when it has no transactions.
    """
    today = today or date.today()
    buckets: Dict[Tuple[int, int], Dict[str, Any]] = {}
    for offset in range(months - 1, -1, -1):
        year, month = shift_month(today.year, today.month, -offset)
        buckets[(year, month)] = {
            "month": month_key(date(year, month, 1)),
            "expenditure": 0.0,
            "income": 0.0,
            "categories": defaultdict(float),
        }

    for txn in transactions:
        txn_date = parse_date(txn["date"])
        bucket = buckets.get((txn_date.year, txn_date.month))
        if bucket is None:
            continue
        amount = float(txn["amount"])
        if txn["type"] == "debit":
            bucket["expenditure"] += amount
            if txn["category"] != INCOME_CATEGORY:
                bucket["categories"][txn["category"]] += amount
        elif txn["type"] == "credit":
            bucket["income"] += amount

    trend = []
    for bucket in buckets.values():
        expenditure = round(bucket["expenditure"], 2)
        trend.append({
            "month": bucket["month"],
            "amount": expenditure,
            "expenditure": expenditure,
            "income": round(bucket["income"], 2),
            "categories": {cat: round(total, 2) for cat, total in bucket["categories"].items()},
        })
    return trend
