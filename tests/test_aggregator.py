from datetime import date

from app.utils.aggregator import current_month_bounds, monthly_trend, net_change, shift_months, summarize

TODAY = date(2026, 3, 15)

sample_transactions = [
    {"id": 1, "category": "Food", "amount": 250.0, "type": "debit", "date": "2026-03-01"},
    {"id": 2, "category": "Rent", "amount": 1000.0, "type": "debit", "date": "2026-03-02"},
    {"id": 3, "category": "Food", "amount": 150.25, "type": "debit", "date": "2026-03-03"},
    {"id": 4, "category": "Income", "amount": 5000.0, "type": "credit", "date": "2026-03-05"},
    {"id": 5, "category": "Shopping", "amount": 80.0, "type": "debit", "date": "2026-01-20"},
    {"id": 6, "category": "Food", "amount": 40.0, "type": "debit", "date": "2025-09-30"},
]


def test_summarize_current_month():
    start, end = current_month_bounds(TODAY)
    summary = summarize(sample_transactions, start, end)
    assert summary.total_spent == 1400.25
    assert summary.total_income == 5000.0
    assert summary.category_spending == {"Food": 400.25, "Rent": 1000.0}
    assert summary.transaction_count == 4
    assert summary.top_category == {"category": "Rent", "amount": 1000.0}


def test_category_sum_matches_debit_total():
    debits = [t for t in sample_transactions if t["type"] == "debit"]
    summary = summarize(debits)
    assert round(sum(summary.category_spending.values()), 2) == summary.total_spent


def test_income_category_is_not_spending():
    summary = summarize([
        {"id": 1, "category": "Income", "amount": 20.0, "type": "debit", "date": "2026-03-01"},
    ])
    assert summary.total_spent == 20.0
    assert summary.category_spending == {}


def test_no_transactions_is_all_zero():
    summary = summarize([])
    assert summary.total_spent == 0.0
    assert summary.total_income == 0.0
    assert summary.category_spending == {}
    assert summary.top_category is None


def test_monthly_trend_has_six_months_oldest_first():
    trend = monthly_trend(sample_transactions, today=TODAY)
    assert [m["month"] for m in trend] == [
        "Oct 2025", "Nov 2025", "Dec 2025", "Jan 2026", "Feb 2026", "Mar 2026",
    ]
    assert trend[-1]["expenditure"] == 1400.25
    assert trend[-1]["income"] == 5000.0
    assert trend[3]["categories"] == {"Shopping": 80.0}
    # September is outside the window, empty months are still present
    assert trend[0] == {"month": "Oct 2025", "amount": 0.0, "expenditure": 0.0, "income": 0.0, "categories": {}}


def test_monthly_trend_crosses_year_boundary():
    trend = monthly_trend([], today=date(2026, 1, 31))
    assert [m["month"] for m in trend] == [
        "Aug 2025", "Sep 2025", "Oct 2025", "Nov 2025", "Dec 2025", "Jan 2026",
    ]


def test_current_month_bounds():
    assert current_month_bounds(date(2024, 2, 10)) == ("2024-02-01", "2024-02-29")


def test_shift_months_clamps_day():
    assert shift_months(date(2026, 5, 31), -3) == date(2026, 2, 28)


def test_net_change():
    assert net_change(sample_transactions) == 5000.0 - 1520.25
