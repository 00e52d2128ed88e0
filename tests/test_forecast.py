from app.utils.forecast import category_breakdown, fit_line, forecast_next, spending_insights


def test_forecast_evenly_spaced_series():
    assert fit_line([1000, 1200, 1400]) == (200.0, 1000.0)
    assert forecast_next([1000, 1200, 1400]) == 1600


def test_forecast_is_clamped_at_zero():
    assert forecast_next([300, 200, 100]) == 0
    assert forecast_next([300, 100, 0]) == 0


def test_forecast_short_series():
    assert forecast_next([]) == 0
    assert forecast_next([450.5]) == 450.5


def test_forecast_is_deterministic():
    series = [812.4, 0.0, 1290.1, 640.0, 977.35, 1105.9]
    assert forecast_next(series) == forecast_next(list(series))


def test_category_breakdown_sorted_with_shares():
    breakdown = category_breakdown([
        {"category": "Food", "amount": 300.0, "type": "debit"},
        {"category": "Rent", "amount": 700.0, "type": "debit"},
        {"category": "Income", "amount": 5000.0, "type": "credit"},
    ])
    assert breakdown == [
        {"category": "Rent", "amount": 700.0, "percentage": 70.0},
        {"category": "Food", "amount": 300.0, "percentage": 30.0},
    ]


def test_spending_insights():
    current = [
        {"category": "Food", "amount": 600.0, "type": "debit"},
        {"category": "Rent", "amount": 1000.0, "type": "debit"},
        {"category": "Travel", "amount": 200.0, "type": "debit"},
    ]
    previous = [
        {"category": "Food", "amount": 400.0, "type": "debit"},
        {"category": "Rent", "amount": 1000.0, "type": "debit"},
    ]
    insights = spending_insights(current, previous)
    assert insights == [
        "You spent 50.0% more on Food this month.",
        "Rent is your highest spending category at ₹1000.00.",
        "Reducing Travel by 10% can save ₹20.00 next month.",
    ]


def test_fit_line_uneven_series():
    slope, intercept = fit_line([2, 4, 5, 9])
    assert round(slope, 6) == 2.2
    assert round(intercept, 6) == 1.7
    assert round(forecast_next([2, 4, 5, 9]), 6) == 10.5
