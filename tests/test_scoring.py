from dataclasses import replace
from datetime import date

from app.utils.scoring import (
    CIBIL_CONFIG,
    CREDIT_CONFIG,
    ScoreFeatures,
    calculate_score,
    extract_features,
    loan_eligibility,
    round_half_up,
)

TODAY = date(2026, 3, 15)

steady_earner = [
    {"id": 1, "category": "Food", "amount": 100.0, "type": "debit", "date": "2024-01-01"},
    {"id": 2, "category": "Income", "amount": 20000.0, "type": "credit", "date": "2026-01-05"},
    {"id": 3, "category": "Rent", "amount": 3000.0, "type": "debit", "date": "2026-01-06"},
    {"id": 4, "category": "Income", "amount": 20000.0, "type": "credit", "date": "2026-02-05"},
    {"id": 5, "category": "Rent", "amount": 3000.0, "type": "debit", "date": "2026-02-06"},
    {"id": 6, "category": "Income", "amount": 20000.0, "type": "credit", "date": "2026-03-05"},
    {"id": 7, "category": "Rent", "amount": 3000.0, "type": "debit", "date": "2026-03-06"},
]


def test_round_half_up():
    assert round_half_up(396.5) == 397
    assert round_half_up(2.5) == 3
    assert round_half_up(396.25) == 396


def test_empty_history_credit_score():
    result = calculate_score(CREDIT_CONFIG, [], today=TODAY).to_dict()
    assert result["creditScore"] == 396
    assert result["rating"] == "Poor"
    assert [f["name"] for f in result["factors"]] == [
        "Payment History", "Credit Utilization", "Financial History", "Savings Behavior", "Budget Adherence",
    ]
    assert sum(f["weight"] for f in result["factors"]) == 100
    assert len(result["recommendations"]) == 5
    assert result["recommendations"][-1]["title"] == "Create Budget Limits"
    assert "loanEligibility" not in result
    assert result["metadata"]["transactionCount"] == 0
    assert result["metadata"]["savingsGoalsCount"] == 0


def test_empty_history_cibil_score():
    result = calculate_score(CIBIL_CONFIG, [], today=TODAY).to_dict()
    assert result["cibilScore"] == 450
    assert result["rating"] == "Very Poor"
    assert result["ratingColor"] == "red"
    assert [rec["priority"] for rec in result["recommendations"]] == [1, 2, 3, 4, 5]
    assert result["loanEligibility"] == {
        "personalLoan": False,
        "homeLoan": False,
        "carLoan": False,
        "creditCard": False,
        "message": "Improve score to access better loan products",
    }
    assert result["metadata"]["debtToIncomeRatio"] == "100%"


def test_scores_stay_in_range():
    for config in (CIBIL_CONFIG, CREDIT_CONFIG):
        for history in ([], steady_earner):
            score = calculate_score(config, history, today=TODAY).score
            assert 300 <= score <= config.maximum


def test_steady_earner_features():
    features = extract_features(steady_earner, today=TODAY)
    assert features.months_with_activity == 3
    assert features.avg_monthly_income == 20000.0
    assert features.account_age_months == 26
    assert features.recent_credit_count == 1
    assert features.recent_debit_count == 1
    assert round(features.utilization_ratio, 4) == round(9100 / 60000, 4)


def test_steady_earner_cibil_is_excellent():
    result = calculate_score(CIBIL_CONFIG, steady_earner, today=TODAY)
    assert result.band.label == "Excellent"
    eligibility = result.to_dict()["loanEligibility"]
    assert eligibility["homeLoan"] is True
    assert eligibility["message"] == "Eligible for all loan types with best interest rates"


def test_utilization_factors_never_improve_as_spending_grows():
    ratios = [0.0, 0.1, 0.29, 0.3, 0.45, 0.5, 0.69, 0.7, 0.89, 0.9, 1.0, 1.5]
    for config, name in ((CIBIL_CONFIG, "Credit Mix"), (CREDIT_CONFIG, "Credit Utilization")):
        factor = config.factor(name)
        scores = [factor.score(replace(ScoreFeatures(), utilization_ratio=r)) for r in ratios]
        assert scores == sorted(scores, reverse=True), name


def test_credit_utilization_subscore_is_clamped():
    factor = CREDIT_CONFIG.factor("Credit Utilization")
    assert factor.score(ScoreFeatures(utilization_ratio=0.0)) == 100.0
    assert factor.score(ScoreFeatures(utilization_ratio=2.0)) == 0.0


def test_bands():
    assert CIBIL_CONFIG.band_for(750).label == "Excellent"
    assert CIBIL_CONFIG.band_for(749).label == "Good"
    assert CIBIL_CONFIG.band_for(549).label == "Very Poor"
    assert CREDIT_CONFIG.band_for(800).label == "Exceptional"
    assert CREDIT_CONFIG.band_for(670).label == "Good"
    assert CREDIT_CONFIG.band_for(579).label == "Poor"


def test_loan_eligibility_gates():
    eligibility = loan_eligibility(CIBIL_CONFIG, 700)
    assert eligibility["personalLoan"] is True
    assert eligibility["homeLoan"] is False
    assert eligibility["carLoan"] is True
    assert eligibility["creditCard"] is True
    assert eligibility["message"] == "Eligible for most loans with competitive rates"


def test_budget_adherence_counts_current_month_only():
    budgets = [{"id": 1, "category": "Rent", "limit_amount": 2000.0}]
    features = extract_features(steady_earner, budgets=budgets, today=TODAY)
    # 3000 spent against a 2000 limit this month
    assert features.budget_adherence == 50.0
    result = calculate_score(CREDIT_CONFIG, steady_earner, budgets=budgets, today=TODAY).to_dict()
    titles = [rec["title"] for rec in result["recommendations"]]
    assert "Improve Budget Discipline" in titles


def test_completed_goals_are_not_active():
    goals = [
        {"id": 1, "target_amount": 1000.0, "current_amount": 1000.0},
        {"id": 2, "target_amount": 1000.0, "current_amount": 250.0},
    ]
    features = extract_features([], goals=goals, today=TODAY)
    assert features.goal_count == 2
    assert features.active_goal_count == 1
    assert features.avg_goal_progress == 0.25
