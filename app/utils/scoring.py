"""
Score calculation for the dashboard's two credit-style ratings.

Both ratings share one pipeline: extract ``ScoreFeatures`` from the user's
transactions, budgets and savings goals, score each factor 0-100, combine the
factors by weight onto the rating's scale, then attach a band, per-factor
explanations and recommendations. The ratings differ only in their
``ScoringConfig``:

* ``CIBIL_CONFIG``  - 300-900 scale, India-style bands, loan eligibility.
* ``CREDIT_CONFIG`` - 300-850 scale, FICO-style bands.
"""
from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from app.utils.aggregator import category_totals, current_month_bounds, in_window, parse_date, shift_months

RECENT_DAYS = 30
DAYS_PER_MONTH = 30
ACTIVITY_WINDOW_MONTHS = 3


@dataclass(frozen=True)
class ScoreFeatures:
    """Everything the factor scorers look at, computed once per request."""

    transaction_count: int = 0
    months_with_activity: int = 0
    avg_monthly_income: float = 0.0
    avg_income_month_credit: Optional[float] = None
    utilization_ratio: float = 1.0
    account_age_months: int = 0
    recent_debit_count: int = 0
    recent_credit_count: int = 0
    goal_count: int = 0
    active_goal_count: int = 0
    avg_goal_progress: float = 0.0
    budget_count: int = 0
    budget_adherence: float = 50.0


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str
    impact: str
    priority: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"title": self.title, "description": self.description, "impact": self.impact}
        if self.priority is not None:
            data["priority"] = self.priority
        return data


@dataclass(frozen=True)
class Factor:
    name: str
    weight: int
    score: Callable[[ScoreFeatures], float]
    positive_at: float
    shortfall_impact: str
    describe: Callable[[ScoreFeatures], str]
    recommend: Callable[[ScoreFeatures, float], Optional[Recommendation]]


@dataclass(frozen=True)
class Band:
    minimum: float
    label: str
    color: str
    description: str


@dataclass(frozen=True)
class ScoringConfig:
    score_key: str
    base: int
    span: int
    factors: Tuple[Factor, ...]
    bands: Tuple[Band, ...]
    loan_gates: Dict[str, int] = field(default_factory=dict)
    loan_messages: Tuple[Tuple[int, str], ...] = ()
    metadata: Callable[[ScoreFeatures], Dict[str, Any]] = lambda features: {}

    @property
    def maximum(self) -> int:
        return self.base + self.span

    def factor(self, name: str) -> Factor:
        for factor in self.factors:
            if factor.name == name:
                return factor
        raise KeyError(name)

    def band_for(self, score: float) -> Band:
        for band in self.bands:
            if score >= band.minimum:
                return band
        return self.bands[-1]


@dataclass
class ScoreResult:
    config: ScoringConfig
    score: int
    band: Band
    factors: List[Dict[str, Any]]
    recommendations: List[Recommendation]
    features: ScoreFeatures
    calculated_at: str

    def to_dict(self) -> Dict[str, Any]:
        data = {
            self.config.score_key: self.score,
            "rating": self.band.label,
            "ratingColor": self.band.color,
            "ratingDescription": self.band.description,
            "factors": self.factors,
            "recommendations": [rec.to_dict() for rec in self.recommendations],
        }
        if self.config.loan_gates:
            data["loanEligibility"] = loan_eligibility(self.config, self.score)
        metadata = {
            "calculatedAt": self.calculated_at,
            "transactionCount": self.features.transaction_count,
            "accountAge": f"{self.features.account_age_months} months",
        }
        metadata.update(self.config.metadata(self.features))
        data["metadata"] = metadata
        return data


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def extract_features(
    transactions: Iterable[Dict[str, Any]],
    budgets: Iterable[Dict[str, Any]] = (),
    goals: Iterable[Dict[str, Any]] = (),
    today: Optional[date] = None,
) -> ScoreFeatures:
    """
    Reduce the full history to scoring features. An empty history yields the
    worst-case defaults (utilization ratio 1.0, zero activity) rather than an error.
    """
    today = today or date.today()
    transactions = list(transactions)
    budgets = list(budgets)
    goals = list(goals)

    # Activity over the trailing three months, keyed by calendar month
    window_start = shift_months(today, -ACTIVITY_WINDOW_MONTHS)
    monthly_income: Dict[Tuple[int, int], float] = defaultdict(float)
    active_months = set()
    credit_months = set()
    for txn in transactions:
        txn_date = parse_date(txn["date"])
        if txn_date < window_start:
            continue
        key = (txn_date.year, txn_date.month)
        active_months.add(key)
        if txn["type"] == "credit":
            monthly_income[key] += float(txn["amount"])
            credit_months.add(key)

    window_income = sum(monthly_income.values())
    avg_monthly_income = window_income / len(active_months) if active_months else 0.0
    avg_income_month_credit = window_income / len(credit_months) if credit_months else None

    # Lifetime spending against lifetime income
    total_income = sum(float(t["amount"]) for t in transactions if t["type"] == "credit")
    total_expenses = sum(float(t["amount"]) for t in transactions if t["type"] == "debit")
    utilization_ratio = total_expenses / total_income if total_income > 0 else 1.0

    account_age_months = 0
    if transactions:
        oldest = min(parse_date(t["date"]) for t in transactions)
        account_age_months = max(0, (today - oldest).days // DAYS_PER_MONTH)

    recent_start = today - timedelta(days=RECENT_DAYS)
    recent = [t for t in transactions if parse_date(t["date"]) >= recent_start]
    recent_debit_count = sum(1 for t in recent if t["type"] == "debit")
    recent_credit_count = sum(1 for t in recent if t["type"] == "credit")

    active_goals = [g for g in goals if float(g["current_amount"]) < float(g["target_amount"])]
    avg_goal_progress = 0.0
    if active_goals:
        avg_goal_progress = sum(
            min(1.0, max(0.0, float(g["current_amount"]) / float(g["target_amount"])))
            for g in active_goals
        ) / len(active_goals)

    return ScoreFeatures(
        transaction_count=len(transactions),
        months_with_activity=len(active_months),
        avg_monthly_income=avg_monthly_income,
        avg_income_month_credit=avg_income_month_credit,
        utilization_ratio=utilization_ratio,
        account_age_months=account_age_months,
        recent_debit_count=recent_debit_count,
        recent_credit_count=recent_credit_count,
        goal_count=len(goals),
        active_goal_count=len(active_goals),
        avg_goal_progress=avg_goal_progress,
        budget_count=len(budgets),
        budget_adherence=_budget_adherence(transactions, budgets, today),
    )


def _budget_adherence(transactions, budgets, today) -> float:
    if not budgets:
        return 50.0
    start, end = current_month_bounds(today)
    spending = category_totals(t for t in transactions if in_window(t, start, end))
    results = []
    for budget in budgets:
        limit = float(budget["limit_amount"])
        spent = spending.get(budget["category"], 0.0)
        results.append(1.0 if spent <= limit else max(0.0, 1 - (spent - limit) / limit))
    return sum(results) / len(results) * 100


def calculate_score(
    config: ScoringConfig,
    transactions: Iterable[Dict[str, Any]],
    budgets: Iterable[Dict[str, Any]] = (),
    goals: Iterable[Dict[str, Any]] = (),
    today: Optional[date] = None,
) -> ScoreResult:
    features = extract_features(transactions, budgets, goals, today)
    return score_features(config, features)


def score_features(config: ScoringConfig, features: ScoreFeatures) -> ScoreResult:
    raw = 0.0
    factors = []
    recommendations = []
    for factor in config.factors:
        sub_score = factor.score(features)
        raw += sub_score * (factor.weight / 100)
        factors.append({
            "name": factor.name,
            "score": round_half_up(sub_score),
            "weight": factor.weight,
            "impact": "positive" if sub_score >= factor.positive_at else factor.shortfall_impact,
            "description": factor.describe(features),
        })
        recommendation = factor.recommend(features, sub_score)
        if recommendation is not None:
            recommendations.append(recommendation)

    score = round_half_up(config.base + (raw / 100) * config.span)
    return ScoreResult(
        config=config,
        score=score,
        band=config.band_for(score),
        factors=factors,
        recommendations=recommendations,
        features=features,
        calculated_at=datetime.utcnow().isoformat(),
    )


def loan_eligibility(config: ScoringConfig, score: int) -> Dict[str, Any]:
    eligibility: Dict[str, Any] = {product: score >= gate for product, gate in config.loan_gates.items()}
    eligibility["message"] = next(
        (message for minimum, message in config.loan_messages if score >= minimum),
        "",
    )
    return eligibility


def below(threshold: float, title: str, description, impact: str, priority: Optional[int] = None):
    """Recommend once when the factor's sub-score falls under ``threshold``."""

    def recommend(features: ScoreFeatures, sub_score: float) -> Optional[Recommendation]:
        if sub_score >= threshold:
            return None
        text = description(features) if callable(description) else description
        return Recommendation(title=title, description=text, impact=impact, priority=priority)

    return recommend


def bucket(value: float, steps: Iterable[Tuple[float, float]], default: float) -> float:
    """Score of the first (threshold, score) step that ``value`` reaches."""
    for threshold, score in steps:
        if value >= threshold:
            return score
    return default


# Variant A: CIBIL (300-900)

def _cibil_payment(f: ScoreFeatures) -> float:
    if f.months_with_activity >= 3 and f.avg_monthly_income > 15000:
        return 95
    if f.months_with_activity >= 2 and f.avg_monthly_income > 10000:
        return 75
    if f.months_with_activity >= 1:
        return 50
    return 25


def _cibil_credit_mix(f: ScoreFeatures) -> float:
    ratio = f.utilization_ratio
    if ratio < 0.3:
        return 100
    if ratio < 0.5:
        return 80
    if ratio < 0.7:
        return 60
    if ratio < 0.9:
        return 40
    return 20


def _cibil_credit_age(f: ScoreFeatures) -> float:
    return bucket(f.account_age_months, ((24, 100), (12, 80), (6, 60), (3, 40)), 20)


def _cibil_recent(f: ScoreFeatures) -> float:
    if f.recent_credit_count >= 2 and f.recent_debit_count <= 10:
        return 90
    if f.recent_credit_count >= 1 and f.recent_debit_count <= 15:
        return 70
    if f.recent_debit_count <= 20:
        return 50
    return 30


def _cibil_discipline(f: ScoreFeatures) -> float:
    return f.avg_goal_progress * 100 * 0.6 + (40 if f.budget_count else 0)


def _debt_ratio_pct(f: ScoreFeatures) -> int:
    return round_half_up(f.utilization_ratio * 100)


CIBIL_CONFIG = ScoringConfig(
    score_key="cibilScore",
    base=300,
    span=600,
    factors=(
        Factor(
            name="Payment History",
            weight=30,
            score=_cibil_payment,
            positive_at=75,
            shortfall_impact="negative",
            describe=lambda f: (
                f"{f.months_with_activity} months of consistent activity"
                if f.months_with_activity >= 3 else "Limited payment history"
            ),
            recommend=below(
                75, "Maintain Regular Income",
                "Show at least 3 months of consistent income to improve CIBIL score",
                "High", priority=1,
            ),
        ),
        Factor(
            name="Credit Mix",
            weight=25,
            score=_cibil_credit_mix,
            positive_at=70,
            shortfall_impact="negative",
            describe=lambda f: (
                "Excellent debt management" if f.utilization_ratio < 0.3
                else "Moderate debt levels" if f.utilization_ratio < 0.7
                else "High debt burden"
            ),
            recommend=below(
                70, "Reduce Debt-to-Income Ratio",
                lambda f: f"Current DTI: {_debt_ratio_pct(f)}%. Keep it below 30% for excellent score",
                "High", priority=2,
            ),
        ),
        Factor(
            name="Credit Age",
            weight=25,
            score=_cibil_credit_age,
            positive_at=60,
            shortfall_impact="neutral",
            describe=lambda f: (
                f"{f.account_age_months} months credit history"
                if f.account_age_months >= 12 else "Building credit history"
            ),
            recommend=below(
                60, "Build Credit History",
                "Maintain accounts for at least 12-24 months for better CIBIL score",
                "Medium", priority=3,
            ),
        ),
        Factor(
            name="Recent Behavior",
            weight=15,
            score=_cibil_recent,
            positive_at=70,
            shortfall_impact="neutral",
            describe=lambda f: (
                f"{f.recent_debit_count} expenses, {f.recent_credit_count} income sources in last 30 days"
            ),
            recommend=below(
                70, "Control Recent Spending",
                "Reduce number of expense transactions to show better financial control",
                "Medium", priority=4,
            ),
        ),
        Factor(
            name="Financial Discipline",
            weight=5,
            score=_cibil_discipline,
            positive_at=50,
            shortfall_impact="neutral",
            describe=lambda f: (
                "Active financial planning"
                if f.active_goal_count or f.budget_count else "No active financial goals"
            ),
            recommend=below(
                50, "Demonstrate Financial Planning",
                "Set savings goals and budgets to show responsible financial behavior",
                "Low", priority=5,
            ),
        ),
    ),
    bands=(
        Band(750, "Excellent", "green", "Low risk - Best loan terms available"),
        Band(700, "Good", "lightgreen", "Medium risk - Good loan approval chances"),
        Band(650, "Fair", "orange", "Moderate risk - Limited loan options"),
        Band(550, "Poor", "darkorange", "High risk - Loan approval difficult"),
        Band(float("-inf"), "Very Poor", "red", "Very high risk - Loan approval unlikely"),
    ),
    loan_gates={"personalLoan": 700, "homeLoan": 720, "carLoan": 680, "creditCard": 650},
    loan_messages=(
        (750, "Eligible for all loan types with best interest rates"),
        (700, "Eligible for most loans with competitive rates"),
        (650, "Limited loan options with higher interest rates"),
        (0, "Improve score to access better loan products"),
    ),
    metadata=lambda f: {
        "avgMonthlyIncome": round_half_up(f.avg_monthly_income),
        "debtToIncomeRatio": f"{_debt_ratio_pct(f)}%",
    },
)


# Variant B: credit score (300-850)

def _credit_payment(f: ScoreFeatures) -> float:
    if f.avg_income_month_credit is None:
        return 30
    return min(100, 100 if f.avg_income_month_credit > 10000 else 70)


def _credit_utilization(f: ScoreFeatures) -> float:
    return max(0.0, min(100.0, (1 - f.utilization_ratio) * 150))


def _credit_history(f: ScoreFeatures) -> float:
    return min(100.0, (f.account_age_months / 12) * 100)


def _credit_savings(f: ScoreFeatures) -> float:
    return min(100.0, f.avg_goal_progress * 100 + 20)


def _credit_budget(f: ScoreFeatures) -> float:
    return f.budget_adherence


def _credit_budget_advice(f: ScoreFeatures, sub_score: float) -> Optional[Recommendation]:
    if f.budget_count and sub_score < 70:
        return Recommendation(
            "Improve Budget Discipline",
            "Stay within your budget limits to show responsible spending habits",
            "Low",
        )
    if not f.budget_count:
        return Recommendation(
            "Create Budget Limits",
            "Set monthly spending limits for each category to better control expenses",
            "Low",
        )
    return None


CREDIT_CONFIG = ScoringConfig(
    score_key="creditScore",
    base=300,
    span=550,
    factors=(
        Factor(
            name="Payment History",
            weight=35,
            score=_credit_payment,
            positive_at=70,
            shortfall_impact="negative",
            describe=lambda f: (
                "Regular income patterns detected"
                if _credit_payment(f) >= 70 else "Inconsistent income or spending patterns"
            ),
            recommend=below(
                70, "Establish Regular Income",
                "Add consistent income transactions to demonstrate financial stability",
                "High",
            ),
        ),
        Factor(
            name="Credit Utilization",
            weight=30,
            score=_credit_utilization,
            positive_at=60,
            shortfall_impact="negative",
            describe=lambda f: (
                "Excellent spending control" if f.utilization_ratio < 0.3
                else "Moderate spending relative to income" if f.utilization_ratio < 0.7
                else "High spending relative to income"
            ),
            recommend=below(
                60, "Reduce Spending Ratio",
                lambda f: (
                    f"Your spending is {_debt_ratio_pct(f)}% of income. "
                    "Aim for below 30% to improve your score significantly"
                ),
                "High",
            ),
        ),
        Factor(
            name="Financial History",
            weight=15,
            score=_credit_history,
            positive_at=50,
            shortfall_impact="neutral",
            describe=lambda f: (
                f"{f.account_age_months} months of tracked history" if f.account_age_months >= 12
                else "Building financial history" if f.account_age_months >= 6
                else "New to financial tracking"
            ),
            recommend=below(
                50, "Build Financial History",
                "Continue tracking transactions consistently to establish a longer financial history",
                "Medium",
            ),
        ),
        Factor(
            name="Savings Behavior",
            weight=10,
            score=_credit_savings,
            positive_at=60,
            shortfall_impact="neutral",
            describe=lambda f: (
                f"{round_half_up(f.avg_goal_progress * 100)}% average goal progress"
                if f.active_goal_count else "No active savings goals"
            ),
            recommend=below(
                60, "Set Savings Goals",
                "Create and work towards savings goals to demonstrate financial planning",
                "Medium",
            ),
        ),
        Factor(
            name="Budget Adherence",
            weight=10,
            score=_credit_budget,
            positive_at=70,
            shortfall_impact="neutral",
            describe=lambda f: (
                "No budgets set" if not f.budget_count
                else "Staying within budget limits" if f.budget_adherence >= 70
                else "Exceeding some budget limits"
            ),
            recommend=_credit_budget_advice,
        ),
    ),
    bands=(
        Band(800, "Exceptional", "green", "Excellent financial management"),
        Band(740, "Very Good", "lightgreen", "Above average financial health"),
        Band(670, "Good", "blue", "Acceptable financial standing"),
        Band(580, "Fair", "orange", "Below average, room for improvement"),
        Band(float("-inf"), "Poor", "red", "Needs significant improvement"),
    ),
    metadata=lambda f: {"savingsGoalsCount": f.goal_count},
)
