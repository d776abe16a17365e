"""
Financial Health

Key ratios and a 0-100 health score for one month of accounting
statistics:
- Gross margin and costs / revenue
- Average amount per operation
- Days of cash cover
- Concentration of the top 3 inflow / outflow accounts
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Any, Mapping, Optional
from enum import Enum

from .aggregates import MonthlyAggregate
from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

INFLOW_CATEGORY = "entree"
OUTFLOW_CATEGORY = "sortie"

# Reported when a month has no outflows to cover
UNLIMITED_CASH_DAYS = 999.0


class HealthRating(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    FRAGILE = "fragile"


@dataclass
class FinancialRatios:
    """Key ratios of one month, percentages on a 0-100 scale"""
    month_key: str
    gross_margin: float
    costs_to_revenue: float
    average_operation_amount: float
    cash_balance: float
    cash_days: float
    top3_inflow_concentration: Optional[float] = None
    top3_outflow_concentration: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month_key": self.month_key,
            "gross_margin": self.gross_margin,
            "costs_to_revenue": self.costs_to_revenue,
            "average_operation_amount": self.average_operation_amount,
            "cash_balance": self.cash_balance,
            "cash_days": self.cash_days,
            "top3_inflow_concentration": self.top3_inflow_concentration,
            "top3_outflow_concentration": self.top3_outflow_concentration
        }


@dataclass
class CriterionScore:
    criterion: str
    points: int
    max_points: int
    comment: str


@dataclass
class HealthScore:
    """Overall score with the points earned on each criterion"""
    month_key: str
    score: int
    rating: HealthRating
    details: List[CriterionScore] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month_key": self.month_key,
            "score": self.score,
            "rating": self.rating.value,
            "details": [
                {
                    "criterion": d.criterion,
                    "points": d.points,
                    "max_points": d.max_points,
                    "comment": d.comment
                }
                for d in self.details
            ]
        }


def _pct(part: float, whole: float, default: float = 0.0) -> float:
    return round(part / whole * 100, 2) if whole > 0 else default


class FinancialHealthAnalyzer:
    """
    Ratios and health score of a month.

    Each criterion is scored from a tier table: the first tier whose
    bound is passed gives its points.

    Example:
        analyzer = FinancialHealthAnalyzer()

        health = analyzer.health_score(aggregate, operation_count=120, cash_balance=900000)
        print(f"{health.score}/100 ({health.rating.value})")
    """

    # (lower bound exclusive, points, comment); margin in %
    PROFITABILITY_TIERS = [
        (20, 30, "Excellent margin"),
        (10, 20, "Good margin"),
        (0, 10, "Thin margin"),
    ]
    PROFITABILITY_FLOOR = (0, "Loss-making")

    # days of outflows covered by cash
    CASH_TIERS = [
        (60, 30, "Very solid cash position"),
        (30, 20, "Adequate cash position"),
        (15, 10, "Tight cash position"),
    ]
    CASH_FLOOR = (0, "Critical cash position")

    # costs / revenue in %, upper bound exclusive
    COST_TIERS = [
        (60, 20, "Excellent cost control"),
        (75, 15, "Good cost control"),
        (85, 10, "Average cost control"),
    ]
    COST_FLOOR = (5, "High costs")

    # operations booked in the month
    ACTIVITY_TIERS = [
        (100, 20, "Strong activity"),
        (50, 15, "Steady activity"),
        (20, 10, "Moderate activity"),
    ]
    ACTIVITY_FLOOR = (5, "Low activity")

    RATING_THRESHOLDS = [
        (85, HealthRating.EXCELLENT),
        (70, HealthRating.GOOD),
        (50, HealthRating.AVERAGE),
    ]

    def __init__(self, days_per_month: int = 30):
        self.days_per_month = days_per_month

    def compute_ratios(
        self,
        aggregate: MonthlyAggregate,
        operation_count: int = 0,
        cash_balance: float = 0.0,
        account_categories: Optional[Mapping[str, str]] = None
    ) -> FinancialRatios:
        """
        Key ratios of a month.

        Args:
            aggregate: Month to analyse
            operation_count: Number of operations booked in the month
            cash_balance: Cash held at the end of the month
            account_categories: account id -> "entree" / "sortie"; without it
                the concentration ratios are left empty

        Returns:
            FinancialRatios
        """
        if operation_count < 0:
            raise InvalidArgumentError("operation_count must not be negative")

        total_in = aggregate.total_in
        total_out = aggregate.total_out

        if operation_count > 0:
            average_operation = round((total_in + total_out) / operation_count, 2)
        else:
            average_operation = 0.0

        ratios = FinancialRatios(
            month_key=aggregate.month_key,
            gross_margin=_pct(aggregate.balance, total_in),
            costs_to_revenue=_pct(total_out, total_in),
            average_operation_amount=average_operation,
            cash_balance=cash_balance,
            cash_days=self._cash_days(total_out, cash_balance)
        )

        if account_categories:
            ratios.top3_inflow_concentration = _pct(
                self._top3(aggregate, account_categories, INFLOW_CATEGORY), total_in
            )
            ratios.top3_outflow_concentration = _pct(
                self._top3(aggregate, account_categories, OUTFLOW_CATEGORY), total_out
            )

        return ratios

    def health_score(
        self,
        aggregate: MonthlyAggregate,
        operation_count: int = 0,
        cash_balance: float = 0.0
    ) -> HealthScore:
        """
        Score a month out of 100.

        Profitability and cash cover weigh 30 points each, cost control and
        activity volume 20 each.
        """
        ratios = self.compute_ratios(aggregate, operation_count, cash_balance)
        # no revenue counts as costs eating all of it
        costs_ratio = ratios.costs_to_revenue if aggregate.total_in > 0 else 100.0

        details = [
            self._score_above("Profitability", ratios.gross_margin, 30,
                              self.PROFITABILITY_TIERS, self.PROFITABILITY_FLOOR),
            self._score_above("Cash", ratios.cash_days, 30,
                              self.CASH_TIERS, self.CASH_FLOOR),
            self._score_below("Cost control", costs_ratio, 20,
                              self.COST_TIERS, self.COST_FLOOR),
            self._score_above("Activity volume", operation_count, 20,
                              self.ACTIVITY_TIERS, self.ACTIVITY_FLOOR),
        ]
        score = sum(d.points for d in details)

        rating = HealthRating.FRAGILE
        for threshold, level in self.RATING_THRESHOLDS:
            if score >= threshold:
                rating = level
                break

        logger.debug(f"Health score for {aggregate.month_key}: {score} ({rating.value})")
        return HealthScore(month_key=aggregate.month_key, score=score, rating=rating, details=details)

    def _cash_days(self, total_out: float, cash_balance: float) -> float:
        daily_spend = total_out / self.days_per_month
        if daily_spend <= 0:
            return UNLIMITED_CASH_DAYS
        return round(cash_balance / daily_spend, 1)

    @staticmethod
    def _top3(aggregate: MonthlyAggregate, categories: Mapping[str, str], category: str) -> float:
        amounts = sorted(
            (amount for account_id, amount in aggregate.by_account.items()
             if categories.get(account_id) == category),
            reverse=True
        )
        return sum(amounts[:3])

    @staticmethod
    def _score_above(criterion, value, max_points, tiers, floor) -> CriterionScore:
        for bound, points, comment in tiers:
            if value > bound:
                return CriterionScore(criterion, points, max_points, comment)
        return CriterionScore(criterion, floor[0], max_points, floor[1])

    @staticmethod
    def _score_below(criterion, value, max_points, tiers, floor) -> CriterionScore:
        for bound, points, comment in tiers:
            if value < bound:
                return CriterionScore(criterion, points, max_points, comment)
        return CriterionScore(criterion, floor[0], max_points, floor[1])
