"""
Trend Analyzer for Compta Insights

Growth rates, seasonality factors and month-to-month comparisons over
monthly accounting aggregates.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Sequence, Tuple, Union
from enum import Enum
import numpy as np

from .aggregates import MetricType, MonthlyAggregate, coerce_metric, ordered_history
from .month_keys import month_index

logger = logging.getLogger(__name__)

NEUTRAL_SEASONALITY = {month: 1.0 for month in range(1, 13)}


class TrendDirection(Enum):
    """Direction of trend"""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    VOLATILE = "volatile"


@dataclass
class TrendEstimate:
    """Growth and seasonality of one metric"""
    metric: str
    growth_rate_per_month: float
    seasonality_factor: Dict[int, float]
    sufficient_data: bool
    direction: TrendDirection = TrendDirection.STABLE
    volatility: float = 0.0
    moving_average: float = 0.0
    data_points: int = 0
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "growth_rate_per_month": self.growth_rate_per_month,
            "seasonality_factor": {f"{m:02d}": f for m, f in self.seasonality_factor.items()},
            "sufficient_data": self.sufficient_data,
            "direction": self.direction.value,
            "volatility": self.volatility,
            "moving_average": self.moving_average,
            "data_points": self.data_points,
            "insights": self.insights
        }


def moving_average(values: Sequence[float], periods: int = 3) -> float:
    """Mean of the last `periods` values (0 for an empty series)"""
    if not values:
        return 0.0
    return float(np.mean(list(values)[-periods:]))


def growth_rate_of(values: Sequence[float]) -> float:
    """
    Average month-over-month relative change.

    Intervals starting from a zero or negative value are skipped.
    """
    rates = []
    for previous, current in zip(values, values[1:]):
        if previous > 0:
            rates.append((current - previous) / previous)

    if not rates:
        return 0.0
    return float(np.mean(rates))


class TrendAnalyzer:
    """
    Analyzes monthly accounting series for growth and seasonality.

    Example:
    ```python
    analyzer = TrendAnalyzer()

    estimate = analyzer.estimate_trend(history, metric="in")
    print(f"Growth: {estimate.growth_rate_per_month:.1%} per month")
    ```
    """

    def __init__(
        self,
        min_seasonality_points: int = 6,
        moving_average_periods: int = 3,
        volatility_threshold: float = 0.3
    ):
        """
        Initialize analyzer.

        Args:
            min_seasonality_points: Data points needed before seasonality is used
            moving_average_periods: Window of the moving average
            volatility_threshold: Coefficient of variation above which a series is volatile
        """
        self.min_seasonality_points = min_seasonality_points
        self.moving_average_periods = moving_average_periods
        self.volatility_threshold = volatility_threshold

    def series(
        self,
        history: Sequence[MonthlyAggregate],
        metric: Union[MetricType, str] = MetricType.BALANCE,
        account_id: Optional[str] = None
    ) -> Tuple[List[str], List[float]]:
        """Chronological (month keys, values) of a metric or an account"""
        metric = coerce_metric(metric)
        ordered = ordered_history(history)
        keys = [a.month_key for a in ordered]
        values = [a.value_of(metric, account_id) for a in ordered]
        return keys, values

    def growth_rate(
        self,
        history: Sequence[MonthlyAggregate],
        metric: Union[MetricType, str] = MetricType.BALANCE
    ) -> float:
        """
        Average monthly growth of a metric.

        Returns 0.0 when fewer than 2 data points are available.
        """
        _, values = self.series(history, metric)
        if len(values) < 2:
            logger.debug(f"Growth rate needs 2 data points, got {len(values)}")
            return 0.0
        return growth_rate_of(values)

    def seasonality_factor(
        self,
        history: Sequence[MonthlyAggregate],
        metric: Union[MetricType, str] = MetricType.BALANCE
    ) -> Dict[int, float]:
        """Seasonality factors for months 1..12 (1.0 = neutral)"""
        keys, values = self.series(history, metric)
        return self.seasonality_of(keys, values)

    def seasonality_of(self, month_keys: Sequence[str], values: Sequence[float]) -> Dict[int, float]:
        """
        Ratio of each calendar month's average to the overall average.

        This is a plain index normalisation, not a seasonal decomposition.
        Months absent from the series stay at 1.0.
        """
        if len(values) < self.min_seasonality_points:
            return dict(NEUTRAL_SEASONALITY)

        overall = float(np.mean(values))
        if overall == 0:
            return dict(NEUTRAL_SEASONALITY)

        by_month: Dict[int, List[float]] = {}
        for key, value in zip(month_keys, values):
            by_month.setdefault(month_index(key), []).append(value)

        factors = dict(NEUTRAL_SEASONALITY)
        for month, month_values in by_month.items():
            factors[month] = float(np.mean(month_values)) / overall

        return factors

    def estimate_trend(
        self,
        history: Sequence[MonthlyAggregate],
        metric: Union[MetricType, str] = MetricType.BALANCE
    ) -> TrendEstimate:
        """
        Full trend estimate for one metric.

        Args:
            history: Monthly aggregates, any order
            metric: "in", "out" or "balance"

        Returns:
            TrendEstimate; `sufficient_data` is False below 2 data points
        """
        metric = coerce_metric(metric)
        keys, values = self.series(history, metric)

        if len(values) < 2:
            logger.info(f"Insufficient history for {metric.value} trend ({len(values)} month(s))")
            return TrendEstimate(
                metric=metric.value,
                growth_rate_per_month=0.0,
                seasonality_factor=dict(NEUTRAL_SEASONALITY),
                sufficient_data=False,
                moving_average=moving_average(values, self.moving_average_periods),
                data_points=len(values),
                insights=["Insufficient data for trend analysis"]
            )

        growth = growth_rate_of(values)
        seasonality = self.seasonality_of(keys, values)
        volatility = self._calculate_volatility(values)
        direction = self._analyze_direction(values, volatility)

        return TrendEstimate(
            metric=metric.value,
            growth_rate_per_month=growth,
            seasonality_factor=seasonality,
            sufficient_data=True,
            direction=direction,
            volatility=round(volatility, 4),
            moving_average=moving_average(values, self.moving_average_periods),
            data_points=len(values),
            insights=self._generate_insights(metric.value, direction, growth, volatility, seasonality)
        )

    def _analyze_direction(self, values: List[float], volatility: float) -> TrendDirection:
        """Direction from the least-squares slope"""
        x = np.arange(len(values))
        y = np.array(values, dtype=float)

        x_mean = np.mean(x)
        y_mean = np.mean(y)
        denominator = np.sum((x - x_mean) ** 2)
        if denominator == 0:
            return TrendDirection.STABLE

        slope = np.sum((x - x_mean) * (y - y_mean)) / denominator

        if volatility > self.volatility_threshold:
            return TrendDirection.VOLATILE
        if abs(slope) < abs(y_mean) * 0.01:  # <1% of mean per month
            return TrendDirection.STABLE
        return TrendDirection.INCREASING if slope > 0 else TrendDirection.DECREASING

    def _calculate_volatility(self, values: List[float]) -> float:
        """Calculate coefficient of variation"""
        mean_val = float(np.mean(values))
        if mean_val == 0:
            return 0.0
        return float(np.std(values)) / abs(mean_val)

    def _generate_insights(
        self,
        metric_name: str,
        direction: TrendDirection,
        growth: float,
        volatility: float,
        seasonality: Dict[int, float]
    ) -> List[str]:
        """Generate human-readable insights"""
        insights = []

        if direction == TrendDirection.INCREASING:
            insights.append(f"{metric_name} is growing ({growth:+.1%} per month on average)")
        elif direction == TrendDirection.DECREASING:
            insights.append(f"{metric_name} is shrinking ({growth:+.1%} per month on average)")
        elif direction == TrendDirection.VOLATILE:
            insights.append(f"{metric_name} is volatile - projections are less reliable")
        else:
            insights.append(f"{metric_name} is relatively stable")

        if any(abs(f - 1.0) > 0.1 for f in seasonality.values()):
            strongest = max(seasonality, key=seasonality.get)
            weakest = min(seasonality, key=seasonality.get)
            insights.append(f"{metric_name} peaks in month {strongest:02d} and dips in month {weakest:02d}")

        if volatility > self.volatility_threshold:
            insights.append(f"High volatility ({volatility:.0%}) - keep a larger cash buffer")

        return insights

    def compare_months(
        self,
        first: MonthlyAggregate,
        second: MonthlyAggregate,
        top: int = 5
    ) -> Dict[str, Any]:
        """
        Compare two months.

        Args:
            first: Reference month
            second: Month compared to the reference
            top: Number of accounts in the top increases/decreases lists

        Returns:
            Comparison analysis
        """
        def pct(change: float, base: float) -> float:
            return round(change / base * 100, 2) if base > 0 else 0.0

        accounts = []
        for account_id in dict.fromkeys([*first.by_account, *second.by_account]):
            before = first.by_account.get(account_id, 0.0)
            after = second.by_account.get(account_id, 0.0)
            change = after - before
            if before > 0:
                change_pct = pct(change, before)
            else:
                change_pct = 100.0 if after > 0 else 0.0
            accounts.append({
                "account_id": account_id,
                "first_amount": before,
                "second_amount": after,
                "absolute_change": round(change, 2),
                "percent_change": change_pct
            })

        accounts.sort(key=lambda a: abs(a["absolute_change"]), reverse=True)

        return {
            "first_month": first.month_key,
            "second_month": second.month_key,
            "in": {
                "absolute_change": round(second.total_in - first.total_in, 2),
                "percent_change": pct(second.total_in - first.total_in, first.total_in)
            },
            "out": {
                "absolute_change": round(second.total_out - first.total_out, 2),
                "percent_change": pct(second.total_out - first.total_out, first.total_out)
            },
            "balance": {
                "absolute_change": round(second.balance - first.balance, 2)
            },
            "accounts": accounts,
            "top_increases": [a for a in accounts if a["absolute_change"] > 0][:top],
            "top_decreases": [a for a in accounts if a["absolute_change"] < 0][:top]
        }
