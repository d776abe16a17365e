"""
Forecast Engine

Seasonality-adjusted projections of monthly inflows and outflows under
pessimistic, realistic and optimistic scenarios.

Every method is pure: histories are read, never modified, and the same
input always produces the same output.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Sequence, Tuple, Union
from enum import Enum

from .aggregates import (
    MetricType,
    MonthlyAggregate,
    account_ids,
    ordered_history,
    round_amount
)
from .exceptions import InvalidArgumentError
from .month_keys import month_index, shift_month_key
from .trend_analyzer import TrendAnalyzer, growth_rate_of, moving_average

logger = logging.getLogger(__name__)


class ForecastScenario(Enum):
    """Forecast scenario types"""
    PESSIMISTIC = "pessimistic"   # -10% inflows, +10% outflows
    REALISTIC = "realistic"       # Trend and seasonality only
    OPTIMISTIC = "optimistic"     # +10% inflows, -10% outflows


def coerce_scenario(scenario: Union[ForecastScenario, str]) -> ForecastScenario:
    if isinstance(scenario, ForecastScenario):
        return scenario
    if not scenario:
        raise InvalidArgumentError("Scenario identifier is required")
    try:
        return ForecastScenario(scenario)
    except ValueError:
        raise InvalidArgumentError(
            f"Unknown scenario {scenario!r}, expected one of "
            f"{', '.join(s.value for s in ForecastScenario)}"
        ) from None


@dataclass
class Projection:
    """Projected totals for one future month"""
    month_key: str
    expected_in: float
    expected_out: float
    expected_balance: float
    scenario: ForecastScenario
    growth_rate_in: float = 0.0
    growth_rate_out: float = 0.0
    seasonality_in: float = 1.0
    seasonality_out: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month_key": self.month_key,
            "expected_in": self.expected_in,
            "expected_out": self.expected_out,
            "expected_balance": self.expected_balance,
            "scenario": self.scenario.value,
            "growth_rate_in": self.growth_rate_in,
            "growth_rate_out": self.growth_rate_out,
            "seasonality_in": self.seasonality_in,
            "seasonality_out": self.seasonality_out
        }


@dataclass
class AccountProjection:
    """Projected amount of one account for one future month"""
    account_id: str
    month_key: str
    expected: float
    pessimistic: float
    optimistic: float
    growth_rate: float
    seasonality_factor: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "month_key": self.month_key,
            "expected": self.expected,
            "pessimistic": self.pessimistic,
            "optimistic": self.optimistic,
            "growth_rate": self.growth_rate,
            "seasonality_factor": self.seasonality_factor
        }


@dataclass
class ForecastReport:
    """Projections for all scenarios plus key indicators"""
    available: bool
    reason: Optional[str] = None
    analysis_period: Dict[str, Any] = field(default_factory=dict)
    forecast_period: Dict[str, Any] = field(default_factory=dict)
    indicators: Dict[str, Any] = field(default_factory=dict)
    projections: Dict[str, List[Projection]] = field(default_factory=dict)
    account_projections: Dict[str, List[AccountProjection]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "reason": self.reason,
            "analysis_period": self.analysis_period,
            "forecast_period": self.forecast_period,
            "indicators": self.indicators,
            "projections": {
                scenario: [p.to_dict() for p in items]
                for scenario, items in self.projections.items()
            },
            "account_projections": {
                account_id: [p.to_dict() for p in items]
                for account_id, items in self.account_projections.items()
            }
        }


class ForecastEngine:
    """
    Monthly projection engine.

    Each side (inflows, outflows) grows at its own average monthly rate,
    compounded from the last known month, and is scaled by the seasonality
    factor of the target month. Scenarios then scale inflows by the scenario
    factor and outflows by its mirror (2 - factor), so a pessimistic month
    earns less and spends more.

    Example:
    ```python
    engine = ForecastEngine()

    projections = engine.project(history, months_ahead=3, scenario="realistic")
    for p in projections:
        print(p.month_key, p.expected_balance)
    ```
    """

    def __init__(
        self,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        pessimistic_factor: float = 0.9,
        optimistic_factor: float = 1.1,
        currency_decimals: int = 0
    ):
        """
        Initialize engine.

        Args:
            trend_analyzer: Analyzer used for growth and seasonality
            pessimistic_factor: Inflow multiplier of the pessimistic scenario
            optimistic_factor: Inflow multiplier of the optimistic scenario
            currency_decimals: Minor-unit precision of projected amounts
        """
        if not 0 < pessimistic_factor <= 1:
            raise InvalidArgumentError("pessimistic_factor must be in (0, 1]")
        if not 1 <= optimistic_factor < 2:
            raise InvalidArgumentError("optimistic_factor must be in [1, 2)")

        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.pessimistic_factor = pessimistic_factor
        self.optimistic_factor = optimistic_factor
        self.currency_decimals = currency_decimals

    def scenario_multipliers(self, scenario: Union[ForecastScenario, str]) -> Tuple[float, float]:
        """(inflow, outflow) multipliers of a scenario"""
        scenario = coerce_scenario(scenario)
        if scenario == ForecastScenario.PESSIMISTIC:
            factor = self.pessimistic_factor
        elif scenario == ForecastScenario.OPTIMISTIC:
            factor = self.optimistic_factor
        else:
            factor = 1.0
        return factor, 2.0 - factor

    def project(
        self,
        history: Sequence[MonthlyAggregate],
        months_ahead: int,
        scenario: Union[ForecastScenario, str] = ForecastScenario.REALISTIC
    ) -> List[Projection]:
        """
        Project the months following the last historical month.

        Args:
            history: Monthly aggregates (at least one)
            months_ahead: Number of months to project (>= 1)
            scenario: Forecast scenario

        Returns:
            `months_ahead` projections in chronological order

        Raises:
            InvalidArgumentError: on a bad months_ahead, scenario or empty history
        """
        self._validate_months_ahead(months_ahead)
        scenario = coerce_scenario(scenario)

        ordered = ordered_history(history)
        if not ordered:
            raise InvalidArgumentError("Cannot project from an empty history")

        growth_in = self.trend_analyzer.growth_rate(ordered, MetricType.INFLOW)
        growth_out = self.trend_analyzer.growth_rate(ordered, MetricType.OUTFLOW)
        season_in = self.trend_analyzer.seasonality_factor(ordered, MetricType.INFLOW)
        season_out = self.trend_analyzer.seasonality_factor(ordered, MetricType.OUTFLOW)
        in_multiplier, out_multiplier = self.scenario_multipliers(scenario)

        last = ordered[-1]
        projections = []

        for step in range(1, months_ahead + 1):
            month_key = shift_month_key(last.month_key, step)
            month = month_index(month_key)

            base_in = last.total_in * (1 + growth_in) ** step * season_in[month]
            base_out = last.total_out * (1 + growth_out) ** step * season_out[month]

            expected_in = round_amount(max(0.0, base_in * in_multiplier), self.currency_decimals)
            expected_out = round_amount(max(0.0, base_out * out_multiplier), self.currency_decimals)

            projections.append(Projection(
                month_key=month_key,
                expected_in=expected_in,
                expected_out=expected_out,
                expected_balance=round_amount(expected_in - expected_out, self.currency_decimals),
                scenario=scenario,
                growth_rate_in=growth_in,
                growth_rate_out=growth_out,
                seasonality_in=season_in[month],
                seasonality_out=season_out[month]
            ))

        return projections

    def multi_scenario_forecast(
        self,
        history: Sequence[MonthlyAggregate],
        months_ahead: int
    ) -> Dict[str, List[Projection]]:
        """
        Generate projections for all scenarios.

        Returns:
            Dict mapping scenario names to projections
        """
        return {
            scenario.value: self.project(history, months_ahead, scenario)
            for scenario in ForecastScenario
        }

    def project_accounts(
        self,
        history: Sequence[MonthlyAggregate],
        months_ahead: int
    ) -> Dict[str, List[AccountProjection]]:
        """
        Project every account seen in the history.

        Account lines are noisy, so the base is the 3-month moving average
        rather than the last month. Months where an account has no entry
        count as 0.
        """
        self._validate_months_ahead(months_ahead)
        ordered = ordered_history(history)
        if not ordered:
            return {}

        last_key = ordered[-1].month_key
        results: Dict[str, List[AccountProjection]] = {}

        for account_id in account_ids(ordered):
            keys, values = self.trend_analyzer.series(ordered, account_id=account_id)
            base = moving_average(values, self.trend_analyzer.moving_average_periods)
            growth = growth_rate_of(values)
            seasonality = self.trend_analyzer.seasonality_of(keys, values)

            account_projections = []
            for step in range(1, months_ahead + 1):
                month_key = shift_month_key(last_key, step)
                factor = seasonality[month_index(month_key)]
                expected = max(0.0, base * (1 + growth) ** step * factor)

                account_projections.append(AccountProjection(
                    account_id=account_id,
                    month_key=month_key,
                    expected=round_amount(expected, self.currency_decimals),
                    pessimistic=round_amount(expected * self.pessimistic_factor, self.currency_decimals),
                    optimistic=round_amount(expected * self.optimistic_factor, self.currency_decimals),
                    growth_rate=growth,
                    seasonality_factor=factor
                ))

            results[account_id] = account_projections

        return results

    def forecast(
        self,
        history: Sequence[MonthlyAggregate],
        months_ahead: int = 3
    ) -> ForecastReport:
        """
        Complete forecast: all scenarios, per-account projections, indicators.

        An empty history yields an unavailable report rather than an error.
        """
        self._validate_months_ahead(months_ahead)
        ordered = ordered_history(history)

        if not ordered:
            logger.info("No history available, forecast skipped")
            return ForecastReport(available=False, reason="no history available")

        projections = self.multi_scenario_forecast(ordered, months_ahead)
        realistic = projections[ForecastScenario.REALISTIC.value]
        account_projections = self.project_accounts(ordered, months_ahead)

        first = realistic[0]
        if first.expected_in > 0:
            projected_margin = round(first.expected_balance / first.expected_in * 100, 2)
        else:
            projected_margin = 0.0

        return ForecastReport(
            available=True,
            analysis_period={
                "start": ordered[0].month_key,
                "end": ordered[-1].month_key,
                "months": len(ordered)
            },
            forecast_period={
                "months": months_ahead,
                "start": realistic[0].month_key,
                "end": realistic[-1].month_key
            },
            indicators={
                "balance_growth_rate": self.trend_analyzer.growth_rate(ordered, MetricType.BALANCE),
                "projected_margin": projected_margin,
                "accounts_analyzed": len(account_projections)
            },
            projections=projections,
            account_projections=account_projections
        )

    @staticmethod
    def _validate_months_ahead(months_ahead: int) -> None:
        if isinstance(months_ahead, bool) or not isinstance(months_ahead, int):
            raise InvalidArgumentError(f"months_ahead must be an integer, got {months_ahead!r}")
        if months_ahead < 1:
            raise InvalidArgumentError(f"months_ahead must be >= 1, got {months_ahead}")
