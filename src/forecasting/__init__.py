"""
Forecasting Module for Compta Insights

Trend estimation, scenario projections and budget suggestions over
monthly accounting aggregates.
"""

from .aggregates import MetricType, MonthlyAggregate
from .budget_suggester import BudgetSuggester, BudgetSuggestion, ConfidenceLevel
from .budget_tracker import BudgetLine, BudgetRealization, compute_realization
from .exceptions import ForecastError, InvalidArgumentError
from .financial_health import (
    FinancialHealthAnalyzer,
    FinancialRatios,
    HealthRating,
    HealthScore
)
from .forecast_engine import (
    AccountProjection,
    ForecastEngine,
    ForecastReport,
    ForecastScenario,
    Projection
)
from .trend_analyzer import (
    TrendAnalyzer,
    TrendDirection,
    TrendEstimate,
    moving_average
)
from .variance_detector import Variance, VarianceDetector, VarianceSeverity

__all__ = [
    'MetricType',
    'MonthlyAggregate',
    'BudgetSuggester',
    'BudgetSuggestion',
    'ConfidenceLevel',
    'BudgetLine',
    'BudgetRealization',
    'compute_realization',
    'FinancialHealthAnalyzer',
    'FinancialRatios',
    'HealthRating',
    'HealthScore',
    'ForecastError',
    'InvalidArgumentError',
    'AccountProjection',
    'ForecastEngine',
    'ForecastReport',
    'ForecastScenario',
    'Projection',
    'TrendAnalyzer',
    'TrendDirection',
    'TrendEstimate',
    'moving_average',
    'Variance',
    'VarianceDetector',
    'VarianceSeverity',
]
