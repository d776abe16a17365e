"""
Budget Suggestions

Suggests the planned amount of a budget line from the recent history of
its account, with a confidence level derived from how stable that
history is.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Any, Iterable, Optional, Sequence, Tuple
from enum import Enum
import numpy as np

from .aggregates import MonthlyAggregate, ordered_history, round_amount
from .exceptions import InvalidArgumentError
from .month_keys import month_index, month_sort_key, months_between, parse_month_key
from .trend_analyzer import TrendAnalyzer, growth_rate_of

logger = logging.getLogger(__name__)

INSUFFICIENT_HISTORY = "insufficient history"


class ConfidenceLevel(Enum):
    """Confidence in a suggested amount"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class BudgetSuggestion:
    """Suggested amount for one account and one target month"""
    account_id: str
    target_month: str
    available: bool
    reason: Optional[str] = None
    suggested_amount: float = 0.0
    confidence: Optional[ConfidenceLevel] = None
    basis_months: int = 0
    mean_amount: float = 0.0
    min_amount: float = 0.0
    max_amount: float = 0.0
    std_dev: float = 0.0
    coefficient_of_variation: float = 0.0
    trend: str = "stable"
    history: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "target_month": self.target_month,
            "available": self.available,
            "reason": self.reason,
            "suggested_amount": self.suggested_amount,
            "confidence": self.confidence.value if self.confidence else None,
            "basis_months": self.basis_months,
            "mean_amount": self.mean_amount,
            "min_amount": self.min_amount,
            "max_amount": self.max_amount,
            "std_dev": self.std_dev,
            "coefficient_of_variation": self.coefficient_of_variation,
            "trend": self.trend,
            "history": self.history
        }


class BudgetSuggester:
    """
    Budget line suggestions from account history.

    Example:
    ```python
    suggester = BudgetSuggester()

    suggestion = suggester.suggest_budget_line(history, "601", "072024")
    if suggestion.available:
        print(suggestion.suggested_amount, suggestion.confidence.value)
    else:
        print(suggestion.reason)
    ```
    """

    def __init__(
        self,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        min_history: int = 3,
        lookback_months: int = 6,
        high_confidence_cv: float = 0.15,
        medium_confidence_cv: float = 0.35,
        trend_threshold: float = 0.15,
        currency_decimals: int = 0
    ):
        """
        Initialize suggester.

        Args:
            trend_analyzer: Analyzer used for seasonality
            min_history: Months with activity required for a suggestion
            lookback_months: How far back before the target month to look
            high_confidence_cv: Coefficient of variation below which confidence is high
            medium_confidence_cv: Coefficient of variation below which confidence is medium
            trend_threshold: Month-over-month change marking a rising/falling trend
            currency_decimals: Minor-unit precision of the suggested amount
        """
        if high_confidence_cv > medium_confidence_cv:
            raise InvalidArgumentError("high_confidence_cv must not exceed medium_confidence_cv")

        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.min_history = max(1, min_history)
        self.lookback_months = lookback_months
        self.high_confidence_cv = high_confidence_cv
        self.medium_confidence_cv = medium_confidence_cv
        self.trend_threshold = trend_threshold
        self.currency_decimals = currency_decimals

    def classify_confidence(self, coefficient_of_variation: float) -> ConfidenceLevel:
        if coefficient_of_variation < self.high_confidence_cv:
            return ConfidenceLevel.HIGH
        if coefficient_of_variation < self.medium_confidence_cv:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def suggest_budget_line(
        self,
        history: Sequence[MonthlyAggregate],
        account_id: str,
        target_month: str
    ) -> BudgetSuggestion:
        """
        Suggest a planned amount for `account_id` in `target_month`.

        Only months before the target, within the lookback window, where the
        account has a positive amount count as data points. The seasonal
        factor of the target month comes from every positive month of the
        account before the target.

        Returns:
            BudgetSuggestion; `available` is False below `min_history` points
        """
        if not account_id:
            raise InvalidArgumentError("account_id is required")
        parse_month_key(target_month)

        basis = self._basis(history, account_id, target_month, self.lookback_months)

        if len(basis) < self.min_history:
            logger.info(
                f"Not enough history for account {account_id} before {target_month} "
                f"({len(basis)}/{self.min_history} months)"
            )
            return BudgetSuggestion(
                account_id=account_id,
                target_month=target_month,
                available=False,
                reason=INSUFFICIENT_HISTORY,
                basis_months=len(basis)
            )

        keys = [key for key, _ in basis]
        amounts = [amount for _, amount in basis]

        mean = float(np.mean(amounts))
        std_dev = float(np.std(amounts))
        cv = std_dev / mean if mean > 0 else 0.0

        growth = growth_rate_of(amounts)
        seasonal_basis = self._basis(history, account_id, target_month, lookback_months=None)
        seasonality = self.trend_analyzer.seasonality_of(
            [key for key, _ in seasonal_basis],
            [amount for _, amount in seasonal_basis]
        )
        steps = months_between(keys[-1], target_month)
        suggested = mean * (1 + growth) ** steps * seasonality[month_index(target_month)]

        return BudgetSuggestion(
            account_id=account_id,
            target_month=target_month,
            available=True,
            suggested_amount=round_amount(max(0.0, suggested), self.currency_decimals),
            confidence=self.classify_confidence(cv),
            basis_months=len(basis),
            mean_amount=round_amount(mean, self.currency_decimals),
            min_amount=min(amounts),
            max_amount=max(amounts),
            std_dev=round_amount(std_dev, self.currency_decimals),
            coefficient_of_variation=round(cv, 4),
            trend=self._trend(amounts),
            history=[{"month_key": k, "amount": a} for k, a in basis]
        )

    def suggest_for_accounts(
        self,
        history: Sequence[MonthlyAggregate],
        accounts: Iterable[str],
        target_month: str
    ) -> Dict[str, BudgetSuggestion]:
        """Suggestions for several accounts, keyed by account id"""
        return {
            account_id: self.suggest_budget_line(history, account_id, target_month)
            for account_id in accounts
        }

    def _basis(
        self,
        history: Sequence[MonthlyAggregate],
        account_id: str,
        target_month: str,
        lookback_months: Optional[int]
    ) -> List[Tuple[str, float]]:
        """
        Chronological (month_key, amount) data points of an account.

        A lookback of None keeps every month before the target.
        """
        target = month_sort_key(target_month)
        basis = []
        for aggregate in ordered_history(history):
            if month_sort_key(aggregate.month_key) >= target:
                continue
            if lookback_months is not None and months_between(aggregate.month_key, target_month) > lookback_months:
                continue
            amount = aggregate.by_account.get(account_id, 0.0)
            if amount > 0:
                basis.append((aggregate.month_key, float(amount)))
        return basis

    def _trend(self, amounts: List[float]) -> str:
        """Compare the latest amount with the previous one"""
        if len(amounts) < 2 or amounts[-2] <= 0:
            return "stable"
        change = (amounts[-1] - amounts[-2]) / amounts[-2]
        if change > self.trend_threshold:
            return "rising"
        if change < -self.trend_threshold:
            return "falling"
        return "stable"
