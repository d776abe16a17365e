"""
Variance Detector

Flags months where actual totals or account amounts drift too far from
their realistic projection.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Any, Iterable, Optional
from enum import Enum

from .aggregates import MonthlyAggregate
from .exceptions import InvalidArgumentError
from .forecast_engine import AccountProjection, Projection

logger = logging.getLogger(__name__)


class VarianceSeverity(Enum):
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Variance:
    """Gap between a projection and what actually happened"""
    kind: str                  # total, account
    side: Optional[str]        # in, out (None for accounts)
    account_id: Optional[str]
    severity: VarianceSeverity
    expected: float
    actual: float
    gap_amount: float
    gap_ratio: float
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "side": self.side,
            "account_id": self.account_id,
            "severity": self.severity.value,
            "expected": self.expected,
            "actual": self.actual,
            "gap_amount": self.gap_amount,
            "gap_ratio": self.gap_ratio,
            "message": self.message
        }


class VarianceDetector:
    """
    Forecast vs actual comparison.

    A gap is reported when |actual - expected| / expected exceeds
    `alert_ratio`; it is high severity above `high_ratio`. Nothing is
    reported against an expected value of 0.
    """

    def __init__(self, alert_ratio: float = 0.20, high_ratio: float = 0.30):
        if alert_ratio > high_ratio:
            raise InvalidArgumentError("alert_ratio must not exceed high_ratio")
        self.alert_ratio = alert_ratio
        self.high_ratio = high_ratio

    def detect(
        self,
        expected: Projection,
        actual: MonthlyAggregate,
        account_projections: Optional[Iterable[AccountProjection]] = None
    ) -> List[Variance]:
        """
        Compare a month's projection with its actual aggregate.

        Args:
            expected: Projection of the month (normally the realistic one)
            actual: Actual aggregate of the same month
            account_projections: Optional per-account projections; those of
                other months are ignored

        Returns:
            Variances, high severity first, then by decreasing gap ratio
        """
        if expected.month_key != actual.month_key:
            raise InvalidArgumentError(
                f"Cannot compare projection of {expected.month_key} with actuals of {actual.month_key}"
            )

        variances = []

        for side, label, projected, real in (
            ("in", "Inflows", expected.expected_in, actual.total_in),
            ("out", "Outflows", expected.expected_out, actual.total_out),
        ):
            variance = self._compare(projected, real)
            if variance:
                ratio, severity = variance
                variances.append(Variance(
                    kind="total",
                    side=side,
                    account_id=None,
                    severity=severity,
                    expected=projected,
                    actual=real,
                    gap_amount=real - projected,
                    gap_ratio=round(ratio, 4),
                    message=f"{label} ({real:,.0f}) deviate {ratio:.1%} from the forecast ({projected:,.0f})"
                ))

        for projection in account_projections or []:
            if projection.month_key != actual.month_key:
                continue
            if projection.account_id not in actual.by_account:
                continue

            real = actual.by_account[projection.account_id]
            variance = self._compare(projection.expected, real)
            if variance:
                ratio, severity = variance
                variances.append(Variance(
                    kind="account",
                    side=None,
                    account_id=projection.account_id,
                    severity=severity,
                    expected=projection.expected,
                    actual=real,
                    gap_amount=real - projection.expected,
                    gap_ratio=round(ratio, 4),
                    message=(
                        f"Account {projection.account_id}: {ratio:.1%} gap "
                        f"(forecast {projection.expected:,.0f}, actual {real:,.0f})"
                    )
                ))

        if variances:
            logger.info(f"{len(variances)} variance(s) detected for {actual.month_key}")

        return sorted(
            variances,
            key=lambda v: (v.severity != VarianceSeverity.HIGH, -v.gap_ratio)
        )

    def _compare(self, expected: float, actual: float):
        if expected <= 0:
            return None
        ratio = abs(actual - expected) / expected
        if ratio <= self.alert_ratio:
            return None
        severity = VarianceSeverity.HIGH if ratio > self.high_ratio else VarianceSeverity.MEDIUM
        return ratio, severity
