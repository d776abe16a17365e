"""
Monthly aggregates

The input of every forecasting routine: one summary of inflows and outflows
per calendar month, optionally broken down by account.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Iterable, Optional, Union

from .exceptions import InvalidArgumentError
from .month_keys import month_sort_key, parse_month_key


class MetricType(Enum):
    """Series that can be extracted from a history"""
    INFLOW = "in"
    OUTFLOW = "out"
    BALANCE = "balance"


@dataclass(frozen=True)
class MonthlyAggregate:
    """Accounting totals for one month"""
    month_key: str
    total_in: float
    total_out: float
    by_account: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        parse_month_key(self.month_key)

    @property
    def balance(self) -> float:
        return self.total_in - self.total_out

    def value_of(self, metric: "MetricType", account_id: Optional[str] = None) -> float:
        """Value of a metric, or of one account when account_id is given"""
        if account_id is not None:
            return float(self.by_account.get(account_id, 0.0))
        if metric == MetricType.INFLOW:
            return self.total_in
        if metric == MetricType.OUTFLOW:
            return self.total_out
        return self.balance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month_key": self.month_key,
            "total_in": self.total_in,
            "total_out": self.total_out,
            "balance": self.balance,
            "by_account": dict(self.by_account)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonthlyAggregate":
        """Build from a snake_case or camelCase mapping"""
        month_key = data.get("month_key", data.get("monthKey"))
        if month_key is None:
            raise InvalidArgumentError("Monthly aggregate is missing its month key")

        by_account = data.get("by_account", data.get("byAccount")) or {}
        if not isinstance(by_account, dict):
            raise InvalidArgumentError("Account amounts must be a mapping of account id to amount")

        return cls(
            month_key=str(month_key),
            total_in=parse_amount(data.get("total_in", data.get("totalIn")), "total_in"),
            total_out=parse_amount(data.get("total_out", data.get("totalOut")), "total_out"),
            by_account={str(k): parse_amount(v, f"amount of account {k}") for k, v in by_account.items()}
        )


def parse_amount(value: Any, name: str = "amount") -> float:
    """Float amount from caller input (None counts as 0)"""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{name} must be a number, got {value!r}") from None


def coerce_metric(metric: Union[MetricType, str]) -> MetricType:
    if isinstance(metric, MetricType):
        return metric
    try:
        return MetricType(metric)
    except ValueError:
        raise InvalidArgumentError(
            f"Unknown metric {metric!r}, expected one of "
            f"{', '.join(m.value for m in MetricType)}"
        ) from None


def ordered_history(history: Iterable[MonthlyAggregate]) -> List[MonthlyAggregate]:
    """Chronologically sorted copy of a history"""
    return sorted(history, key=lambda aggregate: month_sort_key(aggregate.month_key))


def account_ids(history: Iterable[MonthlyAggregate]) -> List[str]:
    """Accounts seen in a history, in order of first appearance"""
    seen: Dict[str, None] = {}
    for aggregate in ordered_history(history):
        for account_id in aggregate.by_account:
            seen.setdefault(account_id, None)
    return list(seen)


def round_amount(value: float, decimals: int = 0) -> float:
    """Round to the currency's minor-unit precision"""
    return float(round(value, decimals))
