"""
Budget Tracker

Realisation of a monthly budget against the actual account amounts.
"""

from dataclasses import dataclass
from typing import Dict, List, Any, Optional, Sequence

from .aggregates import MonthlyAggregate, parse_amount
from .exceptions import InvalidArgumentError


@dataclass
class BudgetLine:
    """Planned amount for one account"""
    account_id: str
    planned_amount: float
    alert_threshold: float = 80.0  # % of planned amount that raises an alert

    def __post_init__(self):
        if self.planned_amount < 0:
            raise InvalidArgumentError("planned_amount must not be negative")
        if not 0 <= self.alert_threshold <= 100:
            raise InvalidArgumentError("alert_threshold must be between 0 and 100")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BudgetLine":
        """Build from caller input, rejecting non-numeric amounts"""
        if not isinstance(data, dict) or not data.get("account_id"):
            raise InvalidArgumentError("Budget line needs an account_id")

        threshold = data.get("alert_threshold")
        return cls(
            account_id=str(data["account_id"]),
            planned_amount=parse_amount(data.get("planned_amount"), "planned_amount"),
            alert_threshold=80.0 if threshold is None else parse_amount(threshold, "alert_threshold")
        )


@dataclass
class LineRealization:
    line: BudgetLine
    realized_amount: float
    realization_rate: float
    alert_active: bool

    @property
    def overrun(self) -> bool:
        return self.realization_rate > 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.line.account_id,
            "planned_amount": self.line.planned_amount,
            "alert_threshold": self.line.alert_threshold,
            "realized_amount": self.realized_amount,
            "realization_rate": self.realization_rate,
            "alert_active": self.alert_active,
            "overrun": self.overrun
        }


@dataclass
class BudgetRealization:
    month_key: Optional[str]
    lines: List[LineRealization]
    total_planned: float
    total_realized: float
    realization_rate: float

    @property
    def alerts(self) -> List[LineRealization]:
        return [line for line in self.lines if line.alert_active]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month_key": self.month_key,
            "lines": [line.to_dict() for line in self.lines],
            "total_planned": self.total_planned,
            "total_realized": self.total_realized,
            "realization_rate": self.realization_rate,
            "alerts": [line.to_dict() for line in self.alerts]
        }


def _rate(realized: float, planned: float) -> float:
    return round(realized / planned * 100, 2) if planned > 0 else 0.0


def compute_realization(
    lines: Sequence[BudgetLine],
    actual: Optional[MonthlyAggregate]
) -> BudgetRealization:
    """
    Realisation of each budget line.

    Without actuals (month not booked yet) every line is realised at 0.
    """
    amounts = actual.by_account if actual is not None else {}

    realizations = []
    for line in lines:
        realized = float(amounts.get(line.account_id, 0.0))
        rate = _rate(realized, line.planned_amount)
        realizations.append(LineRealization(
            line=line,
            realized_amount=realized,
            realization_rate=rate,
            alert_active=line.planned_amount > 0 and rate >= line.alert_threshold
        ))

    total_planned = sum(line.planned_amount for line in lines)
    total_realized = sum(r.realized_amount for r in realizations)

    return BudgetRealization(
        month_key=actual.month_key if actual is not None else None,
        lines=realizations,
        total_planned=total_planned,
        total_realized=total_realized,
        realization_rate=_rate(total_realized, total_planned)
    )
