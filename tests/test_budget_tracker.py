import pytest

from src.forecasting import BudgetLine, InvalidArgumentError, MonthlyAggregate, compute_realization


@pytest.fixture
def lines():
    return [
        BudgetLine("601", 500000),
        BudgetLine("613", 200000, alert_threshold=100),
        BudgetLine("626", 0),
    ]


def test_realization_rates(lines):
    actual = MonthlyAggregate("042024", 0, 0, {"601": 450000, "613": 150000, "626": 30000})

    realization = compute_realization(lines, actual)

    assert realization.month_key == "042024"
    rates = {r.line.account_id: r.realization_rate for r in realization.lines}
    assert rates == {"601": 90.0, "613": 75.0, "626": 0.0}
    assert realization.total_planned == 700000
    assert realization.total_realized == 630000
    assert realization.realization_rate == 90.0


def test_alerts_and_overruns(lines):
    actual = MonthlyAggregate("042024", 0, 0, {"601": 400000, "613": 250000, "626": 30000})

    realization = compute_realization(lines, actual)

    assert [r.line.account_id for r in realization.alerts] == ["601", "613"]
    by_account = {r.line.account_id: r for r in realization.lines}
    assert by_account["613"].overrun is True
    assert by_account["601"].overrun is False
    # no alert on a line planned at 0
    assert by_account["626"].alert_active is False


def test_month_not_booked_yet(lines):
    realization = compute_realization(lines, None)

    assert realization.month_key is None
    assert realization.total_realized == 0
    assert realization.alerts == []
    assert realization.to_dict()["alerts"] == []


@pytest.mark.parametrize("planned, threshold", [(-1, 80), (100, -5), (100, 120)])
def test_budget_line_validation(planned, threshold):
    with pytest.raises(InvalidArgumentError):
        BudgetLine("601", planned, alert_threshold=threshold)


def test_budget_line_from_dict():
    line = BudgetLine.from_dict({"account_id": "601", "planned_amount": "150000"})

    assert line.planned_amount == 150000.0
    assert line.alert_threshold == 80.0


@pytest.mark.parametrize("data", [
    {"account_id": "601", "planned_amount": "abc"},
    {"account_id": "601", "planned_amount": [100]},
    {"account_id": "601", "planned_amount": 100, "alert_threshold": "high"},
    {"planned_amount": 100},
    "601",
])
def test_budget_line_from_dict_rejects_bad_input(data):
    with pytest.raises(InvalidArgumentError):
        BudgetLine.from_dict(data)
