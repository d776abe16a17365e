import pytest

from src.forecasting import InvalidArgumentError, MonthlyAggregate
from src.forecasting.aggregates import parse_amount


def test_from_dict_accepts_camel_case():
    aggregate = MonthlyAggregate.from_dict({
        "monthKey": "032024",
        "totalIn": "120000",
        "totalOut": 80000,
        "byAccount": {"701": "120000"}
    })

    assert aggregate.total_in == 120000.0
    assert aggregate.balance == 40000.0
    assert aggregate.by_account == {"701": 120000.0}


def test_from_dict_defaults_missing_totals_to_zero():
    aggregate = MonthlyAggregate.from_dict({"month_key": "032024"})

    assert aggregate.total_in == 0.0
    assert aggregate.total_out == 0.0
    assert aggregate.by_account == {}


@pytest.mark.parametrize("data", [
    {"total_in": 100},
    {"month_key": "032024", "total_in": "abc"},
    {"month_key": "032024", "total_out": {"value": 1}},
    {"month_key": "032024", "by_account": {"701": "abc"}},
    {"month_key": "032024", "by_account": ["701"]},
])
def test_from_dict_rejects_bad_input(data):
    with pytest.raises(InvalidArgumentError):
        MonthlyAggregate.from_dict(data)


def test_parse_amount():
    assert parse_amount(None) == 0.0
    assert parse_amount("2500.5") == 2500.5
    assert parse_amount(7) == 7.0
    with pytest.raises(InvalidArgumentError):
        parse_amount(True)
    with pytest.raises(ValueError):
        parse_amount("n/a")
