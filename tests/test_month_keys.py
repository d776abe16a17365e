from datetime import date

import pytest

from src.forecasting import InvalidArgumentError
from src.forecasting.month_keys import (
    format_month_key,
    month_index,
    month_key_for,
    month_sort_key,
    months_between,
    parse_month_key,
    shift_month_key
)


def test_parse_month_key():
    assert parse_month_key("032024") == (3, 2024)
    assert month_sort_key("032024") == (2024, 3)
    assert month_index("122023") == 12


@pytest.mark.parametrize("key", ["", "32024", "132024", "002024", "03-2024", "2024-03", None])
def test_parse_rejects_malformed_keys(key):
    with pytest.raises(InvalidArgumentError):
        parse_month_key(key)


def test_format_and_date_keys():
    assert format_month_key(4, 2024) == "042024"
    assert month_key_for(date(2024, 11, 30)) == "112024"


def test_shift_month_key_crosses_years():
    assert shift_month_key("032024", 1) == "042024"
    assert shift_month_key("122023", 1) == "012024"
    assert shift_month_key("012024", -1) == "122023"
    assert shift_month_key("062024", 18) == "122025"


def test_months_between():
    assert months_between("032024", "042024") == 1
    assert months_between("112023", "022024") == 3
    assert months_between("042024", "032024") == -1
