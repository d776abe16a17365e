"""Pytest configuration and fixtures."""
import pytest

from config.settings import TestingConfig
from src.forecasting import MonthlyAggregate
from src.forecasting.month_keys import shift_month_key


@pytest.fixture
def short_history():
    """Three months of inflows growing exactly 10% per month"""
    return [
        MonthlyAggregate("012024", 100000, 80000, {"701": 90000, "601": 40000}),
        MonthlyAggregate("022024", 110000, 88000, {"701": 99000, "601": 44000}),
        MonthlyAggregate("032024", 121000, 96800, {"701": 108900, "601": 48400}),
    ]


@pytest.fixture
def year_history():
    """Twelve months with a December peak"""
    history = []
    for offset in range(12):
        month_key = shift_month_key("012023", offset)
        total_in = 200000.0 if month_key.startswith("12") else 100000.0
        history.append(MonthlyAggregate(
            month_key,
            total_in,
            60000.0,
            {"701": total_in, "613": 30000.0}
        ))
    return history


@pytest.fixture
def app():
    from web.app import create_app

    app = create_app(TestingConfig)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
