import pytest

from src.forecasting import (
    ForecastEngine,
    ForecastScenario,
    InvalidArgumentError,
    MonthlyAggregate
)


@pytest.fixture
def engine():
    return ForecastEngine()


def test_project_one_month_realistic(engine, short_history):
    projections = engine.project(short_history, 1, "realistic")

    assert len(projections) == 1
    projection = projections[0]
    assert projection.month_key == "042024"
    assert projection.expected_in == pytest.approx(133100, abs=1)
    assert projection.expected_out == pytest.approx(106480, abs=1)
    assert projection.expected_balance == pytest.approx(26620, abs=1)
    assert projection.scenario == ForecastScenario.REALISTIC
    assert projection.growth_rate_in == pytest.approx(0.10)
    assert projection.seasonality_in == 1.0


def test_project_with_flat_outflows(engine):
    history = [
        MonthlyAggregate("012024", 100000, 60000),
        MonthlyAggregate("022024", 110000, 61000),
        MonthlyAggregate("032024", 121000, 62000),
    ]

    assert engine.trend_analyzer.growth_rate(history, "in") == pytest.approx(0.10)

    projections = engine.project(history, 1, "realistic")
    assert [p.month_key for p in projections] == ["042024"]
    assert projections[0].expected_in == pytest.approx(133100, abs=1)


def test_project_returns_consecutive_months(engine, short_history):
    projections = engine.project(short_history, 3)

    assert [p.month_key for p in projections] == ["042024", "052024", "062024"]
    assert projections[2].expected_in == pytest.approx(121000 * 1.1 ** 3, abs=1)


def test_project_across_year_end(engine):
    history = [
        MonthlyAggregate("112023", 1000, 500),
        MonthlyAggregate("122023", 1000, 500),
    ]
    projections = engine.project(history, 2)

    assert [p.month_key for p in projections] == ["012024", "022024"]
    assert projections[0].expected_in == 1000


def test_scenarios_are_ordered(engine, short_history):
    forecasts = engine.multi_scenario_forecast(short_history, 3)

    for pessimistic, realistic, optimistic in zip(
        forecasts["pessimistic"], forecasts["realistic"], forecasts["optimistic"]
    ):
        assert pessimistic.expected_in <= realistic.expected_in <= optimistic.expected_in
        assert pessimistic.expected_out >= realistic.expected_out >= optimistic.expected_out
        assert pessimistic.expected_balance <= realistic.expected_balance <= optimistic.expected_balance


def test_scenario_multipliers(engine):
    assert engine.scenario_multipliers("pessimistic") == pytest.approx((0.9, 1.1))
    assert engine.scenario_multipliers(ForecastScenario.REALISTIC) == (1.0, 1.0)
    assert engine.scenario_multipliers("optimistic") == pytest.approx((1.1, 0.9))


def test_pessimistic_projection_values(engine, short_history):
    projection = engine.project(short_history, 1, ForecastScenario.PESSIMISTIC)[0]

    assert projection.expected_in == pytest.approx(133100 * 0.9, abs=1)
    assert projection.expected_out == pytest.approx(106480 * 1.1, abs=1)


def test_projection_uses_seasonality(engine, year_history):
    projections = engine.project(year_history, 12)
    by_month = {p.month_key: p for p in projections}

    assert by_month["122024"].seasonality_in > 1.0
    assert by_month["122024"].expected_in > by_month["112024"].expected_in


def test_amounts_are_never_negative(engine):
    history = [
        MonthlyAggregate("012024", 1000, 1000),
        MonthlyAggregate("022024", 100, 1000),
        MonthlyAggregate("032024", 1, 1000),
    ]
    for projection in engine.project(history, 6, "pessimistic"):
        assert projection.expected_in >= 0
        assert projection.expected_out >= 0


@pytest.mark.parametrize("months_ahead", [0, -1, 1.5, "3", True])
def test_project_rejects_bad_months_ahead(engine, short_history, months_ahead):
    with pytest.raises(InvalidArgumentError):
        engine.project(short_history, months_ahead)


@pytest.mark.parametrize("scenario", ["", None, "best-case"])
def test_project_rejects_bad_scenario(engine, short_history, scenario):
    with pytest.raises(InvalidArgumentError):
        engine.project(short_history, 1, scenario)


def test_project_rejects_empty_history(engine):
    with pytest.raises(InvalidArgumentError):
        engine.project([], 1)


def test_project_is_idempotent_and_does_not_touch_input(engine, short_history):
    history = list(reversed(short_history))
    snapshot = list(history)

    first = [p.to_dict() for p in engine.project(history, 3)]
    second = [p.to_dict() for p in engine.project(history, 3)]

    assert first == second
    assert history == snapshot


def test_engine_rejects_invalid_factors():
    with pytest.raises(InvalidArgumentError):
        ForecastEngine(pessimistic_factor=1.2)
    with pytest.raises(InvalidArgumentError):
        ForecastEngine(optimistic_factor=0.8)


def test_project_accounts(engine, short_history):
    accounts = engine.project_accounts(short_history, 2)

    assert set(accounts) == {"701", "601"}
    first = accounts["701"][0]
    assert first.month_key == "042024"
    # 3-month average of 90000, 99000, 108900 grown by 10%
    assert first.expected == pytest.approx(109230, abs=1)
    assert first.pessimistic == pytest.approx(109230 * 0.9, abs=1)
    assert first.optimistic == pytest.approx(109230 * 1.1, abs=1)
    assert accounts["701"][1].month_key == "052024"


def test_project_accounts_empty_history(engine):
    assert engine.project_accounts([], 3) == {}


def test_forecast_report(engine, short_history):
    report = engine.forecast(short_history, 3)

    assert report.available is True
    assert report.analysis_period == {"start": "012024", "end": "032024", "months": 3}
    assert report.forecast_period == {"months": 3, "start": "042024", "end": "062024"}
    assert set(report.projections) == {"pessimistic", "realistic", "optimistic"}
    assert report.indicators["accounts_analyzed"] == 2
    assert report.indicators["projected_margin"] == pytest.approx(20.0, abs=0.01)
    assert report.indicators["balance_growth_rate"] == pytest.approx(0.10)

    data = report.to_dict()
    assert data["projections"]["realistic"][0]["scenario"] == "realistic"
    assert data["account_projections"]["601"][0]["month_key"] == "042024"


def test_forecast_without_history(engine):
    report = engine.forecast([], 3)

    assert report.available is False
    assert report.reason == "no history available"
    assert report.projections == {}
