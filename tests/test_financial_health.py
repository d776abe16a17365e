import pytest

from src.forecasting import (
    FinancialHealthAnalyzer,
    HealthRating,
    InvalidArgumentError,
    MonthlyAggregate
)


@pytest.fixture
def analyzer():
    return FinancialHealthAnalyzer()


@pytest.fixture
def categories():
    return {
        "701": "entree", "707": "entree", "758": "entree", "771": "entree",
        "601": "sortie", "613": "sortie", "641": "sortie", "626": "sortie",
    }


@pytest.fixture
def busy_month():
    return MonthlyAggregate(
        "032024",
        1000000,
        800000,
        {
            "701": 600000, "707": 200000, "758": 150000, "771": 50000,
            "601": 400000, "613": 200000, "641": 100000, "626": 100000,
        }
    )


def test_compute_ratios(analyzer, busy_month, categories):
    ratios = analyzer.compute_ratios(busy_month, operation_count=90, cash_balance=400000,
                                     account_categories=categories)

    assert ratios.gross_margin == 20.0
    assert ratios.costs_to_revenue == 80.0
    assert ratios.average_operation_amount == 20000.0
    # 800000 spent over 30 days
    assert ratios.cash_days == 15.0
    assert ratios.top3_inflow_concentration == 95.0
    assert ratios.top3_outflow_concentration == 87.5
    assert ratios.to_dict()["cash_balance"] == 400000


def test_concentration_needs_categories(analyzer, busy_month):
    ratios = analyzer.compute_ratios(busy_month)

    assert ratios.top3_inflow_concentration is None
    assert ratios.top3_outflow_concentration is None
    assert ratios.average_operation_amount == 0.0


def test_month_without_activity(analyzer):
    ratios = analyzer.compute_ratios(MonthlyAggregate("032024", 0, 0), cash_balance=50000)

    assert ratios.gross_margin == 0.0
    assert ratios.costs_to_revenue == 0.0
    assert ratios.cash_days == 999.0


def test_negative_operation_count_rejected(analyzer, busy_month):
    with pytest.raises(InvalidArgumentError):
        analyzer.compute_ratios(busy_month, operation_count=-1)


def test_healthy_month_scores_excellent(analyzer):
    month = MonthlyAggregate("032024", 1000000, 500000)

    health = analyzer.health_score(month, operation_count=150, cash_balance=1200000)

    assert health.score == 100
    assert health.rating == HealthRating.EXCELLENT
    assert [d.points for d in health.details] == [30, 30, 20, 20]
    assert health.to_dict()["rating"] == "excellent"


def test_middle_tiers(analyzer, busy_month):
    health = analyzer.health_score(busy_month, operation_count=60, cash_balance=1000000)

    points = {d.criterion: d.points for d in health.details}
    # margin of exactly 20% falls in the tier below
    assert points["Profitability"] == 20
    # 37.5 days of cover
    assert points["Cash"] == 20
    assert points["Cost control"] == 10
    assert points["Activity volume"] == 15
    assert health.score == 65
    assert health.rating == HealthRating.AVERAGE


def test_loss_making_month_is_fragile(analyzer):
    month = MonthlyAggregate("032024", 100000, 150000)

    health = analyzer.health_score(month, operation_count=5, cash_balance=0)

    comments = {d.criterion: d.comment for d in health.details}
    assert comments["Profitability"] == "Loss-making"
    assert comments["Cash"] == "Critical cash position"
    assert comments["Cost control"] == "High costs"
    assert health.score == 10
    assert health.rating == HealthRating.FRAGILE


def test_no_revenue_counts_as_high_costs(analyzer):
    health = analyzer.health_score(MonthlyAggregate("032024", 0, 20000))

    cost = next(d for d in health.details if d.criterion == "Cost control")
    assert cost.points == 5


def test_rating_boundaries(analyzer):
    # 30 + 30 + 20 + 5
    month = MonthlyAggregate("032024", 1000000, 500000)
    health = analyzer.health_score(month, operation_count=0, cash_balance=1200000)
    assert health.score == 85
    assert health.rating == HealthRating.EXCELLENT

    # 30 + 0 + 20 + 20
    health = analyzer.health_score(month, operation_count=150, cash_balance=0)
    assert health.score == 70
    assert health.rating == HealthRating.GOOD
