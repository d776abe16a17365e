import pytest

from src.forecasting import (
    BudgetSuggester,
    ConfidenceLevel,
    InvalidArgumentError,
    MonthlyAggregate
)
from src.forecasting.month_keys import shift_month_key


@pytest.fixture
def suggester():
    return BudgetSuggester()


def _account_history(account_id, amounts, start_month=1, year=2024):
    return [
        MonthlyAggregate(f"{start_month + i:02d}{year}", amount, amount, {account_id: amount})
        for i, amount in enumerate(amounts)
    ]


def test_single_month_is_insufficient(suggester):
    history = [MonthlyAggregate("012024", 100000, 50000, {"601": 50000})]

    suggestion = suggester.suggest_budget_line(history, "601", "022024")

    assert suggestion.available is False
    assert suggestion.reason == "insufficient history"
    assert suggestion.to_dict()["reason"] == "insufficient history"
    assert suggestion.basis_months == 1


def test_stable_history_gives_high_confidence(suggester, short_history):
    suggestion = suggester.suggest_budget_line(short_history, "601", "042024")

    assert suggestion.available is True
    assert suggestion.confidence == ConfidenceLevel.HIGH
    assert suggestion.basis_months == 3
    assert suggestion.mean_amount == pytest.approx(44133, abs=1)
    # mean grown one month at 10%
    assert suggestion.suggested_amount == pytest.approx(48547, abs=1)
    assert suggestion.min_amount == 40000
    assert suggestion.max_amount == 48400
    assert suggestion.trend == "stable"
    assert [h["month_key"] for h in suggestion.history] == ["012024", "022024", "032024"]


def test_medium_and_low_confidence(suggester):
    medium = suggester.suggest_budget_line(_account_history("611", [100, 130, 70]), "611", "042024")
    low = suggester.suggest_budget_line(_account_history("611", [10000, 50000, 20000]), "611", "042024")

    assert medium.confidence == ConfidenceLevel.MEDIUM
    assert low.confidence == ConfidenceLevel.LOW
    assert low.trend == "falling"


def test_classify_confidence_thresholds(suggester):
    assert suggester.classify_confidence(0.0) == ConfidenceLevel.HIGH
    assert suggester.classify_confidence(0.149) == ConfidenceLevel.HIGH
    assert suggester.classify_confidence(0.15) == ConfidenceLevel.MEDIUM
    assert suggester.classify_confidence(0.349) == ConfidenceLevel.MEDIUM
    assert suggester.classify_confidence(0.35) == ConfidenceLevel.LOW


def test_only_months_before_target_count(suggester, short_history):
    suggestion = suggester.suggest_budget_line(short_history, "601", "022024")

    assert suggestion.available is False
    assert suggestion.basis_months == 1


def test_lookback_window(suggester, year_history):
    suggestion = suggester.suggest_budget_line(year_history, "613", "012024")

    assert suggestion.available is True
    assert suggestion.basis_months == 6
    assert suggestion.history[0]["month_key"] == "072023"
    assert suggestion.suggested_amount == 30000
    assert suggestion.coefficient_of_variation == 0.0
    assert suggestion.confidence == ConfidenceLevel.HIGH


def test_months_without_activity_are_ignored(suggester):
    history = _account_history("611", [5000, 0, 5000, 5000])

    suggestion = suggester.suggest_budget_line(history, "611", "052024")

    assert suggestion.available is True
    assert suggestion.basis_months == 3
    assert suggestion.suggested_amount == 5000


def test_unknown_account_is_insufficient(suggester, short_history):
    suggestion = suggester.suggest_budget_line(short_history, "999", "042024")

    assert suggestion.available is False
    assert suggestion.basis_months == 0


def test_invalid_arguments(suggester, short_history):
    with pytest.raises(InvalidArgumentError):
        suggester.suggest_budget_line(short_history, "", "042024")
    with pytest.raises(InvalidArgumentError):
        suggester.suggest_budget_line(short_history, "601", "2024-04")


def test_suggest_for_accounts(suggester, short_history):
    suggestions = suggester.suggest_for_accounts(short_history, ["701", "601"], "042024")

    assert set(suggestions) == {"701", "601"}
    assert all(s.available for s in suggestions.values())


def test_suggester_rejects_inverted_thresholds():
    with pytest.raises(InvalidArgumentError):
        BudgetSuggester(high_confidence_cv=0.5, medium_confidence_cv=0.2)


def test_seasonal_peak_raises_december_suggestion(suggester):
    history = []
    for offset in range(24):
        month_key = shift_month_key("012022", offset)
        amount = 30000.0 if month_key.startswith("12") else 10000.0
        history.append(MonthlyAggregate(month_key, amount, amount, {"601": amount}))

    suggestion = suggester.suggest_budget_line(history, "601", "122023")

    # the six months before December are flat, the peak only shows a year back
    assert suggestion.basis_months == 6
    assert suggestion.mean_amount == 10000
    assert suggestion.confidence == ConfidenceLevel.HIGH
    # December averages 30000 against 250000 / 23 over the prior history
    assert suggestion.suggested_amount == pytest.approx(27600, abs=1)
    assert suggestion.suggested_amount > suggestion.mean_amount


def test_off_peak_month_suggestion_is_scaled_down(suggester):
    history = []
    for offset in range(24):
        month_key = shift_month_key("012022", offset)
        amount = 30000.0 if month_key.startswith("12") else 10000.0
        history.append(MonthlyAggregate(month_key, amount, amount, {"601": amount}))

    suggestion = suggester.suggest_budget_line(history, "601", "112023")

    # November averages 10000 against 240000 / 22 over the prior history
    assert suggestion.suggested_amount == pytest.approx(9167, abs=1)
    assert suggestion.suggested_amount < suggestion.mean_amount
