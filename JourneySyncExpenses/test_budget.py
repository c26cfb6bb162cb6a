import logging

import pytest

from budget import budget_alert, budget_progress, is_over_budget, parse_budget


@pytest.mark.parametrize("value, expected", [
    (1000, 1000.0),
    ("250.5", 250.5),
    (" 0 ", 0.0),
    (None, None),
    ("", None),
])
def test_parse_budget_accepts(value, expected):
    assert parse_budget(value) == expected


@pytest.mark.parametrize("value", ["-1", -0.01, "abc", "nan", "inf", True, [100]])
def test_parse_budget_rejects(value):
    with pytest.raises(ValueError):
        parse_budget(value)


def test_over_budget_requires_configured_budget():
    assert not is_over_budget(500, None)
    assert not is_over_budget(100, 100)
    assert is_over_budget(100.01, 100)
    assert is_over_budget(1, 0)


def test_budget_progress():
    assert budget_progress(50, 200) == 25
    assert budget_progress(300, 200) == 150
    assert budget_progress(50, None) == 0
    assert budget_progress(50, 0) == 0


def test_budget_alert_message(caplog):
    with caplog.at_level(logging.WARNING, logger="budget"):
        message = budget_alert(165, 100)

    assert message == "The group has spent 165.00, exceeding the budget of 100.00."
    assert "Budget exceeded" in caplog.text


def test_budget_alert_fires_on_every_evaluation():
    assert budget_alert(165, 100) is not None
    assert budget_alert(165, 100) is not None
    assert budget_alert(165, 200) is None
    assert budget_alert(165, None) is None
