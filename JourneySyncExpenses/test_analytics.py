import pytest

from analytics import category_breakdown, expense_summary


def test_category_breakdown_keeps_chart_order(scenario_expenses):
    extra = dict(scenario_expenses[0], id="E003", category="Transport", amount=12.5)

    assert category_breakdown(scenario_expenses + [extra]) == [
        {"category": "Food", "total": 120.0},
        {"category": "Transport", "total": 12.5},
        {"category": "Activities", "total": 45.0},
    ]


def test_category_breakdown_empty():
    assert category_breakdown([]) == []


def test_summary_without_budget(members, scenario_expenses):
    summary = expense_summary(scenario_expenses, members)

    assert summary["total_group_expense"] == 165
    assert len(summary["balances"]) == 3
    assert summary["budget"] is None
    assert summary["budget_progress"] == 0
    assert summary["over_budget"] is False
    assert summary["budget_alert"] is None


def test_summary_over_budget(members, scenario_expenses):
    summary = expense_summary(scenario_expenses, members, {"B": True}, budget=150)

    assert summary["over_budget"] is True
    assert summary["budget_progress"] == pytest.approx(110)
    assert summary["budget_alert"] == "The group has spent 165.00, exceeding the budget of 150.00."
    assert summary["balances"][1]["is_settled"] is True


def test_summary_under_budget(members, scenario_expenses):
    summary = expense_summary(scenario_expenses, members, budget=200)

    assert summary["over_budget"] is False
    assert summary["budget_alert"] is None
