"""
Analytics Module

This module provides the reporting view for the trip expense tracker.

Features:
    - Category-wise expense breakdown for the spending chart
    - Budget progress and over-budget signal
    - One combined summary for the API and PDF report

Data Model:
    Input - expenses: list of Expense objects or dicts with:
        - amount: float
        - category: string

    Output - expense_summary dict:
        - total_group_expense, balances, unattributed_paid, unshared_amount
        - category_breakdown: list of {"category", "total"}
        - budget, budget_progress, over_budget, budget_alert

Functions:
    category_breakdown: Totals per category in chart order.
    expense_summary: Balances plus analytics for one trip.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from balances import calculate_balances, round_amount
from budget import budget_alert, budget_progress, is_over_budget
from expenses import EXPENSE_CATEGORIES


def _field(record, name: str, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def category_breakdown(expenses: list) -> list[dict]:
    """
    Total amount spent per category.

    Categories keep the fixed chart order; categories with no spend are
    omitted. Unknown categories are appended after the known ones.

    Returns:
        list[dict]: [{"category": str, "total": float}, ...]
    """
    totals = defaultdict(Decimal)
    for expense in expenses:
        totals[_field(expense, "category")] += Decimal(str(_field(expense, "amount", 0) or 0))

    ordered = EXPENSE_CATEGORIES + sorted(
        c for c in totals if c not in EXPENSE_CATEGORIES and c is not None
    )
    return [
        {"category": category, "total": round_amount(totals[category])}
        for category in ordered
        if totals.get(category, Decimal("0")) > 0
    ]


def expense_summary(
    expenses: list,
    members: list,
    settled_status: Optional[dict] = None,
    budget: Optional[float] = None
) -> dict:
    """
    Build the complete expense view for one trip.

    Args:
        expenses: Expenses of the trip.
        members: Active members, in display order.
        settled_status: member_id -> settled flag.
        budget: Trip budget or None.

    Returns:
        dict: Calculator output plus category breakdown and budget signal.
    """
    summary = calculate_balances(expenses, members, settled_status)
    total = summary.total_group_expense

    result = summary.to_dict()
    result.update({
        "category_breakdown": category_breakdown(expenses),
        "budget": budget,
        "budget_progress": budget_progress(total, budget),
        "over_budget": is_over_budget(total, budget),
        "budget_alert": budget_alert(total, budget)
    })
    return result
