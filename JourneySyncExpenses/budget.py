"""
Budget Module

Budget validation and the over-budget signal for a trip.

Functions:
    parse_budget: Validate a user-supplied budget value.
    is_over_budget: True when the group total exceeds the budget.
    budget_progress: Percentage of the budget already spent.
    budget_alert: One-shot "Budget Exceeded" message, or None.
"""

import logging
import math
from typing import Optional

logger = logging.getLogger(__name__)


def parse_budget(value) -> Optional[float]:
    """
    Validate a budget value before it is stored.

    Args:
        value: Number or numeric string. None or an empty string clears the budget.

    Returns:
        float | None: The budget, or None when no budget is configured.

    Raises:
        ValueError: If the value is not a finite non-negative number.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    if isinstance(value, bool):
        raise ValueError(f"budget must be a non-negative number, got: {value}")

    try:
        budget = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"budget must be a non-negative number, got: {value}")

    if math.isnan(budget) or math.isinf(budget) or budget < 0:
        raise ValueError(f"budget must be a non-negative number, got: {value}")

    return budget


def is_over_budget(total: float, budget: Optional[float]) -> bool:
    """Return True if a budget is configured and total spend exceeds it."""
    return budget is not None and total > budget


def budget_progress(total: float, budget: Optional[float]) -> float:
    """
    Percentage of the budget spent.

    Returns 0 when no budget is set or the budget is 0. May exceed 100.
    """
    if not budget:
        return 0.0
    return (total / budget) * 100


def budget_alert(total: float, budget: Optional[float]) -> Optional[str]:
    """
    Build the budget-exceeded notification.

    Evaluated on every call; nothing is remembered between calls.

    Returns:
        str | None: Alert text when over budget, otherwise None.
    """
    if not is_over_budget(total, budget):
        return None

    message = (
        f"The group has spent {total:.2f}, "
        f"exceeding the budget of {budget:.2f}."
    )
    logger.warning("Budget exceeded: %s", message)
    return message
