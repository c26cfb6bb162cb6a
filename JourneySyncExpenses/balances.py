"""
Balances Module

This module holds the group expense settlement calculator for the trip
expense tracker.

Features:
    - Equal splitting among the active participants of each expense
    - Per-member balance calculation (paid, share, net)
    - Tolerates stale payer and participant IDs (members who left the trip)
    - Settled flag passthrough from the caller-owned settled-status map

Data Model:
    Input - expenses (list of Expense objects or dicts):
        - amount: float
        - paid_by_user_id: string
        - participant_ids: list of member ids

    Input - members (list of Member objects or dicts, in display order):
        - id: string
        - name: string

    Input - settled_status (dict member_id -> bool), optional

    Output - BalanceSummary:
        - total_group_expense: float
        - balances: list of Balance, one per member, in member order
        - unattributed_paid: float (paid by someone no longer in the trip)
        - unshared_amount: float (no active participant left to share it)

Functions:
    calculate_balances: Compute the balance summary for one trip.
    round_amount: Round an amount to 2 decimal places for display.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

logger = logging.getLogger(__name__)


class Balance:
    """
    Net position of one member within a trip.

    Attributes:
        user_id (str): Member ID.
        user_name (str): Member display name.
        total_paid (float): Sum of expenses this member paid for.
        total_share (float): Sum of this member's equal shares.
        net_balance (float): total_paid - total_share.
            Positive = the group owes this member.
            Negative = this member owes the group.
        is_settled (bool): Settled flag taken from the settled-status map.
    """

    def __init__(
        self,
        user_id: str,
        user_name: str,
        total_paid: float,
        total_share: float,
        net_balance: float,
        is_settled: bool = False
    ):
        self.user_id = user_id
        self.user_name = user_name
        self.total_paid = total_paid
        self.total_share = total_share
        self.net_balance = net_balance
        self.is_settled = is_settled

    def to_dict(self) -> dict:
        """Convert balance to dictionary for API responses."""
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "total_paid": self.total_paid,
            "total_share": self.total_share,
            "net_balance": self.net_balance,
            "is_settled": self.is_settled
        }

    def __repr__(self) -> str:
        return f"Balance(user='{self.user_id}', net={self.net_balance}, settled={self.is_settled})"


class BalanceSummary:
    """Result of one calculation pass."""

    def __init__(
        self,
        total_group_expense: float = 0.0,
        balances: Optional[list] = None,
        unattributed_paid: float = 0.0,
        unshared_amount: float = 0.0
    ):
        self.total_group_expense = total_group_expense
        self.balances = balances if balances is not None else []
        self.unattributed_paid = unattributed_paid
        self.unshared_amount = unshared_amount

    def get(self, user_id: str) -> Optional[Balance]:
        """Return the balance for a member, or None if they are not in the summary."""
        for balance in self.balances:
            if balance.user_id == user_id:
                return balance
        return None

    def to_dict(self) -> dict:
        return {
            "total_group_expense": self.total_group_expense,
            "balances": [b.to_dict() for b in self.balances],
            "unattributed_paid": self.unattributed_paid,
            "unshared_amount": self.unshared_amount
        }


def round_amount(value) -> float:
    """
    Round an amount to 2 decimal places using ROUND_HALF_UP.

    Only used for display; the calculator keeps full precision.
    """
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _field(record, name: str, default=None):
    """Read a field from either a model object or a plain dict."""
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _to_decimal(amount) -> Decimal:
    if amount is None:
        return Decimal("0")
    return Decimal(str(amount))


def calculate_balances(
    expenses: list,
    members: list,
    settled_status: Optional[dict] = None
) -> BalanceSummary:
    """
    Calculate per-member balances and the total group expense.

    For each expense:
        1. The amount is added to the group total
        2. The payer's total_paid increases by the amount, if the payer is
           an active member
        3. The amount is split equally among participants who are active
           members, and each one's total_share increases by that share

    Args:
        expenses: Expenses of one trip (Expense objects or dicts).
        members: Active members of the trip (Member objects or dicts).
        settled_status: Optional mapping of member id to settled flag.

    Returns:
        BalanceSummary: Total, one Balance per member in member order, and
        the amounts that could not be attributed to any member.

    Notes:
        - Payer does NOT need to be a participant
        - Unknown payer: amount counts in the total but in nobody's paid
        - No eligible participant: amount counts in the total but in
          nobody's share
        - Never raises and never touches Firestore
    """
    if not members or not expenses:
        return BalanceSummary()

    settled_status = settled_status or {}

    # Member order drives output order; dict keeps insertion order
    paid = {}
    share = {}
    names = {}
    for member in members:
        member_id = _field(member, "id")
        if member_id in paid:
            continue
        paid[member_id] = Decimal("0")
        share[member_id] = Decimal("0")
        names[member_id] = _field(member, "name") or member_id

    total = Decimal("0")
    unattributed_paid = Decimal("0")
    unshared_amount = Decimal("0")

    for expense in expenses:
        amount = _to_decimal(_field(expense, "amount"))
        payer_id = _field(expense, "paid_by_user_id")
        total += amount

        if payer_id in paid:
            paid[payer_id] += amount
        else:
            unattributed_paid += amount
            logger.debug("Payer %s of expense %s is not an active member",
                         payer_id, _field(expense, "id"))

        # Intersect with active members, keeping listed order and dropping repeats
        eligible = []
        for participant_id in _field(expense, "participant_ids") or []:
            if participant_id in share and participant_id not in eligible:
                eligible.append(participant_id)

        if not eligible:
            unshared_amount += amount
            logger.debug("Expense %s has no active participants", _field(expense, "id"))
            continue

        share_per_head = amount / Decimal(len(eligible))
        for participant_id in eligible:
            share[participant_id] += share_per_head

    balances = [
        Balance(
            user_id=member_id,
            user_name=names[member_id],
            total_paid=float(paid[member_id]),
            total_share=float(share[member_id]),
            net_balance=float(paid[member_id] - share[member_id]),
            is_settled=bool(settled_status.get(member_id, False))
        )
        for member_id in paid
    ]

    return BalanceSummary(
        total_group_expense=float(total),
        balances=balances,
        unattributed_paid=float(unattributed_paid),
        unshared_amount=float(unshared_amount)
    )
