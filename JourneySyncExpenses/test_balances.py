import pytest

from balances import calculate_balances, round_amount
from expenses import Expense
from members import Member


def _expense(amount, paid_by, participants, expense_id="E001"):
    return {
        "id": expense_id,
        "amount": amount,
        "paid_by_user_id": paid_by,
        "participant_ids": participants,
    }


def test_scenario_balances(members, scenario_expenses):
    summary = calculate_balances(scenario_expenses, members)

    assert summary.total_group_expense == 165
    a, b, c = summary.balances
    assert (a.total_paid, a.total_share, a.net_balance) == (120, 62.5, 57.5)
    assert (b.total_paid, b.total_share, b.net_balance) == (45, 62.5, -17.5)
    assert (c.total_paid, c.total_share, c.net_balance) == (0, 40, -40)
    assert sum(bal.net_balance for bal in summary.balances) == pytest.approx(0)


def test_balances_follow_member_order(members, scenario_expenses):
    summary = calculate_balances(scenario_expenses, list(reversed(members)))

    assert [b.user_id for b in summary.balances] == ["C", "B", "A"]
    assert [b.user_name for b in summary.balances] == ["Carol", "Bob", "Alice"]


def test_no_members_is_empty_state(scenario_expenses):
    summary = calculate_balances(scenario_expenses, [])

    assert summary.total_group_expense == 0
    assert summary.balances == []


def test_no_expenses_is_empty_state(members):
    summary = calculate_balances([], members)

    assert summary.total_group_expense == 0
    assert summary.balances == []


def test_equal_split_among_participants(members):
    summary = calculate_balances([_expense(100, "A", ["A", "B", "C"])], members)

    for balance in summary.balances:
        assert balance.total_share == pytest.approx(100 / 3)


def test_non_participant_share_is_zero(members):
    summary = calculate_balances([_expense(80, "A", ["A", "B"])], members)

    assert summary.get("A").total_share == 40
    assert summary.get("B").total_share == 40
    assert summary.get("C").total_share == 0


def test_payer_not_participant_gets_full_credit(members):
    summary = calculate_balances([_expense(60, "C", ["A", "B"])], members)

    carol = summary.get("C")
    assert carol.total_paid == 60
    assert carol.total_share == 0
    assert carol.net_balance == 60


def test_stale_participant_is_excluded(members):
    summary = calculate_balances([_expense(90, "A", ["A", "B", "gone"])], members)

    assert summary.get("A").total_share == 45
    assert summary.get("B").total_share == 45
    assert summary.unshared_amount == 0


def test_stale_payer_counts_in_total_only(members):
    summary = calculate_balances([_expense(30, "gone", ["A", "B"])], members)

    assert summary.total_group_expense == 30
    assert all(b.total_paid == 0 for b in summary.balances)
    assert summary.unattributed_paid == 30
    assert summary.get("A").total_share == 15


def test_no_eligible_participants_counts_in_total_only(members):
    summary = calculate_balances([_expense(50, "A", ["gone", "left"])], members)

    assert summary.total_group_expense == 50
    assert summary.get("A").total_paid == 50
    assert all(b.total_share == 0 for b in summary.balances)
    assert summary.unshared_amount == 50


def test_duplicate_participant_counts_once(members):
    summary = calculate_balances([_expense(60, "A", ["A", "B", "B"])], members)

    assert summary.get("A").total_share == 30
    assert summary.get("B").total_share == 30


def test_settled_flag_passthrough(members, scenario_expenses):
    before = calculate_balances(scenario_expenses, members, {})
    after = calculate_balances(scenario_expenses, members, {"C": True})

    assert not before.get("C").is_settled
    assert after.get("C").is_settled
    assert after.get("C").net_balance == before.get("C").net_balance
    assert not after.get("A").is_settled
    assert not after.get("B").is_settled


def test_settled_flag_ignores_balance_sign(members, scenario_expenses):
    summary = calculate_balances(scenario_expenses, members, {"A": True})

    assert summary.get("A").net_balance > 0
    assert summary.get("A").is_settled


def test_conservation_with_uneven_split(members):
    expenses = [
        _expense(100, "A", ["A", "B", "C"], "E001"),
        _expense(10, "B", ["A", "C"], "E002"),
        _expense(33.33, "C", ["B", "C", "A"], "E003"),
        _expense(7, "A", ["C"], "E004"),
    ]
    summary = calculate_balances(expenses, members)

    assert summary.total_group_expense == pytest.approx(150.33)
    assert sum(b.net_balance for b in summary.balances) == pytest.approx(0, abs=1e-9)
    assert summary.unattributed_paid == 0
    assert summary.unshared_amount == 0


def test_accepts_model_objects():
    members = [Member(id="A", name="Alice"), Member(id="B", name="Bob")]
    expenses = [
        Expense(
            id="E001",
            description="Taxi",
            amount=24.0,
            paid_by_user_id="B",
            date="2024-07-20",
            participant_ids=["A", "B"],
            trip_id="trip1",
            category="Transport",
        )
    ]
    summary = calculate_balances(expenses, members)

    assert summary.get("A").net_balance == -12
    assert summary.get("B").net_balance == 12


def test_inputs_are_not_modified(members, scenario_expenses):
    snapshot = [dict(e, participant_ids=list(e["participant_ids"])) for e in scenario_expenses]
    calculate_balances(scenario_expenses, members, {"A": True})

    assert scenario_expenses == snapshot


def test_to_dict_shape(members, scenario_expenses):
    data = calculate_balances(scenario_expenses, members).to_dict()

    assert data["total_group_expense"] == 165
    assert data["balances"][0] == {
        "user_id": "A",
        "user_name": "Alice",
        "total_paid": 120,
        "total_share": 62.5,
        "net_balance": 57.5,
        "is_settled": False,
    }


def test_round_amount_half_up():
    assert round_amount(2.675) == 2.68
    assert round_amount(100 / 3) == 33.33
