import pytest

from members import add_member, find_member, get_members, remove_member


def test_members_listed_in_join_order(trip):
    assert [m.id for m in get_members(trip)] == ["A", "B", "C"]


def test_join_twice_keeps_original(trip):
    member = add_member(trip, "B", "Robert")

    assert member.name == "Bob"
    assert len(get_members(trip)) == 3


def test_find_member(trip):
    assert find_member(trip, "C").name == "Carol"
    assert find_member(trip, "Z") is None


def test_remove_member(trip):
    remove_member(trip, "C")

    assert [m.id for m in get_members(trip)] == ["A", "B"]
    with pytest.raises(LookupError):
        remove_member(trip, "C")


@pytest.mark.parametrize("member_id, name", [("", "Dan"), ("D", "  ")])
def test_add_member_validation(trip, member_id, name):
    with pytest.raises(ValueError):
        add_member(trip, member_id, name)
