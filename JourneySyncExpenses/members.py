"""
Members Module

This module handles trip membership for the trip expense tracker.

Features:
    - Join a trip (add member)
    - Leave a trip (remove member)
    - List members in join order
    - Look up a single member

Data Model:
    Member stored at: trips/{trip_id}/members/{member_id}
    Fields:
        - id: string (user id from the auth provider)
        - name: string
        - email: string or None
        - joined_at: string (UTC ISO timestamp)

Functions:
    add_member: Add a member to a trip.
    remove_member: Remove a member from a trip.
    get_members: Get all current members of a trip.
    find_member: Get one member, or None if not found.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from config.firebase_config import get_db
from errors import DatabaseUnavailableError, NotFoundError

logger = logging.getLogger(__name__)


class Member:
    """
    Represents a member of a trip.

    Attributes:
        id (str): Stable user identifier.
        name (str): Display name.
        email (str | None): Optional email address.
        joined_at (str | None): When the member joined (UTC ISO format).
    """

    def __init__(
        self,
        id: str,
        name: str,
        email: Optional[str] = None,
        joined_at: Optional[str] = None
    ):
        self.id = id
        self.name = name
        self.email = email
        self.joined_at = joined_at

    def to_dict(self) -> dict:
        """Convert member to dictionary for Firestore storage."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "joined_at": self.joined_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        """Create a Member instance from a dictionary."""
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            email=data.get("email"),
            joined_at=data.get("joined_at")
        )

    def __repr__(self) -> str:
        return f"Member(id='{self.id}', name='{self.name}')"


def _validate_non_empty_string(value: str, field_name: str) -> bool:
    """
    Validate that a string is non-empty.

    Raises:
        ValueError: If string is empty or not a string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return True


def _members_ref(trip_id: str):
    db = get_db()
    if db is None:
        raise DatabaseUnavailableError("Firestore is not available")
    return db.collection("trips").document(trip_id).collection("members")


def add_member(
    trip_id: str,
    member_id: str,
    name: str,
    email: Optional[str] = None
) -> Member:
    """
    Add a member to a trip.

    Joining twice is a no-op that returns the existing member.

    Args:
        trip_id: The ID of the trip.
        member_id: The user's ID.
        name: Display name.
        email: Optional email address.

    Returns:
        Member: The stored member.

    Raises:
        ValueError: If input validation fails.
        DatabaseUnavailableError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(member_id, "member_id")
    _validate_non_empty_string(name, "name")

    doc_ref = _members_ref(trip_id).document(member_id)
    doc = doc_ref.get()
    if doc.exists:
        return Member.from_dict(doc.to_dict())

    member = Member(
        id=member_id,
        name=name.strip(),
        email=email.strip() if email else None,
        joined_at=datetime.now(timezone.utc).isoformat()
    )
    doc_ref.set(member.to_dict())
    logger.info("Member %s joined trip %s", member_id, trip_id)

    return member


def remove_member(trip_id: str, member_id: str) -> None:
    """
    Remove a member from a trip.

    Expenses that reference the member are left untouched; the balance
    calculator skips ids that are no longer members.

    Raises:
        ValueError: If input validation fails.
        NotFoundError: If the member is not in the trip.
        DatabaseUnavailableError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(member_id, "member_id")

    doc_ref = _members_ref(trip_id).document(member_id)
    if not doc_ref.get().exists:
        raise NotFoundError(f"Member {member_id} not found in trip {trip_id}")

    doc_ref.delete()
    logger.info("Member %s left trip %s", member_id, trip_id)


def get_members(trip_id: str) -> list[Member]:
    """
    Get all current members of a trip, ordered by join time then id.

    Raises:
        ValueError: If trip_id is invalid.
        DatabaseUnavailableError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")

    members = [Member.from_dict(doc.to_dict()) for doc in _members_ref(trip_id).stream()]
    members.sort(key=lambda m: (m.joined_at or "", m.id))
    return members


def find_member(trip_id: str, member_id: str) -> Optional[Member]:
    """Return the member with the given id, or None if they are not in the trip."""
    _validate_non_empty_string(trip_id, "trip_id")

    doc = _members_ref(trip_id).document(member_id).get()
    if not doc.exists:
        return None
    return Member.from_dict(doc.to_dict())
