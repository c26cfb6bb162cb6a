"""
Settlement Module

Manual settle-up for trip members.

A member is marked as settled when their debt was cleared outside the app
(cash, bank transfer). The flag is never derived from the balance sign, and
there is no operation to unsettle a member.

Functions:
    mark_as_settled: Flag a member as settled.
    get_settled_status: Read the settled-status map for a trip.
"""

import logging
import firebase_store
from members import find_member

logger = logging.getLogger(__name__)


def mark_as_settled(trip_id: str, member_id: str) -> dict:
    """
    Mark a member's balance as settled.

    Args:
        trip_id: The ID of the trip.
        member_id: The member to flag.

    Returns:
        dict: The updated settled-status map for the trip.

    Raises:
        ValueError: If member_id is invalid or not a member of the trip.
        DatabaseUnavailableError: If Firestore is not available.
    """
    if not isinstance(member_id, str) or not member_id.strip():
        raise ValueError("member_id must be a non-empty string")

    member = find_member(trip_id, member_id)
    if member is None:
        raise ValueError(f"'{member_id}' is not a member of trip {trip_id}")

    firebase_store.save_settled_status(trip_id, member_id, True)
    logger.info("%s's balance marked as settled in trip %s", member.name, trip_id)

    return get_settled_status(trip_id)


def get_settled_status(trip_id: str) -> dict:
    """Return the member_id -> settled flag map for a trip."""
    return firebase_store.get_settled_status(trip_id)
