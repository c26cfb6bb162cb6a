"""
Firebase Store Module

This module handles saving trip-level state to Firebase Firestore for the
trip expense tracker.

Features:
    - Create and read trip documents
    - Save and read the trip budget
    - Save and read the settled-status map
    - All saves are idempotent (safe to overwrite)

Firestore Structure:
    trips/{trip_id}
        - id: string
        - name: string
        - created_by: string or None
        - budget: float or None
        - created_at: timestamp
        - updated_at: timestamp

    trips/{trip_id}/settled/{member_id}
        - member_id: string
        - is_settled: bool
        - updated_at: timestamp

Balances are derived on every request and never stored.

Functions:
    create_trip: Create a trip document.
    get_trip: Read a trip document.
    save_budget: Save the trip budget.
    get_budget: Read the trip budget.
    save_settled_status: Save one member's settled flag.
    get_settled_status: Read the settled-status map.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from config.firebase_config import get_db
from errors import DatabaseUnavailableError, NotFoundError

logger = logging.getLogger(__name__)


def _get_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        str: ISO formatted timestamp.
    """
    return datetime.now(timezone.utc).isoformat()


def _validate_trip_id(trip_id: str) -> None:
    """
    Validate that trip_id is a non-empty string.

    Raises:
        ValueError: If trip_id is invalid.
    """
    if not isinstance(trip_id, str) or not trip_id.strip():
        raise ValueError("trip_id must be a non-empty string")


def _trip_ref(trip_id: str):
    _validate_trip_id(trip_id)

    db = get_db()
    if db is None:
        raise DatabaseUnavailableError("Firestore is not available")
    return db.collection("trips").document(trip_id)


def create_trip(trip_id: str, name: str, created_by: Optional[str] = None) -> dict:
    """
    Create a trip document at trips/{trip_id}.

    Returns:
        dict: The stored trip document.

    Raises:
        ValueError: If trip_id or name is invalid.
        DatabaseUnavailableError: If Firestore is not available.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("name must be a non-empty string")

    timestamp = _get_timestamp()
    trip_doc = {
        "id": trip_id,
        "name": name.strip(),
        "created_by": created_by,
        "budget": None,
        "created_at": timestamp,
        "updated_at": timestamp
    }
    _trip_ref(trip_id).set(trip_doc)
    logger.info("Created trip %s", trip_id)

    return trip_doc


def get_trip(trip_id: str) -> dict:
    """
    Read a trip document.

    Raises:
        NotFoundError: If the trip does not exist.
        DatabaseUnavailableError: If Firestore is not available.
    """
    doc = _trip_ref(trip_id).get()
    if not doc.exists:
        raise NotFoundError(f"Trip {trip_id} not found")
    return doc.to_dict()


def save_budget(trip_id: str, budget: Optional[float]) -> dict:
    """
    Save the trip budget.

    The value must already be validated with budget.parse_budget().
    None clears the budget.

    Returns:
        dict: Confirmation with the saved budget and timestamp.

    Raises:
        NotFoundError: If the trip does not exist.
        DatabaseUnavailableError: If Firestore is not available.
    """
    doc_ref = _trip_ref(trip_id)
    if not doc_ref.get().exists:
        raise NotFoundError(f"Trip {trip_id} not found")

    timestamp = _get_timestamp()
    doc_ref.update({"budget": budget, "updated_at": timestamp})
    logger.info("Budget for trip %s set to %s", trip_id, budget)

    return {
        "budget": budget,
        "updated_at": timestamp
    }


def get_budget(trip_id: str) -> Optional[float]:
    """Return the trip budget, or None if none is configured."""
    return get_trip(trip_id).get("budget")


def save_settled_status(trip_id: str, member_id: str, is_settled: bool = True) -> dict:
    """
    Save one member's settled flag at trips/{trip_id}/settled/{member_id}.

    Returns:
        dict: The stored document.

    Raises:
        ValueError: If trip_id or member_id is invalid.
        DatabaseUnavailableError: If Firestore is not available.
    """
    if not isinstance(member_id, str) or not member_id.strip():
        raise ValueError("member_id must be a non-empty string")

    doc_data = {
        "member_id": member_id,
        "is_settled": bool(is_settled),
        "updated_at": _get_timestamp()
    }
    _trip_ref(trip_id).collection("settled").document(member_id).set(doc_data)

    return doc_data


def get_settled_status(trip_id: str) -> dict:
    """
    Read the settled-status map for a trip.

    Returns:
        dict: member_id -> bool
    """
    docs = _trip_ref(trip_id).collection("settled").stream()
    return {doc.id: bool(doc.to_dict().get("is_settled", False)) for doc in docs}
