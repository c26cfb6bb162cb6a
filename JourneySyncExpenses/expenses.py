"""
Expenses Module

This module handles all expense-related operations for the trip expense
tracker.

Features:
    - Add/edit/delete expenses
    - Categorize expenses (Food, Transport, Accommodation, ...)
    - Track who paid and who shares the cost
    - Support for partial participant lists

Data Model:
    Expense stored at: trips/{trip_id}/expenses/{expense_id}
    Fields:
        - id: string (E001, E002, ... format)
        - description: string
        - amount: float (must be > 0)
        - currency: string (USD, EUR, GBP, JPY, CAD)
        - category: string
        - paid_by_user_id: string (member id of who paid)
        - date: string (YYYY-MM-DD)
        - participant_ids: list of member ids sharing the cost
        - trip_id: string

Functions:
    add_expense: Add a new expense to a trip.
    update_expense: Change fields of an existing expense.
    delete_expense: Remove an expense.
    get_expenses: Get all expenses for a trip.
"""

import logging
import re
from datetime import datetime
from typing import Optional

from google.api_core.exceptions import AlreadyExists

from config.firebase_config import get_db
from errors import DatabaseUnavailableError, NotFoundError

logger = logging.getLogger(__name__)


# Ordered as shown in the category chart
EXPENSE_CATEGORIES = ["Food", "Transport", "Accommodation", "Activities", "Shopping", "Miscellaneous"]
VALID_CATEGORIES = set(EXPENSE_CATEGORIES)

CURRENCIES = ["USD", "EUR", "GBP", "JPY", "CAD"]
DEFAULT_CURRENCY = "USD"

MAX_ID_ATTEMPTS = 5

UPDATABLE_FIELDS = {
    "description", "amount", "currency", "category",
    "paid_by_user_id", "date", "participant_ids"
}


class Expense:
    """
    Represents a single shared cost in the trip.

    Attributes:
        id (str): Unique identifier in E### format.
        description (str): What the money was spent on.
        amount (float): Amount of the expense.
        currency (str): Currency code.
        category (str): One of EXPENSE_CATEGORIES.
        paid_by_user_id (str): Member ID of who fronted the money.
        date (str): Date of expense (YYYY-MM-DD).
        participant_ids (list[str]): Member IDs who share the cost equally.
        trip_id (str): Trip the expense belongs to.
    """

    def __init__(
        self,
        id: str,
        description: str,
        amount: float,
        paid_by_user_id: str,
        date: str,
        participant_ids: list[str],
        trip_id: str,
        currency: str = DEFAULT_CURRENCY,
        category: str = EXPENSE_CATEGORIES[0]
    ):
        self.id = id
        self.description = description
        self.amount = amount
        self.currency = currency
        self.category = category
        self.paid_by_user_id = paid_by_user_id
        self.date = date
        self.participant_ids = participant_ids
        self.trip_id = trip_id

    def to_dict(self) -> dict:
        """Convert expense to dictionary for Firestore storage."""
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "currency": self.currency,
            "category": self.category,
            "paid_by_user_id": self.paid_by_user_id,
            "date": self.date,
            "participant_ids": self.participant_ids,
            "trip_id": self.trip_id
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        """Create an Expense instance from a dictionary."""
        return cls(
            id=data.get("id"),
            description=data.get("description"),
            amount=data.get("amount", 0.0),
            currency=data.get("currency", DEFAULT_CURRENCY),
            category=data.get("category", EXPENSE_CATEGORIES[0]),
            paid_by_user_id=data.get("paid_by_user_id"),
            date=data.get("date"),
            participant_ids=data.get("participant_ids", []),
            trip_id=data.get("trip_id")
        )

    def __repr__(self) -> str:
        return f"Expense(id='{self.id}', payer='{self.paid_by_user_id}', amount={self.amount}, category='{self.category}')"


def _expenses_ref(trip_id: str):
    db = get_db()
    if db is None:
        raise DatabaseUnavailableError("Firestore is not available")
    return db.collection("trips").document(trip_id).collection("expenses")


def _trip_ref(trip_id: str):
    db = get_db()
    if db is None:
        raise DatabaseUnavailableError("Firestore is not available")
    return db.collection("trips").document(trip_id)


def _generate_next_expense_id(trip_id: str) -> str:
    """
    Generate the next sequential expense ID for a trip.

    Format: E001, E002, E003, ...

    The trip document keeps the highest number ever issued, so the id of a
    deleted expense is not handed out again. IDs that do not match E###
    (e.g. imported data) are ignored.
    """
    trip_doc = _trip_ref(trip_id).get()
    max_num = (trip_doc.to_dict() or {}).get("last_expense_number", 0) if trip_doc.exists else 0
    pattern = re.compile(r'^E(\d+)$')

    for doc in _expenses_ref(trip_id).stream():
        match = pattern.match(doc.id)
        if match:
            max_num = max(max_num, int(match.group(1)))

    return f"E{max_num + 1:03d}"


def _create_with_next_id(trip_id: str, expense: "Expense") -> None:
    """
    Store a new expense under the next free E### id.

    create() fails instead of overwriting when a concurrent add took the
    same id; the id is then recomputed.

    Raises:
        RuntimeError: If no free id was found after MAX_ID_ATTEMPTS tries.
    """
    for _ in range(MAX_ID_ATTEMPTS):
        expense.id = _generate_next_expense_id(trip_id)
        try:
            _expenses_ref(trip_id).document(expense.id).create(expense.to_dict())
        except AlreadyExists:
            logger.info("Expense id %s already taken in trip %s, retrying", expense.id, trip_id)
            continue
        _trip_ref(trip_id).set({"last_expense_number": int(expense.id[1:])}, merge=True)
        return

    raise RuntimeError(f"Could not allocate an expense id in trip {trip_id}")


def _validate_date(date_str: str, field_name: str) -> bool:
    """
    Validate date string format (YYYY-MM-DD).

    Raises:
        ValueError: If date format is invalid.
    """
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
        return True
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be in YYYY-MM-DD format, got: {date_str}")


def _validate_non_empty_string(value: str, field_name: str) -> bool:
    """
    Validate that a string is non-empty.

    Raises:
        ValueError: If string is empty or not a string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return True


def _dedupe(ids: list[str]) -> list[str]:
    """Drop repeated ids while keeping the first occurrence order."""
    seen = []
    for member_id in ids:
        if member_id not in seen:
            seen.append(member_id)
    return seen


def _get_member_ids(trip_id: str) -> set[str]:
    db = get_db()
    if db is None:
        raise DatabaseUnavailableError("Firestore is not available")

    docs = db.collection("trips").document(trip_id).collection("members").stream()
    return {doc.id for doc in docs}


def validate_expense_fields(fields: dict, member_ids: set[str], stored: Optional[dict] = None) -> None:
    """
    Validate a complete set of expense fields.

    Payer and participant ids already on the stored expense are accepted even
    if those members have since left the trip; only newly added ids must be
    current members.

    Args:
        fields: Expense fields (everything except id and trip_id).
        member_ids: IDs of the trip's current members.
        stored: The expense as currently stored, when editing.

    Raises:
        ValueError: If any required field is missing or invalid.
    """
    _validate_non_empty_string(fields.get("description"), "description")
    _validate_non_empty_string(fields.get("paid_by_user_id"), "paid_by_user_id")
    _validate_date(fields.get("date"), "date")

    amount = fields.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
        raise ValueError(f"amount must be a positive number, got: {amount}")

    if fields.get("category") not in VALID_CATEGORIES:
        raise ValueError(f"category must be one of {EXPENSE_CATEGORIES}, got: {fields.get('category')}")

    if fields.get("currency") not in CURRENCIES:
        raise ValueError(f"currency must be one of {CURRENCIES}, got: {fields.get('currency')}")

    participant_ids = fields.get("participant_ids")
    if not isinstance(participant_ids, list) or len(participant_ids) == 0:
        raise ValueError("participant_ids must be a non-empty list of member IDs")

    stored = stored or {}
    known_payer = stored.get("paid_by_user_id")
    known_participants = set(stored.get("participant_ids") or [])

    if fields["paid_by_user_id"] != known_payer and fields["paid_by_user_id"] not in member_ids:
        raise ValueError(f"paid_by_user_id '{fields['paid_by_user_id']}' is not a member of this trip")

    for participant_id in participant_ids:
        if participant_id not in known_participants and participant_id not in member_ids:
            raise ValueError(f"participant '{participant_id}' is not a member of this trip")


def add_expense(
    trip_id: str,
    description: str,
    amount: float,
    paid_by_user_id: str,
    date: str,
    participant_ids: list[str],
    category: str = EXPENSE_CATEGORIES[0],
    currency: str = DEFAULT_CURRENCY
) -> Expense:
    """
    Add a new expense to a trip.

    Args:
        trip_id: The ID of the trip.
        description: What the money was spent on.
        amount: Amount of the expense (must be > 0).
        paid_by_user_id: Member ID of who paid.
        date: Date of the expense (YYYY-MM-DD).
        participant_ids: Member IDs who share the cost.
        category: Expense category.
        currency: Currency code.

    Returns:
        Expense: The created expense object.

    Raises:
        ValueError: If input validation fails.
        DatabaseUnavailableError: If Firestore is not available.

    Notes:
        - Payer does NOT have to be a participant
        - No cost splitting is performed here
    """
    _validate_non_empty_string(trip_id, "trip_id")

    fields = {
        "description": description,
        "amount": amount,
        "currency": currency,
        "category": category,
        "paid_by_user_id": paid_by_user_id,
        "date": date,
        "participant_ids": _dedupe(participant_ids) if isinstance(participant_ids, list) else participant_ids
    }
    validate_expense_fields(fields, _get_member_ids(trip_id))

    expense = Expense(
        id=None,
        description=description.strip(),
        amount=float(amount),
        currency=currency,
        category=category,
        paid_by_user_id=paid_by_user_id,
        date=date,
        participant_ids=fields["participant_ids"],
        trip_id=trip_id
    )

    _create_with_next_id(trip_id, expense)
    logger.info("Added expense %s (%s %.2f) to trip %s",
                expense.id, expense.currency, expense.amount, trip_id)

    return expense


def update_expense(trip_id: str, expense_id: str, changes: dict) -> Expense:
    """
    Update fields of an existing expense.

    The merged expense is validated as a whole before it is written.
    Members who left the trip may stay on the expense; only ids the update
    adds must belong to current members.

    Args:
        trip_id: The ID of the trip.
        expense_id: The ID of the expense to edit.
        changes: Fields to replace; keys outside UPDATABLE_FIELDS are rejected.

    Returns:
        Expense: The updated expense.

    Raises:
        ValueError: If validation fails.
        NotFoundError: If the expense does not exist.
        DatabaseUnavailableError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(expense_id, "expense_id")

    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"cannot update fields: {sorted(unknown)}")

    doc_ref = _expenses_ref(trip_id).document(expense_id)
    doc = doc_ref.get()
    if not doc.exists:
        raise NotFoundError(f"Expense {expense_id} not found in trip {trip_id}")

    stored = doc.to_dict()
    data = dict(stored)
    data.update(changes)
    if isinstance(data.get("participant_ids"), list):
        data["participant_ids"] = _dedupe(data["participant_ids"])

    validate_expense_fields(data, _get_member_ids(trip_id), stored)

    data["description"] = data["description"].strip()
    data["amount"] = float(data["amount"])
    expense = Expense.from_dict(data)
    doc_ref.set(expense.to_dict())
    logger.info("Updated expense %s in trip %s", expense_id, trip_id)

    return expense


def delete_expense(trip_id: str, expense_id: str) -> None:
    """
    Delete an expense.

    Raises:
        NotFoundError: If the expense does not exist.
        DatabaseUnavailableError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")
    _validate_non_empty_string(expense_id, "expense_id")

    doc_ref = _expenses_ref(trip_id).document(expense_id)
    if not doc_ref.get().exists:
        raise NotFoundError(f"Expense {expense_id} not found in trip {trip_id}")

    doc_ref.delete()
    logger.info("Deleted expense %s from trip %s", expense_id, trip_id)


def get_expenses(trip_id: str) -> list[Expense]:
    """
    Get all expenses for a trip.

    Raises:
        ValueError: If trip_id is invalid.
        DatabaseUnavailableError: If Firestore is not available.
    """
    _validate_non_empty_string(trip_id, "trip_id")

    return [Expense.from_dict(doc.to_dict()) for doc in _expenses_ref(trip_id).stream()]
