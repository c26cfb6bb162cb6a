"""
JourneySync Expenses - FastAPI Web Backend

This module serves as the main entry point for the group expense API of the
JourneySync trip planner.

Features:
    - RESTful API for managing trips, members and expenses
    - Integration with Firebase Firestore backend
    - Equal-split balance calculation with settled flags
    - Trip budget with over-budget alert
    - PDF expense report

Endpoints:
    POST   /trips                                        - Create a new trip
    POST   /trips/{trip_id}/members                      - Join a trip
    GET    /trips/{trip_id}/members                      - List members
    DELETE /trips/{trip_id}/members/{member_id}          - Leave a trip
    POST   /trips/{trip_id}/members/{member_id}/settle   - Mark member as settled
    POST   /trips/{trip_id}/expenses                     - Add expense
    GET    /trips/{trip_id}/expenses                     - List expenses
    PUT    /trips/{trip_id}/expenses/{expense_id}        - Edit expense
    DELETE /trips/{trip_id}/expenses/{expense_id}        - Delete expense
    PUT    /trips/{trip_id}/budget                       - Set or clear budget
    GET    /trips/{trip_id}/balances                     - Balances and budget signal
    GET    /trips/{trip_id}/report.pdf                   - Download expense report

Usage:
    uvicorn main:app --reload
"""

import logging
import re
import uuid
from typing import Optional, Union
from urllib.parse import quote
from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

import firebase_store
from analytics import expense_summary
from budget import parse_budget
from config.firebase_config import get_log_level
from errors import DatabaseUnavailableError, NotFoundError
from expenses import (
    add_expense,
    delete_expense,
    get_expenses,
    update_expense,
    Expense,
    CURRENCIES,
    DEFAULT_CURRENCY,
    EXPENSE_CATEGORIES
)
from members import add_member, get_members, remove_member, Member
from report import export_report_pdf
from settlement import get_settled_status, mark_as_settled

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class TripCreate(BaseModel):
    """Request model for creating a new trip."""
    name: str = Field(..., min_length=1, description="Trip name")
    creator_id: Optional[str] = Field(None, description="User ID of the creator")
    creator_name: Optional[str] = Field(None, description="Display name of the creator")


class TripResponse(BaseModel):
    """Response model for trip creation."""
    trip_id: str
    name: str
    message: str


class MemberCreate(BaseModel):
    """Request model for joining a trip."""
    id: str = Field(..., min_length=1, description="User ID")
    name: str = Field(..., min_length=1, description="Display name")
    email: Optional[str] = Field(None, description="Optional email")


class MemberResponse(BaseModel):
    """Response model for member data."""
    id: str
    name: str
    email: Optional[str]
    joined_at: Optional[str]


class ExpenseCreate(BaseModel):
    """Request model for adding an expense."""
    description: str = Field(..., min_length=1, description="What the money was spent on")
    amount: float = Field(..., gt=0, description="Expense amount (must be > 0)")
    currency: str = Field(DEFAULT_CURRENCY, description=f"One of {CURRENCIES}")
    category: str = Field(EXPENSE_CATEGORIES[0], description=f"One of {EXPENSE_CATEGORIES}")
    paid_by_user_id: str = Field(..., min_length=1, description="Member ID of payer")
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="Expense date (YYYY-MM-DD)")
    participant_ids: list[str] = Field(..., min_length=1, description="Member IDs sharing the cost")


class ExpenseUpdate(BaseModel):
    """Request model for editing an expense. Only provided fields change."""
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, gt=0)
    currency: Optional[str] = None
    category: Optional[str] = None
    paid_by_user_id: Optional[str] = Field(None, min_length=1)
    date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    participant_ids: Optional[list[str]] = Field(None, min_length=1)


class ExpenseResponse(BaseModel):
    """Response model for expense data."""
    id: str
    description: str
    amount: float
    currency: str
    category: str
    paid_by_user_id: str
    date: str
    participant_ids: list[str]
    trip_id: str


class BudgetUpdate(BaseModel):
    """Request model for the trip budget. Null or empty clears it."""
    budget: Optional[Union[float, str]] = None


class BalanceResponse(BaseModel):
    user_id: str
    user_name: str
    total_paid: float
    total_share: float
    net_balance: float
    is_settled: bool


class SummaryResponse(BaseModel):
    """Response model for the balances view."""
    total_group_expense: float
    balances: list[BalanceResponse]
    unattributed_paid: float
    unshared_amount: float
    category_breakdown: list[dict]
    budget: Optional[float]
    budget_progress: float
    over_budget: bool
    budget_alert: Optional[str]


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="JourneySync Expenses",
    description="Group expense tracking and balance settlement for shared trips",
    version="1.0.0"
)


# =============================================================================
# Helper Functions
# =============================================================================

def _generate_trip_id() -> str:
    """
    Generate a unique trip ID.

    Format: trip_{short_uuid}
    """
    return f"trip_{uuid.uuid4().hex[:8]}"


def _member_response(m: Member) -> MemberResponse:
    return MemberResponse(id=m.id, name=m.name, email=m.email, joined_at=m.joined_at)


def _expense_response(e: Expense) -> ExpenseResponse:
    return ExpenseResponse(**e.to_dict())


def _http_error(e: Exception) -> HTTPException:
    """Map a domain exception to the matching HTTP error."""
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, DatabaseUnavailableError):
        return HTTPException(status_code=503, detail=str(e))
    logger.exception("Unhandled error")
    return HTTPException(status_code=500, detail=str(e))


def _content_disposition(trip_name: str) -> str:
    """
    Attachment header for the report download.

    Header values must be latin-1, so the plain filename is reduced to ASCII
    and the real name goes into the RFC 5987 filename* parameter.
    """
    filename = trip_name.replace(" ", "_") + "_report.pdf"
    fallback = re.sub(r"[^A-Za-z0-9.-]+", "_", filename).strip("_") or "report.pdf"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _load_summary(trip_id: str):
    """Fetch everything the calculator needs and run it."""
    trip = firebase_store.get_trip(trip_id)
    members = get_members(trip_id)
    expenses = get_expenses(trip_id)
    summary = expense_summary(
        expenses=expenses,
        members=members,
        settled_status=get_settled_status(trip_id),
        budget=trip.get("budget")
    )
    return trip, members, expenses, summary


# =============================================================================
# API Endpoints
# =============================================================================

@app.post("/trips", response_model=TripResponse, status_code=201)
async def create_trip(trip_data: TripCreate):
    """
    Create a new trip.

    Request flow:
        1. Generate unique trip_id
        2. Create trip document in Firestore
        3. Add the creator as the first member, if given
    """
    try:
        trip_id = _generate_trip_id()
        trip = firebase_store.create_trip(trip_id, trip_data.name, trip_data.creator_id)

        if trip_data.creator_id:
            add_member(
                trip_id=trip_id,
                member_id=trip_data.creator_id,
                name=trip_data.creator_name or trip_data.creator_id
            )

        return TripResponse(trip_id=trip_id, name=trip["name"], message="Trip created successfully")

    except HTTPException:
        raise
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/members", response_model=MemberResponse, status_code=201)
async def join_trip(trip_id: str, member_data: MemberCreate):
    """Add a member to a trip. Joining twice returns the existing member."""
    try:
        firebase_store.get_trip(trip_id)
        member = add_member(
            trip_id=trip_id,
            member_id=member_data.id,
            name=member_data.name,
            email=member_data.email
        )
        return _member_response(member)

    except HTTPException:
        raise
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}/members", response_model=list[MemberResponse])
async def list_members(trip_id: str):
    try:
        return [_member_response(m) for m in get_members(trip_id)]
    except Exception as e:
        raise _http_error(e)


@app.delete("/trips/{trip_id}/members/{member_id}", status_code=204)
async def leave_trip(trip_id: str, member_id: str):
    """Remove a member. Their existing expenses stay and are skipped by the calculator."""
    try:
        remove_member(trip_id, member_id)
        return Response(status_code=204)
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/members/{member_id}/settle")
async def settle_member(trip_id: str, member_id: str):
    """Mark a member's balance as settled."""
    try:
        return {"settled_status": mark_as_settled(trip_id, member_id)}
    except Exception as e:
        raise _http_error(e)


@app.post("/trips/{trip_id}/expenses", response_model=ExpenseResponse, status_code=201)
async def create_expense(trip_id: str, expense_data: ExpenseCreate):
    """
    Add an expense to a trip.

    Request flow:
        1. Validate input using Pydantic model
        2. Call add_expense() from expenses.py (checks category, currency, members)
        3. Return created expense data
    """
    try:
        expense = add_expense(trip_id=trip_id, **expense_data.model_dump())
        return _expense_response(expense)
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}/expenses", response_model=list[ExpenseResponse])
async def list_expenses(trip_id: str):
    try:
        return [_expense_response(e) for e in get_expenses(trip_id)]
    except Exception as e:
        raise _http_error(e)


@app.put("/trips/{trip_id}/expenses/{expense_id}", response_model=ExpenseResponse)
async def edit_expense(trip_id: str, expense_id: str, changes: ExpenseUpdate):
    try:
        expense = update_expense(trip_id, expense_id, changes.model_dump(exclude_unset=True))
        return _expense_response(expense)
    except Exception as e:
        raise _http_error(e)


@app.delete("/trips/{trip_id}/expenses/{expense_id}", status_code=204)
async def remove_expense(trip_id: str, expense_id: str):
    try:
        delete_expense(trip_id, expense_id)
        return Response(status_code=204)
    except Exception as e:
        raise _http_error(e)


@app.put("/trips/{trip_id}/budget")
async def set_budget(trip_id: str, budget_data: BudgetUpdate):
    """
    Set or clear the trip budget.

    Invalid values (negative, non-numeric) are rejected with 400 before
    they are stored.
    """
    try:
        budget = parse_budget(budget_data.budget)
        return firebase_store.save_budget(trip_id, budget)
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}/balances", response_model=SummaryResponse)
async def get_balances(trip_id: str):
    """
    Calculate balances for a trip.

    Request flow:
        1. Fetch trip, members, expenses and settled status from Firestore
        2. Calculate balances (balances.py)
        3. Add category breakdown and budget signal (analytics.py)
        4. Return results; nothing is persisted
    """
    try:
        _, _, _, summary = _load_summary(trip_id)
        return summary
    except Exception as e:
        raise _http_error(e)


@app.get("/trips/{trip_id}/report.pdf")
async def download_report(trip_id: str):
    """Download the expense report as a PDF."""
    try:
        trip, members, expenses, summary = _load_summary(trip_id)
        trip_name = trip.get("name") or trip_id
        pdf = export_report_pdf(trip_name, members, expenses, summary)
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": _content_disposition(trip_name)}
        )
    except Exception as e:
        raise _http_error(e)


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "JourneySync Expenses"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
