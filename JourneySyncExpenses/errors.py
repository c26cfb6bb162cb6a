"""
Errors Module

Domain exceptions translated into HTTP errors by main.py.

Classes:
    NotFoundError: A trip, member or expense document does not exist.
    DatabaseUnavailableError: Firestore is not configured or reachable.
"""


class NotFoundError(LookupError):
    """A requested document does not exist."""


class DatabaseUnavailableError(RuntimeError):
    """Firestore is not available."""
