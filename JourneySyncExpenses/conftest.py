import copy

import pytest
from google.api_core.exceptions import AlreadyExists

from config import firebase_config


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, store, path):
        self._store = store
        self._path = path
        self.id = path[-1]

    def collection(self, name):
        return FakeCollection(self._store, self._path + (name,))

    def get(self):
        return FakeSnapshot(self.id, self._store.get(self._path))

    def set(self, data, merge=False):
        if merge and self._path in self._store:
            self._store[self._path].update(copy.deepcopy(data))
        else:
            self._store[self._path] = copy.deepcopy(data)

    def create(self, data):
        if self._path in self._store:
            raise AlreadyExists(f"Document already exists: {'/'.join(self._path)}")
        self._store[self._path] = copy.deepcopy(data)

    def update(self, data):
        if self._path not in self._store:
            raise KeyError(f"No document to update: {'/'.join(self._path)}")
        self._store[self._path].update(copy.deepcopy(data))

    def delete(self):
        self._store.pop(self._path, None)


class FakeCollection:
    def __init__(self, store, path):
        self._store = store
        self._path = path

    def document(self, doc_id):
        return FakeDocument(self._store, self._path + (doc_id,))

    def stream(self):
        depth = len(self._path) + 1
        for path, data in list(self._store.items()):
            if len(path) == depth and path[:-1] == self._path:
                yield FakeSnapshot(path[-1], copy.deepcopy(data))


class FakeFirestore:
    """In-memory stand-in for the Firestore client, keyed by document path."""

    def __init__(self):
        self.docs = {}

    def collection(self, name):
        return FakeCollection(self.docs, (name,))


@pytest.fixture
def db(monkeypatch):
    fake = FakeFirestore()
    monkeypatch.setattr(firebase_config, "_db", fake)
    return fake


@pytest.fixture
def no_db(monkeypatch):
    monkeypatch.setattr(firebase_config, "_db", None)
    monkeypatch.setattr(firebase_config, "_init_app", lambda: None)


@pytest.fixture
def members():
    """Three trip members in join order."""
    return [
        {"id": "A", "name": "Alice"},
        {"id": "B", "name": "Bob"},
        {"id": "C", "name": "Carol"},
    ]


@pytest.fixture
def scenario_expenses():
    """Group dinner paid by A for everyone, museum tickets paid by B for A and B."""
    return [
        {
            "id": "E001",
            "description": "Group Dinner",
            "amount": 120,
            "currency": "USD",
            "category": "Food",
            "paid_by_user_id": "A",
            "date": "2024-07-20",
            "participant_ids": ["A", "B", "C"],
            "trip_id": "trip1",
        },
        {
            "id": "E002",
            "description": "Museum Tickets",
            "amount": 45,
            "currency": "USD",
            "category": "Activities",
            "paid_by_user_id": "B",
            "date": "2024-07-21",
            "participant_ids": ["A", "B"],
            "trip_id": "trip1",
        },
    ]


@pytest.fixture
def trip(db):
    """A stored trip with members A, B and C."""
    import firebase_store
    from members import add_member

    firebase_store.create_trip("trip1", "Lisbon Weekend", "A")
    add_member("trip1", "A", "Alice")
    add_member("trip1", "B", "Bob")
    add_member("trip1", "C", "Carol")
    return "trip1"
