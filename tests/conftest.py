"""
This module contains pytest fixtures and configuration for testing.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch
import copy
import itertools
import sys
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from firebase_admin import firestore

# Add the project's root directory to the system path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

# Import the main app
from main import app

_BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)
_clock = itertools.count()


def server_time():
    """Strictly increasing timestamps so creation order is observable."""
    return _BASE_TIME + timedelta(seconds=next(_clock))


def _resolve(data, field_path):
    value = data
    for part in field_path.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _stamp(data):
    return {
        key: server_time() if value is firestore.SERVER_TIMESTAMP else value
        for key, value in data.items()
    }


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)

    def get(self, field_path):
        return _resolve(self._data or {}, field_path)


class FakeDocumentReference:
    def __init__(self, store, collection, doc_id):
        self._store = store
        self._collection = collection
        self.id = doc_id

    def _docs(self):
        return self._store.setdefault(self._collection, {})

    def get(self):
        data = self._docs().get(self.id)
        return FakeSnapshot(self, copy.deepcopy(data) if data is not None else None)

    def set(self, data, merge=False):
        data = _stamp(copy.deepcopy(data))
        if merge and self.id in self._docs():
            self._docs()[self.id].update(data)
        else:
            self._docs()[self.id] = data

    def update(self, data):
        if self.id not in self._docs():
            raise KeyError(f"No document to update: {self._collection}/{self.id}")
        self._docs()[self.id].update(_stamp(copy.deepcopy(data)))

    def delete(self):
        self._docs().pop(self.id, None)


class FakeQuery:
    OPERATORS = {
        '==': lambda a, b: a == b,
        '!=': lambda a, b: a != b,
        '<': lambda a, b: a is not None and a < b,
        '<=': lambda a, b: a is not None and a <= b,
        '>': lambda a, b: a is not None and a > b,
        '>=': lambda a, b: a is not None and a >= b,
        'in': lambda a, b: a in b,
        'array_contains': lambda a, b: isinstance(a, list) and b in a,
    }

    def __init__(self, store, collection, filters=None, orders=None, limit_to=None, skip=0):
        self._store = store
        self._collection = collection
        self._filters = filters or []
        self._orders = orders or []
        self._limit = limit_to
        self._skip = skip

    def _copy(self, **changes):
        params = dict(filters=list(self._filters), orders=list(self._orders),
                      limit_to=self._limit, skip=self._skip)
        params.update(changes)
        return FakeQuery(self._store, self._collection, **params)

    def where(self, field_path, op_string, value):
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field_path, direction='ASCENDING'):
        return self._copy(orders=self._orders + [(field_path, direction)])

    def limit(self, count):
        return self._copy(limit_to=count)

    def offset(self, count):
        return self._copy(skip=count)

    def stream(self):
        docs = self._store.setdefault(self._collection, {})
        matches = [
            (doc_id, data) for doc_id, data in docs.items()
            if all(self.OPERATORS[op](_resolve(data, path), value) for path, op, value in self._filters)
        ]
        for path, direction in reversed(self._orders):
            matches.sort(key=lambda item: _resolve(item[1], path), reverse=direction == 'DESCENDING')
        matches = matches[self._skip:]
        if self._limit is not None:
            matches = matches[:self._limit]
        for doc_id, data in matches:
            reference = FakeDocumentReference(self._store, self._collection, doc_id)
            yield FakeSnapshot(reference, copy.deepcopy(data))

    def get(self):
        return list(self.stream())


class FakeCollectionReference(FakeQuery):
    def __init__(self, store, collection):
        super().__init__(store, collection)

    def document(self, doc_id=None):
        return FakeDocumentReference(self._store, self._collection, doc_id or uuid.uuid4().hex[:20])

    def add(self, data):
        reference = self.document()
        reference.set(data)
        return server_time(), reference


class FakeWriteBatch:
    def __init__(self):
        self._writes = []

    def set(self, reference, data, merge=False):
        self._writes.append(lambda: reference.set(data, merge=merge))

    def update(self, reference, data):
        self._writes.append(lambda: reference.update(data))

    def delete(self, reference):
        self._writes.append(reference.delete)

    def commit(self):
        for write in self._writes:
            write()
        self._writes = []


class FakeFirestore:
    """In-memory stand-in for the Firestore client, one dict per collection."""

    def __init__(self):
        self.store = {}

    def collection(self, name):
        return FakeCollectionReference(self.store, name)

    def batch(self):
        return FakeWriteBatch()

    def seed(self, collection, doc_id, data):
        """Insert a document as-is and return its id."""
        self.store.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        return doc_id

    def docs(self, collection):
        return self.store.get(collection, {})


@pytest.fixture
def test_app():
    """
    Create a FastAPI test application.
    """
    return app


@pytest.fixture
def client(test_app):
    """
    Create a test client for the FastAPI application.
    """
    return TestClient(test_app)


@pytest.fixture
def mock_firestore():
    """
    Create a mock for the Firestore client.
    """
    with patch('firebase_admin.firestore.client') as mock:
        # Configure the mock to provide the necessary methods and return values
        firestore_mock = MagicMock()
        mock.return_value = firestore_mock
        yield firestore_mock


@pytest.fixture
def fake_db():
    """
    Replace the Firestore client with an in-memory store.
    """
    db = FakeFirestore()
    with patch('firebase_admin.firestore.client', return_value=db):
        yield db


@pytest.fixture(autouse=True)
def no_redis():
    """
    Run without a cache server.
    """
    with patch('api.common.cache.get_redis_client', return_value=None):
        yield


@pytest.fixture
def mock_cloudinary():
    """
    Create a mock for the Cloudinary uploader.
    """
    with patch('api.common.storage.cloudinary.uploader') as mock:
        mock.upload.return_value = {
            "public_id": "products/img_1",
            "secure_url": "https://res.cloudinary.com/demo/image/upload/v1700000000/products/img_1.png",
        }
        mock.destroy.return_value = {"result": "ok"}
        mock.remove_tag.return_value = {"public_ids": ["products/img_1"]}
        yield mock


@pytest.fixture
def category(fake_db):
    return fake_db.seed('categories', 'cat1', {
        'name': 'Outillage',
        'description': 'Hand tools',
        'createdAt': server_time(),
        'updatedAt': server_time(),
    })


@pytest.fixture
def supplier(fake_db):
    return fake_db.seed('suppliers', 'sup1', {
        'name': 'Atlas Quincaillerie',
        'city': 'Casablanca',
        'paymentTerms': 'Net 30',
        'isActive': True,
        'createdAt': server_time(),
        'updatedAt': server_time(),
    })


@pytest.fixture
def customer(fake_db):
    return fake_db.seed('customers', 'cus1', {
        'name': 'Karim Bennani',
        'email': 'karim@example.com',
        'phone': '0612345678',
        'city': 'Rabat',
        'customerType': 'retail',
        'creditLimit': 0,
        'isActive': True,
        'createdAt': server_time(),
        'updatedAt': server_time(),
    })


def make_product(fake_db, doc_id, name, stock=20, min_stock=10, price=50.0, **extra):
    data = {
        'name': name,
        'description': '',
        'category': {'id': 'cat1', 'name': 'Outillage'},
        'purchasePrice': price / 2,
        'sellingPrice': price,
        'stockQuantity': stock,
        'minStockLevel': min_stock,
        'maxStockLevel': 1000,
        'unit': 'unit',
        'imageUrls': [],
        'isActive': True,
        'createdAt': server_time(),
        'updatedAt': server_time(),
    }
    data.update(extra)
    return fake_db.seed('products', doc_id, data)


@pytest.fixture
def product_factory(fake_db):
    def factory(doc_id, name, **kwargs):
        return make_product(fake_db, doc_id, name, **kwargs)
    return factory
