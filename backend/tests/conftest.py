"""
Shared test fixtures.

The app is exercised against an in-memory stand-in for the motor database,
injected through `app.dependency_overrides[get_db]`, so no MongoDB server
is needed.
"""

import copy
import os
from types import SimpleNamespace

# Settings are read at import time, so the environment must be in place first.
TEST_JWT_SECRET = "test-secret-key-for-testing-only"
os.environ["JWT_SECRET"] = TEST_JWT_SECRET
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["MONGODB_URI"] = "mongodb://localhost:27017/shop_test"
os.environ.pop("MONGO_URI", None)
os.environ["ENV"] = "test"

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from database import get_db
from main import app
from models.user import Role
from utils.hash import hash_password

_MISSING = object()


def _get_path(doc: dict, path: str):
    value = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in cond):
                return False
            continue

        value = _get_path(doc, key)

        if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$all":
                    if not isinstance(value, list) or not all(a in value for a in arg):
                        return False
                elif op == "$ne":
                    if value == arg:
                        return False
                elif op == "$gte":
                    if value is _MISSING or value < arg:
                        return False
                else:
                    raise NotImplementedError(op)
        elif isinstance(value, list) and not isinstance(cond, list):
            if cond not in value:
                return False
        elif value is _MISSING or value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self._docs = iter(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._docs)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """The slice of motor's AsyncIOMotorCollection that the app relies on."""

    def __init__(self, name: str, calls: list, unique=()):
        self.name = name
        self.docs = []
        self.unique = unique
        self._calls = calls

    def _record(self, op: str):
        self._calls.append((self.name, op))

    def seed(self, doc: dict) -> dict:
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return doc

    def get(self, _id) -> dict | None:
        for doc in self.docs:
            if doc["_id"] == _id:
                return doc
        return None

    def find(self, query=None, projection=None):
        self._record("find")
        return FakeCursor([copy.deepcopy(d) for d in self.docs if matches(d, query or {})])

    async def find_one(self, query=None, projection=None):
        self._record("find_one")
        for doc in self.docs:
            if matches(doc, query or {}):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc: dict):
        self._record("insert_one")
        self._check_unique(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def _check_unique(self, fields: dict, current=None):
        for field in self.unique:
            if field in fields and any(
                d is not current and d.get(field) == fields[field] for d in self.docs
            ):
                raise DuplicateKeyError(f"E11000 duplicate key error: {field}")

    @staticmethod
    def _apply(doc: dict, update: dict):
        for path, value in update.get("$set", {}).items():
            target = doc
            *parents, leaf = path.split(".")
            for part in parents:
                target = target.setdefault(part, {})
            target[leaf] = value
        for path, amount in update.get("$inc", {}).items():
            doc[path] = doc.get(path, 0) + amount
        for path in update.get("$unset", {}):
            doc.pop(path, None)

    async def update_one(self, query: dict, update: dict, upsert: bool = False):
        self._record("update_one")
        for doc in self.docs:
            if not matches(doc, query):
                continue
            self._check_unique(update.get("$set", {}), current=doc)
            before = copy.deepcopy(doc)
            self._apply(doc, update)
            return SimpleNamespace(matched_count=1, modified_count=int(before != doc), upserted_id=None)

        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

        doc = {k: v for k, v in query.items() if not k.startswith("$") and not isinstance(v, dict)}
        doc.update(update.get("$setOnInsert", {}))
        self._apply(doc, update)
        doc["_id"] = ObjectId()
        self.docs.append(doc)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])

    async def delete_one(self, query: dict):
        self._record("delete_one")
        for i, doc in enumerate(self.docs):
            if matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self):
        self.calls = []
        self.users = FakeCollection("users", self.calls, unique=("email",))
        self.products = FakeCollection("products", self.calls)
        self.rate_limits = FakeCollection("rate_limits", self.calls)

    async def command(self, name):
        return {"ok": 1}


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def codec():
    return app.state.token_codec


@pytest.fixture
def make_user(db):
    def _make_user(roles, email=None, password="secret123", **fields):
        user = {
            "username": fields.pop("username", "user"),
            "email": email or f"{ObjectId()}@example.com",
            "password": hash_password(password),
            "roles": list(roles),
            "suspended": False,
            **fields,
        }
        return db.users.seed(user)

    return _make_user


@pytest.fixture
def headers_for(codec):
    """Authorization headers for an existing user document."""

    def _headers_for(user: dict) -> dict[str, str]:
        role = Role.from_roles(user["roles"])
        user_id = str(user["_id"])
        token = codec.issue(user_id, role, user_id if role.can_sell else None)
        return {"Authorization": f"Bearer {token}"}

    return _headers_for


@pytest.fixture
def admin(make_user):
    return make_user(["admin"], email="admin@example.com", username="admin")


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)
