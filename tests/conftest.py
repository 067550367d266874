from __future__ import annotations

import copy
import os
import re

import pytest

os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/foodhub_test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "admin-pass-123")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_foodhub")
os.environ.setdefault("BANK_DATA_ENCRYPTION_KEY", "test-bank-key")

from fastapi.testclient import TestClient  # noqa: E402

from database import get_db  # noqa: E402
from main import app  # noqa: E402
from utils.rate_limiter import reset_rate_limit  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
VENDOR_PASSWORD = "vendor-pass-1"

_MISSING = object()


# ---------------------------------------------------------------------------
# In-memory stand-in for the kv_store collection
# ---------------------------------------------------------------------------

def _get_path(doc: dict, path: str):
    current = doc
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _set_path(doc: dict, path: str, value):
    parts = path.split(".")
    current = doc
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = copy.deepcopy(value)


def _matches_condition(actual, condition) -> bool:
    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        for op, expected in condition.items():
            if op == "$regex":
                if actual is _MISSING or not re.search(expected, actual):
                    return False
            elif op == "$in":
                if actual is _MISSING or actual not in expected:
                    return False
            elif op == "$ne":
                if actual is not _MISSING and actual == expected:
                    return False
            elif op == "$gte":
                if actual is _MISSING or actual < expected:
                    return False
            else:
                raise NotImplementedError(op)
        return True
    return actual is not _MISSING and actual == condition


class FakeResult:
    def __init__(self, modified_count=0, deleted_count=0):
        self.modified_count = modified_count
        self.deleted_count = deleted_count


class FakeCursor:
    def __init__(self, docs):
        self._docs = list(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._docs:
            raise StopAsyncIteration
        return self._docs.pop(0)


class FakeKVCollection:
    def __init__(self):
        self.docs: dict[str, dict] = {}

    def _matching(self, query: dict):
        for doc in self.docs.values():
            if all(_matches_condition(_get_path(doc, f), c) for f, c in query.items()):
                yield doc

    async def find_one(self, query):
        for doc in self._matching(query):
            return copy.deepcopy(doc)
        return None

    def find(self, query):
        return FakeCursor(copy.deepcopy(d) for d in self._matching(query))

    async def update_one(self, query, update, upsert=False):
        doc = next(self._matching(query), None)
        inserted = False
        if doc is None:
            if not upsert:
                return FakeResult()
            doc = {"key": query["key"]}
            for path, value in update.get("$setOnInsert", {}).items():
                _set_path(doc, path, value)
            inserted = True

        before = copy.deepcopy(doc)
        for path, value in update.get("$set", {}).items():
            _set_path(doc, path, value)
        for path, amount in update.get("$inc", {}).items():
            current = _get_path(doc, path)
            _set_path(doc, path, (0 if current is _MISSING else current) + amount)

        self.docs[doc["key"]] = doc
        if inserted:
            return FakeResult()
        return FakeResult(modified_count=int(before != doc))

    async def delete_one(self, query):
        doc = next(self._matching(query), None)
        if doc is None:
            return FakeResult()
        del self.docs[doc["key"]]
        return FakeResult(deleted_count=1)

    def value(self, key: str):
        doc = self.docs.get(key)
        return copy.deepcopy(doc["value"]) if doc else None


class FakeDB:
    def __init__(self):
        self.kv_store = FakeKVCollection()

    async def command(self, name):
        return {"ok": 1}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db():
    return FakeDB()


@pytest.fixture
def client(db):
    reset_rate_limit()
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup_and_login(client, email: str, *, business_name: str | None = "Mama Put Kitchen", role: str = "vendor") -> str:
    payload = {"email": email, "password": VENDOR_PASSWORD, "role": role}
    if business_name:
        payload["businessName"] = business_name
    resp = client.post("/api/signup", json=payload)
    assert resp.status_code == 200, resp.text

    resp = client.post("/api/login", json={"email": email, "password": VENDOR_PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


@pytest.fixture
def vendor(client):
    """A signed-in vendor: ``{"id", "token"}``."""
    token = signup_and_login(client, "chef@example.com")
    me = client.get("/api/me", headers=auth(token)).json()["user"]
    return {"id": me["id"], "token": token}


@pytest.fixture
def admin_token(client):
    resp = client.post("/api/admin/authenticate", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def add_menu_item(client, vendor, *, name="Jollof Rice", price=2000, **extra) -> str:
    resp = client.post(
        "/api/menu/items",
        json={"name": name, "price": price, **extra},
        headers=auth(vendor["token"]),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["itemId"]


def place_order(client, vendor, items) -> dict:
    resp = client.post("/api/orders", json={
        "vendorId": vendor["id"],
        "customerName": "Ada Obi",
        "customerPhone": "08031234567",
        "customerEmail": "ada@example.com",
        "deliveryAddress": "12 Allen Avenue, Ikeja",
        "items": items,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


def fake_paystack_transaction(order_id: str, amount_naira, status: str = "success") -> dict:
    return {
        "status": status,
        "amount": int(round(amount_naira * 100)),
        "reference": f"{order_id}_1700000000000",
        "metadata": {"orderId": order_id},
    }


@pytest.fixture
def paid_order(client, vendor, monkeypatch):
    """Vendor with one settled order of 2 x ₦2,000 (₦4,450 with delivery and tax)."""
    import routes.payments as payments_routes

    item_id = add_menu_item(client, vendor)
    order = place_order(client, vendor, [{"id": item_id, "quantity": 2}])

    monkeypatch.setattr(
        payments_routes,
        "verify_transaction",
        lambda reference: fake_paystack_transaction(order["orderId"], order["amount"]),
    )
    resp = client.post("/api/payment/verify", json={"reference": f"{order['orderId']}_1700000000000"})
    assert resp.status_code == 200, resp.text
    return {**order, "itemId": item_id, "settlement": resp.json()}
