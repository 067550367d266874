from __future__ import annotations

import hashlib
import hmac
import json
import os

from conftest import add_menu_item, place_order

SECRET = os.environ["PAYSTACK_SECRET_KEY"]


def _post_event(client, payload: dict, *, signature: str | None = None):
    body = json.dumps(payload).encode("utf-8")
    if signature is None:
        signature = hmac.new(SECRET.encode("utf-8"), body, hashlib.sha512).hexdigest()
    return client.post(
        "/api/webhooks/paystack",
        content=body,
        headers={"x-paystack-signature": signature, "Content-Type": "application/json"},
    )


def _charge_event(order: dict) -> dict:
    return {
        "event": "charge.success",
        "data": {
            "status": "success",
            "reference": f"{order['orderId']}_1700000000001",
            "amount": int(order["amount"] * 100),
            "metadata": {"orderId": order["orderId"]},
        },
    }


def test_rejects_missing_or_bad_signature(client):
    resp = client.post("/api/webhooks/paystack", json={"event": "charge.success"})
    assert resp.status_code == 401

    resp = _post_event(client, {"event": "charge.success", "data": {}}, signature="deadbeef")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid Paystack signature"}


def test_non_ascii_signature_is_rejected(client):
    body = json.dumps({"event": "charge.success", "data": {}}).encode("utf-8")
    resp = client.post(
        "/api/webhooks/paystack",
        content=body,
        headers={"x-paystack-signature": "caf\u00e9".encode("latin-1"), "Content-Type": "application/json"},
    )
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid Paystack signature"}


def test_charge_success_settles_once(client, vendor, db):
    item = add_menu_item(client, vendor, price=2000)
    order = place_order(client, vendor, [{"id": item, "quantity": 2}])

    first = _post_event(client, _charge_event(order))
    assert first.status_code == 200
    assert first.json()["message"] == "Payment verified and wallet credited"

    second = _post_event(client, _charge_event(order))
    assert second.json() == first.json()

    assert db.kv_store.value(f"wallet:{vendor['id']}")["walletBalance"] == 4272
    assert db.kv_store.value(f"order:{order['orderId']}")["paymentStatus"] == "completed"


def test_underpaid_charge_is_acknowledged_without_settling(client, vendor, db):
    item = add_menu_item(client, vendor, price=2000)
    order = place_order(client, vendor, [{"id": item, "quantity": 2}])
    event = _charge_event(order)
    event["data"]["amount"] = 100

    resp = _post_event(client, event)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Payment amount does not cover the order"

    stored = db.kv_store.value(f"order:{order['orderId']}")
    assert stored["paymentStatus"] == "underpaid"
    assert stored["status"] == "pending"
    assert db.kv_store.value(f"wallet:{vendor['id']}") is None


def test_charge_after_verify_does_not_double_credit(client, vendor, db, paid_order):
    resp = _post_event(client, _charge_event(paid_order))
    assert resp.json()["message"] == "Payment already processed"
    assert db.kv_store.value(f"wallet:{vendor['id']}")["walletBalance"] == 4272


def test_unknown_events_are_acknowledged(client):
    resp = _post_event(client, {"event": "subscription.create", "data": {"reference": "SUB_1"}})
    assert resp.status_code == 200
    assert resp.json()["ignored"] is True


def _seed_withdrawal(db, vendor_id: str, *, amount=1500, status="pending"):
    db.kv_store.docs["withdrawal:WD-1"] = {
        "key": "withdrawal:WD-1",
        "value": {
            "id": "WD-1",
            "vendorId": vendor_id,
            "amount": amount,
            "status": status,
            "reference": "TRANSFER-1",
            "transferCode": "TRF_1",
        },
    }
    db.kv_store.docs[f"wallet:{vendor_id}"] = {
        "key": f"wallet:{vendor_id}",
        "value": {"vendorId": vendor_id, "walletBalance": 500, "totalEarnings": 2000, "totalWithdrawn": 1500},
    }


def test_transfer_failed_refunds_once(client, vendor, db):
    _seed_withdrawal(db, vendor["id"])

    for event in ("transfer.failed", "transfer.reversed"):
        resp = _post_event(client, {
            "event": event,
            "data": {"reference": "TRANSFER-1", "transfer_code": "TRF_1", "reason": "Account closed"},
        })
        assert resp.status_code == 200

    withdrawal = db.kv_store.value("withdrawal:WD-1")
    assert withdrawal["status"] == "reversed"
    assert withdrawal["refunded"] is True
    assert withdrawal["failureReason"] == "Account closed"

    wallet = db.kv_store.value(f"wallet:{vendor['id']}")
    assert wallet["walletBalance"] == 2000
    assert wallet["totalWithdrawn"] == 0


def test_transfer_success_marks_completed(client, vendor, db):
    _seed_withdrawal(db, vendor["id"])

    resp = _post_event(client, {"event": "transfer.success", "data": {"reference": "TRANSFER-1"}})
    assert resp.json()["status"] == "success"

    withdrawal = db.kv_store.value("withdrawal:WD-1")
    assert withdrawal["status"] == "success"
    assert withdrawal["completedAt"]
    assert db.kv_store.value(f"wallet:{vendor['id']}")["walletBalance"] == 500
