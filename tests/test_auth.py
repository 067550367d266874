from __future__ import annotations

from utils.passwords import account_password_matches, hash_account_password
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, VENDOR_PASSWORD, auth, signup_and_login


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/api/health/db").json() == {"status": "mongodb connected"}


def test_signup_creates_vendor_profile_and_hides_hash(client, db):
    resp = client.post("/api/signup", json={
        "email": "Chef@Example.com",
        "password": VENDOR_PASSWORD,
        "businessName": "Suya Spot",
        "location": "Lekki",
    })
    assert resp.status_code == 200
    user = resp.json()["user"]

    assert "passwordHash" not in user
    assert user["email"] == "chef@example.com"
    assert user["role"] == "vendor"

    profile = db.kv_store.value(f"vendor:{user['id']}")
    assert profile["businessName"] == "Suya Spot"
    assert profile["status"] == "active"
    assert db.kv_store.value(f"vendor_analytics:{user['id']}")["dailyStats"] == {}


def test_duplicate_signup_rejected(client):
    payload = {"email": "chef@example.com", "password": VENDOR_PASSWORD, "businessName": "A"}
    client.post("/api/signup", json=payload)

    resp = client.post("/api/signup", json=payload)
    assert resp.status_code == 400
    assert "already exists" in resp.json()["error"]


def test_short_password_rejected(client):
    resp = client.post("/api/signup", json={"email": "chef@example.com", "password": "123"})
    assert resp.status_code == 400


def test_invalid_body_uses_error_envelope(client):
    resp = client.post("/api/signup", json={"email": "not-an-email", "password": VENDOR_PASSWORD})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "Invalid request"
    assert body["details"]


def test_login_and_me(client):
    token = signup_and_login(client, "chef@example.com")

    me = client.get("/api/me", headers=auth(token))
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "chef@example.com"


def test_login_wrong_password(client):
    signup_and_login(client, "chef@example.com")

    resp = client.post("/api/login", json={"email": "chef@example.com", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid email or password"}


def test_login_is_rate_limited(client):
    for _ in range(10):
        client.post("/api/login", json={"email": "ghost@example.com", "password": "whatever"})

    resp = client.post("/api/login", json={"email": "ghost@example.com", "password": "whatever"})
    assert resp.status_code == 429


def test_me_requires_token(client):
    assert client.get("/api/me").status_code == 401
    assert client.get("/api/me", headers=auth("garbage")).status_code == 401


def test_admin_authenticate_bootstraps_account(client, db):
    resp = client.post("/api/admin/authenticate", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["role"] == "admin"

    resp = client.post("/api/admin/authenticate", json={"email": ADMIN_EMAIL, "password": "nope-nope"})
    assert resp.status_code == 401


def test_admin_authenticate_rejects_other_emails(client):
    resp = client.post("/api/admin/authenticate", json={"email": "someone@example.com", "password": ADMIN_PASSWORD})
    assert resp.status_code == 401


def test_admin_create(client):
    resp = client.post("/api/admin/create", json={"email": "intruder@example.com", "password": ADMIN_PASSWORD})
    assert resp.status_code == 403

    resp = client.post("/api/admin/create", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["action"] == "created"

    resp = client.post("/api/admin/create", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.json()["action"] == "updated"


def test_vendor_cannot_reach_admin_routes(client, vendor):
    resp = client.get("/api/admin/vendors", headers=auth(vendor["token"]))
    assert resp.status_code == 403
    assert resp.json() == {"error": "Admin access required"}


def test_signup_cannot_claim_admin_email(client, db):
    resp = client.post("/api/signup", json={
        "email": ADMIN_EMAIL.upper(),
        "password": "attacker-pw",
        "businessName": "Not Really Admin",
    })
    assert resp.status_code == 400
    assert resp.json() == {"error": "This email cannot be used for signup"}
    assert db.kv_store.value(f"user_email:{ADMIN_EMAIL}") is None


def test_vendor_account_under_admin_email_is_not_promoted(client, db):
    # an account registered before the admin email was reserved
    db.kv_store.docs["user:squatter"] = {
        "key": "user:squatter",
        "value": {
            "id": "squatter",
            "email": ADMIN_EMAIL,
            "role": "vendor",
            "passwordHash": hash_account_password("attacker-pw"),
        },
    }
    db.kv_store.docs[f"user_email:{ADMIN_EMAIL}"] = {
        "key": f"user_email:{ADMIN_EMAIL}",
        "value": {"userId": "squatter"},
    }

    resp = client.post("/api/admin/authenticate", json={"email": ADMIN_EMAIL, "password": "attacker-pw"})
    assert resp.status_code == 401

    resp = client.post("/api/admin/authenticate", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 403
    assert resp.json() == {"error": "Admin email belongs to a non-admin account"}

    assert db.kv_store.value("user:squatter")["role"] == "vendor"


def test_password_check_tolerates_bad_records():
    assert account_password_matches({"id": "u1", "passwordHash": "not-a-bcrypt-hash"}, "whatever-pw") is False
    assert account_password_matches({"id": "u1"}, "whatever-pw") is False
    assert account_password_matches(None, "whatever-pw") is False

    record = {"id": "u1", "passwordHash": hash_account_password("jollof-rice")}
    assert account_password_matches(record, "jollof-rice") is True
    assert account_password_matches(record, "x" * 80) is False
