from __future__ import annotations

from conftest import add_menu_item, auth, place_order, signup_and_login


def test_menu_crud_and_public_listing(client, vendor):
    headers = auth(vendor["token"])
    rice = add_menu_item(client, vendor, name="Jollof Rice", price=2000)
    soup = add_menu_item(client, vendor, name="Egusi Soup", price=3500, isAvailable=False)

    items = client.get("/api/menu/items", headers=headers).json()["menuItems"]
    assert sorted(i["name"] for i in items) == ["Egusi Soup", "Jollof Rice"]

    public = client.get(f"/api/vendors/{vendor['id']}/menu").json()["menuItems"]
    assert [i["id"] for i in public] == [rice]

    all_items = client.get(f"/api/vendor/menu-items/{vendor['id']}").json()["menuItems"]
    assert len(all_items) == 2

    resp = client.put(f"/api/menu/items/{soup}", json={"isAvailable": True, "price": 3000}, headers=headers)
    assert resp.status_code == 200
    public = client.get(f"/api/vendors/{vendor['id']}/menu").json()["menuItems"]
    assert len(public) == 2

    assert client.delete(f"/api/menu/items/{rice}", headers=headers).json() == {"success": True}
    assert client.put(f"/api/menu/items/{rice}", json={"price": 1}, headers=headers).status_code == 404


def test_active_menu_count_tracks_availability(client, vendor, db):
    add_menu_item(client, vendor, name="Moi Moi", price=800)
    add_menu_item(client, vendor, name="Pepper Soup", price=2500, isAvailable=False)

    assert db.kv_store.value(f"vendor:{vendor['id']}")["activeMenuItems"] == 1


def test_public_vendor_list_only_shows_active(client, vendor, admin_token):
    other = signup_and_login(client, "grill@example.com", business_name="Grill House")
    other_id = client.get("/api/me", headers=auth(other)).json()["user"]["id"]

    client.put(f"/api/admin/vendors/{other_id}/status", json={"status": "suspended"}, headers=auth(admin_token))

    vendors = client.get("/api/vendors").json()["vendors"]
    assert [v["id"] for v in vendors] == [vendor["id"]]


def test_banks_listed(client):
    banks = client.get("/api/banks").json()["banks"]
    assert {"name": "Guaranty Trust Bank", "code": "058"} in banks


def test_order_priced_on_server(client, vendor, db):
    item = add_menu_item(client, vendor, price=2000)

    order = place_order(client, vendor, [{"id": item, "quantity": 2, "price": 1}])

    # 4000 subtotal + 250 delivery + 200 tax
    assert order["amount"] == 4450
    stored = db.kv_store.value(f"order:{order['orderId']}")
    assert stored["status"] == "pending"
    assert stored["paymentStatus"] == "pending"
    assert stored["subtotal"] == 4000
    assert stored["deliveryFee"] == 250
    assert stored["tax"] == 200
    assert stored["platformCommission"] == 178

    profile = db.kv_store.value(f"vendor:{vendor['id']}")
    assert profile["totalOrders"] == 1


def test_order_rejects_unknown_or_unavailable_items(client, vendor):
    hidden = add_menu_item(client, vendor, name="Ofada", price=3000, isAvailable=False)

    for item_id in ("does-not-exist", hidden):
        resp = client.post("/api/orders", json={
            "vendorId": vendor["id"],
            "customerName": "Ada",
            "customerPhone": "0803",
            "deliveryAddress": "Ikeja",
            "items": [{"id": item_id, "quantity": 1}],
        })
        assert resp.status_code == 400
        assert "not available" in resp.json()["error"]


def test_order_for_unknown_vendor(client):
    resp = client.post("/api/orders", json={
        "vendorId": "nobody",
        "customerName": "Ada",
        "customerPhone": "0803",
        "deliveryAddress": "Ikeja",
        "items": [{"id": "x", "quantity": 1}],
    })
    assert resp.status_code == 404


def test_vendor_orders_hide_commission(client, vendor):
    item = add_menu_item(client, vendor)
    place_order(client, vendor, [{"id": item, "quantity": 1}])

    orders = client.get("/api/vendor/orders", headers=auth(vendor["token"])).json()["orders"]
    assert len(orders) == 1
    assert "platformCommission" not in orders[0]
    assert "commissionRate" not in orders[0]


def test_status_moves_forward_only(client, vendor, db):
    headers = auth(vendor["token"])
    item = add_menu_item(client, vendor)
    order_id = place_order(client, vendor, [{"id": item, "quantity": 1}])["orderId"]
    url = f"/api/orders/{order_id}/status"

    assert client.put(url, json={"status": "preparing"}, headers=headers).status_code == 400
    assert client.put(url, json={"status": "teleported"}, headers=headers).status_code == 400

    for status in ("confirmed", "preparing", "ready", "delivered"):
        resp = client.put(url, json={"status": status}, headers=headers)
        assert resp.status_code == 200, status

    stored = db.kv_store.value(f"order:{order_id}")
    assert stored["status"] == "delivered"
    assert stored["deliveredAt"]
    assert db.kv_store.value(f"vendor:{vendor['id']}")["completedOrders"] == 1

    # terminal, but re-sending the same status is a no-op
    assert client.put(url, json={"status": "cancelled"}, headers=headers).status_code == 400
    assert client.put(url, json={"status": "delivered"}, headers=headers).status_code == 200


def test_status_update_requires_owner(client, vendor):
    item = add_menu_item(client, vendor)
    order_id = place_order(client, vendor, [{"id": item, "quantity": 1}])["orderId"]

    other = signup_and_login(client, "other@example.com", business_name="Other")
    resp = client.put(f"/api/orders/{order_id}/status", json={"status": "confirmed"}, headers=auth(other))
    assert resp.status_code == 403

    resp = client.put("/api/orders/ORD-missing/status", json={"status": "confirmed"}, headers=auth(other))
    assert resp.status_code == 404
