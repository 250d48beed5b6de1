import pytest

from app.modules.orders.service import merge_checkout_items, order_matches_search
from app.modules.orders.schemas import CheckoutItem
from tests.conftest import ADMIN_ID, CUSTOMER_ID, OTHER_CUSTOMER_ID, make_product


def checkout_payload(**overrides):
    payload = {
        "items": [{"product_id": "p-atta", "quantity": 2}],
        "delivery_method": "standard",
        "full_name": "Ramesh Kumar",
        "email": "ramesh@example.com",
        "phone": "+91 98765 43210",
        "address": "12 Mandi Road",
        "city": "Karnal",
        "pin_code": "132001",
    }
    payload.update(overrides)
    return payload


def seed_order(db, order_id, user_id=CUSTOMER_ID, status="pending", items=(("p-atta", 2, 400.0),),
               phone="9876543210", created_at="2024-02-01T10:00:00"):
    db.tables["orders"].append({
        "id": order_id,
        "user_id": user_id,
        "total": sum(qty * price for _, qty, price in items) + 50,
        "status": status,
        "shipping_address": {"fullName": "Ramesh Kumar", "city": "Karnal"},
        "delivery_method": "standard",
        "phone": phone,
        "created_at": created_at,
    })
    for index, (product_id, qty, price) in enumerate(items):
        db.tables["order_items"].append({
            "id": f"{order_id}-item-{index}",
            "order_id": order_id,
            "product_id": product_id,
            "quantity": qty,
            "price": price,
        })


def stock_of(db, product_id):
    return db.get("products", product_id)["stock"]


def test_merge_checkout_items_sums_repeated_products():
    items = [CheckoutItem(product_id="a", quantity=1), CheckoutItem(product_id="b", quantity=2),
             CheckoutItem(product_id="a", quantity=3)]
    assert merge_checkout_items(items) == [
        {"product_id": "a", "quantity": 4},
        {"product_id": "b", "quantity": 2},
    ]


def test_order_search_matches_id_phone_and_customer():
    order = {"id": "abcd1234-0000", "phone": "98765", "profile": {"username": "Ramesh", "email": "r@x.com"}}
    assert order_matches_search(order, "ABCD")
    assert order_matches_search(order, "876")
    assert order_matches_search(order, "rames")
    assert order_matches_search(order, "R@X")
    assert not order_matches_search(order, "suresh")
    assert order_matches_search({"id": "x", "profile": None}, "  ")


# Checkout

def test_checkout_uses_server_prices(client, login, db):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload())
    assert response.status_code == 201
    order = response.json()

    assert order["status"] == "pending"
    assert order["total"] == 400 * 2 + 50
    assert order["shipping_address"]["fullName"] == "Ramesh Kumar"
    assert order["shipping_address"]["pinCode"] == "132001"
    assert order["user_id"] == CUSTOMER_ID

    items = db.rows("order_items")
    assert len(items) == 1
    assert items[0]["price"] == 400
    assert items[0]["order_id"] == order["id"]
    # stock is only taken when the order is confirmed
    assert stock_of(db, "p-atta") == 5


def test_pickup_orders_need_no_address(client, login):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(
        delivery_method="pickup", address=None, city=None, pin_code=None
    ))
    assert response.status_code == 201
    assert response.json()["shipping_address"] is None
    assert response.json()["total"] == 800


def test_express_delivery_fee(client, login):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(delivery_method="express"))
    assert response.json()["total"] == 950


@pytest.mark.parametrize("overrides,message", [
    ({"address": "  "}, "Street address is required"),
    ({"city": None}, "City is required"),
    ({"pin_code": ""}, "Pin code is required"),
    ({"full_name": "   "}, "Full name is required"),
    ({"full_name": "x" * 101}, "Name must be less than 100 characters"),
    ({"phone": "call me"}, "Please enter a valid phone number"),
    ({"phone": "1" * 21}, "Phone number must be less than 20 characters"),
    ({"notes": "n" * 501}, "Notes must be less than 500 characters"),
    ({"landmark": "l" * 201}, "Landmark must be less than 200 characters"),
])
def test_checkout_form_validation(client, login, overrides, message):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(**overrides))
    assert response.status_code == 400
    assert response.json()["detail"] == message


def test_checkout_rejects_bad_email(client, login):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(email="not-an-email"))
    assert response.status_code == 400


def test_checkout_rejects_empty_cart(client, login, db):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(items=[]))
    assert response.status_code == 400
    assert response.json()["detail"] == "Your cart is empty"
    assert db.rows("orders") == []


@pytest.mark.parametrize("product_id", ["p-missing", "p-hidden"])
def test_checkout_rejects_unavailable_products(client, login, db, product_id):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(items=[
        {"product_id": "p-atta", "quantity": 1},
        {"product_id": product_id, "quantity": 1},
    ]))
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Some products in your cart are no longer available")
    assert db.rows("orders") == []


def test_checkout_treats_unpriced_products_as_unavailable(client, login, db):
    db.tables["products"].append(make_product("p-unpriced", "Kapila - 25 KG", price=None, category="kapila"))
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(items=[
        {"product_id": "p-unpriced", "quantity": 1},
    ]))
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Some products in your cart are no longer available")
    assert db.rows("orders") == []


def test_checkout_blocks_overselling(client, login, db):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(items=[
        {"product_id": "p-atta", "quantity": 3},
        {"product_id": "p-atta", "quantity": 3},
    ]))
    assert response.status_code == 400
    assert response.json()["detail"] == "Only 5 units of Atta - 10 KG are available."
    assert db.rows("orders") == []


def test_untracked_stock_never_blocks_checkout(client, login):
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders", json=checkout_payload(items=[
        {"product_id": "p-basmati", "quantity": 500}
    ]))
    assert response.status_code == 201
    assert response.json()["total"] == 85 * 500 + 50


def test_failed_item_insert_removes_order(client, login, db):
    login(CUSTOMER_ID)
    db.fail_inserts.add("order_items")
    response = client.post("/api/v1/orders", json=checkout_payload())
    assert response.status_code == 500
    assert db.rows("orders") == []


# Customer order tracking

def test_customers_see_only_their_orders(client, login, db):
    seed_order(db, "order-old", created_at="2024-02-01T10:00:00")
    seed_order(db, "order-new", created_at="2024-02-02T10:00:00", items=(("p-basmati", 4, 85.0),))
    seed_order(db, "order-other", user_id=OTHER_CUSTOMER_ID)
    login(CUSTOMER_ID)

    orders = client.get("/api/v1/orders").json()
    assert [o["id"] for o in orders] == ["order-new", "order-old"]
    assert orders[0]["items"][0]["product"]["name"] == "Basmati Chawal"


def test_order_detail_is_owner_or_admin_only(client, login, db):
    seed_order(db, "order-1")
    login(OTHER_CUSTOMER_ID)
    assert client.get("/api/v1/orders/order-1").status_code == 403

    login(CUSTOMER_ID)
    assert client.get("/api/v1/orders/order-1").status_code == 200

    login(ADMIN_ID)
    response = client.get("/api/v1/orders/order-1")
    assert response.status_code == 200
    assert response.json()["profile"]["username"] == "ramesh"


def test_customer_cancels_pending_order_without_touching_stock(client, login, db):
    seed_order(db, "order-1", status="pending")
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders/order-1/cancel", json={"reason": "Ordered by mistake"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "cancelled"
    assert body["cancelled_by"] == "user"
    assert body["cancellation_reason"] == "Ordered by mistake"
    assert stock_of(db, "p-atta") == 5


def test_customer_cancel_of_confirmed_order_restores_stock(client, login, db):
    seed_order(db, "order-1", status="confirmed")
    login(CUSTOMER_ID)
    response = client.post("/api/v1/orders/order-1/cancel", json={"reason": "Other", "details": "Bought locally"})
    assert response.status_code == 200
    assert response.json()["cancellation_reason"] == "Bought locally"
    assert stock_of(db, "p-atta") == 7


def test_customer_cancel_rules(client, login, db):
    seed_order(db, "order-shipped", status="shipped")
    seed_order(db, "order-other", user_id=OTHER_CUSTOMER_ID)
    login(CUSTOMER_ID)

    shipped = client.post("/api/v1/orders/order-shipped/cancel", json={"reason": "Changed my mind"})
    assert shipped.status_code == 400

    other = client.post("/api/v1/orders/order-other/cancel", json={"reason": "Changed my mind"})
    assert other.status_code == 403

    no_reason = client.post("/api/v1/orders/order-other/cancel", json={"reason": "Other", "details": " "})
    assert no_reason.status_code == 400
    assert no_reason.json()["detail"] == "Please select or enter a reason for cancellation"


# Admin back office

def test_admin_endpoints_require_admin(client, login):
    login(CUSTOMER_ID)
    assert client.get("/api/v1/admin/orders").status_code == 403
    assert client.put("/api/v1/admin/orders/x/status", json={"status": "confirmed"}).status_code == 403


def test_admin_lists_orders_with_search_and_status(client, login, db):
    seed_order(db, "aaaa1111", phone="9811111111", created_at="2024-02-01T10:00:00")
    seed_order(db, "bbbb2222", user_id=OTHER_CUSTOMER_ID, status="shipped", phone="9822222222",
               created_at="2024-02-02T10:00:00")
    login(ADMIN_ID)

    everything = client.get("/api/v1/admin/orders", params={"status": "all"}).json()
    assert [o["id"] for o in everything] == ["bbbb2222", "aaaa1111"]
    assert everything[1]["profile"] == {"username": "ramesh", "email": "ramesh@example.com"}
    assert everything[0]["profile"] is None

    shipped = client.get("/api/v1/admin/orders", params={"status": "shipped"}).json()
    assert [o["id"] for o in shipped] == ["bbbb2222"]

    by_username = client.get("/api/v1/admin/orders", params={"search": "RAMESH"}).json()
    assert [o["id"] for o in by_username] == ["aaaa1111"]

    by_phone = client.get("/api/v1/admin/orders", params={"search": "98222"}).json()
    assert [o["id"] for o in by_phone] == ["bbbb2222"]


def test_confirming_an_order_reduces_stock(client, login, db):
    seed_order(db, "order-1", items=(("p-atta", 2, 400.0), ("p-basmati", 10, 85.0)))
    login(ADMIN_ID)
    response = client.put("/api/v1/admin/orders/order-1/status", json={"status": "confirmed"})
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert stock_of(db, "p-atta") == 3
    assert stock_of(db, "p-basmati") is None

    response = client.put("/api/v1/admin/orders/order-1/status", json={"status": "shipped"})
    assert response.status_code == 200
    assert stock_of(db, "p-atta") == 3


def test_stock_reduction_floors_at_zero(client, login, db):
    seed_order(db, "order-1", items=(("p-atta", 9, 400.0),))
    login(ADMIN_ID)
    client.put("/api/v1/admin/orders/order-1/status", json={"status": "confirmed"})
    assert stock_of(db, "p-atta") == 0


@pytest.mark.parametrize("current,requested,message", [
    ("delivered", "shipped", "Delivered orders cannot be modified"),
    ("confirmed", "delivered", "Cannot change status from confirmed to delivered"),
    ("shipped", "pending", "Cannot change status from shipped to pending"),
    ("cancelled", "confirmed", "Cannot change status from cancelled to confirmed"),
    ("pending", "pending", "Order is already pending"),
    ("pending", "cancelled", "Use the cancel endpoint to cancel an order with a reason"),
    ("pending", "lost", "Invalid status: lost"),
])
def test_invalid_status_changes(client, login, db, current, requested, message):
    seed_order(db, "order-1", status=current)
    login(ADMIN_ID)
    response = client.put("/api/v1/admin/orders/order-1/status", json={"status": requested})
    assert response.status_code == 400
    assert response.json()["detail"] == message
    assert db.get("orders", "order-1")["status"] == current


def test_admin_cancel_restores_stock_of_confirmed_order(client, login, db):
    seed_order(db, "order-1", status="confirmed")
    login(ADMIN_ID)
    response = client.post("/api/v1/admin/orders/order-1/cancel", json={"reason": "Out of stock"})
    assert response.status_code == 200
    body = response.json()
    assert body["cancelled_by"] == "admin"
    assert body["cancellation_reason"] == "Out of stock"
    assert stock_of(db, "p-atta") == 7


def test_admin_cannot_cancel_shipped_or_delivered(client, login, db):
    seed_order(db, "order-shipped", status="shipped")
    seed_order(db, "order-delivered", status="delivered")
    login(ADMIN_ID)
    assert client.post("/api/v1/admin/orders/order-shipped/cancel", json={"reason": "Payment issue"}).status_code == 400
    response = client.post("/api/v1/admin/orders/order-delivered/cancel", json={"reason": "Payment issue"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Delivered orders cannot be modified"


def test_admin_notes_and_delete(client, login, db):
    seed_order(db, "order-1")
    login(ADMIN_ID)
    response = client.put("/api/v1/admin/orders/order-1/notes", json={"admin_notes": " Call before delivery "})
    assert response.status_code == 200
    assert response.json()["admin_notes"] == "Call before delivery"

    assert client.delete("/api/v1/admin/orders/order-1").status_code == 204
    assert db.rows("orders") == []
    assert db.rows("order_items") == []
    assert client.delete("/api/v1/admin/orders/order-1").status_code == 404
