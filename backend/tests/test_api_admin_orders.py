"""Tests for the admin order back-office endpoints."""
import pytest

from conftest import CHECKOUT_FORM
from models.log import Log
from models.order import Order
from models.product import Product


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", email="admin@example.com")


@pytest.fixture
def place(client, make_user, make_product, add_to_cart, auth_headers):
    product = make_product("Product A", "100000", 50)

    def _place(qty=2):
        user = make_user()
        add_to_cart(user, product, qty)
        response = client.post("/orders", json=CHECKOUT_FORM, headers=auth_headers(user))
        assert response.status_code == 201
        return response.json()

    _place.product = product
    return _place


def _stock(db, product_id):
    db.expire_all()
    return db.get(Product, product_id).stock_quantity


def test_admin_endpoints_require_admin(client, make_user, auth_headers):
    customer = make_user()

    response = client.get("/admin/orders", headers=auth_headers(customer))

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


def test_list_filters_and_search(client, admin, place, auth_headers):
    first = place()
    second = place()
    client.patch(f"/admin/orders/{second['id']}", json={"status": "processing"}, headers=auth_headers(admin))

    everything = client.get("/admin/orders", params={"status": "all"}, headers=auth_headers(admin)).json()
    assert everything["total"] == 2
    assert all(item["user_email"] for item in everything["items"])

    pending = client.get("/admin/orders", params={"status": "pending"}, headers=auth_headers(admin)).json()
    assert [item["id"] for item in pending["items"]] == [first["id"]]

    found = client.get("/admin/orders", params={"search": second["order_number"][-6:]},
                       headers=auth_headers(admin)).json()
    assert [item["id"] for item in found["items"]] == [second["id"]]

    by_number = client.get("/admin/orders", params={"sort_by": "order_number", "order": "asc"},
                           headers=auth_headers(admin)).json()
    numbers = [item["order_number"] for item in by_number["items"]]
    assert numbers == sorted(numbers)


def test_search_matches_customer_email_and_name(client, db, admin, place, auth_headers):
    place()
    second = place()
    customer = db.get(Order, second["id"]).user
    customer.first_name, customer.last_name = "Tran", "Thi Mai"
    db.commit()

    by_email = client.get("/admin/orders", params={"search": customer.email.upper()},
                          headers=auth_headers(admin)).json()
    by_name = client.get("/admin/orders", params={"search": "thi mai"}, headers=auth_headers(admin)).json()
    by_shipping_name = client.get("/admin/orders", params={"search": "Nguyen Van"},
                                  headers=auth_headers(admin)).json()

    assert [item["id"] for item in by_email["items"]] == [second["id"]]
    assert [item["id"] for item in by_name["items"]] == [second["id"]]
    assert by_shipping_name["total"] == 2


def test_list_rejects_unknown_status(client, admin, auth_headers):
    response = client.get("/admin/orders", params={"status": "lost"}, headers=auth_headers(admin))

    assert response.status_code == 400


def test_get_order(client, admin, place, auth_headers):
    created = place()

    response = client.get(f"/admin/orders/{created['id']}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["order_number"] == created["order_number"]
    assert client.get("/admin/orders/9999", headers=auth_headers(admin)).status_code == 404


def test_walk_order_to_delivered(client, db, admin, place, auth_headers):
    created = place(qty=3)
    url = f"/admin/orders/{created['id']}"

    for status in ("processing", "shipped", "delivered"):
        response = client.patch(url, json={"status": status}, headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["status"] == status

    assert _stock(db, place.product.id) == 47
    entries = db.query(Log).filter(Log.action == "ORDER_STATUS_CHANGE", Log.status == "SUCCESS").order_by(Log.id).all()
    assert [entry.meta["new"] for entry in entries] == ["processing", "shipped", "delivered"]


def test_invalid_transition_is_rejected(client, db, admin, place, auth_headers):
    created = place()
    url = f"/admin/orders/{created['id']}"
    client.patch(url, json={"status": "processing"}, headers=auth_headers(admin))
    client.patch(url, json={"status": "shipped"}, headers=auth_headers(admin))

    response = client.patch(url, json={"status": "cancelled"}, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_transition"
    assert _stock(db, place.product.id) == 48
    assert db.query(Log).filter(Log.action == "ORDER_STATUS_CHANGE", Log.status == "FAIL").count() == 1


def test_admin_cancel_restocks_and_notifies(client, db, admin, place, auth_headers, recording_notifier):
    created = place()
    url = f"/admin/orders/{created['id']}"
    client.patch(url, json={"status": "processing"}, headers=auth_headers(admin))

    response = client.patch(url, json={"status": "cancelled"}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert _stock(db, place.product.id) == 50
    event, payload = recording_notifier.events[-1]
    assert event == "order_cancelled"
    assert payload["cancelled_by"] == "admin"


def test_payment_status_update(client, admin, place, auth_headers):
    created = place()

    response = client.patch(f"/admin/orders/{created['id']}", json={"payment_status": "paid"},
                            headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["payment_status"] == "paid"
    assert response.json()["status"] == "pending"


def test_delete_restores_stock_once(client, db, admin, place, auth_headers):
    created = place(qty=4)
    customer_cancelled = place(qty=5)
    assert _stock(db, place.product.id) == 41

    client.patch(f"/admin/orders/{customer_cancelled['id']}", json={"status": "cancelled"},
                 headers=auth_headers(admin))
    assert _stock(db, place.product.id) == 46

    deleted = client.delete(f"/admin/orders/{created['id']}", headers=auth_headers(admin))
    assert deleted.status_code == 200
    assert deleted.json()["stock_released"] is True
    assert deleted.json()["order_number"] == created["order_number"]

    deleted_cancelled = client.delete(f"/admin/orders/{customer_cancelled['id']}", headers=auth_headers(admin))
    assert deleted_cancelled.json()["stock_released"] is False

    assert _stock(db, place.product.id) == 50
    assert client.delete(f"/admin/orders/{created['id']}", headers=auth_headers(admin)).status_code == 404
