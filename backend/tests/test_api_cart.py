"""Tests for the cart endpoints that feed checkout."""
from models.log import Log
from models.product import ProductStatus


def test_empty_cart_is_created_on_first_read(client, make_user, auth_headers):
    user = make_user()

    response = client.get("/cart", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json() == {"items": [], "subtotal": 0}


def test_add_update_and_remove(client, db, make_user, make_product, auth_headers):
    user = make_user()
    serum = make_product("Serum", "450000", 10)
    cleanser = make_product("Cleanser", "210000", 10)
    headers = auth_headers(user)

    client.post("/cart/add", json={"product_id": serum.id, "qty": 2}, headers=headers)
    response = client.post("/cart/add", json={"product_id": cleanser.id}, headers=headers)
    assert response.status_code == 200
    cart = response.json()
    assert [(item["name"], item["qty"]) for item in cart["items"]] == [("Serum", 2), ("Cleanser", 1)]
    assert cart["subtotal"] == 1110000

    # Adding the same product again merges the lines
    cart = client.post("/cart/add", json={"product_id": serum.id, "qty": 1}, headers=headers).json()
    serum_line = cart["items"][0]
    assert serum_line["qty"] == 3
    assert serum_line["line_total"] == 1350000

    cart = client.put(f"/cart/items/{serum_line['id']}", json={"qty": 5}, headers=headers).json()
    assert cart["items"][0]["qty"] == 5

    cart = client.delete(f"/cart/items/{serum_line['id']}", headers=headers).json()
    assert [item["name"] for item in cart["items"]] == ["Cleanser"]

    actions = [entry.action for entry in db.query(Log).filter(Log.resource == "cart").order_by(Log.id)]
    assert actions == ["CART_ADD", "CART_ADD", "CART_ADD", "CART_UPDATE", "CART_DELETE"]


def test_cart_quantity_is_limited_by_stock(client, make_user, make_product, auth_headers):
    user = make_user()
    product = make_product("Sunscreen", "320000", 3)
    headers = auth_headers(user)

    client.post("/cart/add", json={"product_id": product.id, "qty": 2}, headers=headers)
    response = client.post("/cart/add", json={"product_id": product.id, "qty": 2}, headers=headers)

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "insufficient_stock"
    assert detail["available"] == 3
    assert detail["requested"] == 4
    assert detail["message"].endswith("Remaining: 3")


def test_unavailable_products_cannot_be_added(client, make_user, make_product, auth_headers):
    user = make_user()
    sold_out = make_product("Clay Mask", "150000", 0, status=ProductStatus.OUT_OF_STOCK)
    retired = make_product("Old Cream", "99000", 10, status=ProductStatus.DISCONTINUED)
    headers = auth_headers(user)

    for product in (sold_out, retired):
        response = client.post("/cart/add", json={"product_id": product.id}, headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "product_unavailable"

    assert client.post("/cart/add", json={"product_id": 9999}, headers=headers).status_code == 404


def test_invalid_quantity(client, make_user, make_product, auth_headers):
    user = make_user()
    product = make_product("Toner", "99000", 10)

    response = client.post("/cart/add", json={"product_id": product.id, "qty": 0}, headers=auth_headers(user))

    assert response.status_code == 422


def test_clear_cart(client, make_user, make_product, auth_headers):
    user = make_user()
    product = make_product("Toner", "99000", 10)
    headers = auth_headers(user)
    client.post("/cart/add", json={"product_id": product.id, "qty": 2}, headers=headers)

    response = client.delete("/cart", headers=headers)

    assert response.status_code == 200
    assert response.json()["items"] == []


def test_cart_of_another_user_is_not_reachable(client, make_user, make_product, auth_headers):
    owner, intruder = make_user(), make_user()
    product = make_product("Toner", "99000", 10)
    cart = client.post("/cart/add", json={"product_id": product.id}, headers=auth_headers(owner)).json()
    item_id = cart["items"][0]["id"]

    response = client.put(f"/cart/items/{item_id}", json={"qty": 2}, headers=auth_headers(intruder))

    assert response.status_code == 404
