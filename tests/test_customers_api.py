def _customer(client, phone="0501234567", name="Ali"):
    return client.post("/api/customers/auth", json={"phone": phone, "name": name})


def _deliver_directly(client, order_id):
    for status in ["confirmed", "preparing", "on_way", "delivered"]:
        assert client.put(f"/api/orders/{order_id}", json={"status": status}).status_code == 200


# =============================================================================
# ACCOUNT
# =============================================================================

def test_auth_creates_then_returns_existing(client):
    created = _customer(client)
    assert created.status_code == 201
    customer = created.json()
    assert customer["phone"] == "0501234567"
    assert customer["name"] == "Ali"

    again = _customer(client, name="Someone Else")
    assert again.status_code == 200
    assert again.json()["id"] == customer["id"]
    assert again.json()["name"] == "Ali"


def test_profile_update(client):
    customer = _customer(client).json()
    response = client.put(
        f"/api/customers/{customer['id']}/profile",
        json={"name": "Ali Hassan", "email": "ali@example.com"},
    )
    assert response.status_code == 200
    assert response.json()["email"] == "ali@example.com"
    assert client.get(f"/api/customers/{customer['id']}/profile").json()["name"] == "Ali Hassan"
    assert client.get("/api/customers/999/profile").status_code == 404


# =============================================================================
# ADDRESSES
# =============================================================================

def test_first_address_becomes_default(client):
    customer = _customer(client).json()
    response = client.post(f"/api/customers/{customer['id']}/addresses", json={"address": "12 Olaya St"})
    assert response.status_code == 201
    assert response.json()["isDefault"] is True


def test_single_default_address(client):
    customer = _customer(client).json()
    url = f"/api/customers/{customer['id']}/addresses"

    home = client.post(url, json={"title": "home", "address": "12 Olaya St"}).json()
    work = client.post(url, json={"title": "work", "address": "1 Tahlia St", "isDefault": True}).json()
    gym = client.post(url, json={"title": "gym", "address": "3 King Fahd Rd"}).json()

    addresses = client.get(url).json()
    assert [a["id"] for a in addresses if a["isDefault"]] == [work["id"]]
    assert addresses[0]["id"] == work["id"]

    response = client.put(f"{url}/{gym['id']}", json={"isDefault": True})
    assert response.status_code == 200
    defaults = [a["id"] for a in client.get(url).json() if a["isDefault"]]
    assert defaults == [gym["id"]]
    assert home["id"] not in defaults


def test_address_belongs_to_customer(client):
    owner = _customer(client).json()
    other = _customer(client, phone="0507654321").json()
    address = client.post(f"/api/customers/{owner['id']}/addresses", json={"address": "12 Olaya St"}).json()

    assert client.put(
        f"/api/customers/{other['id']}/addresses/{address['id']}", json={"title": "mine"}
    ).status_code == 404
    assert client.delete(f"/api/customers/{other['id']}/addresses/{address['id']}").status_code == 404

    assert client.delete(f"/api/customers/{owner['id']}/addresses/{address['id']}").status_code == 200
    assert client.get(f"/api/customers/{owner['id']}/addresses").json() == []


# =============================================================================
# ORDERS & REVIEWS
# =============================================================================

def test_customer_order_history(client, make_order):
    customer = _customer(client).json()
    for _ in range(3):
        make_order(customerId=customer["id"])
    make_order()  # guest order

    history = client.get(f"/api/customers/{customer['id']}/orders", params={"limit": 2}).json()
    assert len(history["orders"]) == 2
    assert history["pagination"]["total"] == 3
    assert all(o["customerId"] == customer["id"] for o in history["orders"])


def test_review_delivered_order_updates_rating(client, make_restaurant, make_order):
    restaurant = make_restaurant()
    customer = _customer(client).json()
    first = make_order(restaurantId=restaurant["id"], customerId=customer["id"])
    second = make_order(restaurantId=restaurant["id"], customerId=customer["id"])
    _deliver_directly(client, first["id"])
    _deliver_directly(client, second["id"])

    response = client.post(
        f"/api/customers/orders/{first['id']}/review",
        json={"rating": 5, "comment": "Great", "foodQuality": 5},
    )
    assert response.status_code == 201
    review = response.json()
    assert review["customerId"] == customer["id"]
    assert review["restaurantId"] == restaurant["id"]
    assert review["isApproved"] is False

    client.post(f"/api/customers/orders/{second['id']}/review", json={"rating": 4})

    updated = client.get(f"/api/restaurants/{restaurant['id']}").json()
    assert updated["reviewCount"] == 2
    assert updated["rating"] == 4.5

    order = client.get(f"/api/orders/{first['id']}").json()
    assert order["rating"] == 5
    assert order["review"] == "Great"


def test_review_rules(client, make_order):
    pending = make_order()
    assert client.post(f"/api/customers/orders/{pending['id']}/review", json={"rating": 4}).status_code == 409

    delivered = make_order()
    _deliver_directly(client, delivered["id"])
    assert client.post(f"/api/customers/orders/{delivered['id']}/review", json={"rating": 6}).status_code == 400
    assert client.post(f"/api/customers/orders/{delivered['id']}/review", json={"rating": 4}).status_code == 201
    assert client.post(f"/api/customers/orders/{delivered['id']}/review", json={"rating": 3}).status_code == 409

    assert client.post("/api/customers/orders/999/review", json={"rating": 4}).status_code == 404
