from datetime import datetime, timedelta, timezone


def test_categories_ordered_and_filtered(client):
    client.post("/api/categories", json={"name": "Pizza", "sortOrder": 2})
    client.post("/api/categories", json={"name": "Burgers", "sortOrder": 1})
    hidden = client.post("/api/categories", json={"name": "Hidden", "isActive": False}).json()

    names = [c["name"] for c in client.get("/api/categories").json()]
    assert names == ["Burgers", "Pizza"]

    client.put(f"/api/categories/{hidden['id']}", json={"isActive": True})
    assert "Hidden" in [c["name"] for c in client.get("/api/categories").json()]

    assert client.delete(f"/api/categories/{hidden['id']}").status_code == 200
    assert client.delete(f"/api/categories/{hidden['id']}").status_code == 404


def test_restaurant_filters(client, make_restaurant):
    category = client.post("/api/categories", json={"name": "Grill"}).json()
    grill = make_restaurant(name="Mixed Grill Palace", categoryId=category["id"])
    make_restaurant(name="Sushi Bar", description="Fresh fish")

    by_category = client.get("/api/restaurants", params={"categoryId": category["id"]}).json()
    assert [r["id"] for r in by_category] == [grill["id"]]

    by_search = client.get("/api/restaurants", params={"search": "fish"}).json()
    assert [r["name"] for r in by_search] == ["Sushi Bar"]

    assert len(client.get("/api/restaurants", params={"limit": 1}).json()) == 1


def test_restaurant_detail_includes_open_status(client, make_restaurant):
    restaurant = make_restaurant(isTemporarilyClosed=True, temporaryCloseReason="Renovation")
    detail = client.get(f"/api/restaurants/{restaurant['id']}").json()
    assert detail["openStatus"] == {
        "isOpen": False,
        "message": "Renovation",
        "statusColor": "red",
        "nextOpenTime": None,
        "closeTime": None,
    }
    assert client.get("/api/restaurants/999").status_code == 404


def test_restaurant_validation(client):
    assert client.post("/api/restaurants", json={"name": "X", "openingTime": "25:00"}).status_code == 400
    assert client.post("/api/restaurants", json={"name": "X", "workingDays": "1,9"}).status_code == 400
    assert client.post("/api/restaurants", json={"name": "X", "categoryId": 42}).status_code == 404


def test_update_restaurant(client, make_restaurant):
    restaurant = make_restaurant()
    response = client.put(
        f"/api/restaurants/{restaurant['id']}",
        json={"isOpen": False, "workingDays": "1, 2,3"},
    )
    assert response.status_code == 200
    assert response.json()["isOpen"] is False
    assert response.json()["workingDays"] == "1,2,3"


def test_menu_grouped_by_category(client, make_restaurant):
    restaurant = make_restaurant()
    rid = restaurant["id"]
    client.post("/api/menu-items", json={"restaurantId": rid, "name": "Hummus", "price": 9, "category": "starters"})
    client.post("/api/menu-items", json={"restaurantId": rid, "name": "Kebab", "price": 30, "category": "main"})
    off = client.post(
        "/api/menu-items",
        json={"restaurantId": rid, "name": "Soup", "price": 7, "category": "starters", "isAvailable": False},
    ).json()

    menu = client.get(f"/api/restaurants/{rid}/menu").json()
    assert menu["restaurant"]["id"] == rid
    sections = {s["category"]: [i["name"] for i in s["items"]] for s in menu["menu"]}
    assert sections == {"main": ["Kebab"], "starters": ["Hummus"]}
    assert off["id"] in [i["id"] for i in menu["allItems"]]

    assert client.post("/api/menu-items", json={"restaurantId": 999, "name": "X", "price": 1}).status_code == 404


def test_menu_item_update_and_delete(client, make_restaurant):
    restaurant = make_restaurant()
    item = client.post("/api/menu-items", json={"restaurantId": restaurant["id"], "name": "Tea", "price": 3}).json()

    updated = client.put(f"/api/menu-items/{item['id']}", json={"price": 4, "originalPrice": 5}).json()
    assert updated["price"] == 4
    assert updated["originalPrice"] == 5

    assert client.delete(f"/api/menu-items/{item['id']}").status_code == 200
    assert client.put(f"/api/menu-items/{item['id']}", json={"price": 1}).status_code == 404


def test_special_offers_hide_expired_and_inactive(client, make_restaurant):
    restaurant = make_restaurant()
    now = datetime.now(timezone.utc)
    live = client.post(
        "/api/special-offers",
        json={
            "title": "20% off",
            "discountPercent": 20,
            "restaurantId": restaurant["id"],
            "validUntil": (now + timedelta(days=3)).isoformat(),
        },
    ).json()
    client.post(
        "/api/special-offers",
        json={"title": "Expired", "validUntil": (now - timedelta(days=1)).isoformat()},
    )
    client.post("/api/special-offers", json={"title": "Paused", "isActive": False})
    open_ended = client.post("/api/special-offers", json={"title": "Free drink"}).json()

    ids = [o["id"] for o in client.get("/api/special-offers").json()]
    assert sorted(ids) == sorted([live["id"], open_ended["id"]])

    scoped = client.get("/api/special-offers", params={"restaurantId": restaurant["id"]}).json()
    assert [o["id"] for o in scoped] == [live["id"]]


def test_search(client, make_restaurant):
    restaurant = make_restaurant(name="Burger Town")
    other = make_restaurant(name="Pasta Place")
    client.post("/api/menu-items", json={"restaurantId": other["id"], "name": "Burger Pasta", "price": 10})

    everything = client.get("/api/search", params={"q": "burger"}).json()
    assert [r["id"] for r in everything["restaurants"]] == [restaurant["id"]]
    assert [i["name"] for i in everything["menuItems"]] == ["Burger Pasta"]

    menu_only = client.get("/api/search", params={"q": "burger", "type": "menu"}).json()
    assert menu_only["restaurants"] == []

    assert client.get("/api/search", params={"q": ""}).status_code == 400
    assert client.get("/api/search", params={"q": "x", "type": "drinks"}).status_code == 400


def test_delete_restaurant_removes_menu(client, make_restaurant, make_order):
    restaurant = make_restaurant()
    client.post("/api/menu-items", json={"restaurantId": restaurant["id"], "name": "Tea", "price": 3})
    order = make_order(restaurantId=restaurant["id"])

    assert client.delete(f"/api/restaurants/{restaurant['id']}").status_code == 200
    assert client.get(f"/api/restaurants/{restaurant['id']}/menu").status_code == 404
    assert client.get(f"/api/orders/{order['id']}").json()["restaurantId"] is None
