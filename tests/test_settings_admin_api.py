from foodhub.api.settings import DEFAULT_UI_SETTINGS


# =============================================================================
# SETTINGS
# =============================================================================

def test_defaults_seeded_at_startup(client):
    flags = client.get("/api/settings").json()
    assert set(DEFAULT_UI_SETTINGS) <= set(flags)
    assert flags["show_categories"] == "true"
    assert flags["enable_location_services"] == "false"


def test_get_and_update_ui_setting(client):
    setting = client.get("/api/ui-settings/show_ratings").json()
    assert setting["value"] == "true"
    assert setting["category"] == "ui"

    response = client.put("/api/ui-settings/show_ratings", json={"value": False})
    assert response.status_code == 200
    assert response.json()["value"] == "false"
    assert client.get("/api/settings").json()["show_ratings"] == "false"

    keys = [s["key"] for s in client.get("/api/ui-settings").json()]
    assert keys == sorted(keys)


def test_ui_setting_errors(client):
    assert client.put("/api/ui-settings/show_ratings", json={}).status_code == 400
    assert client.put("/api/ui-settings/no_such_flag", json={"value": "true"}).status_code == 404
    assert client.get("/api/ui-settings/no_such_flag").status_code == 404


# =============================================================================
# ADMIN
# =============================================================================

def test_dashboard_counts(client, make_order, make_driver, make_restaurant):
    make_restaurant()
    make_driver()
    busy = make_driver()
    client.put(f"/api/drivers/{busy['id']}/status", json={"status": "busy"})
    delivered = make_order(totalAmount=30)
    make_order(totalAmount=12)
    for status in ["confirmed", "preparing", "on_way", "delivered"]:
        client.put(f"/api/orders/{delivered['id']}", json={"status": status})

    body = client.get("/api/admin/dashboard").json()
    stats = body["stats"]
    assert stats["totalRestaurants"] == 1
    assert stats["totalOrders"] == 2
    assert stats["todayOrders"] == 2
    assert stats["pendingOrders"] == 1
    assert stats["totalDrivers"] == 2
    assert stats["activeDrivers"] == 2
    assert stats["availableDrivers"] == 1
    assert stats["totalRevenue"] == 30.0
    assert stats["todayRevenue"] == 30.0
    assert len(body["recentOrders"]) == 2


def test_review_moderation(client, make_restaurant, make_order):
    restaurant = make_restaurant()
    order = make_order(restaurantId=restaurant["id"])
    for status in ["confirmed", "preparing", "on_way", "delivered"]:
        client.put(f"/api/orders/{order['id']}", json={"status": status})
    review = client.post(
        f"/api/customers/orders/{order['id']}/review", json={"rating": 3, "comment": "Cold fries"}
    ).json()

    assert [r["id"] for r in client.get("/api/admin/reviews", params={"approved": "false"}).json()] == [review["id"]]

    approved = client.put(f"/api/admin/reviews/{review['id']}/approve", json={"approved": True})
    assert approved.status_code == 200
    assert approved.json()["isApproved"] is True
    assert client.get("/api/admin/reviews", params={"approved": "false"}).json() == []

    assert client.delete(f"/api/admin/reviews/{review['id']}").status_code == 200
    after = client.get(f"/api/restaurants/{restaurant['id']}").json()
    assert after["reviewCount"] == 0
    assert after["rating"] == 0.0

    reviewed = client.get(f"/api/orders/{order['id']}").json()
    assert reviewed["rating"] is None
    assert reviewed["review"] is None
    assert client.post(f"/api/customers/orders/{order['id']}/review", json={"rating": 4}).status_code == 201


def test_notifications_mark_read(client, make_driver, confirmed_order):
    driver = make_driver()
    order = confirmed_order()
    client.post(f"/api/drivers/{driver['id']}/accept-order", json={"orderId": order["id"]})

    unread = client.get(
        "/api/notifications",
        params={"recipientType": "driver", "recipientId": driver["id"], "unread": "true"},
    ).json()
    assert len(unread) == 1

    response = client.put(f"/api/notifications/{unread[0]['id']}/read")
    assert response.status_code == 200
    assert response.json()["isRead"] is True

    assert client.get(
        "/api/notifications",
        params={"recipientId": driver["id"], "unread": "true"},
    ).json() == []
    assert client.put("/api/notifications/999/read").status_code == 404


def test_root_and_health(client):
    assert client.get("/").json()["health"] == "/health"

    health = client.get("/health")
    assert health.status_code == 200
    body = health.json()
    assert body["database"] == "healthy"
    assert body["notificationService"] == "healthy"
    assert body["status"] == "operational"
