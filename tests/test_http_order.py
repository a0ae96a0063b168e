"""
Tests: /api/order
"""

import pytest

from tests.conftest import auth_header

VEGGIE = {"title": "Veggie", "description": "A garden of delight", "image": "pizza1.png", "price": 0.0038}


@pytest.fixture
def store(client, admin_token):
    franchise = client.post(
        "/api/franchise",
        json={"name": "pizzaPocket", "admins": []},
        headers=auth_header(admin_token),
    ).json()
    return client.post(
        f"/api/franchise/{franchise['id']}/store",
        json={"name": "SLC"},
        headers=auth_header(admin_token),
    ).json()


@pytest.fixture
def menu_item(client, admin_token):
    return client.put("/api/order/menu", json=VEGGIE, headers=auth_header(admin_token)).json()[-1]


def _order_body(store, menu_item):
    return {
        "franchiseId": store["franchiseId"],
        "storeId": store["id"],
        "items": [{"menuId": menu_item["id"], "description": "Veggie", "price": 0.05}],
    }


class TestMenu:
    def test_menu_is_public(self, client):
        res = client.get("/api/order/menu")
        assert res.status_code == 200
        assert res.json() == []

    def test_admin_adds_menu_item(self, client, admin_token):
        res = client.put("/api/order/menu", json=VEGGIE, headers=auth_header(admin_token))
        assert res.status_code == 200
        menu = res.json()
        assert [item["title"] for item in menu] == ["Veggie"]
        assert client.get("/api/order/menu").json() == menu

    def test_diner_cannot_add_menu_item(self, client, diner):
        _, token = diner
        res = client.put("/api/order/menu", json=VEGGIE, headers=auth_header(token))
        assert res.status_code == 403
        assert res.json() == {"message": "unable to add menu item"}


class TestPlaceOrder:
    def test_place_and_list_orders(self, client, diner, store, menu_item):
        user, token = diner
        res = client.post("/api/order", json=_order_body(store, menu_item), headers=auth_header(token))
        assert res.status_code == 200
        body = res.json()
        assert body["jwt"]
        assert body["followLinkToEndChaos"]
        assert body["order"]["storeId"] == store["id"]
        assert body["order"]["items"] == [{"menuId": menu_item["id"], "description": "Veggie", "price": 0.05}]

        history = client.get("/api/order", headers=auth_header(token)).json()
        assert history["dinerId"] == user["id"]
        assert history["page"] == 0
        assert [o["id"] for o in history["orders"]] == [body["order"]["id"]]

    def test_order_adds_store_revenue(self, client, diner, store, menu_item):
        _, token = diner
        client.post("/api/order", json=_order_body(store, menu_item), headers=auth_header(token))
        franchises = client.get("/api/franchise").json()["franchises"]
        stores = {s["id"]: s for f in franchises for s in f["stores"]}
        assert stores[store["id"]]["totalRevenue"] == pytest.approx(0.05)

    def test_anonymous_cannot_order(self, client):
        res = client.post("/api/order", json={"franchiseId": 1, "storeId": 1, "items": []})
        assert res.status_code == 401

    def test_order_needs_items(self, client, diner):
        _, token = diner
        res = client.post(
            "/api/order",
            json={"franchiseId": 1, "storeId": 1, "items": []},
            headers=auth_header(token),
        )
        assert res.status_code == 400

    def test_factory_failure(self, client, factory, diner, store, menu_item):
        _, token = diner
        factory.failure_rate = 1.0
        res = client.post("/api/order", json=_order_body(store, menu_item), headers=auth_header(token))
        assert res.status_code == 500
        body = res.json()
        assert body["message"] == "Failed to fulfill order at factory"
        assert body["followLinkToEndChaos"]

        # The order was stored before the factory call
        history = client.get("/api/order", headers=auth_header(token)).json()
        assert len(history["orders"]) == 1

    def test_orders_are_private(self, client, diner, register, store, menu_item):
        _, token = diner
        client.post("/api/order", json=_order_body(store, menu_item), headers=auth_header(token))
        _, other_token, _ = register()
        assert client.get("/api/order", headers=auth_header(other_token)).json()["orders"] == []
