from __future__ import annotations

import httpx
import pytest
from combinators import RateLimitPolicy
from sqlalchemy import update

from bazaar.checkout import Policy
from bazaar.config import Settings
from bazaar.db import ProductTable
from bazaar.http import Services, TokenBucketLimiter, app_from_settings, create_app


def _client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://bazaar.test")


@pytest.fixture
async def client(session_factory, make_user, make_product):
    await make_user("alice", balance=100)
    await make_user("bob", balance=100)
    await make_product("sword", name="Sword", price=30, stock=5)
    app = create_app(Services.from_session_factory(session_factory, Policy().without_duplicate_check()))
    async with _client(app) as c:
        yield c


ALICE = {"X-User-ID": "alice"}
BOB = {"X-User-ID": "bob"}


class TestIdentity:
    async def test_missing_header_is_unauthorized(self, client):
        assert (await client.get("/cart")).status_code == 401
        assert (await client.post("/orders")).status_code == 401


class TestCartRoutes:
    async def test_add_update_remove(self, client):
        added = await client.post("/cart", json={"product_id": "sword", "quantity": 2}, headers=ALICE)
        assert added.status_code == 201
        body = added.json()
        assert body["total_items"] == 2
        assert body["total_price"] == 60
        item_id = body["items"][0]["id"]

        updated = await client.put(f"/cart/{item_id}", json={"quantity": 3}, headers=ALICE)
        assert updated.status_code == 200
        assert updated.json()["total_price"] == 90

        assert (await client.delete(f"/cart/{item_id}", headers=ALICE)).status_code == 204
        assert (await client.get("/cart", headers=ALICE)).json()["items"] == []

    @pytest.mark.parametrize(
        ("payload", "status"),
        [
            ({"product_id": "sword", "quantity": 0}, 400),
            ({"product_id": "nope", "quantity": 1}, 404),
            ({"product_id": "sword", "quantity": 6}, 409),
        ],
    )
    async def test_add_errors(self, client, payload, status):
        response = await client.post("/cart", json=payload, headers=ALICE)
        assert response.status_code == status

    async def test_foreign_item_not_found(self, client):
        added = await client.post("/cart", json={"product_id": "sword", "quantity": 1}, headers=ALICE)
        item_id = added.json()["items"][0]["id"]

        assert (await client.delete(f"/cart/{item_id}", headers=BOB)).status_code == 404


class TestOrderRoutes:
    async def test_checkout_and_read_back(self, client):
        await client.post("/cart", json={"product_id": "sword", "quantity": 2}, headers=ALICE)

        created = await client.post("/orders", headers=ALICE)
        assert created.status_code == 201
        order = created.json()
        assert order["total_amount"] == 60
        assert order["status"] == "completed"
        assert order["items"][0]["price_per_unit"] == 30

        listed = await client.get("/orders", headers=ALICE)
        assert [o["id"] for o in listed.json()] == [order["id"]]

        fetched = await client.get(f"/orders/{order['id']}", headers=ALICE)
        assert fetched.status_code == 200
        assert fetched.json()["order_number"] == order["order_number"]

        inventory = await client.get("/inventory", headers=ALICE)
        assert inventory.json()[0]["quantity"] == 2

    async def test_other_users_order_is_not_found(self, client):
        await client.post("/cart", json={"product_id": "sword", "quantity": 1}, headers=ALICE)
        order_id = (await client.post("/orders", headers=ALICE)).json()["id"]

        assert (await client.get(f"/orders/{order_id}", headers=BOB)).status_code == 404
        assert (await client.get("/orders/missing", headers=ALICE)).status_code == 404

    async def test_empty_cart(self, client):
        response = await client.post("/orders", headers=ALICE)
        assert response.status_code == 400
        assert response.json()["detail"] == "cart is empty"

    async def test_insufficient_funds(self, client):
        await client.patch("/admin/users/alice/coins", json={"amount": -50}, headers=ALICE)
        await client.post("/cart", json={"product_id": "sword", "quantity": 2}, headers=ALICE)

        response = await client.post("/orders", headers=ALICE)

        assert response.status_code == 402
        assert response.json()["detail"] == "insufficient coins: have 50, need 60"

    @pytest.mark.parametrize(
        "change",
        [{"stock": 1}, {"is_available": False}],
        ids=["insufficient_stock", "product_unavailable"],
    )
    async def test_cart_gone_stale_is_conflict(self, client, session_factory, change):
        await client.post("/cart", json={"product_id": "sword", "quantity": 2}, headers=ALICE)
        async with session_factory() as session, session.begin():
            await session.execute(update(ProductTable).where(ProductTable.id == "sword").values(**change))

        response = await client.post("/orders", headers=ALICE)

        assert response.status_code == 409
        assert (await client.get("/orders", headers=ALICE)).json() == []


class TestAdminRoutes:
    async def test_adjust_coins(self, client):
        response = await client.patch("/admin/users/bob/coins", json={"amount": 25}, headers=ALICE)

        assert response.status_code == 200
        assert response.json() == {"message": "coins adjusted successfully", "new_balance": 125}
        assert (await client.post("/admin/users/bob/coins", json={"amount": 25}, headers=ALICE)).status_code == 405

    @pytest.mark.parametrize(
        ("target", "amount", "status"),
        [("bob", 0, 400), ("bob", -500, 400), ("ghost", 10, 404)],
    )
    async def test_adjust_coins_errors(self, client, target, amount, status):
        response = await client.patch(f"/admin/users/{target}/coins", json={"amount": amount}, headers=ALICE)
        assert response.status_code == status

    async def test_clear_inventory(self, client):
        await client.post("/cart", json={"product_id": "sword", "quantity": 1}, headers=ALICE)
        await client.post("/orders", headers=ALICE)

        response = await client.delete("/admin/users/alice/inventory", headers=ALICE)

        assert response.json() == {"removed": 1}
        assert (await client.get("/inventory", headers=ALICE)).json() == []


class TestRateLimit:
    async def test_burst_exhausted_is_429(self, session_factory, make_user):
        await make_user("alice")
        limiter = TokenBucketLimiter(RateLimitPolicy(max_per_second=1, burst=2))
        app = create_app(Services.from_session_factory(session_factory), limiter=limiter)

        async with _client(app) as client:
            statuses = [(await client.get("/cart", headers=ALICE)).status_code for _ in range(3)]

        assert statuses == [200, 200, 429]


class TestAppFromSettings:
    def test_wires_limiter_and_policy(self, tmp_path):
        settings = (
            Settings()
            .with_database_url(f"sqlite+aiosqlite:///{tmp_path / 'served.db'}")
            .with_rate_limit(per_second=5, burst=3)
        )

        app = app_from_settings(settings)

        assert isinstance(app.state.limiter, TokenBucketLimiter)
        assert app.state.services.checkout.policy == settings.checkout_policy()
        paths = {route.path for route in app.routes}
        assert {"/orders", "/orders/{order_id}", "/cart", "/cart/{item_id}", "/inventory"} <= paths
